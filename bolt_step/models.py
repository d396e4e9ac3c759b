"""Step domain models."""

from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class ProjectType(str, Enum):
    """Where the Bolt project comes from."""

    TARBALL = "tarball"
    GIT = "git"


class ActionType(str, Enum):
    """Bolt action to run."""

    TASK = "task"
    PLAN = "plan"
    APPLY = "apply"


class TransportType(str, Enum):
    """Transports the step can configure defaults for."""

    SSH = "ssh"
    WINRM = "winrm"


class ProjectSource(BaseModel):
    """Validated `project` section of the job spec."""

    type: ProjectType
    source: str = Field(..., min_length=1)
    version: Optional[str] = Field(
        default=None, description="Revision to check out (git only)"
    )
    ssh_key: Optional[str] = Field(
        default=None, repr=False, description="Private key for cloning (git only)"
    )


class BoltAction(BaseModel):
    """Validated `type` and `name` of the job spec."""

    type: ActionType
    name: str = Field(..., min_length=1)


class RunArtifacts(BaseModel):
    """Files handed to the engine invocation."""

    params_file: Path
    targets_file: Path
    config_file: Path


class ExecutionResult(BaseModel):
    """Captured engine output and exit status."""

    exit_code: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0
