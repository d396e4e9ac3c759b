"""
Run workspace layout.

Every file the step writes lives under one workspace directory owned by the run.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from bolt_step.bolt_cli import BOLT_USER_CONFIG
from bolt_step.settings import Settings

PRIVATE_FILE_MODE = 0o600
PRIVATE_DIR_MODE = 0o700


@dataclass(frozen=True)
class Workspace:
    """Paths of the run artifacts inside the workspace."""

    root: Path

    @classmethod
    def from_settings(cls, settings: Settings) -> "Workspace":
        return cls(root=settings.workdir)

    @property
    def project_dir(self) -> Path:
        return self.root / "project"

    @property
    def archive_file(self) -> Path:
        return self.root / "project.tar.gz"

    @property
    def params_file(self) -> Path:
        return self.root / "params.json"

    @property
    def targets_file(self) -> Path:
        return self.root / "targets.txt"

    @property
    def output_file(self) -> Path:
        return self.root / "output.json"

    @property
    def inventory_file(self) -> Path:
        return self.root / "inventory.yaml"

    @property
    def manifest_file(self) -> Path:
        return self.root / "manifest.pp"

    @property
    def ssh_dir(self) -> Path:
        return self.root / ".ssh"

    @property
    def bolt_home(self) -> Path:
        """HOME for the engine subprocess; Bolt reads its user config below it."""
        return self.root / "bolt-home"

    @property
    def bolt_config_file(self) -> Path:
        return self.bolt_home / BOLT_USER_CONFIG

    def create(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)


def write_private_file(path: Path, content: str) -> Path:
    """
    Write content readable and writable by the owner only.

    SSH refuses keys without a trailing newline, so one is added if missing.
    """
    path.parent.mkdir(mode=PRIVATE_DIR_MODE, parents=True, exist_ok=True)
    if not content.endswith("\n"):
        content += "\n"

    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, PRIVATE_FILE_MODE)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)
    # os.open honours the mode only on creation
    os.chmod(path, PRIVATE_FILE_MODE)
    return path
