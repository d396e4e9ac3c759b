"""Workflow step that runs a Bolt task, plan or apply against an inventory."""

from bolt_step.job_spec import ABSENT, JobSpec
from bolt_step.models import (
    ActionType,
    BoltAction,
    ExecutionResult,
    ProjectSource,
    ProjectType,
    RunArtifacts,
    TransportType,
)

__all__ = [
    "ABSENT",
    "JobSpec",
    "ActionType",
    "BoltAction",
    "ExecutionResult",
    "ProjectSource",
    "ProjectType",
    "RunArtifacts",
    "TransportType",
]
