"""Shared pytest fixtures for bolt step tests."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from bolt_step.bolt_cli import BoltCli, BoltResult
from bolt_step.job_spec import JobSpec
from bolt_step.settings import Settings
from bolt_step.workspace import Workspace


@pytest.fixture
def workspace(tmp_path: Path) -> Workspace:
    """Create an empty run workspace."""
    ws = Workspace(root=tmp_path / "workspace")
    ws.create()
    return ws


@pytest.fixture
def settings(workspace: Workspace) -> Settings:
    """Settings pointing at the test workspace."""
    return Settings(workdir=workspace.root, spec_file=workspace.root / "spec.json")


@pytest.fixture
def mock_bolt(workspace: Workspace) -> MagicMock:
    """Create a mock Bolt CLI that succeeds with empty JSON output."""
    bolt = MagicMock(spec=BoltCli)
    bolt.home = workspace.bolt_home
    bolt.version.return_value = "3.27.0"
    bolt.execute.return_value = BoltResult(exit_code=0, stdout='{"items": []}')
    return bolt


@pytest.fixture
def make_spec():
    """Build a JobSpec from keyword arguments."""

    def _make_spec(**data) -> JobSpec:
        return JobSpec(data)

    return _make_spec
