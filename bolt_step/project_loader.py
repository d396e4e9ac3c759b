"""
Project provisioning.

Materializes the Bolt project in the workspace from a tarball or a git
repository, then installs the modules the project declares.
"""

import os
import shlex
import shutil
import tarfile
from pathlib import Path
from typing import Optional

import requests

from bolt_step.bolt_cli import BoltCli, redact_url, run_checked
from bolt_step.exceptions import ConfigurationError, ProvisioningError
from bolt_step.job_spec import ABSENT, JobSpec
from bolt_step.models import ProjectSource, ProjectType
from bolt_step.settings import Settings
from bolt_step.telemetry import get_logger, trace_span
from bolt_step.workspace import Workspace, write_private_file

logger = get_logger(__name__)


def resolve_project_source(spec: JobSpec) -> ProjectSource:
    """
    Validate the `project` section of the job spec.

    Raises:
        ConfigurationError: If project.type is missing or unsupported, or
            project.source is missing, or a field has the wrong type
    """
    project_type = spec.get("project.type")
    if project_type is ABSENT or project_type is None or project_type == "":
        raise ConfigurationError("spec: missing required parameter, 'project.type'")

    try:
        resolved_type = ProjectType(project_type)
    except ValueError:
        raise ConfigurationError(
            "spec: specify 'project.type' as one of 'git' or 'tarball'; "
            f"received '{project_type}'"
        ) from None

    source = spec.require("project.source")
    if not isinstance(source, str):
        raise ConfigurationError("spec: 'project.source' must be a URL string")

    version = spec.get_or("project.version", None)
    ssh_key = spec.get_or("project.connection.sshKey", None)
    if ssh_key is not None and not isinstance(ssh_key, str):
        raise ConfigurationError("spec: 'project.connection.sshKey' must be a string")

    return ProjectSource(
        type=resolved_type,
        source=source,
        version=str(version) if version not in (None, "") else None,
        ssh_key=ssh_key or None,
    )


def download_archive(url: str, destination: Path, timeout: int = 300) -> Path:
    """
    Stream an archive to disk.

    Raises:
        ProvisioningError: If the request or the write fails
    """
    logger.info(f"Downloading project archive from {redact_url(url)}")
    try:
        response = requests.get(url, timeout=timeout, stream=True)
        response.raise_for_status()

        with open(destination, "wb") as f:
            for chunk in response.iter_content(chunk_size=8192):
                f.write(chunk)
    except (requests.exceptions.RequestException, OSError) as e:
        raise ProvisioningError(f"Failed to download project archive {redact_url(url)}: {e}") from e

    logger.info(f"✓ Downloaded: {destination.name} ({destination.stat().st_size} bytes)")
    return destination


def extract_archive(archive: Path, project_dir: Path) -> None:
    """
    Extract an archive into a fresh project directory.

    Members that would land outside the project directory are rejected. On
    failure the partially extracted directory is removed.
    """
    project_dir.mkdir(parents=True)
    try:
        with tarfile.open(archive, "r:*") as tar:
            tar.extractall(project_dir, filter="data")
    except (tarfile.TarError, OSError) as e:
        shutil.rmtree(project_dir, ignore_errors=True)
        raise ProvisioningError(f"Failed to extract project archive {archive}: {e}") from e


def write_ssh_config(ssh_dir: Path, ssh_key: Optional[str]) -> Path:
    """
    Write an SSH client config for cloning.

    Repositories are operator-specified, so host keys are trusted on first use.
    """
    lines = [
        "Host *",
        "  StrictHostKeyChecking no",
        "  UserKnownHostsFile /dev/null",
        "  LogLevel ERROR",
    ]

    if ssh_key:
        key_path = write_private_file(ssh_dir / "project_id", ssh_key)
        lines.append(f"  IdentityFile {key_path}")
        lines.append("  IdentitiesOnly yes")

    return write_private_file(ssh_dir / "config", "\n".join(lines))


def clone_repository(
    source: str,
    project_dir: Path,
    ssh_config: Path,
    version: Optional[str] = None,
    git_command: str = "git",
    ssh_command: str = "ssh",
) -> None:
    """Clone a repository and optionally check out a revision."""
    env = dict(os.environ)
    env["GIT_SSH_COMMAND"] = f"{ssh_command} -F {shlex.quote(str(ssh_config))}"
    env["GIT_TERMINAL_PROMPT"] = "0"

    run_checked(
        [git_command, "clone", source, str(project_dir)],
        env=env,
        action="Git clone",
    )

    if version:
        run_checked(
            [git_command, "-C", str(project_dir), "checkout", version],
            env=env,
            action=f"Checkout of revision '{version}'",
        )


@trace_span
def load_project(
    project: ProjectSource, workspace: Workspace, settings: Settings, bolt: BoltCli
) -> Path:
    """
    Fetch the project into the workspace and install its modules.

    Returns:
        Path to the provisioned project directory

    Raises:
        ProvisioningError: If any fetch, extract, checkout or install step fails
    """
    project_dir = workspace.project_dir

    if project.type == ProjectType.TARBALL:
        archive = download_archive(
            project.source, workspace.archive_file, timeout=settings.download_timeout
        )
        extract_archive(archive, project_dir)
    elif project.type == ProjectType.GIT:
        ssh_config = write_ssh_config(workspace.ssh_dir, project.ssh_key)
        clone_repository(
            project.source,
            project_dir,
            ssh_config,
            version=project.version,
            git_command=settings.git_command,
            ssh_command=settings.ssh_command,
        )
    else:
        raise ConfigurationError(f"spec: unsupported project type '{project.type}'")

    logger.info(f"Project ready at {project_dir}")

    bolt.module_install(project_dir)
    return project_dir
