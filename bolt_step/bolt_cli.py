"""
Bolt command line wrapper.

Runs the bolt executable with HOME pointed at the run-scoped home so the
engine reads the configuration assembled for this run only.
"""

import os
import shlex
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence
from urllib.parse import urlsplit, urlunsplit

from bolt_step.exceptions import ProvisioningError
from bolt_step.telemetry import get_logger

logger = get_logger(__name__)

# Where Bolt looks for user defaults, relative to HOME
BOLT_USER_CONFIG = Path(".puppetlabs", "etc", "bolt", "bolt-defaults.yaml")


def redact_url(value: str) -> str:
    """Mask the userinfo of a URL so embedded credentials never reach the logs."""
    try:
        parts = urlsplit(value)
    except ValueError:
        return value
    if not parts.scheme or "@" not in parts.netloc:
        return value
    host = parts.netloc.rsplit("@", 1)[1]
    return urlunsplit(parts._replace(netloc=f"***@{host}"))


def format_command(cmd: Sequence[str]) -> str:
    return " ".join(redact_url(arg) for arg in cmd)


def _mask_output(text: Optional[str], cmd: Sequence[str]) -> Optional[str]:
    if not text:
        return text
    for arg in cmd:
        masked = redact_url(arg)
        if masked != arg:
            text = text.replace(arg, masked)
    return text


@dataclass
class BoltResult:
    """Exit code and raw stdout of one engine invocation."""

    exit_code: int
    stdout: str
    stderr: str = ""


def run_checked(
    cmd: Sequence[str],
    *,
    cwd: Optional[Path] = None,
    env: Optional[Dict[str, str]] = None,
    action: str,
) -> subprocess.CompletedProcess:
    """
    Run a provisioning command, raising ProvisioningError on non-zero exit.

    The command line is logged with URL credentials masked.
    """
    logger.info(f"Running command: {format_command(cmd)}")
    try:
        return subprocess.run(
            list(cmd), cwd=cwd, env=env, capture_output=True, text=True, check=True
        )
    except subprocess.CalledProcessError as e:
        raise ProvisioningError(
            f"{action} failed with exit code {e.returncode}\n"
            f"Command: {format_command(cmd)}\n"
            f"Stdout: {_mask_output(e.stdout, cmd)}\n"
            f"Stderr: {_mask_output(e.stderr, cmd)}"
        ) from e
    except OSError as e:
        raise ProvisioningError(f"{action} failed: {e}") from e


class BoltCli:
    """Invokes the bolt executable for a single run."""

    def __init__(self, command: str, home: Path):
        self.command: List[str] = shlex.split(command)
        self.home = home

    def env(self) -> Dict[str, str]:
        env = dict(os.environ)
        env["HOME"] = str(self.home)
        return env

    def version(self) -> Optional[str]:
        """Return the engine version, or None if it cannot be determined."""
        try:
            result = subprocess.run(
                [*self.command, "--version"],
                env=self.env(),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.warning(f"Unable to determine Bolt version: {e}")
            return None

        if result.returncode != 0:
            logger.warning(f"Unable to determine Bolt version: {result.stderr.strip()}")
            return None
        return result.stdout.strip()

    def module_install(self, project_dir: Path) -> None:
        """Install the modules declared by the project."""
        self.home.mkdir(parents=True, exist_ok=True)
        run_checked(
            [*self.command, "module", "install", "--project", str(project_dir)],
            cwd=project_dir,
            env=self.env(),
            action="Module install",
        )

    def module_add(self, project_dir: Path, module: str) -> None:
        """Declare a module in the project and install it."""
        self.home.mkdir(parents=True, exist_ok=True)
        run_checked(
            [*self.command, "module", "add", module, "--project", str(project_dir)],
            cwd=project_dir,
            env=self.env(),
            action=f"Adding module {module}",
        )

    def execute(self, args: Sequence[str], project_dir: Path) -> BoltResult:
        """
        Run an action and capture its output.

        A non-zero exit is returned, not raised: the caller surfaces it as the
        step's own status.
        """
        cmd = [*self.command, *args]
        logger.info(f"Running command: {format_command(cmd)}")

        result = subprocess.run(
            cmd,
            cwd=project_dir,
            env=self.env(),
            capture_output=True,
            text=True,
            check=False,
        )

        if result.stderr:
            logger.info(f"Bolt stderr:\n{result.stderr.rstrip()}")

        return BoltResult(
            exit_code=result.returncode, stdout=result.stdout, stderr=result.stderr
        )
