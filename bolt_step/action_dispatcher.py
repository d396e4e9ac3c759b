"""
Action dispatch.

Runs exactly one Bolt action (task, plan or apply) against the resolved
inventory and captures its JSON output and exit code.
"""

from pathlib import Path
from typing import List

import yaml

from bolt_step.bolt_cli import BoltCli
from bolt_step.exceptions import ArtifactError, ConfigurationError, ProvisioningError
from bolt_step.job_spec import ABSENT, JobSpec
from bolt_step.models import ActionType, BoltAction, ExecutionResult, RunArtifacts
from bolt_step.telemetry import get_logger, trace_span
from bolt_step.workspace import Workspace

logger = get_logger(__name__)

OUTPUT_FORMAT = "json"

# loadjson() used by the apply manifest comes from stdlib
STDLIB_MODULE = "puppetlabs-stdlib"

PROJECT_CONFIG_NAME = "bolt-project.yaml"
PUPPETFILE_NAME = "Puppetfile"

MANIFEST_TEMPLATE = """\
$params = loadjson('{params_file}')

class {{ '{name}':
  * => $params,
}}
"""


def resolve_action(spec: JobSpec) -> BoltAction:
    """
    Validate the `type` and `name` fields of the job spec.

    Raises:
        ConfigurationError: If type is missing or unsupported, or name is missing
    """
    action_type = spec.get("type")
    if action_type is ABSENT or action_type is None or action_type == "":
        raise ConfigurationError(
            "spec: specify 'type', one of 'task', 'plan' or 'apply', "
            "the type of Bolt run to perform"
        )

    try:
        resolved_type = ActionType(action_type)
    except ValueError:
        raise ConfigurationError(f"spec: unsupported type '{action_type}'; cannot run this") from None

    name = spec.get("name")
    if name is ABSENT or name is None or name == "":
        raise ConfigurationError(
            f"spec: specify 'name', the name of the Bolt {resolved_type.value} to run"
        )

    return BoltAction(type=resolved_type, name=str(name))


def _puppet_quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace("'", "\\'")


def render_apply_manifest(class_name: str, params_file: Path) -> str:
    """Render a manifest declaring one class with parameters loaded from JSON."""
    return MANIFEST_TEMPLATE.format(
        params_file=_puppet_quote(str(params_file)),
        name=_puppet_quote(class_name),
    )


def write_apply_manifest(class_name: str, params_file: Path, destination: Path) -> Path:
    try:
        destination.write_text(render_apply_manifest(class_name, params_file), encoding="utf-8")
    except OSError as e:
        raise ArtifactError(f"Failed to write manifest to {destination}: {e}") from e
    return destination


def _normalize_module_name(name: str) -> str:
    return name.strip().lower().replace("/", "-")


def project_declares_module(project_dir: Path, module: str) -> bool:
    """Check bolt-project.yaml and the Puppetfile for a module declaration."""
    wanted = _normalize_module_name(module)

    project_config = project_dir / PROJECT_CONFIG_NAME
    if project_config.is_file():
        try:
            with open(project_config, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ProvisioningError(f"Failed to parse {project_config}: {e}") from e
        modules = config.get("modules") if isinstance(config, dict) else None
        for entry in modules or []:
            declared = entry.get("name") if isinstance(entry, dict) else entry
            if isinstance(declared, str) and _normalize_module_name(declared) == wanted:
                return True

    puppetfile = project_dir / PUPPETFILE_NAME
    if puppetfile.is_file():
        for line in puppetfile.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line.startswith("mod "):
                continue
            declared = line[4:].split(",", 1)[0].strip().strip("'\"")
            if _normalize_module_name(declared) == wanted:
                return True

    return False


def ensure_module(project_dir: Path, module: str, bolt: BoltCli) -> None:
    if project_declares_module(project_dir, module):
        logger.info(f"Project already declares {module}")
        return

    logger.info(f"Adding {module} to project")
    bolt.module_add(project_dir, module)


def build_run_args(
    action: BoltAction, project_dir: Path, inventory: Path, artifacts: RunArtifacts
) -> List[str]:
    return [
        action.type.value,
        "run",
        action.name,
        "--project",
        str(project_dir),
        "--inventoryfile",
        str(inventory),
        "--params",
        f"@{artifacts.params_file}",
        "--targets",
        f"@{artifacts.targets_file}",
        "--format",
        OUTPUT_FORMAT,
    ]


def build_apply_args(
    manifest: Path, project_dir: Path, inventory: Path, artifacts: RunArtifacts
) -> List[str]:
    return [
        "apply",
        str(manifest),
        "--project",
        str(project_dir),
        "--inventoryfile",
        str(inventory),
        "--targets",
        f"@{artifacts.targets_file}",
        "--format",
        OUTPUT_FORMAT,
    ]


@trace_span
def run_action(
    action: BoltAction,
    project_dir: Path,
    inventory: Path,
    artifacts: RunArtifacts,
    workspace: Workspace,
    bolt: BoltCli,
) -> ExecutionResult:
    """
    Run the action and keep its stdout in the workspace output file.

    Returns:
        ExecutionResult with Bolt's exit code and raw stdout
    """
    if action.type in (ActionType.TASK, ActionType.PLAN):
        args = build_run_args(action, project_dir, inventory, artifacts)
    elif action.type == ActionType.APPLY:
        manifest = write_apply_manifest(action.name, artifacts.params_file, workspace.manifest_file)
        ensure_module(project_dir, STDLIB_MODULE, bolt)
        args = build_apply_args(manifest, project_dir, inventory, artifacts)
    else:
        raise ConfigurationError(f"spec: unsupported type '{action.type}'; cannot run this")

    result = bolt.execute(args, project_dir)

    try:
        workspace.output_file.write_text(result.stdout, encoding="utf-8")
    except OSError as e:
        raise ArtifactError(f"Failed to write output to {workspace.output_file}: {e}") from e

    execution = ExecutionResult(exit_code=result.exit_code, output=result.stdout)
    if execution.success:
        logger.info(f"Bolt {action.type.value} '{action.name}' completed")
    else:
        logger.error(
            f"Bolt {action.type.value} '{action.name}' exited with code {execution.exit_code}"
        )

    return execution
