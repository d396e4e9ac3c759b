"""
Runtime configuration assembly.

Builds the Bolt defaults file from three layers, in increasing precedence:

1. transport defaults derived from the job spec
2. the job spec's raw `config` overrides
3. safety overrides for non-interactive runs

and writes the parameters and targets files the engine reads.
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from bolt_step.exceptions import ArtifactError, ConfigurationError
from bolt_step.job_spec import JobSpec
from bolt_step.models import RunArtifacts, TransportType
from bolt_step.telemetry import get_logger, trace_span
from bolt_step.workspace import Workspace, write_private_file

logger = get_logger(__name__)

DEFAULT_USER = "root"
DEFAULT_RUN_AS = "root"

# Applied last so no other layer can re-enable them.
SAFETY_OVERRIDES: Dict[str, Any] = {
    "spinner": False,
    "save-rerun": False,
}

_FALSE_STRINGS = {"false", "no", "0", "off"}


def deep_merge(*layers: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Merge mappings left to right; later layers win.

    Nested mappings merge key by key. Scalars and lists replace.
    Inputs are not modified.
    """
    merged: Dict[str, Any] = {}
    for layer in layers:
        merged = _merge_pair(merged, layer)
    return merged


def _merge_pair(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    result = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(result.get(key), Mapping):
            result[key] = _merge_pair(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSE_STRINGS
    return bool(value)


def resolve_transport_type(spec: JobSpec) -> TransportType:
    transport_type = spec.get_or("transport.type", TransportType.SSH.value)
    try:
        return TransportType(transport_type)
    except ValueError:
        raise ConfigurationError(
            f"spec: unsupported transport '{transport_type}'; "
            "specify 'transport.type' as one of 'ssh' or 'winrm'"
        ) from None


def resolve_config_overrides(spec: JobSpec) -> Dict[str, Any]:
    overrides = spec.get_or("config", {})
    if not isinstance(overrides, Mapping):
        raise ConfigurationError("spec: 'config' must be an object of Bolt settings")
    return dict(overrides)


def build_transport_layer(spec: JobSpec, private_key: Optional[Path] = None) -> Dict[str, Any]:
    """Build transport defaults under Bolt's `inventory-config` section."""
    transport_type = resolve_transport_type(spec)
    user = spec.get_or("transport.username", DEFAULT_USER)
    password = spec.get_or("transport.password", None)

    if transport_type == TransportType.WINRM:
        options: Dict[str, Any] = {"user": user}
        if password:
            options["password"] = password
        options["ssl"] = _as_bool(spec.get_or("transport.useSSL", True))
        options["ssl-verify"] = False
        return {"inventory-config": {"winrm": options}}

    options = {"user": user}
    if private_key is not None:
        options["private-key"] = str(private_key)
    if password:
        options["password"] = password
    options["run-as"] = spec.get_or("transport.run-as", DEFAULT_RUN_AS)

    proxy_jump = spec.get_or("transport.proxyJump", None)
    if proxy_jump:
        options["proxyjump"] = proxy_jump

    # Always non-interactive against operator-trusted targets
    options["host-key-check"] = False
    options["tty"] = False
    return {"inventory-config": {"ssh": options}}


def resolve_transport_key(spec: JobSpec) -> Optional[str]:
    """Return the transport SSH key text, or None when no key is supplied."""
    ssh_key = spec.get_or("transport.connection.sshKey", None)
    if ssh_key is not None and not isinstance(ssh_key, str):
        raise ConfigurationError("spec: 'transport.connection.sshKey' must be a string")
    return ssh_key or None


def resolve_parameters(spec: JobSpec) -> Dict[str, Any]:
    parameters = spec.get_or("parameters", {})
    if not isinstance(parameters, Mapping):
        raise ConfigurationError("spec: 'parameters' must be an object")
    return dict(parameters)


def resolve_targets(spec: JobSpec) -> str:
    """
    Render the targets as the contents of the targets file.

    Raises:
        ConfigurationError: If targets is neither a string nor a list of names
    """
    targets = spec.get_or("targets", [])
    if isinstance(targets, str):
        return targets
    if not isinstance(targets, list) or not all(
        isinstance(target, (str, int, float)) and not isinstance(target, bool)
        for target in targets
    ):
        raise ConfigurationError("spec: 'targets' must be a string or a list of target names")
    return "\n".join(str(target) for target in targets)


def write_transport_key(spec: JobSpec, ssh_dir: Path) -> Optional[Path]:
    """Write the transport SSH key, if one is supplied, with owner-only access."""
    if resolve_transport_type(spec) != TransportType.SSH:
        return None

    ssh_key = resolve_transport_key(spec)
    if not ssh_key:
        return None

    try:
        return write_private_file(ssh_dir / "transport_id", ssh_key)
    except OSError as e:
        raise ArtifactError(f"Failed to write transport key: {e}") from e


def assemble_engine_config(spec: JobSpec, private_key: Optional[Path] = None) -> Dict[str, Any]:
    """Merge transport defaults, spec overrides and safety overrides."""
    return deep_merge(
        build_transport_layer(spec, private_key),
        resolve_config_overrides(spec),
        SAFETY_OVERRIDES,
    )


def write_engine_config(config: Mapping[str, Any], path: Path) -> Path:
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write("---\n")
            yaml.safe_dump(dict(config), f, default_flow_style=False, sort_keys=False)
    except OSError as e:
        raise ArtifactError(f"Failed to write Bolt config to {path}: {e}") from e
    return path


def write_parameters(spec: JobSpec, path: Path) -> Path:
    parameters = resolve_parameters(spec)

    try:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(parameters, f)
    except (OSError, TypeError) as e:
        raise ArtifactError(f"Failed to write parameters to {path}: {e}") from e
    return path


def write_targets(spec: JobSpec, path: Path) -> Path:
    content = resolve_targets(spec)

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ArtifactError(f"Failed to write targets to {path}: {e}") from e
    return path


@trace_span
def prepare_inputs(spec: JobSpec, workspace: Workspace) -> RunArtifacts:
    """
    Write the Bolt config, parameters and targets files for the run.

    Returns:
        RunArtifacts with the paths of the written files
    """
    private_key = write_transport_key(spec, workspace.ssh_dir)
    config = assemble_engine_config(spec, private_key)

    config_file = write_engine_config(config, workspace.bolt_config_file)
    logger.info(f"Bolt config written to {config_file}")

    params_file = write_parameters(spec, workspace.params_file)
    targets_file = write_targets(spec, workspace.targets_file)

    return RunArtifacts(
        params_file=params_file, targets_file=targets_file, config_file=config_file
    )
