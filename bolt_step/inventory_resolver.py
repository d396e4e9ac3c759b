"""
Inventory resolution.

An inventory supplied in the job spec takes precedence over the project's own
inventory.yaml.
"""

from pathlib import Path
from typing import Any

import yaml

from bolt_step.exceptions import ArtifactError
from bolt_step.job_spec import ABSENT, JobSpec
from bolt_step.telemetry import get_logger

logger = get_logger(__name__)

DEFAULT_INVENTORY_NAME = "inventory.yaml"


def write_inventory(inventory: Any, destination: Path) -> Path:
    """Write an inventory document as given; strings are written unchanged."""
    if isinstance(inventory, str):
        content = inventory
    else:
        content = yaml.safe_dump(inventory, default_flow_style=False, sort_keys=False)

    try:
        destination.write_text(content, encoding="utf-8")
    except OSError as e:
        raise ArtifactError(f"Failed to write inventory to {destination}: {e}") from e
    return destination


def resolve_inventory(spec: JobSpec, project_dir: Path, destination: Path) -> Path:
    """
    Decide which inventory file the engine uses.

    The project default is not checked for existence; Bolt reports a missing
    inventory itself.
    """
    inventory = spec.get("inventory")

    if inventory is ABSENT or inventory is None:
        default = project_dir / DEFAULT_INVENTORY_NAME
        logger.info(f"Using project inventory {default}")
        return default

    logger.info(f"Using inventory from spec, written to {destination}")
    return write_inventory(inventory, destination)
