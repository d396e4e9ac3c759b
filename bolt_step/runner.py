"""
Bolt Step Runner

Entry point that provisions the project, assembles the run configuration and
dispatches one Bolt action. The process exits with Bolt's exit code.
"""

import sys

import requests
import yaml

from bolt_step.action_dispatcher import resolve_action, run_action
from bolt_step.bolt_cli import BoltCli
from bolt_step.config_assembler import (
    prepare_inputs,
    resolve_config_overrides,
    resolve_parameters,
    resolve_targets,
    resolve_transport_key,
    resolve_transport_type,
)
from bolt_step.exceptions import ConfigurationError, OutputError, StepError
from bolt_step.inventory_resolver import resolve_inventory
from bolt_step.job_spec import load_job_spec
from bolt_step.outputs import get_output_sink
from bolt_step.project_loader import load_project, resolve_project_source
from bolt_step.settings import Settings, validate_environment
from bolt_step.telemetry import configure_telemetry, get_logger, shutdown_telemetry
from bolt_step.workspace import Workspace

logger = get_logger(__name__)

OUTPUT_KEY = "output"


def execute(settings: Settings) -> int:
    """
    Run the pipeline.

    Returns:
        Exit status: Bolt's exit code, or 1 if the run failed before Bolt ran
    """
    workspace = Workspace.from_settings(settings)
    workspace.create()

    # Load job spec
    try:
        spec = load_job_spec(settings)
    except (requests.exceptions.RequestException, OSError, yaml.YAMLError, ValueError) as e:
        logger.error(f"Failed to load job spec: {e}")
        return 1

    # Reject bad configuration before anything is fetched or run
    try:
        project = resolve_project_source(spec)
        action = resolve_action(spec)
        resolve_transport_type(spec)
        resolve_transport_key(spec)
        resolve_config_overrides(spec)
        resolve_parameters(spec)
        resolve_targets(spec)
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    bolt = BoltCli(settings.bolt_command, workspace.bolt_home)
    version = bolt.version()
    if version:
        logger.info(f"Using Puppet Bolt version: {version}")

    # Fetch and set up the project directory
    try:
        project_dir = load_project(project, workspace, settings, bolt)
    except (StepError, OSError) as e:
        logger.error(f"Failed to provision project: {e}")
        return 1

    # Inventory, Bolt config, params and targets
    try:
        inventory = resolve_inventory(spec, project_dir, workspace.inventory_file)
        artifacts = prepare_inputs(spec, workspace)
    except (StepError, OSError) as e:
        logger.error(f"Failed to prepare run inputs: {e}")
        return 1

    # Run the Bolt action
    try:
        result = run_action(action, project_dir, inventory, artifacts, workspace, bolt)
    except (StepError, OSError) as e:
        logger.error(f"Bolt execution failed: {e}")
        return 1

    # Set the output
    if result.output:
        try:
            get_output_sink(settings).set_output(OUTPUT_KEY, result.output)
        except OutputError as e:
            logger.error(str(e))
            return result.exit_code or 1
    else:
        logger.warning("Bolt produced no output")

    return result.exit_code


def main() -> int:
    """Main entry point for the step."""
    # Validate environment
    try:
        settings = validate_environment()
    except ValueError as e:
        configure_telemetry()
        logger.error(str(e))
        return 1

    configure_telemetry(
        level=settings.log_level,
        otlp_endpoint=settings.otel_exporter_otlp_endpoint,
        service_name=settings.otel_service_name,
    )

    try:
        return execute(settings)
    finally:
        shutdown_telemetry()


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
