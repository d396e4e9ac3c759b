"""
Output sink backed by the step metadata API.
"""

import requests

from bolt_step.exceptions import OutputError
from bolt_step.telemetry import get_logger

from .interface import OutputSink

logger = get_logger(__name__)


class MetadataApiOutputSink(OutputSink):
    """Publishes outputs with `PUT <api>/outputs/<key>`."""

    def __init__(self, api_endpoint: str, timeout: int = 30):
        self.api_endpoint = api_endpoint.rstrip("/")
        self.timeout = timeout

    def set_output(self, key: str, value: str) -> None:
        url = f"{self.api_endpoint}/outputs/{key}"
        try:
            response = requests.put(
                url,
                data=value.encode("utf-8"),
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise OutputError(f"Failed to set output '{key}': {e}") from e

        logger.info(f"✓ Output '{key}' set ({len(value)} chars)")
