from bolt_step.settings import Settings

from .console import ConsoleOutputSink
from .interface import OutputSink
from .metadata_api import MetadataApiOutputSink


def get_output_sink(settings: Settings) -> OutputSink:
    """Get the output sink for the configured environment."""
    if settings.metadata_api_url:
        return MetadataApiOutputSink(settings.metadata_api_url)
    return ConsoleOutputSink()
