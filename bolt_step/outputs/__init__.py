"""Step output sinks."""

from .console import ConsoleOutputSink
from .factory import get_output_sink
from .interface import OutputSink
from .metadata_api import MetadataApiOutputSink

__all__ = [
    "OutputSink",
    "ConsoleOutputSink",
    "MetadataApiOutputSink",
    "get_output_sink",
]
