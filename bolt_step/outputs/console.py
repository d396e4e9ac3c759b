import sys
from typing import Optional, TextIO

from .interface import OutputSink


class ConsoleOutputSink(OutputSink):
    """Writes outputs to standard output when no metadata API is configured."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream

    def set_output(self, key: str, value: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(value)
        stream.flush()
