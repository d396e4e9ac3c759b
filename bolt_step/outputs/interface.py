from abc import ABC, abstractmethod


class OutputSink(ABC):
    @abstractmethod
    def set_output(self, key: str, value: str) -> None:
        """
        Publish a named step output.

        Args:
            key: Output name
            value: Raw output, published without reformatting
        """
        pass
