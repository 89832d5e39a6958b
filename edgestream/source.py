"""Sources that feed FlowFiles into a pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, Optional, Sequence

from .flowfile import FlowFile


class Source(ABC):
    """A named, resettable supply of FlowFiles."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def read(self) -> Optional[FlowFile]:
        """Return the next FlowFile, or None when exhausted."""

    @abstractmethod
    def has_next(self) -> bool:
        """Tell whether more FlowFiles remain."""

    def __iter__(self) -> Iterator[FlowFile]:
        while self.has_next():
            flow_file = self.read()
            if flow_file is None:
                return
            yield flow_file


class SimpleSource(Source):
    """A source that hands out a fixed list of FlowFiles."""

    def __init__(self, name: str, data: Sequence[FlowFile]) -> None:
        super().__init__(name)
        self.data = list(data)
        self._index = 0

    def read(self) -> Optional[FlowFile]:
        if self._index >= len(self.data):
            return None
        flow_file = self.data[self._index]
        self._index += 1
        return flow_file

    def has_next(self) -> bool:
        return self._index < len(self.data)

    def reset(self) -> None:
        """Start reading from the beginning again."""
        self._index = 0


class StringSource(Source):
    """A source that wraps each string in a new FlowFile."""

    def __init__(self, name: str, data: Sequence[str]) -> None:
        super().__init__(name)
        self.data = list(data)
        self._index = 0

    def read(self) -> Optional[FlowFile]:
        if self._index >= len(self.data):
            return None
        content = self.data[self._index].encode("utf-8")
        flow_file = FlowFile(content=content, size=len(content))
        flow_file.attributes["source"] = self.name
        flow_file.attributes["index"] = str(self._index)
        self._index += 1
        return flow_file

    def has_next(self) -> bool:
        return self._index < len(self.data)

    def reset(self) -> None:
        """Start reading from the beginning again."""
        self._index = 0