"""Sinks that receive the FlowFiles a pipeline produces."""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import Optional, TextIO

from .flowfile import FlowFile


class Sink(ABC):
    """A named destination for FlowFiles."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def write(self, flow_file: FlowFile) -> None:
        """Write a FlowFile; raise ValueError when it is None."""


def _require(flow_file: Optional[FlowFile]) -> FlowFile:
    if flow_file is None:
        raise ValueError("flowFile cannot be nil")
    return flow_file


class SimpleSink(Sink):
    """A sink that keeps every FlowFile written to it in memory."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.data: list[FlowFile] = []

    def write(self, flow_file: FlowFile) -> None:
        self.data.append(_require(flow_file))

    def clear(self) -> None:
        """Drop every collected FlowFile."""
        self.data = []


class ConsoleSink(Sink):
    """A sink that prints a line per FlowFile."""

    def __init__(self, name: str, stream: Optional[TextIO] = None) -> None:
        super().__init__(name)
        self.stream = stream

    def write(self, flow_file: FlowFile) -> None:
        flow_file = _require(flow_file)
        text = bytes(flow_file.content).decode("utf-8", errors="replace")
        print(
            f"[{self.name}] FlowFile ID: {flow_file.uuid}, "
            f"Size: {flow_file.size} bytes, Content: {text}",
            file=self.stream if self.stream is not None else sys.stdout,
        )