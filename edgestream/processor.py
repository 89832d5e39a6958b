"""Processors that transform FlowFiles."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, Optional

from .flowfile import FlowFile

TransformFunc = Callable[[FlowFile], FlowFile]


class Processor(ABC):
    """A named step that processes one FlowFile at a time."""

    def __init__(self, name: str) -> None:
        self.name = name

    @abstractmethod
    def process(self, flow_file: FlowFile) -> FlowFile:
        """Process a FlowFile and return the result."""


class SimpleProcessor(Processor):
    """A processor that passes FlowFiles through unchanged."""

    def process(self, flow_file: FlowFile) -> FlowFile:
        return flow_file


class TransformProcessor(SimpleProcessor):
    """A processor that applies a transformation function."""

    def __init__(self, name: str, transform_func: Optional[TransformFunc] = None) -> None:
        super().__init__(name)
        self.transform_func = transform_func

    def process(self, flow_file: FlowFile) -> FlowFile:
        if self.transform_func is not None:
            return self.transform_func(flow_file)
        return super().process(flow_file)