"""The FlowFile: the basic unit of data moving through a pipeline."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional


def generate_uuid() -> str:
    """Return a time-based identifier for a FlowFile."""
    return f"flowfile-{time.time_ns()}"


def generate_lineage_id() -> str:
    """Return a time-based lineage identifier."""
    return f"lineage-{time.time_ns()}"


@dataclass(eq=False)
class FlowFile:
    """A piece of content with attributes, tracked through the pipeline."""

    uuid: str = field(default_factory=generate_uuid)
    attributes: dict[str, str] = field(default_factory=dict)
    content: bytes = b""
    size: int = 0
    timestamp: datetime = field(default_factory=datetime.now)
    lineage_id: str = field(default_factory=generate_lineage_id)
    _lock: threading.RLock = field(
        default_factory=threading.RLock, init=False, repr=False
    )

    def set_attribute(self, key: str, value: str) -> None:
        """Set an attribute under the FlowFile's lock."""
        with self._lock:
            self.attributes[key] = value

    def get_attribute(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """Return an attribute, or ``default`` when it is absent."""
        with self._lock:
            return self.attributes.get(key, default)

    def has_attribute(self, key: str) -> bool:
        """Tell whether an attribute is present."""
        with self._lock:
            return key in self.attributes

    def validate(self) -> None:
        """Raise TypeError if the FlowFile's fields have the wrong types."""
        if not isinstance(self.content, (bytes, bytearray)):
            raise TypeError("flowFile content must be bytes")
        if not isinstance(self.attributes, dict):
            raise TypeError("flowFile attributes must be a dict")