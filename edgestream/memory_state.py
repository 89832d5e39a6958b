"""A thread-safe in-memory key/value state."""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from datetime import timedelta
from typing import Any, Iterator, Optional

from .state import StateChangeCallback, StateMetrics


class MemoryState:
    """Named key/value state held in memory, with metrics and change callbacks.

    Change callbacks are called after the state's lock has been released.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._data: dict[str, Any] = {}
        self._lock = threading.RLock()
        self._metrics = StateMetrics()
        self._callback: Optional[StateChangeCallback] = None

    @contextmanager
    def _measured(self, operation: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self._metrics.update_latency(
                timedelta(seconds=time.perf_counter() - start)
            )
            self._metrics.increment_operation(operation)

    def _notify(self, key: str, old_value: Any, new_value: Any) -> None:
        callback = self._callback
        if callback is not None:
            callback(self.name, key, old_value, new_value)

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value stored under ``key``, or ``default``."""
        with self._measured("get"), self._lock:
            return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        """Store ``value`` under ``key``; raise ValueError for an empty key."""
        with self._measured("set"):
            if key == "":
                raise ValueError("key cannot be empty")
            with self._lock:
                old_value = self._data.get(key)
                self._data[key] = value
                self._metrics.state_count = len(self._data)
            self._notify(key, old_value, value)

    def delete(self, key: str) -> None:
        """Remove ``key``; raise KeyError when it is absent."""
        with self._measured("delete"):
            with self._lock:
                if key not in self._data:
                    raise KeyError(f"key {key} not found")
                old_value = self._data.pop(key)
                self._metrics.state_count = len(self._data)
            self._notify(key, old_value, None)

    def exists(self, key: str) -> bool:
        """Tell whether ``key`` is stored."""
        with self._lock:
            return key in self._data

    def keys(self) -> list[str]:
        """Return every stored key."""
        with self._lock:
            return list(self._data)

    def size(self) -> int:
        """Return the number of stored keys."""
        with self._lock:
            return len(self._data)

    def clear(self) -> None:
        """Remove every key."""
        with self._lock:
            self._data = {}
            self._metrics.state_count = 0
        self._notify("", None, None)

    def set_callback(self, callback: Optional[StateChangeCallback]) -> None:
        """Set the function called on every change."""
        with self._lock:
            self._callback = callback

    def get_metrics(self) -> StateMetrics:
        """Return a snapshot of this state's metrics."""
        return self._metrics.snapshot()

    def get_data(self) -> dict[str, Any]:
        """Return a copy of all stored data."""
        with self._lock:
            return dict(self._data)

    def set_data(self, data: dict[str, Any]) -> None:
        """Replace all stored data with a copy of ``data``."""
        with self._lock:
            self._data = dict(data)
            self._metrics.state_count = len(self._data)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._data

    def __len__(self) -> int:
        return self.size()