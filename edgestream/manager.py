"""A state manager that holds named states and checkpoints them to disk."""

from __future__ import annotations

import json
import logging
import threading
import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from .checkpoint import FileCheckpointManager
from .memory_state import MemoryState
from .state import (
    Checkpoint,
    StateChangeCallback,
    StateConfig,
    StateError,
    StateManagerMetrics,
    StateType,
    default_state_config,
)

logger = logging.getLogger(__name__)


class StandardStateManager:
    """Creates, tracks and checkpoints named in-memory states.

    When the configured checkpoint interval is positive, a background thread
    writes a checkpoint at that interval until the manager is closed.
    """

    def __init__(self, config: Optional[StateConfig] = None) -> None:
        self.config = config if config is not None else default_state_config()
        self._lock = threading.RLock()
        self._states: dict[str, MemoryState] = {}
        self._callbacks: list[StateChangeCallback] = []
        self._metrics = StateManagerMetrics(start_time=datetime.now(timezone.utc))
        self._metrics_lock = threading.Lock()
        self.checkpoint_manager = FileCheckpointManager(
            self.config.persistent_storage.path
        )
        self._stop = threading.Event()
        self._timer: Optional[threading.Thread] = None
        if self.config.checkpoint_interval > timedelta(0):
            self._start_checkpoint_timer()

    def __enter__(self) -> "StandardStateManager":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _count_error(self) -> None:
        with self._metrics_lock:
            self._metrics.errors_count += 1

    def create_state(self, name: str, state_type: StateType | str) -> MemoryState:
        """Create and register a new state; raise StateError if it cannot be."""
        try:
            kind = StateType(state_type)
        except ValueError:
            raise StateError(f"unsupported state type: {state_type}") from None
        with self._lock:
            if name in self._states:
                raise StateError(f"state {name} already exists")
            if kind is not StateType.MEMORY:
                raise StateError(f"{kind.value} state is not supported")
            state = MemoryState(name)
            state.set_callback(self._notify_callbacks)
            self._states[name] = state
        with self._metrics_lock:
            self._metrics.states_count += 1
        return state

    def get_state(self, name: str) -> Optional[MemoryState]:
        """Return the named state, or None."""
        with self._lock:
            return self._states.get(name)

    def delete_state(self, name: str) -> None:
        """Forget the named state; raise KeyError if it is unknown."""
        with self._lock:
            if name not in self._states:
                raise KeyError(f"state {name} not found")
            del self._states[name]
        with self._metrics_lock:
            self._metrics.states_count -= 1

    def list_states(self) -> list[str]:
        """Return the names of every state."""
        with self._lock:
            return list(self._states)

    def create_checkpoint(self) -> Checkpoint:
        """Snapshot every state, save it and return the checkpoint."""
        with self._lock:
            checkpoint = Checkpoint(
                id=str(uuid.uuid4()),
                timestamp=datetime.now(timezone.utc),
                states={name: state.get_data() for name, state in self._states.items()},
                metadata={"version": "1.0", "states_count": len(self._states)},
            )
        try:
            self.checkpoint_manager.save(checkpoint)
        except StateError as exc:
            self._count_error()
            raise StateError(f"failed to save checkpoint: {exc}") from exc
        with self._metrics_lock:
            self._metrics.checkpoints_count += 1
            self._metrics.last_checkpoint_at = datetime.now(timezone.utc)
        return checkpoint

    def restore_from_checkpoint(self, checkpoint: Checkpoint) -> None:
        """Replace every state with the contents of ``checkpoint``."""
        with self._lock:
            self._states = {}
            for state_name, state_data in (checkpoint.states or {}).items():
                state = MemoryState(state_name)
                state.set_callback(self._notify_callbacks)
                state.set_data(state_data or {})
                self._states[state_name] = state
            count = len(self._states)
        with self._metrics_lock:
            self._metrics.states_count = count

    def watch(self, callback: StateChangeCallback) -> Callable[[], None]:
        """Call ``callback`` on every state change; return a function that stops it."""
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def _notify_callbacks(self, state_name: str, key: str, old_value, new_value) -> None:
        with self._lock:
            callbacks = list(self._callbacks)
        for callback in callbacks:
            if callback is not None:
                callback(state_name, key, old_value, new_value)

    def _start_checkpoint_timer(self) -> None:
        interval = self.config.checkpoint_interval.total_seconds()

        def run() -> None:
            while not self._stop.wait(interval):
                try:
                    self.create_checkpoint()
                except StateError as exc:
                    logger.error("Failed to create checkpoint: %s", exc)

        self._timer = threading.Thread(target=run, name="checkpoint-timer", daemon=True)
        self._timer.start()

    def get_metrics(self) -> StateManagerMetrics:
        """Return a copy of the manager's metrics."""
        with self._metrics_lock:
            return replace(self._metrics)

    def close(self) -> None:
        """Stop the checkpoint timer and write a final checkpoint."""
        self._stop.set()
        if self._timer is not None:
            self._timer.join()
            self._timer = None
        try:
            self.create_checkpoint()
        except StateError as exc:
            logger.error("Failed to create final checkpoint: %s", exc)

    def export(self) -> str:
        """Return every state's data and the metrics as indented JSON."""
        with self._lock:
            states = {name: state.get_data() for name, state in self._states.items()}
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "states": states,
            "metrics": self.get_metrics().to_dict(),
        }
        return json.dumps(payload, indent=2)