"""State types, configuration, checkpoints and metrics for state management."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Callable, Optional

from . import constants

StateChangeCallback = Callable[[str, str, Any, Any], None]


class StateType(str, Enum):
    """The kinds of state a manager can hold."""

    MEMORY = "memory"
    PERSISTENT = "persistent"
    DISTRIBUTED = "distributed"


class StateEventType(str, Enum):
    """The kinds of change a state can undergo."""

    SET = "set"
    DELETE = "delete"
    CLEAR = "clear"


class StateError(Exception):
    """Raised when a state operation cannot be carried out."""


def _format_time(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_time(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class Checkpoint:
    """A snapshot of every state's data at one moment."""

    id: str = ""
    timestamp: Optional[datetime] = None
    states: Optional[dict[str, dict[str, Any]]] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the checkpoint."""
        return {
            "id": self.id,
            "timestamp": _format_time(self.timestamp),
            "states": self.states,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Checkpoint":
        """Build a checkpoint from a mapping made by ``to_dict``."""
        return cls(
            id=data.get("id", "") or "",
            timestamp=_parse_time(data.get("timestamp")),
            states=data.get("states"),
            metadata=data.get("metadata") or {},
        )


@dataclass
class CheckpointInfo:
    """Summary of a stored checkpoint."""

    id: str
    timestamp: Optional[datetime]
    size: int
    states: int


@dataclass
class RedisConfig:
    """Connection settings for a Redis store."""

    host: str = ""
    port: int = 0
    password: str = ""
    db: int = 0
    prefix: str = ""


@dataclass
class EtcdConfig:
    """Connection settings for an etcd store."""

    endpoints: list[str] = field(default_factory=list)
    username: str = ""
    password: str = ""
    prefix: str = ""


@dataclass
class PersistentStorageConfig:
    """Where persistent state and checkpoints are kept."""

    type: str = ""
    path: str = ""
    redis: RedisConfig = field(default_factory=RedisConfig)
    etcd: EtcdConfig = field(default_factory=EtcdConfig)


@dataclass
class DistributedConfig:
    """Settings for distributing state over a cluster."""

    enabled: bool = False
    node_id: str = ""
    cluster_nodes: list[str] = field(default_factory=list)
    replication_factor: int = 0
    consistency_level: str = ""


@dataclass
class StateConfig:
    """Configuration of a state manager."""

    checkpoint_interval: timedelta = timedelta(0)
    max_checkpoints: int = 0
    persistent_storage: PersistentStorageConfig = field(
        default_factory=PersistentStorageConfig
    )
    distributed_config: DistributedConfig = field(default_factory=DistributedConfig)


def default_state_config() -> StateConfig:
    """Return the default state configuration."""
    return StateConfig(
        checkpoint_interval=timedelta(
            minutes=constants.DEFAULT_CHECKPOINT_INTERVAL_MINUTES
        ),
        max_checkpoints=constants.DEFAULT_MAX_CHECKPOINTS,
        persistent_storage=PersistentStorageConfig(type="file", path="./data/state"),
        distributed_config=DistributedConfig(
            enabled=False,
            replication_factor=constants.DEFAULT_REPLICATION_FACTOR,
            consistency_level="strong",
        ),
    )


@dataclass
class StateEvent:
    """A single change made to a state."""

    type: StateEventType
    state_name: str
    key: str
    old_value: Any = None
    new_value: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class StateMetrics:
    """Counters and latency figures for one state."""

    state_count: int = 0
    total_operations: int = 0
    get_operations: int = 0
    set_operations: int = 0
    delete_operations: int = 0
    average_latency: timedelta = timedelta(0)
    max_latency: timedelta = timedelta(0)
    min_latency: timedelta = timedelta(0)
    checkpoint_count: int = 0
    last_checkpoint_time: Optional[datetime] = None
    error_count: int = 0
    _lock: threading.Lock = field(
        default_factory=threading.Lock, init=False, repr=False, compare=False
    )

    def increment_operation(self, operation_type: str) -> None:
        """Count one operation of the given kind ("get", "set" or "delete")."""
        with self._lock:
            self.total_operations += 1
            if operation_type == "get":
                self.get_operations += 1
            elif operation_type == "set":
                self.set_operations += 1
            elif operation_type == "delete":
                self.delete_operations += 1

    def update_latency(self, latency: timedelta) -> None:
        """Fold one observed latency into the max, min and moving average."""
        zero = timedelta(0)
        with self._lock:
            if self.max_latency == zero or latency > self.max_latency:
                self.max_latency = latency
            if self.min_latency == zero or latency < self.min_latency:
                self.min_latency = latency
            if self.average_latency == zero:
                self.average_latency = latency
            else:
                self.average_latency = (
                    self.average_latency + latency
                ) / constants.DEFAULT_AVERAGE_LATENCY_DIVISOR

    def increment_error(self) -> None:
        """Count one error."""
        with self._lock:
            self.error_count += 1

    def snapshot(self) -> "StateMetrics":
        """Return an independent copy of the current figures."""
        with self._lock:
            return replace(self)


@dataclass
class StateManagerMetrics:
    """Counters describing a state manager."""

    states_count: int = 0
    checkpoints_count: int = 0
    last_checkpoint_at: Optional[datetime] = None
    total_operations: int = 0
    errors_count: int = 0
    start_time: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready mapping of the metrics."""
        data = asdict(self)
        data["last_checkpoint_at"] = _format_time(self.last_checkpoint_at)
        data["start_time"] = _format_time(self.start_time)
        return data