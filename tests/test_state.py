import json
from datetime import datetime, timedelta, timezone

import pytest

from edgestream import constants
from edgestream.state import (
    Checkpoint,
    CheckpointInfo,
    DistributedConfig,
    StateConfig,
    StateEvent,
    StateEventType,
    StateManagerMetrics,
    StateMetrics,
    StateType,
    default_state_config,
)


def test_state_type_values():
    assert StateType("memory") is StateType.MEMORY
    assert StateType.PERSISTENT.value == "persistent"
    assert StateType.DISTRIBUTED.value == "distributed"
    with pytest.raises(ValueError):
        StateType("bogus")


def test_state_event_type_values():
    assert StateEventType("set") is StateEventType.SET
    assert StateEventType.DELETE.value == "delete"
    assert StateEventType.CLEAR.value == "clear"


def test_default_state_config():
    config = default_state_config()
    assert config.checkpoint_interval == timedelta(
        minutes=constants.DEFAULT_CHECKPOINT_INTERVAL_MINUTES
    )
    assert config.max_checkpoints == constants.DEFAULT_MAX_CHECKPOINTS
    assert config.persistent_storage.type == "file"
    assert config.persistent_storage.path == "./data/state"
    assert config.distributed_config.enabled is False
    assert (
        config.distributed_config.replication_factor
        == constants.DEFAULT_REPLICATION_FACTOR
    )
    assert config.distributed_config.consistency_level == "strong"


def test_default_state_config_is_fresh_each_call():
    first = default_state_config()
    second = default_state_config()
    first.distributed_config.cluster_nodes.append("node-a")
    assert second.distributed_config.cluster_nodes == []


def test_plain_state_config_has_zero_values():
    config = StateConfig()
    assert config.checkpoint_interval == timedelta(0)
    assert config.distributed_config == DistributedConfig()


def test_checkpoint_round_trip_through_json():
    now = datetime.now(timezone.utc)
    checkpoint = Checkpoint(
        id="cp-1",
        timestamp=now,
        states={"orders": {"count": 5, "name": "x"}},
        metadata={"version": "1.0"},
    )
    text = json.dumps(checkpoint.to_dict())
    restored = Checkpoint.from_dict(json.loads(text))
    assert restored == checkpoint


def test_checkpoint_from_dict_accepts_z_suffix():
    restored = Checkpoint.from_dict(
        {"id": "a", "timestamp": "2024-01-02T03:04:05Z", "states": {}, "metadata": {}}
    )
    assert restored.timestamp == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


def test_checkpoint_from_dict_keeps_missing_states_as_none():
    restored = Checkpoint.from_dict({"id": "a", "timestamp": None, "states": None})
    assert restored.states is None
    assert restored.timestamp is None
    assert restored.metadata == {}


def test_checkpoint_info_fields():
    info = CheckpointInfo(id="x", timestamp=None, size=10, states=2)
    assert (info.id, info.size, info.states) == ("x", 10, 2)


def test_state_event_defaults_timestamp():
    before = datetime.now(timezone.utc)
    event = StateEvent(type=StateEventType.SET, state_name="s", key="k", new_value=1)
    assert event.timestamp >= before
    assert event.old_value is None


def test_increment_operation_counts_by_kind():
    metrics = StateMetrics()
    ops = ["get", "get", "set", "delete", "other"]
    for op in ops:
        metrics.increment_operation(op)
    assert metrics.total_operations == len(ops)
    assert metrics.get_operations == ops.count("get")
    assert metrics.set_operations == ops.count("set")
    assert metrics.delete_operations == ops.count("delete")


def test_update_latency_first_value_sets_all():
    metrics = StateMetrics()
    latency = timedelta(milliseconds=2)
    metrics.update_latency(latency)
    assert metrics.max_latency == latency
    assert metrics.min_latency == latency
    assert metrics.average_latency == latency


def test_update_latency_tracks_extremes():
    metrics = StateMetrics()
    small = timedelta(milliseconds=1)
    large = timedelta(milliseconds=8)
    for latency in (large, small, large):
        metrics.update_latency(latency)
    assert metrics.max_latency == large
    assert metrics.min_latency == small
    assert small <= metrics.average_latency <= large


def test_increment_error():
    metrics = StateMetrics()
    metrics.increment_error()
    metrics.increment_error()
    assert metrics.error_count == 2


def test_snapshot_is_independent():
    metrics = StateMetrics()
    metrics.increment_operation("set")
    snap = metrics.snapshot()
    metrics.increment_operation("set")
    assert snap.set_operations == 1
    assert metrics.set_operations == 2
    assert snap is not metrics


def test_state_manager_metrics_to_dict_is_json_ready():
    start = datetime(2024, 5, 6, tzinfo=timezone.utc)
    metrics = StateManagerMetrics(states_count=1, start_time=start)
    data = json.loads(json.dumps(metrics.to_dict()))
    assert data["states_count"] == 1
    assert data["start_time"] == start.isoformat()
    assert data["last_checkpoint_at"] is None
    assert set(data) == {
        "states_count",
        "checkpoints_count",
        "last_checkpoint_at",
        "total_operations",
        "errors_count",
        "start_time",
    }