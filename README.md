# edgestream

Small, dependency-free building blocks for edge data pipelines.

## What is inside

- `edgestream.flowfile`: `FlowFile` is the unit of data that moves through a
  pipeline. It holds `content` bytes, a `size`, string `attributes`, a
  `timestamp` and a `lineage_id`. Attribute access goes through
  `set_attribute`, `get_attribute` and `has_attribute`, which take a lock.
- `edgestream.source`: `SimpleSource` replays a list of flow files, and
  `StringSource` wraps each string in a new flow file. It sets the `source`
  and `index` attributes on each one. Every source has `read()`, `has_next()`
  and `reset()`, and you can iterate over it.
- `edgestream.processor`: `SimpleProcessor` passes flow files through
  unchanged. `TransformProcessor` applies the function you give it.
- `edgestream.sink`: `SimpleSink` keeps what it is given in `data`, and
  `ConsoleSink` prints one line per flow file. Both raise `ValueError` when
  they are given `None`.
- `edgestream.state`: state types (`StateType`), configuration (`StateConfig`,
  `default_state_config()`), `Checkpoint`, and the metrics dataclasses.
- `edgestream.memory_state`: `MemoryState`, a thread-safe named key/value
  store. It keeps operation counts and latency figures.
- `edgestream.manager`: `StandardStateManager` creates and tracks named
  states, notifies watchers of changes, and writes and restores checkpoints.
- `edgestream.checkpoint`: `FileCheckpointManager` stores each checkpoint as
  `checkpoint_<id>_<unix seconds>.json` in a directory. It can list, load,
  delete, validate and clean up checkpoints.
- `edgestream.metrics`: `MetricType`, a small `Registry`, and
  `PrometheusMetric`, one labelled series of a counter, gauge, histogram or
  summary.
- `edgestream.collector`: `StandardMetricCollector` records series and
  exports them as Prometheus text or as JSON.
- `edgestream.constants` and `edgestream.performance`: shared default values
  and `BenchmarkConfig`.

## Installation

```
pip install .
```

## A short pipeline

```python
from edgestream.source import StringSource
from edgestream.processor import TransformProcessor
from edgestream.sink import SimpleSink

def upper(flow_file):
    flow_file.content = flow_file.content.upper()
    return flow_file

source = StringSource("words", ["alpha", "beta"])
processor = TransformProcessor("upper", upper)
sink = SimpleSink("out")

for flow_file in source:
    sink.write(processor.process(flow_file))

print([f.content for f in sink.data])   # [b'ALPHA', b'BETA']
```

## State and checkpoints

By default, a `StandardStateManager` writes checkpoints under
`./data/state`. It also starts a background thread that writes one every
five minutes. `close()` stops that thread and writes a final checkpoint. The
manager can also be used as a context manager, which calls `close()` on exit.

```python
from datetime import timedelta

from edgestream.manager import StandardStateManager
from edgestream.state import StateType, default_state_config

config = default_state_config()
config.persistent_storage.path = "/tmp/edgestream-state"
config.checkpoint_interval = timedelta(0)   # no background checkpoints

with StandardStateManager(config) as manager:
    stop_watching = manager.watch(lambda state, key, old, new: print(state, key, old, new))
    counts = manager.create_state("counts", StateType.MEMORY)
    counts.set("seen", 3)
    checkpoint = manager.create_checkpoint()
    stop_watching()

    manager.restore_from_checkpoint(checkpoint)
    latest = manager.checkpoint_manager.get_latest()
    print(latest.states)                     # {'counts': {'seen': 3}}
```

Errors are raised as exceptions:

- `MemoryState.set("")` raises `ValueError`.
- Deleting a missing key or state raises `KeyError`.
- Creating a state that exists already raises `StateError`.
- A missing checkpoint raises `CheckpointNotFoundError`.

## Metrics

```python
from edgestream.collector import StandardMetricCollector

collector = StandardMetricCollector()
collector.record_counter("requests_total", 1, {"method": "GET"})
collector.record_histogram("request_seconds", 0.25, {"endpoint": "/api"})
collector.record_latency("query", 0.1)   # seconds or a timedelta
print(collector.export("prometheus").decode())
```

`export("json")` describes each series by its name, type, labels and the
time it was last updated. It does not include the values. Any format other
than `"prometheus"` or `"json"` raises `ValueError`.

## What it does not do

- Only in-memory state is available. Asking for `StateType.PERSISTENT` or
  `StateType.DISTRIBUTED` raises `StateError`. The Redis, etcd and cluster
  settings in `StateConfig` are carried but not used.
- Metrics are rendered as text and nothing more. There is no HTTP endpoint
  to serve them.
- Summaries record only a sum and a count, with no quantiles.
- There is no command-line program. The package is a library.

## Running the tests

```
pip install .[test]
pytest
```