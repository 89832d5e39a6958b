"""Building blocks for edge data streaming: flow files, sources, processors, sinks, state with checkpoints, and metrics."""

__version__ = "0.1.0"