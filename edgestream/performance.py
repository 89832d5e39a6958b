"""Benchmark settings and sizes used by performance runs."""

from __future__ import annotations

from dataclasses import dataclass

VERSION = "1.0.0"
DEFAULT_ITERATIONS = 1_000_000

BENCHMARK_DATA_SET_SIZE = 1000
BENCHMARK_LARGE_DATA_SIZE = 1024
BENCHMARK_BATCH_SIZE = 10
BENCHMARK_PARALLEL_WORKERS = 4
BENCHMARK_CONCURRENT_OPERATIONS = 3
BENCHMARK_STATE_OPERATIONS = 2


@dataclass
class BenchmarkConfig:
    """Settings for a benchmark run."""

    iterations: int = DEFAULT_ITERATIONS
    timeout: str = "10m"
    mem_profile: bool = True
    cpu_profile: bool = False


def default_benchmark_config() -> BenchmarkConfig:
    """Return a fresh default benchmark configuration."""
    return BenchmarkConfig(
        iterations=DEFAULT_ITERATIONS,
        timeout="10m",
        mem_profile=True,
        cpu_profile=False,
    )