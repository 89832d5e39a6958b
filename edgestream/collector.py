"""A metric collector that keeps labelled series in a Prometheus-style registry."""

from __future__ import annotations

import json
import threading
from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional, Union

from .metrics import MetricSnapshot, MetricType, PrometheusMetric, Registry

Duration = Union[timedelta, float, int]


def _build_metric_key(name: str, labels: Optional[Mapping[str, str]]) -> str:
    if not labels:
        return name
    body = ",".join(f"{key}={value}" for key, value in sorted(labels.items()))
    return f"{name}{{{body}}}"


def _seconds(duration: Duration) -> float:
    if isinstance(duration, timedelta):
        return duration.total_seconds()
    return float(duration)


class StandardMetricCollector:
    """Records counters, gauges and histograms, one series per name and label set."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._registry = Registry()
        self._metrics: dict[str, PrometheusMetric] = {}

    @property
    def registry(self) -> Registry:
        """The registry the collector's series are registered in."""
        with self._lock:
            return self._registry

    def _metric_for(
        self,
        name: str,
        metric_type: MetricType,
        labels: Optional[Mapping[str, str]],
    ) -> PrometheusMetric:
        key = _build_metric_key(name, labels)
        with self._lock:
            metric = self._metrics.get(key)
            if metric is None:
                metric = PrometheusMetric(name, metric_type, labels, self._registry)
                self._metrics[key] = metric
            return metric

    def record_counter(
        self, name: str, value: float, labels: Optional[Mapping[str, str]] = None
    ) -> None:
        """Add ``value`` to the counter ``name`` with ``labels``."""
        self._metric_for(name, MetricType.COUNTER, labels).add_value(value)

    def record_gauge(
        self, name: str, value: float, labels: Optional[Mapping[str, str]] = None
    ) -> None:
        """Set the gauge ``name`` with ``labels`` to ``value``."""
        self._metric_for(name, MetricType.GAUGE, labels).set_value(value)

    def record_histogram(
        self, name: str, value: float, labels: Optional[Mapping[str, str]] = None
    ) -> None:
        """Observe ``value`` in the histogram ``name`` with ``labels``."""
        self._metric_for(name, MetricType.HISTOGRAM, labels).observe_value(value)

    def record_latency(
        self,
        operation: str,
        duration: Duration,
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Observe a duration, in seconds, in the ``latency_seconds`` histogram."""
        merged = {**(labels or {}), "operation": operation}
        self.record_histogram("latency_seconds", _seconds(duration), merged)

    def record_throughput(
        self, operation: str, count: int, labels: Optional[Mapping[str, str]] = None
    ) -> None:
        """Add ``count`` to the ``throughput_total`` counter."""
        merged = {**(labels or {}), "operation": operation}
        self.record_counter("throughput_total", float(count), merged)

    def record_error(
        self,
        operation: str,
        error_type: str,
        labels: Optional[Mapping[str, str]] = None,
    ) -> None:
        """Count one error in the ``errors_total`` counter."""
        merged = {**(labels or {}), "operation": operation, "error_type": error_type}
        self.record_counter("errors_total", 1.0, merged)

    def record_memory_usage(self, component: str, num_bytes: int) -> None:
        """Set the ``memory_usage_bytes`` gauge for a component."""
        self.record_gauge(
            "memory_usage_bytes", float(num_bytes), {"component": component}
        )

    def record_queue_depth(self, queue_name: str, depth: int) -> None:
        """Set the ``queue_depth`` gauge for a queue."""
        self.record_gauge("queue_depth", float(depth), {"queue": queue_name})

    def record_connection_count(self, service: str, count: int) -> None:
        """Set the ``connection_count`` gauge for a service."""
        self.record_gauge("connection_count", float(count), {"service": service})

    def get_metrics(self) -> list[PrometheusMetric]:
        """Return every recorded series."""
        with self._lock:
            return list(self._metrics.values())

    def get_metric(self, name: str) -> Optional[PrometheusMetric]:
        """Return a series with the given name, or None."""
        with self._lock:
            return next(
                (metric for metric in self._metrics.values() if metric.name == name),
                None,
            )

    def reset(self) -> None:
        """Forget every series and start a fresh registry."""
        with self._lock:
            self._registry = Registry()
            self._metrics = {}

    def export(self, fmt: str) -> bytes:
        """Export as ``"prometheus"`` text or ``"json"``; raise ValueError otherwise."""
        if fmt == "prometheus":
            return self.registry.to_text().encode("utf-8")
        if fmt == "json":
            return self._export_json()
        raise ValueError(f"unsupported format: {fmt}")

    def _export_json(self) -> bytes:
        with self._lock:
            items = list(self._metrics.items())
        snapshot = MetricSnapshot(timestamp=datetime.now(timezone.utc))
        for key, metric in items:
            snapshot.metrics[key] = {
                "name": metric.name,
                "type": metric.metric_type.value,
                "labels": metric.get_labels(),
                "timestamp": metric.timestamp.isoformat(),
            }
        payload = {
            "timestamp": snapshot.timestamp.isoformat(),
            "metrics": snapshot.metrics,
        }
        return json.dumps(payload).encode("utf-8")

    def get_metric_count(self) -> int:
        """Return the number of recorded series."""
        with self._lock:
            return len(self._metrics)

    def get_metric_names(self) -> list[str]:
        """Return the distinct metric names, sorted."""
        with self._lock:
            return sorted({metric.name for metric in self._metrics.values()})

    def get_metrics_by_type(self, metric_type: MetricType | str) -> list[PrometheusMetric]:
        """Return every series of the given type."""
        wanted = MetricType(metric_type)
        with self._lock:
            return [m for m in self._metrics.values() if m.metric_type is wanted]