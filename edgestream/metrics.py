"""Metric types and a small Prometheus-style registry with text exposition."""

from __future__ import annotations

import logging
import math
import re
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Iterator, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_BUCKETS: tuple[float, ...] = (
    0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0,
)

_METRIC_NAME = re.compile(r"^[a-zA-Z_:][a-zA-Z0-9_:]*$")
_LABEL_NAME = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")

Sample = tuple[str, dict[str, str], float]


class MetricType(str, Enum):
    """The kinds of metric that can be recorded."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"
    SUMMARY = "summary"


@dataclass
class MetricSnapshot:
    """Metric descriptions captured at one moment."""

    timestamp: datetime
    metrics: dict[str, Any] = field(default_factory=dict)


def _format_value(value: float) -> str:
    """Format a float the way the text exposition format expects."""
    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = list(digit_tuple)
    while len(digits) > 1 and digits[-1] == 0:
        digits.pop()
        exponent += 1
    text = "".join(str(d) for d in digits)
    point = len(digits) + exponent
    exp = point - 1
    prefix = "-" if sign else ""
    if exp < -4 or exp >= 6:
        mantissa = text[0] + ("." + text[1:] if len(text) > 1 else "")
        return f"{prefix}{mantissa}e{'-' if exp < 0 else '+'}{abs(exp):02d}"
    if point <= 0:
        return f"{prefix}0.{'0' * -point}{text}"
    if point >= len(text):
        return prefix + text + "0" * (point - len(text))
    return f"{prefix}{text[:point]}.{text[point:]}"


def _escape_label(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n")


def _label_text(labels: Mapping[str, str]) -> str:
    if not labels:
        return ""
    body = ",".join(f'{k}="{_escape_label(v)}"' for k, v in labels.items())
    return "{" + body + "}"


@dataclass
class _Child:
    value: float = 0.0
    count: int = 0
    total: float = 0.0
    bucket_counts: list[int] = field(default_factory=list)


class _MetricFamily:
    """All series of one metric name, keyed by label values."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType,
        help_text: str,
        label_names: Sequence[str] = (),
        buckets: Sequence[float] = DEFAULT_BUCKETS,
    ) -> None:
        self.name = name
        self.type = MetricType(metric_type)
        self.help = help_text
        self.label_names = tuple(label_names)
        self.buckets = tuple(sorted(buckets))
        self._lock = threading.Lock()
        self._children: dict[tuple[str, ...], _Child] = {}
        if not self.label_names:
            self._children[()] = self._new_child()

    def _new_child(self) -> _Child:
        return _Child(bucket_counts=[0] * len(self.buckets))

    def _child(self, label_values: tuple[str, ...]) -> _Child:
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"expected {len(self.label_names)} label values, got {len(label_values)}"
            )
        child = self._children.get(label_values)
        if child is None:
            child = self._children[label_values] = self._new_child()
        return child

    def add(self, label_values: tuple[str, ...], delta: float) -> None:
        if self.type is MetricType.COUNTER and delta < 0:
            raise ValueError("counter cannot decrease in value")
        with self._lock:
            self._child(label_values).value += delta

    def set(self, label_values: tuple[str, ...], value: float) -> None:
        with self._lock:
            self._child(label_values).value = float(value)

    def observe(self, label_values: tuple[str, ...], value: float) -> None:
        with self._lock:
            child = self._child(label_values)
            child.count += 1
            child.total += value
            for index, bound in enumerate(self.buckets):
                if value <= bound:
                    child.bucket_counts[index] += 1

    def compatible(self, other: "_MetricFamily") -> bool:
        return (
            self.type is other.type
            and self.help == other.help
            and set(self.label_names) == set(other.label_names)
        )

    def __len__(self) -> int:
        with self._lock:
            return len(self._children)

    def samples(self) -> Iterator[Sample]:
        """Yield (sample name, labels, value) for every series, sorted by labels."""
        with self._lock:
            items = sorted(
                (values, _Child(c.value, c.count, c.total, list(c.bucket_counts)))
                for values, c in self._children.items()
            ) if False else sorted(self._children.items())
            items = [
                (values, _Child(c.value, c.count, c.total, list(c.bucket_counts)))
                for values, c in items
            ]
        for values, child in items:
            labels = dict(sorted(zip(self.label_names, values)))
            if self.type in (MetricType.COUNTER, MetricType.GAUGE):
                yield self.name, labels, child.value
                continue
            if self.type is MetricType.HISTOGRAM:
                for bound, count in zip(self.buckets, child.bucket_counts):
                    yield (
                        f"{self.name}_bucket",
                        {**labels, "le": _format_value(bound)},
                        float(count),
                    )
                yield f"{self.name}_bucket", {**labels, "le": "+Inf"}, float(child.count)
            yield f"{self.name}_sum", labels, child.total
            yield f"{self.name}_count", labels, float(child.count)


class Registry:
    """Holds metric families by name and renders them as text."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._families: dict[str, _MetricFamily] = {}

    def register(self, family: _MetricFamily) -> _MetricFamily:
        """Register a family and return the one in use.

        A compatible family already registered under the same name is
        returned instead; an invalid or conflicting one raises ValueError.
        """
        if not _METRIC_NAME.match(family.name):
            raise ValueError(f"invalid metric name: {family.name!r}")
        reserved = {
            MetricType.HISTOGRAM: "le",
            MetricType.SUMMARY: "quantile",
        }.get(family.type)
        for label in family.label_names:
            if not _LABEL_NAME.match(label) or label.startswith("__") or label == reserved:
                raise ValueError(f"invalid label name: {label!r}")
        with self._lock:
            existing = self._families.get(family.name)
            if existing is None:
                self._families[family.name] = family
                return family
        if existing is family or existing.compatible(family):
            return existing
        raise ValueError(
            f"metric {family.name} already registered with a different type or labels"
        )

    def get(self, name: str) -> Optional[_MetricFamily]:
        """Return the family registered under ``name``, or None."""
        with self._lock:
            return self._families.get(name)

    def gather(self) -> list[_MetricFamily]:
        """Return every family holding at least one series, sorted by name."""
        with self._lock:
            families = sorted(self._families.values(), key=lambda f: f.name)
        return [family for family in families if len(family)]

    def to_text(self) -> str:
        """Render every gathered family in the text exposition format."""
        lines: list[str] = []
        for family in self.gather():
            lines.append(f"# HELP {family.name} {_escape_help(family.help)}")
            lines.append(f"# TYPE {family.name} {family.type.value}")
            for name, labels, value in family.samples():
                lines.append(f"{name}{_label_text(labels)} {_format_value(value)}")
        return "".join(line + "\n" for line in lines)


class PrometheusMetric:
    """One labelled series of a metric, registered in a Registry."""

    def __init__(
        self,
        name: str,
        metric_type: MetricType | str,
        labels: Optional[Mapping[str, str]] = None,
        registry: Optional[Registry] = None,
    ) -> None:
        self.name = name
        self.metric_type = MetricType(metric_type)
        self._labels = dict(labels or {})
        self.timestamp = datetime.now(timezone.utc)
        self._lock = threading.RLock()
        label_names = tuple(sorted(self._labels))
        self._label_values = tuple(self._labels[k] for k in label_names)
        family = _MetricFamily(
            name,
            self.metric_type,
            f"{self.metric_type.value.capitalize()} metric for {name}",
            label_names,
        )
        if registry is not None:
            try:
                family = registry.register(family)
            except ValueError as exc:
                logger.debug("metric %s not registered: %s", name, exc)
        self.family = family

    def _touch(self) -> None:
        self.timestamp = datetime.now(timezone.utc)

    def set_value(self, value: float) -> None:
        """Set a gauge's value; other types ignore it."""
        with self._lock:
            self._touch()
            if self.metric_type is MetricType.GAUGE:
                self.family.set(self._label_values, value)

    def add_value(self, delta: float) -> None:
        """Add to a counter or gauge; a counter rejects a negative delta."""
        with self._lock:
            self._touch()
            if self.metric_type in (MetricType.COUNTER, MetricType.GAUGE):
                self.family.add(self._label_values, delta)

    def observe_value(self, value: float) -> None:
        """Record an observation in a histogram or summary."""
        with self._lock:
            self._touch()
            if self.metric_type in (MetricType.HISTOGRAM, MetricType.SUMMARY):
                self.family.observe(self._label_values, value)

    def get_labels(self) -> dict[str, str]:
        """Return a copy of the metric's labels."""
        with self._lock:
            return dict(self._labels)