import pytest

from edgestream.metrics import (
    DEFAULT_BUCKETS,
    MetricType,
    PrometheusMetric,
    Registry,
)


def sample(registry, sample_name, labels=None):
    labels = labels or {}
    for family in registry.gather():
        for name, sample_labels, value in family.samples():
            if name == sample_name and sample_labels == labels:
                return value
    raise AssertionError(f"sample {sample_name} {labels} not found")


def test_counter_accumulates():
    registry = Registry()
    metric = PrometheusMetric("requests_total", MetricType.COUNTER, None, registry)
    metric.add_value(2.5)
    assert sample(registry, "requests_total") == 2.5
    metric.add_value(2.5)
    assert sample(registry, "requests_total") == 2.5 * 2


def test_counter_rejects_negative_delta():
    registry = Registry()
    metric = PrometheusMetric("c_total", MetricType.COUNTER, None, registry)
    with pytest.raises(ValueError):
        metric.add_value(-1.0)
    assert sample(registry, "c_total") == 0.0


def test_counter_ignores_set_and_observe():
    registry = Registry()
    metric = PrometheusMetric("c_total", "counter", None, registry)
    metric.add_value(4.0)
    metric.set_value(100.0)
    metric.observe_value(100.0)
    assert sample(registry, "c_total") == 4.0


def test_gauge_set_and_add_with_labels():
    registry = Registry()
    metric = PrometheusMetric("depth", "gauge", {"queue": "q1"}, registry)
    metric.set_value(42.0)
    assert sample(registry, "depth", {"queue": "q1"}) == 42.0
    metric.add_value(-42.0)
    assert sample(registry, "depth", {"queue": "q1"}) == 0.0


def test_histogram_buckets_sum_and_count():
    registry = Registry()
    metric = PrometheusMetric("latency_seconds", MetricType.HISTOGRAM, {"op": "x"}, registry)
    metric.observe_value(0.25)
    labels = {"op": "x"}
    assert sample(registry, "latency_seconds_sum", labels) == 0.25
    assert sample(registry, "latency_seconds_count", labels) == 1.0
    assert sample(registry, "latency_seconds_bucket", {**labels, "le": "0.25"}) == 1.0
    assert sample(registry, "latency_seconds_bucket", {**labels, "le": "0.1"}) == 0.0
    assert sample(registry, "latency_seconds_bucket", {**labels, "le": "+Inf"}) == 1.0


def test_histogram_buckets_are_cumulative():
    registry = Registry()
    metric = PrometheusMetric("h", "histogram", None, registry)
    for value in (0.001, 0.3, 7.0, 50.0):
        metric.observe_value(value)
    counts = [
        value
        for name, _labels, value in registry.get("h").samples()
        if name == "h_bucket"
    ]
    assert len(counts) == len(DEFAULT_BUCKETS) + 1
    assert counts == sorted(counts)
    assert counts[-1] == sample(registry, "h_count")


def test_summary_records_sum_and_count():
    registry = Registry()
    metric = PrometheusMetric("s", MetricType.SUMMARY, None, registry)
    metric.observe_value(1.5)
    metric.add_value(10.0)
    assert sample(registry, "s_sum") == 1.5
    assert sample(registry, "s_count") == 1.0


def test_get_labels_returns_copy():
    metric = PrometheusMetric("g", "gauge", {"component": "cache"}, Registry())
    labels = metric.get_labels()
    labels["component"] = "changed"
    assert metric.get_labels() == {"component": "cache"}


def test_same_name_and_labels_share_family():
    registry = Registry()
    first = PrometheusMetric("shared_total", "counter", {"a": "1"}, registry)
    second = PrometheusMetric("shared_total", "counter", {"a": "1"}, registry)
    assert first.family is second.family
    first.add_value(1.0)
    second.add_value(1.0)
    assert sample(registry, "shared_total", {"a": "1"}) == 2.0


def test_different_label_values_make_separate_series():
    registry = Registry()
    PrometheusMetric("w_total", "counter", {"worker": "A"}, registry).add_value(1.0)
    PrometheusMetric("w_total", "counter", {"worker": "B"}, registry).add_value(3.0)
    assert sample(registry, "w_total", {"worker": "A"}) == 1.0
    assert sample(registry, "w_total", {"worker": "B"}) == 3.0
    assert len(registry.get("w_total")) == 2


def test_conflicting_type_is_not_registered():
    registry = Registry()
    counter = PrometheusMetric("dup", "counter", None, registry)
    gauge = PrometheusMetric("dup", "gauge", None, registry)
    gauge.set_value(9.0)
    assert registry.get("dup") is counter.family
    assert registry.get("dup").type is MetricType.COUNTER
    assert sample(registry, "dup") == 0.0


def test_register_rejects_conflict_and_returns_existing():
    registry = Registry()
    counter = PrometheusMetric("x_total", "counter", {"k": "v"}, registry)
    other = PrometheusMetric("x_total", "counter", {"other": "v"}, Registry())
    with pytest.raises(ValueError):
        registry.register(other.family)
    same = PrometheusMetric("x_total", "counter", {"k": "w"}, Registry())
    assert registry.register(same.family) is counter.family


def test_invalid_metric_name_is_not_registered():
    registry = Registry()
    metric = PrometheusMetric("bad name", "counter", None, registry)
    metric.add_value(1.0)
    assert registry.get("bad name") is None
    with pytest.raises(ValueError):
        registry.register(metric.family)


def test_gather_skips_empty_labelled_families_and_sorts():
    registry = Registry()
    PrometheusMetric("zeta", "gauge", None, registry)
    PrometheusMetric("alpha", "gauge", None, registry)
    PrometheusMetric("empty_vec", "counter", {"k": "v"}, registry)
    assert [family.name for family in registry.gather()] == ["alpha", "zeta"]


def test_text_exposition_counter():
    registry = Registry()
    metric = PrometheusMetric("test_counter", "counter", {"label1": "value1"}, registry)
    metric.add_value(2.0)
    text = registry.to_text()
    assert "# HELP test_counter Counter metric for test_counter\n" in text
    assert "# TYPE test_counter counter\n" in text
    assert 'test_counter{label1="value1"} 2\n' in text


def test_text_exposition_histogram_and_float_format():
    registry = Registry()
    PrometheusMetric("d_seconds", "histogram", {"endpoint": "/api/v1"}, registry).observe_value(0.25)
    PrometheusMetric("mem_bytes", "gauge", None, registry).set_value(1024 * 1024)
    text = registry.to_text()
    assert "# TYPE d_seconds histogram" in text
    assert 'd_seconds_bucket{endpoint="/api/v1",le="+Inf"} 1' in text
    assert 'd_seconds_sum{endpoint="/api/v1"} 0.25' in text
    assert 'd_seconds_count{endpoint="/api/v1"} 1' in text
    assert "mem_bytes 1.048576e+06\n" in text


def test_label_values_are_escaped():
    registry = Registry()
    PrometheusMetric("e", "gauge", {"path": 'a"b'}, registry).set_value(1.0)
    assert 'e{path="a\\"b"} 1' in registry.to_text()


def test_timestamp_advances_on_update():
    metric = PrometheusMetric("t", "gauge", None, Registry())
    before = metric.timestamp
    metric.set_value(1.0)
    assert metric.timestamp >= before


def test_metric_without_registry_still_records():
    metric = PrometheusMetric("local_total", "counter")
    metric.add_value(5.0)
    values = [value for _name, _labels, value in metric.family.samples()]
    assert values == [5.0]
    assert metric.metric_type is MetricType.COUNTER