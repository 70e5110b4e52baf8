"""Tests for gz_exporter.registry descriptors and decoders."""

import dataclasses

import pytest

from gz_exporter.errors import DecodeError
from gz_exporter.registry import (
    CPU_KSTAT_METRICS,
    UNKNOWN_STATE,
    ZPOOL_HEALTH_STATES,
    ZPOOL_LIST_COLUMNS,
    ZPOOL_METRICS,
    Decoder,
    MetricType,
    decode_value,
)


def zpool_metric(raw_key):
    return next(m for m in ZPOOL_METRICS if m.raw_key == raw_key)


class TestRegistries:
    """Tests for the descriptor tables."""

    def test_cpu_metrics_in_export_order(self):
        assert [m.name for m in CPU_KSTAT_METRICS] == [
            "cpu_idle_seconds_total",
            "cpu_kernel_seconds_total",
            "cpu_user_seconds_total",
            "cpu_dtrace_seconds_total",
        ]
        assert all(m.metric_type is MetricType.COUNTER for m in CPU_KSTAT_METRICS)

    def test_zpool_metric_names(self):
        assert [m.name for m in ZPOOL_METRICS] == [
            "zpool_allocated_bytes",
            "zpool_fragmentation_percent",
            "zpool_health_status",
            "zpool_size_bytes",
        ]
        assert all(m.metric_type is MetricType.GAUGE for m in ZPOOL_METRICS)

    def test_zpool_columns_match_command_layout(self):
        for metric in ZPOOL_METRICS:
            assert ZPOOL_LIST_COLUMNS[metric.column] == metric.raw_key
        assert ZPOOL_LIST_COLUMNS[0] == "name"

    def test_descriptors_are_immutable(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            CPU_KSTAT_METRICS[0].name = "other"
        with pytest.raises(TypeError):
            ZPOOL_HEALTH_STATES["WEIRD"] = 9


class TestDecodeValue:
    """Tests for decode_value dispatch."""

    def test_numeric(self):
        assert decode_value(zpool_metric("size"), "4096") == 4096.0

    def test_numeric_rejects_garbage(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_value(zpool_metric("allocated"), "12K")
        assert exc_info.value.raw_key == "allocated"
        assert exc_info.value.raw_value == "12K"

    def test_numeric_does_not_strip_percent(self):
        with pytest.raises(DecodeError):
            decode_value(zpool_metric("size"), "5%")

    @pytest.mark.parametrize("raw", ["12.5%", "12.5"])
    def test_percent_with_and_without_suffix(self, raw):
        assert decode_value(zpool_metric("fragmentation"), raw) == 12.5

    def test_percent_reports_original_text(self):
        with pytest.raises(DecodeError) as exc_info:
            decode_value(zpool_metric("fragmentation"), "-")
        assert exc_info.value.raw_value == "-"

    @pytest.mark.parametrize("raw", [" 12", "12 ", "1_000", ""])
    def test_numeric_rejects_what_float_tolerates(self, raw):
        with pytest.raises(DecodeError) as exc_info:
            decode_value(zpool_metric("size"), raw)
        assert exc_info.value.raw_value == raw

    @pytest.mark.parametrize("raw", [" 5%", "1_0%"])
    def test_percent_rejects_what_float_tolerates(self, raw):
        with pytest.raises(DecodeError):
            decode_value(zpool_metric("fragmentation"), raw)

    def test_percent_strips_only_one_suffix(self):
        with pytest.raises(DecodeError):
            decode_value(zpool_metric("fragmentation"), "5%%")

    def test_status_known_state(self):
        assert decode_value(zpool_metric("health"), "DEGRADED") == 1

    def test_status_unknown_state(self):
        assert decode_value(zpool_metric("health"), "WEIRD") == UNKNOWN_STATE == -1

    def test_every_health_state(self):
        metric = zpool_metric("health")
        assert metric.decoder is Decoder.ENUM
        decoded = {state: decode_value(metric, state) for state in ZPOOL_HEALTH_STATES}
        assert decoded == {
            "ONLINE": 0,
            "DEGRADED": 1,
            "FAULTED": 2,
            "OFFLINE": 3,
            "REMOVED": 4,
            "UNAVAIL": 5,
        }
