"""Metric descriptors exported by each collector.

The tuples below are built once at import and never mutated. Their order is
the order metrics appear in the exposition output.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Tuple

from .errors import DecodeError


class MetricType(str, Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


class Decoder(str, Enum):
    """How a text column is turned into a sample value."""

    NUMERIC = "numeric"
    PERCENT = "percent"
    ENUM = "enum"


@dataclass(frozen=True)
class KstatMetric:
    """A per-CPU kstat exported as a metric."""

    raw_key: str
    name: str
    metric_type: MetricType
    help: str


@dataclass(frozen=True)
class ZpoolMetric:
    """A `zpool list` column exported as a per-pool metric."""

    raw_key: str
    unit: str
    help: str
    column: int
    decoder: Decoder = Decoder.NUMERIC
    states: Mapping[str, int] = field(default_factory=dict, hash=False)
    metric_type: MetricType = MetricType.GAUGE

    @property
    def name(self) -> str:
        return f"zpool_{self.raw_key}_{self.unit}"


# Value reported for health states missing from ZPOOL_HEALTH_STATES
UNKNOWN_STATE = -1

ZPOOL_HEALTH_STATES: Mapping[str, int] = MappingProxyType({
    "ONLINE": 0,
    "DEGRADED": 1,
    "FAULTED": 2,
    "OFFLINE": 3,
    "REMOVED": 4,
    "UNAVAIL": 5,
})


CPU_KSTAT_METRICS: Tuple[KstatMetric, ...] = (
    KstatMetric(
        raw_key="cpu_nsec_idle",
        name="cpu_idle_seconds_total",
        metric_type=MetricType.COUNTER,
        help="CPU idle time in seconds",
    ),
    KstatMetric(
        raw_key="cpu_nsec_kernel",
        name="cpu_kernel_seconds_total",
        metric_type=MetricType.COUNTER,
        help="CPU kernel time in seconds",
    ),
    KstatMetric(
        raw_key="cpu_nsec_user",
        name="cpu_user_seconds_total",
        metric_type=MetricType.COUNTER,
        help="CPU user time in seconds",
    ),
    KstatMetric(
        raw_key="cpu_nsec_dtrace",
        name="cpu_dtrace_seconds_total",
        metric_type=MetricType.COUNTER,
        help="CPU dtrace time in seconds",
    ),
)


# Column layout of `zpool list -Hp -o ...`. Bump the version whenever the
# tuple changes; descriptor columns index into it.
ZPOOL_LIST_FORMAT_VERSION = 1
ZPOOL_LIST_COLUMNS: Tuple[str, ...] = ("name", "allocated", "fragmentation", "health", "size")

ZPOOL_METRICS: Tuple[ZpoolMetric, ...] = (
    ZpoolMetric(
        raw_key="allocated",
        unit="bytes",
        help="Amount of storage space used within the pool",
        column=1,
    ),
    ZpoolMetric(
        raw_key="fragmentation",
        unit="percent",
        help="Fragmentation of the free space in the pool",
        column=2,
        decoder=Decoder.PERCENT,
    ),
    ZpoolMetric(
        raw_key="health",
        unit="status",
        help="Pool health (0=ONLINE 1=DEGRADED 2=FAULTED 3=OFFLINE 4=REMOVED 5=UNAVAIL -1=unknown)",
        column=3,
        decoder=Decoder.ENUM,
        states=ZPOOL_HEALTH_STATES,
    ),
    ZpoolMetric(
        raw_key="size",
        unit="bytes",
        help="Total size of the storage pool",
        column=4,
    ),
)


def _check_zpool_columns() -> None:
    for metric in ZPOOL_METRICS:
        if ZPOOL_LIST_COLUMNS[metric.column] != metric.raw_key:
            raise ValueError(
                f"zpool metric {metric.raw_key} points at column "
                f"{metric.column} ({ZPOOL_LIST_COLUMNS[metric.column]})"
            )


_check_zpool_columns()


def _parse_float(metric: ZpoolMetric, text: str, raw: str) -> float:
    # float() also accepts padding and digit separators; a plain number has neither
    if text != text.strip() or "_" in text:
        raise DecodeError(metric.raw_key, raw)
    try:
        return float(text)
    except ValueError:
        raise DecodeError(metric.raw_key, raw) from None


def decode_value(metric: ZpoolMetric, raw: str) -> float:
    """
    Decode a raw column value according to the metric's decoder.

    Args:
        metric: Descriptor the column belongs to
        raw: Field text as printed by the command

    Returns:
        Sample value

    Raises:
        DecodeError: If a numeric field does not parse
    """
    if metric.decoder is Decoder.ENUM:
        return float(metric.states.get(raw, UNKNOWN_STATE))

    text = raw
    if metric.decoder is Decoder.PERCENT and text.endswith("%"):
        text = text[:-1]

    return _parse_float(metric, text, raw)
