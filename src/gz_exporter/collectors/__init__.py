"""Metrics collectors for the exporter."""

from .kstat import KstatReader, StatRecord, collect_cpu_metrics
from .zpool import collect_zpool_metrics

__all__ = [
    "KstatReader",
    "StatRecord",
    "collect_cpu_metrics",
    "collect_zpool_metrics",
]
