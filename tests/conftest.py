"""
Shared pytest fixtures for gz-exporter tests.

Collectors talk to kstat and zpool, neither of which exists outside illumos.
Tests feed the kstat collector through FakeStatReader and run small Python
scripts in place of zpool.
"""

import sys
from typing import Dict, List, Sequence

import pytest

from gz_exporter.collectors.kstat import StatRecord


class FakeStatReader:
    """StatReader returning canned records."""

    def __init__(self, records: Sequence[StatRecord]):
        self.records = list(records)
        self.calls = 0

    def read(self) -> List[StatRecord]:
        self.calls += 1
        return list(self.records)


def cpu_record(instance: str, **overrides) -> StatRecord:
    """A cpu:sys record with every exported counter present."""
    data: Dict[str, object] = {
        "cpu_nsec_idle": 5_000_000_000,
        "cpu_nsec_kernel": 1_000_000_000,
        "cpu_nsec_user": 2_500_000_000,
        "cpu_nsec_dtrace": 0,
        "class": "misc",
        "crtime": 41.25,
    }
    data.update(overrides)
    return StatRecord(instance=instance, data=data)


def python_command(code: str, *args: str) -> List[str]:
    """Command line running a Python snippet with the current interpreter."""
    return [sys.executable, "-c", code, *args]


def echo_command(text: str) -> List[str]:
    """Command that prints `text` verbatim and exits 0."""
    return python_command("import sys; sys.stdout.write(sys.argv[1])", text)


TANK_ROW = "tank\t1024\t5%\tONLINE\t4096\n"
RPOOL_ROW = "rpool\t2048\t12.5%\tDEGRADED\t8192\n"


@pytest.fixture
def cpu_reader() -> FakeStatReader:
    return FakeStatReader([cpu_record("cpu0"), cpu_record("cpu1", cpu_nsec_idle=10_000_000_000)])


@pytest.fixture
def zpool_command() -> List[str]:
    return echo_command(TANK_ROW + RPOOL_ROW)
