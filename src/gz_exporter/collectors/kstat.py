"""Per-CPU time accounting collector backed by kstats."""

import logging
import subprocess
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Protocol, Sequence, Tuple, Union

from ..errors import MissingStat, StatReadError, TypeMismatch
from ..exposition import format_header, format_sample
from ..registry import CPU_KSTAT_METRICS, KstatMetric

logger = logging.getLogger(__name__)

KstatValue = Union[int, float, str]

KSTAT_COMMAND = "/usr/bin/kstat"
KSTAT_TIMEOUT_SECONDS = 5.0

# cpu_nsec_* counters are divided by this before export
NSEC_PER_SEC_SCALE = 10e9

UINT64_MAX = 2**64 - 1


@dataclass(frozen=True)
class StatRecord:
    """All named statistics of one kstat instance."""

    instance: str
    data: Mapping[str, KstatValue] = field(default_factory=dict, hash=False)


class StatReader(Protocol):
    def read(self) -> List[StatRecord]:
        ...


def _parse_kstat_value(text: str) -> KstatValue:
    try:
        return int(text)
    except ValueError:
        pass
    try:
        return float(text)
    except ValueError:
        return text


def parse_kstat_output(output: str) -> List[StatRecord]:
    """
    Parse `kstat -p` output into one record per kstat.

    Lines have the form ``module:instance:name:statistic<TAB>value``. Records
    keep the order in which their kstat first appears.

    Raises:
        StatReadError: On a line that does not follow that form
    """
    records: Dict[Tuple[str, str, str], Dict[str, KstatValue]] = {}

    for line in output.splitlines():
        if not line.strip():
            continue

        key, sep, value = line.partition("\t")
        parts = key.split(":", 3)
        if not sep or len(parts) != 4:
            raise StatReadError(f"Unexpected kstat output line: {line!r}")

        module, instance, name, statistic = parts
        records.setdefault((module, instance, name), {})[statistic] = _parse_kstat_value(value)

    return [
        StatRecord(instance=instance, data=data)
        for (_module, instance, _name), data in records.items()
    ]


class KstatReader:
    """Reads the kstats matching a module and name through the kstat(1M) command."""

    def __init__(
        self,
        module: str = "cpu",
        name: str = "sys",
        command: str = KSTAT_COMMAND,
        timeout: float = KSTAT_TIMEOUT_SECONDS,
    ):
        self.module = module
        self.name = name
        self.command = command
        self.timeout = timeout

    def _args(self) -> Sequence[str]:
        return [self.command, "-p", "-m", self.module, "-n", self.name]

    def read(self) -> List[StatRecord]:
        """
        Read every instance of the configured kstats.

        Raises:
            StatReadError: If kstat cannot be run or exits with an error
        """
        try:
            result = subprocess.run(
                self._args(),
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
                stdin=subprocess.DEVNULL,
            )
        except FileNotFoundError:
            raise StatReadError(f"kstat command not found: {self.command}") from None
        except subprocess.TimeoutExpired:
            raise StatReadError(f"kstat timed out after {self.timeout:g}s") from None
        except OSError as e:
            raise StatReadError(f"Failed to run kstat: {e}") from e

        if result.returncode != 0:
            raise StatReadError(
                f"kstat exited with status {result.returncode}: {result.stderr.strip()}"
            )

        return parse_kstat_output(result.stdout)


def _nsec_value(record: StatRecord, metric: KstatMetric) -> int:
    try:
        value = record.data[metric.raw_key]
    except KeyError:
        raise MissingStat(metric.raw_key) from None

    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= UINT64_MAX:
        raise TypeMismatch(metric.raw_key)

    return value


def collect_cpu_metrics(
    reader: Optional[StatReader] = None,
    metrics: Sequence[KstatMetric] = CPU_KSTAT_METRICS,
) -> str:
    """
    Collect CPU time accounting metrics for every CPU.

    Args:
        reader: Source of cpu:sys kstat records (default: KstatReader)
        metrics: Descriptors to export, in output order

    Returns:
        Exposition text, one block per descriptor, one line per CPU

    Raises:
        CollectionError: If the kstats cannot be read or a record lacks a
            statistic. Nothing is returned in that case.
    """
    if reader is None:
        reader = KstatReader()

    cpu_stats = reader.read()
    logger.debug(f"Read kstats for {len(cpu_stats)} CPUs")

    blocks = []

    for metric in metrics:
        lines = [format_header(metric.name, metric.metric_type.value, metric.help)]

        for stat in cpu_stats:
            value_sec = _nsec_value(stat, metric) / NSEC_PER_SEC_SCALE
            lines.append(format_sample(metric.name, "cpu_id", stat.instance, value_sec))

        blocks.append("".join(lines))

    return "".join(blocks)
