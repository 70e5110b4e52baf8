"""ZFS pool capacity and health collector."""

import asyncio
import logging
import subprocess
from typing import List, Sequence, Tuple

import psutil

from ..errors import CommandFailed, CommandLaunchError, CommandTimeout, MalformedRow
from ..exposition import format_header, format_sample
from ..registry import ZPOOL_LIST_COLUMNS, ZPOOL_METRICS, ZpoolMetric, decode_value

logger = logging.getLogger(__name__)

ZPOOL_TIMEOUT_SECONDS = 5.0

# -H: no header, tab separated; -p: exact numeric values
ZPOOL_LIST_COMMAND: Tuple[str, ...] = (
    "/usr/sbin/zpool",
    "list",
    "-Hp",
    "-o",
    ",".join(ZPOOL_LIST_COLUMNS),
)

ROW_WIDTH = len(ZPOOL_LIST_COLUMNS)


def _kill_process_tree(pid: int) -> None:
    """Kill a process and everything it spawned."""
    try:
        parent = psutil.Process(pid)
        procs = parent.children(recursive=True) + [parent]
    except psutil.NoSuchProcess:
        return

    for proc in procs:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue


async def run_command(command: Sequence[str], timeout: float) -> str:
    """
    Run a command and return its standard output.

    The process is killed if it is still running when this coroutine exits,
    whether by timeout, cancellation or error.

    Args:
        command: Program and arguments
        timeout: Seconds to wait for the command to exit

    Returns:
        Standard output, decoded as UTF-8 with invalid bytes replaced

    Raises:
        CommandLaunchError: If the program cannot be started
        CommandTimeout: If the program does not exit within the timeout
        CommandFailed: If the program exits with a non-zero status
    """
    try:
        proc = await asyncio.create_subprocess_exec(
            *command,
            stdin=subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandLaunchError(command, e.strerror or str(e)) from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout)
    except asyncio.TimeoutError:
        raise CommandTimeout(timeout) from None
    finally:
        if proc.returncode is None:
            logger.debug(f"Killing {command[0]} (pid {proc.pid})")
            _kill_process_tree(proc.pid)
            await proc.wait()

    if proc.returncode != 0:
        raise CommandFailed(proc.returncode, stderr.decode("utf-8", errors="replace"))

    return stdout.decode("utf-8", errors="replace")


def parse_rows(output: str, width: int = ROW_WIDTH) -> List[List[str]]:
    """
    Split tab separated command output into rows.

    Raises:
        MalformedRow: If any line does not have exactly `width` fields
    """
    rows = []

    for line in output.splitlines():
        fields = line.split("\t")
        if len(fields) != width:
            raise MalformedRow(line)
        rows.append(fields)

    return rows


def render_zpool_metrics(
    rows: Sequence[Sequence[str]],
    metrics: Sequence[ZpoolMetric] = ZPOOL_METRICS,
) -> str:
    """
    Render parsed `zpool list` rows, one block per metric.

    Raises:
        MalformedRow: If a metric's column is outside a row
        DecodeError: If a column value cannot be decoded
    """
    blocks = []

    for metric in metrics:
        lines = [format_header(metric.name, metric.metric_type.value, metric.help)]

        for row in rows:
            if metric.column >= len(row):
                raise MalformedRow("\t".join(row))
            value = decode_value(metric, row[metric.column])
            lines.append(format_sample(metric.name, "pool", row[0], value))

        blocks.append("".join(lines))

    return "".join(blocks)


async def collect_zpool_metrics(
    command: Sequence[str] = ZPOOL_LIST_COMMAND,
    timeout: float = ZPOOL_TIMEOUT_SECONDS,
    metrics: Sequence[ZpoolMetric] = ZPOOL_METRICS,
) -> str:
    """
    Collect capacity and health metrics for every imported pool.

    Args:
        command: zpool invocation printing ZPOOL_LIST_COLUMNS
        timeout: Seconds to wait for the command
        metrics: Descriptors to export, in output order

    Returns:
        Exposition text, one block per descriptor, one line per pool

    Raises:
        CollectionError: On any command, parse or decode failure. Nothing is
            returned in that case.
    """
    output = await run_command(command, timeout)
    rows = parse_rows(output)
    logger.debug(f"Parsed {len(rows)} pools from zpool list")

    return render_zpool_metrics(rows, metrics)
