"""Collection errors raised by the metric collectors."""

from typing import Optional, Sequence


class CollectionError(Exception):
    """Base exception for collection errors."""
    pass


class StatReadError(CollectionError):
    """Kernel statistics could not be read."""
    pass


class MissingStat(CollectionError):
    """A kstat record lacks a statistic the registry references."""

    def __init__(self, raw_key: str):
        super().__init__(f"kstat metric not found: {raw_key}")
        self.raw_key = raw_key


class TypeMismatch(CollectionError):
    """A kstat statistic is not an unsigned 64-bit integer."""

    def __init__(self, raw_key: str):
        super().__init__(f"Unexpected kstat {raw_key} type, not an unsigned 64-bit integer")
        self.raw_key = raw_key


class CommandLaunchError(CollectionError):
    """The external command could not be started."""

    def __init__(self, command: Sequence[str], reason: str):
        super().__init__(f"Failed to launch {command[0]}: {reason}")
        self.command = tuple(command)
        self.reason = reason


class CommandTimeout(CollectionError):
    """The external command did not exit in time."""

    def __init__(self, timeout: float):
        super().__init__(f"Command timed out after {timeout:g}s")
        self.timeout = timeout


class CommandFailed(CollectionError):
    """The external command exited with a non-zero status."""

    def __init__(self, exit_status: int, stderr: Optional[str] = None):
        message = f"Command exited with status {exit_status}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)
        self.exit_status = exit_status
        self.stderr = stderr


class MalformedRow(CollectionError):
    """A line of command output does not have the expected shape."""

    def __init__(self, line: str):
        super().__init__(f"Malformed row: {line!r}")
        self.line = line


class DecodeError(CollectionError):
    """A column value could not be decoded."""

    def __init__(self, raw_key: str, raw_value: str):
        super().__init__(f"Cannot decode {raw_key} value {raw_value!r}")
        self.raw_key = raw_key
        self.raw_value = raw_value
