"""Prometheus text exposition format helpers."""

import math

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_value(value: float) -> str:
    """
    Render a sample value.

    Integral values drop the fractional part (1024.0 -> "1024"), others use
    the shortest repr that round-trips.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def format_header(name: str, metric_type: str, help_text: str) -> str:
    """Render the HELP and TYPE lines of a metric family."""
    return f"# HELP {name} {_escape_help(help_text)}\n# TYPE {name} {metric_type}\n"


def format_sample(name: str, label: str, label_value: str, value: float) -> str:
    """Render one sample line carrying a single label."""
    return f'{name}{{{label}="{_escape_label_value(label_value)}"}} {format_value(value)}\n'


def assemble(*blocks: str) -> str:
    """Join collector output in the order given, without touching it."""
    return "".join(blocks)
