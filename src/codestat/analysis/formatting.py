"""Text rendering for line statistics and hot-line entries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from codestat.core.stats import HotLineEntry, LineStat, Severity

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .widths import ColumnWidths

PLACEHOLDER = "·"
COUNT_SUFFIX = "× "
TIME_SUFFIX = " "
DEFAULT_HIGH_MS = 100.0
DEFAULT_MEDIUM_MS = 10.0


def format_duration(ms: float) -> str:
    """Render milliseconds as ``"7ms"`` below one second, else ``"1.5s"``."""

    if ms >= 1000:
        return f"{ms / 1000:.1f}s"
    return f"{int(ms)}ms"


def format_count(stat: LineStat | None, widths: ColumnWidths) -> str:
    if stat is None or stat.is_empty:
        return PLACEHOLDER.rjust(widths.count) + " " * len(COUNT_SUFFIX)
    return str(stat.count).rjust(widths.count) + COUNT_SUFFIX


def format_time_stat(stat: LineStat | None, widths: ColumnWidths) -> str:
    if stat is None or stat.is_empty:
        return PLACEHOLDER.rjust(widths.time) + TIME_SUFFIX
    return format_duration(stat.time).rjust(widths.time) + TIME_SUFFIX


def severity_tier(
    time: float,
    *,
    high: float = DEFAULT_HIGH_MS,
    medium: float = DEFAULT_MEDIUM_MS,
) -> Severity:
    """Classify a duration for emphasis; both thresholds are exclusive."""

    if time > high:
        return Severity.HIGH
    if time > medium:
        return Severity.MEDIUM
    return Severity.NONE


def describe_hot_line(entry: HotLineEntry) -> str:
    return f"{format_duration(entry.time)} (×{entry.count}) - {entry.function_name}"


def hot_line_tooltip(entry: HotLineEntry) -> str:
    return (
        f"{entry.source_path}:{entry.line}\n"
        f"Function: {entry.function_name}\n"
        f"Time: {entry.time}ms\n"
        f"Calls: {entry.count}"
    )


def line_hover_text(source_name: str, stat: LineStat | None) -> str:
    """Markdown summary of one line's stats for one source."""

    lines = [f"**{source_name}**", ""]
    if stat is not None and (stat.count > 0 or stat.time > 0):
        lines.append(f"- Calls: {stat.count}")
        lines.append(f"- Time: {stat.time}ms")
    else:
        lines.append("_No data for this line_")
    return "\n".join(lines)


__all__ = [
    "PLACEHOLDER",
    "DEFAULT_HIGH_MS",
    "DEFAULT_MEDIUM_MS",
    "format_duration",
    "format_count",
    "format_time_stat",
    "severity_tier",
    "describe_hot_line",
    "hot_line_tooltip",
    "line_hover_text",
]
