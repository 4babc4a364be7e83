"""Aggregation, ranking and rendering of per-line statistics."""

from .aggregate import (
    AggregatedFileIndex,
    LineStatMap,
    aggregate_snapshot,
    merge_line_stat,
    normalize_file_name,
)
from .formatting import (
    PLACEHOLDER,
    describe_hot_line,
    format_count,
    format_duration,
    format_time_stat,
    hot_line_tooltip,
    line_hover_text,
    severity_tier,
)
from .ranking import (
    CURRENT_FILE_LIMIT,
    HOT_LINES_LIMIT,
    rank_current_file_hot_lines,
    rank_hot_lines,
)
from .widths import ColumnWidths

__all__ = [
    "AggregatedFileIndex",
    "LineStatMap",
    "ColumnWidths",
    "PLACEHOLDER",
    "CURRENT_FILE_LIMIT",
    "HOT_LINES_LIMIT",
    "aggregate_snapshot",
    "merge_line_stat",
    "normalize_file_name",
    "describe_hot_line",
    "format_count",
    "format_duration",
    "format_time_stat",
    "hot_line_tooltip",
    "line_hover_text",
    "severity_tier",
    "rank_hot_lines",
    "rank_current_file_hot_lines",
]
