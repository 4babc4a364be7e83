"""Per-file merging of a snapshot's function records."""

from __future__ import annotations

import ntpath
from collections.abc import Mapping, MutableMapping

from codestat.core.stats import LineStat, Snapshot

from .widths import ColumnWidths

LineStatMap = Mapping[int, LineStat]
AggregatedFileIndex = Mapping[str, LineStatMap]


def normalize_file_name(name: str) -> str:
    """Lower-cased base name; handles both ``/`` and ``\\`` separators."""

    return ntpath.basename(name).lower()


def merge_line_stat(lines: MutableMapping[int, LineStat], line: int, stat: LineStat) -> None:
    existing = lines.get(line)
    lines[line] = stat if existing is None else existing.merge(stat)


def aggregate_snapshot(
    snapshot: Snapshot, widths: ColumnWidths | None = None
) -> dict[str, dict[int, LineStat]]:
    """Merge every function's line stats per normalized file name.

    Two records whose keys share a base name (``/a/util.py`` and
    ``/b/Util.py``) collapse into one entry. When ``widths`` is given, every
    individual reading is observed before merging.
    """

    merged: dict[str, dict[int, LineStat]] = {}
    for file_key, record in snapshot.items():
        lines = merged.setdefault(normalize_file_name(file_key), {})
        for function_lines in record.functions.values():
            for line, stat in function_lines.items():
                merge_line_stat(lines, line, stat)
                if widths is not None:
                    widths.observe(stat.count, stat.time)
    return merged


__all__ = [
    "AggregatedFileIndex",
    "LineStatMap",
    "normalize_file_name",
    "merge_line_stat",
    "aggregate_snapshot",
]
