"""Hot-line rankings.

Both rankers are pure: they flatten their input into :class:`HotLineEntry`
values, drop entries without recorded time, sort by time (descending, stable
so ties keep document order) and truncate. Nothing is cached between calls.
"""

from __future__ import annotations

import ntpath
from collections.abc import Iterable

from codestat.core.stats import HotLineEntry, Snapshot

from .aggregate import normalize_file_name

HOT_LINES_LIMIT = 50
CURRENT_FILE_LIMIT = 30


def _by_time_desc(entries: list[HotLineEntry], limit: int) -> list[HotLineEntry]:
    entries.sort(key=lambda entry: entry.time, reverse=True)
    return entries[: max(limit, 0)]


def rank_hot_lines(snapshot: Snapshot | None, limit: int = HOT_LINES_LIMIT) -> list[HotLineEntry]:
    """Rank every ``(function, line)`` of one snapshot by elapsed time."""

    if not snapshot:
        return []
    entries: list[HotLineEntry] = []
    for file_key, record in snapshot.items():
        base_name = ntpath.basename(file_key)
        for function_name, lines in record.functions.items():
            for line, stat in lines.items():
                if stat.time > 0:
                    entries.append(
                        HotLineEntry(
                            source_path=record.display_path,
                            file_base_name=base_name,
                            line=line,
                            function_name=function_name,
                            count=stat.count,
                            time=stat.time,
                        )
                    )
    return _by_time_desc(entries, limit)


def rank_current_file_hot_lines(
    snapshots: Iterable[Snapshot],
    file_name: str,
    limit: int = CURRENT_FILE_LIMIT,
) -> list[HotLineEntry]:
    """Rank the lines of one file, summed across all ``snapshots``.

    Only file records whose normalized name matches ``file_name`` take part.
    When several functions report the same line, counts and times are summed
    and the first function seen labels the line.
    """

    target = normalize_file_name(file_name)
    merged: dict[int, HotLineEntry] = {}
    for snapshot in snapshots:
        for file_key, record in snapshot.items():
            if normalize_file_name(file_key) != target:
                continue
            for function_name, lines in record.functions.items():
                for line, stat in lines.items():
                    if stat.time <= 0:
                        continue
                    existing = merged.get(line)
                    if existing is None:
                        merged[line] = HotLineEntry(
                            source_path=record.display_path,
                            file_base_name=ntpath.basename(file_key),
                            line=line,
                            function_name=function_name,
                            count=stat.count,
                            time=stat.time,
                        )
                    else:
                        merged[line] = HotLineEntry(
                            source_path=existing.source_path,
                            file_base_name=existing.file_base_name,
                            line=line,
                            function_name=existing.function_name,
                            count=existing.count + stat.count,
                            time=existing.time + stat.time,
                        )
    return _by_time_desc(list(merged.values()), limit)


__all__ = [
    "HOT_LINES_LIMIT",
    "CURRENT_FILE_LIMIT",
    "rank_hot_lines",
    "rank_current_file_hot_lines",
]
