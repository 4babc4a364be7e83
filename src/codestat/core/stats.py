"""Value types for per-line profiling statistics."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

PATH_KEY = "#path"

FunctionRecord = Mapping[int, "LineStat"]


@dataclass(frozen=True, slots=True)
class LineStat:
    """Call count and elapsed milliseconds recorded for one source line."""

    count: int = 0
    time: float = 0

    def merge(self, other: LineStat) -> LineStat:
        """Sum both fields independently."""

        return LineStat(count=self.count + other.count, time=self.time + other.time)

    __add__ = merge

    @property
    def is_empty(self) -> bool:
        """``True`` for the ``count == 0 and time == 0`` "no data" marker."""

        return self.count == 0 and self.time == 0

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "time": self.time}


@dataclass(frozen=True, slots=True)
class FileRecord:
    """Per-function line statistics for one file key of a snapshot."""

    key: str
    path: str | None = None
    functions: Mapping[str, FunctionRecord] = field(default_factory=dict)

    @property
    def display_path(self) -> str:
        return self.path or self.key


Snapshot = Mapping[str, FileRecord]


@dataclass(slots=True)
class DataSource:
    """A profiling document location and whether it takes part in aggregation."""

    location: str
    enabled: bool = True


@dataclass(frozen=True, slots=True)
class HotLineEntry:
    source_path: str
    file_base_name: str
    line: int
    function_name: str
    count: int
    time: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "source_path": self.source_path,
            "file_base_name": self.file_base_name,
            "line": self.line,
            "function_name": self.function_name,
            "count": self.count,
            "time": self.time,
        }


class Severity(StrEnum):
    """Presentation-only classification of a duration."""

    NONE = "none"
    MEDIUM = "medium"
    HIGH = "high"


__all__ = [
    "PATH_KEY",
    "FunctionRecord",
    "LineStat",
    "FileRecord",
    "Snapshot",
    "DataSource",
    "HotLineEntry",
    "Severity",
]
