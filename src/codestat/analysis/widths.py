from __future__ import annotations

from dataclasses import dataclass

from .formatting import format_duration

COUNT_WIDTH_FLOOR = 1
TIME_WIDTH_FLOOR = 3  # "0ms"


@dataclass(slots=True)
class ColumnWidths:
    """Running maxima of rendered count and duration lengths."""

    count: int = COUNT_WIDTH_FLOOR
    time: int = TIME_WIDTH_FLOOR

    def observe(self, count: int, time: float) -> None:
        self.count = max(self.count, len(str(count)))
        self.time = max(self.time, len(format_duration(time)))

    def reset(self) -> None:
        self.count = COUNT_WIDTH_FLOOR
        self.time = TIME_WIDTH_FLOOR

    def copy(self) -> ColumnWidths:
        return ColumnWidths(count=self.count, time=self.time)

    def to_dict(self) -> dict[str, int]:
        return {"count": self.count, "time": self.time}


__all__ = ["COUNT_WIDTH_FLOOR", "TIME_WIDTH_FLOOR", "ColumnWidths"]
