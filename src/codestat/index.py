"""Multi-source line index and the process-wide codestat context."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from concurrent.futures import Executor
from dataclasses import dataclass, field
from functools import partial

from .analysis.aggregate import aggregate_snapshot, normalize_file_name
from .analysis.formatting import severity_tier
from .analysis.ranking import (
    CURRENT_FILE_LIMIT,
    HOT_LINES_LIMIT,
    rank_current_file_hot_lines,
    rank_hot_lines,
)
from .analysis.widths import ColumnWidths
from .config import AppConfig
from .contracts.error import BadInputError, InvariantError
from .core.stats import DataSource, HotLineEntry, LineStat, Severity, Snapshot
from .io.snapshot import DEFAULT_MAX_SOURCE_BYTES, Diagnostic, Loaded, load_source

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class LineIndex:
    """Aggregated per-line stats for every enabled source, in source order.

    ``files[i]``, ``snapshots[i]`` and ``sources[i]`` describe the same
    enabled source. A source that failed to load keeps its slot with an empty
    file map and no snapshot.
    """

    sources: tuple[DataSource, ...] = ()
    files: tuple[Mapping[str, Mapping[int, LineStat]], ...] = ()
    snapshots: tuple[Snapshot | None, ...] = ()
    widths: ColumnWidths = field(default_factory=ColumnWidths)
    diagnostics: tuple[Diagnostic, ...] = ()

    def __post_init__(self) -> None:
        if not len(self.sources) == len(self.files) == len(self.snapshots):
            raise InvariantError(
                f"misaligned index: {len(self.sources)} sources, {len(self.files)} file maps, "
                f"{len(self.snapshots)} snapshots"
            )

    @classmethod
    def empty(cls) -> LineIndex:
        return cls()

    def __len__(self) -> int:
        return len(self.sources)

    @property
    def loaded_snapshots(self) -> list[Snapshot]:
        return [snapshot for snapshot in self.snapshots if snapshot is not None]

    def _check_position(self, source_index: int) -> None:
        if not 0 <= source_index < len(self.sources):
            raise BadInputError(
                f"Source index {source_index} out of range (0..{len(self.sources) - 1})"
                if self.sources
                else "No enabled sources"
            )

    def source_position(self, location: str) -> int:
        for position, source in enumerate(self.sources):
            if source.location == location:
                return position
        raise BadInputError(f"Unknown or disabled source: {location}")

    def file_stats(self, source_index: int, file_name: str) -> Mapping[int, LineStat] | None:
        self._check_position(source_index)
        return self.files[source_index].get(normalize_file_name(file_name))

    def get_line_stat(self, source_index: int, file_name: str, line: int) -> LineStat | None:
        """Stats for one line of one source, or ``None`` when nothing was recorded."""

        lines = self.file_stats(source_index, file_name)
        if lines is None:
            return None
        return lines.get(line)

    def rank_hot_lines(self, source_index: int, limit: int = HOT_LINES_LIMIT) -> list[HotLineEntry]:
        self._check_position(source_index)
        return rank_hot_lines(self.snapshots[source_index], limit)

    def rank_current_file_hot_lines(
        self, file_name: str, limit: int = CURRENT_FILE_LIMIT
    ) -> list[HotLineEntry]:
        return rank_current_file_hot_lines(self.loaded_snapshots, file_name, limit)


def build_index(
    sources: Iterable[DataSource],
    *,
    max_bytes: int = DEFAULT_MAX_SOURCE_BYTES,
    executor: Executor | None = None,
) -> tuple[LineIndex, list[Diagnostic]]:
    """Load every enabled source and rebuild the index from scratch.

    Loading may fan out over ``executor``; aggregation and width tracking
    always run in source order on the calling thread.
    """

    enabled = [DataSource(source.location, True) for source in sources if source.enabled]
    loader = partial(load_source, max_bytes=max_bytes)
    results = list(executor.map(loader, enabled)) if executor is not None else list(map(loader, enabled))

    widths = ColumnWidths()
    files: list[Mapping[str, Mapping[int, LineStat]]] = []
    snapshots: list[Snapshot | None] = []
    diagnostics: list[Diagnostic] = []
    for result in results:
        if isinstance(result, Loaded):
            files.append(aggregate_snapshot(result.snapshot, widths))
            snapshots.append(result.snapshot)
        else:
            files.append({})
            snapshots.append(None)
            diagnostics.append(result.diagnostic)

    index = LineIndex(
        sources=tuple(enabled),
        files=tuple(files),
        snapshots=tuple(snapshots),
        widths=widths,
        diagnostics=tuple(diagnostics),
    )
    logger.info(
        "Rebuilt line index: %d/%d enabled sources loaded (%d diagnostics)",
        len(enabled) - len(diagnostics),
        len(enabled),
        len(diagnostics),
    )
    return index, diagnostics


class CodeStatContext:
    """Owns the source list and the live index.

    Every mutation of the source list triggers a full rebuild; readers always
    see either the previous or the new index, never a mix.
    """

    def __init__(
        self,
        sources: Sequence[DataSource] = (),
        *,
        config: AppConfig | None = None,
        executor: Executor | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self._executor = executor
        self._sources: list[DataSource] = [DataSource(s.location, s.enabled) for s in sources]
        self._index = LineIndex.empty()

    @property
    def sources(self) -> list[DataSource]:
        return [DataSource(s.location, s.enabled) for s in self._sources]

    @property
    def index(self) -> LineIndex:
        return self._index

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return self._index.diagnostics

    def reset(self) -> None:
        self._index = LineIndex.empty()

    def rebuild(self) -> tuple[LineIndex, list[Diagnostic]]:
        index, diagnostics = build_index(
            self._sources,
            max_bytes=self.config.loader.max_source_bytes,
            executor=self._executor,
        )
        self._index = index
        return index, diagnostics

    def _find(self, location: str) -> DataSource:
        for source in self._sources:
            if source.location == location:
                return source
        raise BadInputError(f"Unknown source: {location}")

    def set_sources(self, sources: Iterable[DataSource]) -> tuple[LineIndex, list[Diagnostic]]:
        self._sources = [DataSource(s.location, s.enabled) for s in sources]
        return self.rebuild()

    def add_source(self, location: str) -> tuple[LineIndex, list[Diagnostic]]:
        if not any(source.location == location for source in self._sources):
            self._sources.append(DataSource(location, True))
        return self.rebuild()

    def remove_source(self, location: str) -> tuple[LineIndex, list[Diagnostic]]:
        self._find(location)
        self._sources = [source for source in self._sources if source.location != location]
        return self.rebuild()

    def toggle_source(self, location: str) -> tuple[LineIndex, list[Diagnostic]]:
        source = self._find(location)
        source.enabled = not source.enabled
        return self.rebuild()

    def get_line_stat(self, source_index: int, file_name: str, line: int) -> LineStat | None:
        return self._index.get_line_stat(source_index, file_name, line)

    def rank_hot_lines(self, source_index: int) -> list[HotLineEntry]:
        return self._index.rank_hot_lines(source_index, self.config.ranking.hot_lines_limit)

    def rank_current_file_hot_lines(self, file_name: str) -> list[HotLineEntry]:
        return self._index.rank_current_file_hot_lines(
            file_name, self.config.ranking.current_file_limit
        )

    def severity_tier(self, time: float) -> Severity:
        return severity_tier(
            time,
            high=self.config.severity.high_ms,
            medium=self.config.severity.medium_ms,
        )


__all__ = ["LineIndex", "build_index", "CodeStatContext"]
