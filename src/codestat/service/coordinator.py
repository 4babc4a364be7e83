"""Background index rebuilds with request coalescing."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass

from codestat.config import AppConfig
from codestat.core.stats import DataSource
from codestat.index import LineIndex, build_index
from codestat.io.snapshot import Diagnostic

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class RebuildResult:
    generation: int
    index: LineIndex
    diagnostics: tuple[Diagnostic, ...]


class RebuildCoordinator:
    """Runs rebuilds off the caller's thread.

    At most one rebuild is in flight. Requests arriving meanwhile collapse into
    a single pending rebuild that uses the most recent source list; every
    caller folded into it receives the same future. The live index is swapped
    only once a rebuild has completed.
    """

    def __init__(
        self,
        sources: Iterable[DataSource] = (),
        *,
        config: AppConfig | None = None,
    ) -> None:
        self.config = config or AppConfig()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="codestat-rebuild")
        workers = self.config.loader.workers
        self._load_executor = (
            ThreadPoolExecutor(max_workers=workers, thread_name_prefix="codestat-load")
            if workers > 1
            else None
        )
        self._lock = threading.Lock()
        self._sources: list[DataSource] = [DataSource(s.location, s.enabled) for s in sources]
        self._index = LineIndex.empty()
        self._generation = 0
        self._running: Future[RebuildResult] | None = None
        self._pending: Future[RebuildResult] | None = None
        self._pending_sources: list[DataSource] | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def current(self) -> LineIndex:
        with self._lock:
            return self._index

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    @property
    def sources(self) -> list[DataSource]:
        with self._lock:
            return [DataSource(s.location, s.enabled) for s in self._sources]

    def request(self, sources: Iterable[DataSource] | None = None) -> Future[RebuildResult]:
        """Schedule a rebuild, optionally replacing the source list first."""

        with self._lock:
            if sources is not None:
                self._sources = [DataSource(s.location, s.enabled) for s in sources]
            params = list(self._sources)
            if self._running is None:
                future: Future[RebuildResult] = Future()
                self._running = future
                self._executor.submit(self._run, params, future)
                return future
            if self._pending is None:
                self._pending = Future()
            self._pending_sources = params
            logger.debug("Coalescing rebuild request (%d sources)", len(params))
            return self._pending

    def wait(self, timeout: float | None = None) -> LineIndex:
        """Block until no rebuild is running or pending; return the live index."""

        while True:
            with self._lock:
                future = self._pending or self._running
            if future is None:
                return self.current
            future.result(timeout=timeout)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True, cancel_futures=False)
        if self._load_executor is not None:
            self._load_executor.shutdown(wait=True, cancel_futures=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _run(self, sources: list[DataSource], future: Future[RebuildResult]) -> None:
        if not future.set_running_or_notify_cancel():
            with self._lock:
                self._advance()
            return
        try:
            index, diagnostics = build_index(
                sources,
                max_bytes=self.config.loader.max_source_bytes,
                executor=self._load_executor,
            )
        except Exception as exc:
            logger.exception("Index rebuild failed")
            with self._lock:
                self._advance()
            future.set_exception(exc)
            return
        with self._lock:
            self._generation += 1
            self._index = index
            result = RebuildResult(
                generation=self._generation,
                index=index,
                diagnostics=tuple(diagnostics),
            )
            self._advance()
        future.set_result(result)

    def _advance(self) -> None:
        """Start the pending rebuild, if any. Caller holds the lock."""

        if self._pending is None or self._pending_sources is None:
            self._running = None
            return
        future, params = self._pending, self._pending_sources
        self._pending = None
        self._pending_sources = None
        self._running = future
        self._executor.submit(self._run, params, future)


__all__ = ["RebuildCoordinator", "RebuildResult"]
