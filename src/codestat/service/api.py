"""FastAPI application exposing the codestat query interface."""

from __future__ import annotations

import importlib
import os
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING, Any, cast

from starlette.requests import Request as StarletteRequest

from codestat.analysis.formatting import format_count, format_time_stat, severity_tier
from codestat.contracts.error import BadInputError
from codestat.core.stats import DataSource, Severity
from codestat.index import LineIndex

from .coordinator import RebuildCoordinator
from .models import (
    DiagnosticModel,
    HotLineModel,
    HotLinesResponse,
    LineStatResponse,
    RebuildRequest,
    RebuildResponse,
    SourcesResponse,
    SourceStatusModel,
)

if TYPE_CHECKING:
    from fastapi import FastAPI


def _source_statuses(sources: list[DataSource], index: LineIndex) -> list[SourceStatusModel]:
    positions = {source.location: pos for pos, source in enumerate(index.sources)}
    statuses: list[SourceStatusModel] = []
    for source in sources:
        position = positions.get(source.location) if source.enabled else None
        statuses.append(
            SourceStatusModel(
                location=source.location,
                enabled=source.enabled,
                position=position,
                loaded=position is not None and index.snapshots[position] is not None,
            )
        )
    return statuses


def create_app(coordinator: RebuildCoordinator | None = None) -> Any:
    """Create a FastAPI application wired to the given rebuild coordinator."""

    fastapi_mod = importlib.import_module("fastapi")

    fastapi_cls = fastapi_mod.FastAPI
    depends = fastapi_mod.Depends
    http_exception = fastapi_mod.HTTPException
    status = fastapi_mod.status

    rebuilds = RebuildCoordinator() if coordinator is None else coordinator
    app = cast("FastAPI", fastapi_cls(title="codestat query service", version="0.1.0"))
    app.state.coordinator = rebuilds

    token_value = os.getenv("CODESTAT_TOKEN")

    async def require_token(request: StarletteRequest) -> None:
        if not token_value:
            return
        authorization = request.headers.get("Authorization")
        if authorization == f"Bearer {token_value}":
            return
        if request.query_params.get("token") == token_value:
            return
        raise http_exception(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    def get_coordinator() -> RebuildCoordinator:
        return cast(RebuildCoordinator, app.state.coordinator)

    coordinator_dep = depends(get_coordinator)

    def _severity(coord: RebuildCoordinator, time: float) -> Severity:
        policy = coord.config.severity
        return severity_tier(time, high=policy.high_ms, medium=policy.medium_ms)

    @app.get("/healthz", response_model=dict)
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/api/sources", response_model=SourcesResponse, dependencies=[depends(require_token)])
    def list_sources(
        coord: RebuildCoordinator = coordinator_dep,  # noqa: B008 - FastAPI dependency wiring
    ) -> SourcesResponse:
        index = coord.current
        return SourcesResponse(
            generation=coord.generation,
            sources=_source_statuses(coord.sources, index),
            diagnostics=[DiagnosticModel.from_diagnostic(d) for d in index.diagnostics],
        )

    @app.post("/api/rebuild", response_model=RebuildResponse, dependencies=[depends(require_token)])
    def rebuild(
        request: RebuildRequest,
        coord: RebuildCoordinator = coordinator_dep,  # noqa: B008 - FastAPI dependency wiring
    ) -> RebuildResponse:
        sources = (
            [entry.to_source() for entry in request.sources]
            if request.sources is not None
            else None
        )
        future = coord.request(sources)
        try:
            result = future.result(timeout=request.timeout)
        except FutureTimeoutError as exc:
            raise http_exception(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Rebuild still running"
            ) from exc
        return RebuildResponse(
            generation=result.generation,
            sources=_source_statuses(coord.sources, result.index),
            diagnostics=[DiagnosticModel.from_diagnostic(d) for d in result.diagnostics],
            count_width=result.index.widths.count,
            time_width=result.index.widths.time,
        )

    @app.get(
        "/api/lines/{source_index}/{file_name}/{line}",
        response_model=LineStatResponse,
        dependencies=[depends(require_token)],
    )
    def line_stat(
        source_index: int,
        file_name: str,
        line: int,
        coord: RebuildCoordinator = coordinator_dep,  # noqa: B008 - FastAPI dependency wiring
    ) -> LineStatResponse:
        index = coord.current
        try:
            stat = index.get_line_stat(source_index, file_name, line)
        except BadInputError as exc:
            raise http_exception(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        no_data = stat is None or stat.is_empty
        return LineStatResponse(
            source_index=source_index,
            file_name=file_name,
            line=line,
            no_data=no_data,
            count=None if stat is None else stat.count,
            time=None if stat is None else stat.time,
            count_text=format_count(stat, index.widths),
            time_text=format_time_stat(stat, index.widths),
            severity=_severity(coord, 0 if stat is None else stat.time),
        )

    @app.get(
        "/api/hot-lines/{source_index}",
        response_model=HotLinesResponse,
        dependencies=[depends(require_token)],
    )
    def hot_lines(
        source_index: int,
        coord: RebuildCoordinator = coordinator_dep,  # noqa: B008 - FastAPI dependency wiring
    ) -> HotLinesResponse:
        try:
            entries = coord.current.rank_hot_lines(
                source_index, coord.config.ranking.hot_lines_limit
            )
        except BadInputError as exc:
            raise http_exception(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return HotLinesResponse(
            generation=coord.generation,
            source_index=source_index,
            entries=[HotLineModel.from_entry(e, _severity(coord, e.time)) for e in entries],
        )

    @app.get(
        "/api/files/{file_name}/hot-lines",
        response_model=HotLinesResponse,
        dependencies=[depends(require_token)],
    )
    def file_hot_lines(
        file_name: str,
        coord: RebuildCoordinator = coordinator_dep,  # noqa: B008 - FastAPI dependency wiring
    ) -> HotLinesResponse:
        entries = coord.current.rank_current_file_hot_lines(
            file_name, coord.config.ranking.current_file_limit
        )
        return HotLinesResponse(
            generation=coord.generation,
            file_name=file_name,
            entries=[HotLineModel.from_entry(e, _severity(coord, e.time)) for e in entries],
        )

    return app


__all__ = ["create_app"]
