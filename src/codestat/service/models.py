"""Pydantic models for the codestat query service."""

from __future__ import annotations

from pydantic import BaseModel, Field

from codestat.analysis.formatting import describe_hot_line, format_duration
from codestat.core.stats import HotLineEntry, Severity
from codestat.io.manifest import DataSourceModel
from codestat.io.snapshot import Diagnostic


class RebuildRequest(BaseModel):
    """Request payload for ``POST /api/rebuild``."""

    sources: list[DataSourceModel] | None = Field(
        default=None,
        description="Replacement source list; omit to reload the current one.",
    )
    timeout: float = Field(
        default=60.0, gt=0, description="Seconds to wait for the rebuild to finish."
    )


class DiagnosticModel(BaseModel):
    location: str
    kind: str
    detail: str

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticModel:
        return cls(location=diagnostic.location, kind=diagnostic.kind, detail=diagnostic.detail)


class SourceStatusModel(BaseModel):
    location: str
    enabled: bool
    position: int | None = Field(
        default=None, description="Index among enabled sources, used by per-source queries."
    )
    loaded: bool = False


class SourcesResponse(BaseModel):
    generation: int
    sources: list[SourceStatusModel]
    diagnostics: list[DiagnosticModel] = Field(default_factory=list)


class RebuildResponse(SourcesResponse):
    count_width: int
    time_width: int


class LineStatResponse(BaseModel):
    source_index: int
    file_name: str
    line: int
    no_data: bool
    count: int | None = None
    time: float | None = None
    count_text: str
    time_text: str
    severity: Severity


class HotLineModel(BaseModel):
    source_path: str
    file_base_name: str
    line: int
    function_name: str
    count: int
    time: float
    time_text: str
    description: str
    severity: Severity

    @classmethod
    def from_entry(cls, entry: HotLineEntry, severity: Severity) -> HotLineModel:
        return cls(
            **entry.to_dict(),
            time_text=format_duration(entry.time),
            description=describe_hot_line(entry),
            severity=severity,
        )


class HotLinesResponse(BaseModel):
    generation: int
    source_index: int | None = None
    file_name: str | None = None
    entries: list[HotLineModel]


__all__ = [
    "RebuildRequest",
    "DiagnosticModel",
    "SourceStatusModel",
    "SourcesResponse",
    "RebuildResponse",
    "LineStatResponse",
    "HotLineModel",
    "HotLinesResponse",
]
