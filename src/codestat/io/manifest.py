"""Source list manifests consumed by the CLI and the query service."""

from __future__ import annotations

import json
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError, field_validator

from codestat.contracts.error import BadInputError
from codestat.core.stats import DataSource


class DataSourceModel(BaseModel):
    """One data source entry of a manifest."""

    location: str = Field(..., description="Path to a profiling JSON document (.json or .json.gz).")
    enabled: bool = Field(default=True, description="Whether the source takes part in aggregation.")

    @field_validator("location")
    @classmethod
    def _validate_location(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("location must not be empty")
        return value

    def to_source(self) -> DataSource:
        return DataSource(location=self.location, enabled=self.enabled)


class SourceManifest(BaseModel):
    """Ordered list of data sources."""

    sources: list[DataSourceModel] = Field(default_factory=list)

    def to_sources(self, base_dir: Path | None = None) -> list[DataSource]:
        result: list[DataSource] = []
        for entry in self.sources:
            location = Path(entry.location).expanduser()
            if base_dir is not None and not location.is_absolute():
                location = base_dir / location
            result.append(DataSource(location=str(location), enabled=entry.enabled))
        return result


def load_manifest(path: str | Path) -> list[DataSource]:
    """Read a JSON manifest; relative locations resolve against its directory."""

    manifest_path = Path(path).expanduser()
    try:
        data = json.loads(manifest_path.read_text(encoding="utf-8"))
    except FileNotFoundError as exc:
        raise BadInputError(f"Sources file not found: {manifest_path}") from exc
    except json.JSONDecodeError as exc:
        raise BadInputError(f"Invalid sources file JSON: {exc}") from exc
    try:
        manifest = SourceManifest.model_validate(data)
    except ValidationError as exc:
        raise BadInputError(
            f"Invalid sources file {manifest_path}: {exc.error_count()} error(s)",
            hint=str(exc),
        ) from exc
    return manifest.to_sources(manifest_path.resolve().parent)


__all__ = ["DataSourceModel", "SourceManifest", "load_manifest"]
