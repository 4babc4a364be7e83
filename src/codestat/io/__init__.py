"""I/O helpers for codestat data sources."""

from .manifest import SourceManifest, load_manifest
from .snapshot import (
    DEFAULT_MAX_SOURCE_BYTES,
    Diagnostic,
    Failed,
    Loaded,
    LoadResult,
    load_snapshot,
    load_source,
    open_source_for_read,
    parse_snapshot,
    read_source_text,
)

__all__ = [
    "DEFAULT_MAX_SOURCE_BYTES",
    "Diagnostic",
    "Failed",
    "Loaded",
    "LoadResult",
    "SourceManifest",
    "load_manifest",
    "load_snapshot",
    "load_source",
    "open_source_for_read",
    "parse_snapshot",
    "read_source_text",
]
