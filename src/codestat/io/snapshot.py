"""Reading and validating profiling documents ("snapshots")."""

from __future__ import annotations

import gzip
import json
import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import IO, Any, ClassVar, cast

from jsonschema import Draft202012Validator

from codestat.contracts.error import SourceMalformed, SourceUnreadable
from codestat.core.stats import PATH_KEY, DataSource, FileRecord, LineStat, Snapshot

logger = logging.getLogger(__name__)

DEFAULT_MAX_SOURCE_BYTES = 256 * 1024 * 1024
_SCHEMA_HINT = "Expected {file: {'#path': str, function: {line: {count, time}}}}"


@lru_cache(maxsize=1)
def _validator() -> Draft202012Validator:
    schema_resource = resources.files("codestat.contracts") / "codestat_schema.json"
    with schema_resource.open(encoding="utf-8") as stream:
        schema = json.load(stream)
    Draft202012Validator.check_schema(schema)
    return Draft202012Validator(schema)


def _format_error_path(path: Any) -> str:
    parts = [str(part) for part in path]
    return "/".join(parts) if parts else "<root>"


def open_source_for_read(path: Path) -> IO[bytes]:
    """Open a source path for binary reading (gzip-aware)."""

    if path.suffix == ".gz":
        return cast(IO[bytes], gzip.open(path, "rb"))
    return cast(IO[bytes], open(path, "rb"))


def read_source_text(location: str, *, max_bytes: int = DEFAULT_MAX_SOURCE_BYTES) -> str:
    """Return the decoded text of a data source location.

    Raises :class:`SourceUnreadable` when the location is missing, not a file,
    too large or cannot be read, and :class:`SourceMalformed` when the bytes
    are not UTF-8.
    """

    path = Path(location).expanduser()
    if not path.is_file():
        raise SourceUnreadable(location, "no such file")
    try:
        with open_source_for_read(path) as fh:
            raw = fh.read(max_bytes + 1)
    except OSError as exc:
        raise SourceUnreadable(location, f"cannot read: {exc}") from exc
    if len(raw) > max_bytes:
        raise SourceUnreadable(
            location,
            f"exceeds {max_bytes} bytes",
            hint="Raise loader.max_source_bytes to load larger sources",
        )
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise SourceMalformed(f"not valid UTF-8 ({exc.reason})", location=location) from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


def _finite_time(value: int | float, path: str, location: str | None) -> int | float:
    try:
        finite = math.isfinite(float(value))
    except OverflowError:
        finite = False
    if not finite:
        raise SourceMalformed(
            f"time is not a finite number @ {path}", location=location, hint=_SCHEMA_HINT
        )
    return value


def parse_snapshot(text: str, *, location: str | None = None) -> Snapshot:
    """Decode and validate a profiling document into a :data:`Snapshot`.

    The whole document is rejected on the first shape violation.
    """

    try:
        document = json.loads(text, parse_constant=_reject_constant)
        errors = sorted(_validator().iter_errors(document), key=lambda err: list(err.absolute_path))
    except RecursionError as exc:
        raise SourceMalformed("document is nested too deeply", location=location) from exc
    except ValueError as exc:
        raise SourceMalformed(f"invalid JSON: {exc}", location=location) from exc

    if errors:
        first = errors[0]
        raise SourceMalformed(
            f"{first.message} @ {_format_error_path(first.absolute_path)}",
            location=location,
            hint=_SCHEMA_HINT,
        )

    snapshot: dict[str, FileRecord] = {}
    for file_key, raw_record in document.items():
        functions: dict[str, dict[int, LineStat]] = {}
        for func_name, raw_lines in raw_record.items():
            if func_name == PATH_KEY:
                continue
            functions[func_name] = {
                int(line): LineStat(
                    count=int(stat["count"]),
                    time=_finite_time(stat["time"], f"{file_key}/{func_name}/{line}", location),
                )
                for line, stat in raw_lines.items()
            }
        snapshot[file_key] = FileRecord(
            key=file_key,
            path=raw_record.get(PATH_KEY),
            functions=functions,
        )
    return snapshot


def load_snapshot(location: str, *, max_bytes: int = DEFAULT_MAX_SOURCE_BYTES) -> Snapshot:
    """Read and parse one data source location."""

    return parse_snapshot(read_source_text(location, max_bytes=max_bytes), location=location)


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """A per-source load failure surfaced to callers instead of raised."""

    location: str
    kind: str
    detail: str

    def to_dict(self) -> dict[str, str]:
        return {"location": self.location, "kind": self.kind, "detail": self.detail}


@dataclass(frozen=True, slots=True)
class Loaded:
    source: DataSource
    snapshot: Snapshot
    ok: ClassVar[bool] = True


@dataclass(frozen=True, slots=True)
class Failed:
    source: DataSource
    diagnostic: Diagnostic
    ok: ClassVar[bool] = False


LoadResult = Loaded | Failed


def load_source(source: DataSource, *, max_bytes: int = DEFAULT_MAX_SOURCE_BYTES) -> LoadResult:
    """Load ``source`` and report failures as a :class:`Failed` result."""

    try:
        snapshot = load_snapshot(source.location, max_bytes=max_bytes)
    except (SourceUnreadable, SourceMalformed) as exc:
        diagnostic = Diagnostic(
            location=source.location,
            kind=type(exc).__name__,
            detail=str(exc),
        )
        logger.warning("Skipping source %s: %s", source.location, exc)
        return Failed(source=source, diagnostic=diagnostic)
    logger.debug("Loaded %s (%d file records)", source.location, len(snapshot))
    return Loaded(source=source, snapshot=snapshot)


__all__ = [
    "DEFAULT_MAX_SOURCE_BYTES",
    "Diagnostic",
    "Loaded",
    "Failed",
    "LoadResult",
    "open_source_for_read",
    "read_source_text",
    "parse_snapshot",
    "load_snapshot",
    "load_source",
]
