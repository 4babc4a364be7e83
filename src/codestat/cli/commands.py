"""CLI command registration and handlers for codestat."""

from __future__ import annotations

import argparse
import logging
import ntpath
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from codestat.analysis.formatting import (
    describe_hot_line,
    format_count,
    format_duration,
    format_time_stat,
)
from codestat.contracts.error import BadInputError, Exit, IOErrorEnvelope
from codestat.core.stats import HotLineEntry
from codestat.index import CodeStatContext


@dataclass(frozen=True)
class CLIContext:
    """Runtime hooks supplied by the top-level CLI entrypoint."""

    emit_success: Callable[..., None]
    build_context: Callable[[argparse.Namespace], CodeStatContext]
    logger: logging.Logger
    json_enabled: Callable[[], bool]
    guard: Callable[[Callable[[argparse.Namespace], int]], Callable[[argparse.Namespace], int]]


def register_subcommands(
    subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ctx: CLIContext,
) -> Dict[str, Callable[[argparse.Namespace], int]]:
    """Define CLI subcommands and return their handlers."""

    handlers: Dict[str, Callable[[argparse.Namespace], int]] = {}

    def _register(
        name: str,
        help_text: Optional[str],
        configure: Callable[[argparse.ArgumentParser], Callable[[argparse.Namespace], int]],
    ) -> None:
        parser = subparsers.add_parser(name, help=help_text)
        handler = configure(parser)
        handlers[name] = ctx.guard(handler)

    _register(
        "sources",
        "List configured sources with their load status.",
        lambda parser: _configure_sources(parser, ctx),
    )
    _register(
        "lookup",
        "Show one line's merged stats for every enabled source.",
        lambda parser: _configure_lookup(parser, ctx),
    )
    _register(
        "hot-lines",
        "Rank the most expensive lines of a single source.",
        lambda parser: _configure_hot_lines(parser, ctx),
    )
    _register(
        "file-hot-lines",
        "Rank the most expensive lines of one file across all sources.",
        lambda parser: _configure_file_hot_lines(parser, ctx),
    )
    _register(
        "annotate",
        "Print a source file with count/time columns per enabled source.",
        lambda parser: _configure_annotate(parser, ctx),
    )

    return handlers


def _non_negative_limit(value: Optional[int]) -> Optional[int]:
    if value is not None and value < 0:
        raise BadInputError(f"--limit must be >= 0 (got {value})")
    return value


def _entry_payload(context: CodeStatContext, entry: HotLineEntry) -> Dict[str, Any]:
    payload = entry.to_dict()
    payload["time_text"] = format_duration(entry.time)
    payload["description"] = describe_hot_line(entry)
    payload["severity"] = str(context.severity_tier(entry.time))
    return payload


def _render_entries(entries: List[HotLineEntry]) -> str:
    if not entries:
        return "No hot lines."
    return "\n".join(
        f"{entry.file_base_name}:{entry.line}  {describe_hot_line(entry)}" for entry in entries
    )


def _configure_sources(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:

    def handler(args: argparse.Namespace) -> int:
        context = ctx.build_context(args)
        index = context.index
        positions = {source.location: pos for pos, source in enumerate(index.sources)}
        rows: List[Dict[str, Any]] = []
        lines: List[str] = []
        for source in context.sources:
            position = positions.get(source.location) if source.enabled else None
            loaded = position is not None and index.snapshots[position] is not None
            file_count = len(index.files[position]) if position is not None else 0
            rows.append(
                {
                    "location": source.location,
                    "enabled": source.enabled,
                    "position": position,
                    "loaded": loaded,
                    "files": file_count,
                }
            )
            if not source.enabled:
                status = "disabled"
            elif loaded:
                status = f"loaded ({file_count} files)"
            else:
                status = "failed"
            slot = "-" if position is None else str(position)
            lines.append(f"[{slot}] {source.location}: {status}")
        for diagnostic in context.diagnostics:
            lines.append(f"  {diagnostic.kind}: {diagnostic.detail}")
        data = {
            "sources": rows,
            "diagnostics": [diagnostic.to_dict() for diagnostic in context.diagnostics],
        }
        ctx.emit_success("sources", text="\n".join(lines) if lines else "No sources.", data=data)
        return int(Exit.OK)

    return handler


def _configure_lookup(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--file", required=True, help="File name or path (base name is used)")
    parser.add_argument("--line", type=int, required=True, help="1-based line number")

    def handler(args: argparse.Namespace) -> int:
        context = ctx.build_context(args)
        index = context.index
        rows: List[Dict[str, Any]] = []
        lines: List[str] = []
        for position, source in enumerate(index.sources):
            stat = index.get_line_stat(position, args.file, args.line)
            count_text = format_count(stat, index.widths)
            time_text = format_time_stat(stat, index.widths)
            severity = context.severity_tier(0 if stat is None else stat.time)
            rows.append(
                {
                    "position": position,
                    "location": source.location,
                    "no_data": stat is None or stat.is_empty,
                    "count": None if stat is None else stat.count,
                    "time": None if stat is None else stat.time,
                    "count_text": count_text,
                    "time_text": time_text,
                    "severity": str(severity),
                }
            )
            lines.append(f"{count_text}{time_text}{source.location}")
        data = {"file": args.file, "line": args.line, "stats": rows}
        text = "\n".join(lines) if lines else "No enabled sources."
        ctx.emit_success("lookup", text=text, data=data)
        return int(Exit.OK)

    return handler


def _configure_hot_lines(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument(
        "--from",
        dest="ranked_source",
        default="0",
        help="Source to rank, by location or enabled position (default: %(default)s)",
    )
    parser.add_argument("--limit", type=int, default=None, help="Override the ranking limit")

    def handler(args: argparse.Namespace) -> int:
        limit = _non_negative_limit(args.limit)
        context = ctx.build_context(args)
        index = context.index
        selector = args.ranked_source
        position = int(selector) if selector.isdecimal() else index.source_position(selector)
        if limit is None:
            entries = context.rank_hot_lines(position)
        else:
            entries = index.rank_hot_lines(position, limit)
        if index.snapshots[position] is None:
            ctx.logger.warning("Source %s failed to load; ranking is empty", selector)
        data = {
            "source_index": position,
            "location": index.sources[position].location,
            "entries": [_entry_payload(context, entry) for entry in entries],
        }
        ctx.emit_success("hot-lines", text=_render_entries(entries), data=data)
        return int(Exit.OK)

    return handler


def _configure_file_hot_lines(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--file", required=True, help="File name or path (base name is used)")
    parser.add_argument("--limit", type=int, default=None, help="Override the ranking limit")

    def handler(args: argparse.Namespace) -> int:
        limit = _non_negative_limit(args.limit)
        context = ctx.build_context(args)
        if limit is None:
            entries = context.rank_current_file_hot_lines(args.file)
        else:
            entries = context.index.rank_current_file_hot_lines(args.file, limit)
        data = {
            "file": args.file,
            "entries": [_entry_payload(context, entry) for entry in entries],
        }
        ctx.emit_success("file-hot-lines", text=_render_entries(entries), data=data)
        return int(Exit.OK)

    return handler


def _configure_annotate(
    parser: argparse.ArgumentParser, ctx: CLIContext
) -> Callable[[argparse.Namespace], int]:
    parser.add_argument("--file", required=True, help="Source file to annotate")

    def handler(args: argparse.Namespace) -> int:
        path = Path(args.file).expanduser()
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise IOErrorEnvelope(f"File not found: {path}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise IOErrorEnvelope(f"Cannot read {path}: {exc}") from exc

        context = ctx.build_context(args)
        index = context.index
        file_name = ntpath.basename(str(path))
        rendered: List[str] = []
        rows: List[Dict[str, Any]] = []
        for number, source_line in enumerate(text.splitlines(), start=1):
            columns: List[Dict[str, str]] = []
            prefix = ""
            for position in range(len(index)):
                stat = index.get_line_stat(position, file_name, number)
                count_text = format_count(stat, index.widths)
                time_text = format_time_stat(stat, index.widths)
                prefix += count_text + time_text
                columns.append({"count_text": count_text, "time_text": time_text})
            rendered.append(f"{prefix}{source_line}")
            rows.append({"line": number, "columns": columns, "text": source_line})
        data = {
            "file": str(path),
            "sources": [source.location for source in index.sources],
            "lines": rows,
        }
        ctx.emit_success("annotate", text="\n".join(rendered), data=data)
        return int(Exit.OK)

    return handler


__all__ = ["CLIContext", "register_subcommands"]
