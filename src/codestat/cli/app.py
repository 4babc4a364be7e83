"""
app.py

Command-line front end for codestat:
- loads profiling documents from ``--source`` / ``--sources-file``
- rebuilds the multi-source line index once per invocation
- answers per-line lookups and hot-line rankings
- annotates a source file with aligned count/time columns per source

Success output is plain text, or a single JSON object per command with
``--json``. Failures are reported as JSON envelopes on stderr with stable
exit codes (see ``codestat.contracts.error``).
"""

from __future__ import annotations

import argparse
import contextlib
import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any

from codestat.cli.commands import CLIContext, register_subcommands
from codestat.config import AppConfig, load_app_config
from codestat.contracts.error import BadInputError, PolicyError, guard_cli
from codestat.core.stats import DataSource
from codestat.index import CodeStatContext
from codestat.io.manifest import load_manifest

# --------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------
logger = logging.getLogger("codestat")
logger.setLevel(logging.INFO)
logger.propagate = False

DEFAULT_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DEFAULT_LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S"
DEFAULT_LOG_MAX_BYTES = 5_000_000
DEFAULT_LOG_BACKUP_COUNT = 5


class JsonFormatter(logging.Formatter):
    """Render log records as JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "ts": self.formatTime(record, DEFAULT_LOG_DATEFMT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        if record.stack_info:
            payload["stack"] = self.formatStack(record.stack_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(
    use_json: bool = False,
    log_file: str | None = None,
    *,
    max_bytes: int = DEFAULT_LOG_MAX_BYTES,
    backup_count: int = DEFAULT_LOG_BACKUP_COUNT,
) -> None:
    """Configure console (and optional rotating file) logging."""

    formatter: logging.Formatter
    if use_json:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(DEFAULT_LOG_FORMAT, DEFAULT_LOG_DATEFMT)

    for handler in list(logger.handlers):
        with contextlib.suppress(Exception):
            handler.close()
        logger.removeHandler(handler)

    stream = logging.StreamHandler()
    stream.setFormatter(formatter)
    logger.addHandler(stream)

    if log_file:
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count)
        handler.setFormatter(formatter)
        logger.addHandler(handler)


configure_logging()

APP_CONFIG: AppConfig = AppConfig()
OUTPUT_JSON: bool = False


def set_app_config(cfg: AppConfig) -> None:
    global APP_CONFIG
    APP_CONFIG = cfg


def emit_success(
    command: str, *, text: str | None = None, data: dict[str, Any] | None = None
) -> None:
    if OUTPUT_JSON:
        payload: dict[str, Any] = {"ok": True, "command": command}
        if data:
            payload.update(data)
        if text is not None and "result" not in payload:
            payload["result"] = text
        print(json.dumps(payload, ensure_ascii=False))
    else:
        if text is not None:
            print(text)


def collect_sources(
    locations: list[str],
    disabled: list[str],
    sources_file: str | None,
) -> list[DataSource]:
    """Merge manifest and command-line sources, then apply ``--disable``."""

    sources = load_manifest(sources_file) if sources_file else []
    known = {source.location for source in sources}
    for location in locations:
        if location not in known:
            sources.append(DataSource(location))
            known.add(location)
    for location in disabled:
        matches = [source for source in sources if source.location == location]
        if not matches:
            raise BadInputError(
                f"Cannot disable unknown source: {location}",
                hint="Pass the same location to --source or list it in --sources-file.",
            )
        for source in matches:
            source.enabled = False
    return sources


def build_context(args: argparse.Namespace) -> CodeStatContext:
    """Create the context for this invocation and run the initial rebuild."""

    sources = collect_sources(args.source, args.disable, args.sources_file)
    context = CodeStatContext(sources, config=APP_CONFIG)
    context.rebuild()
    return context


# --------------------------------------------------------------------
# CLI
# --------------------------------------------------------------------
def main(argv: list[str]) -> int:
    p = argparse.ArgumentParser(
        description=(
            "Per-line profiling aggregator: merge call counts and timings from "
            "several profiling documents, look up lines, and rank hot lines."
        )
    )
    p.add_argument(
        "--source",
        action="append",
        default=[],
        help="Profiling document to load (repeatable, order is significant)",
    )
    p.add_argument(
        "--disable",
        action="append",
        default=[],
        help="Keep a listed source but exclude it from the index (repeatable)",
    )
    p.add_argument(
        "--sources-file",
        default=None,
        help="JSON manifest: {'sources': [{'location': str, 'enabled': bool}]}",
    )
    p.add_argument("--log-json", action="store_true", help="Emit logs in JSON format")
    p.add_argument(
        "--log-file",
        default=None,
        help="Optional log file path (rotates at 5MB, keeps 5 backups by default)",
    )
    p.add_argument(
        "--log-max-bytes",
        type=int,
        default=DEFAULT_LOG_MAX_BYTES,
        help="Max bytes per log file before rotation (default: %(default)s)",
    )
    p.add_argument(
        "--log-backup-count",
        type=int,
        default=DEFAULT_LOG_BACKUP_COUNT,
        help="Number of rotated log files to keep (default: %(default)s)",
    )
    p.add_argument(
        "--json", action="store_true", help="Emit machine-readable success output to stdout"
    )
    p.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (overrides defaults and env overrides)",
    )
    sub = p.add_subparsers(dest="cmd", required=True)

    ctx = CLIContext(
        emit_success=emit_success,
        build_context=build_context,
        logger=logger,
        json_enabled=lambda: OUTPUT_JSON,
        guard=guard_cli,
    )

    handlers = register_subcommands(sub, ctx)

    args = p.parse_args(argv)

    global OUTPUT_JSON
    OUTPUT_JSON = bool(args.json)

    configure_logging(
        args.log_json,
        args.log_file,
        max_bytes=args.log_max_bytes,
        backup_count=args.log_backup_count,
    )

    cfg_path = args.config or os.getenv("CODESTAT_CONFIG")
    cfg = guard_cli(load_app_config)(cfg_path)
    set_app_config(cfg)
    if cfg_path:
        logger.info("Loaded config from %s", cfg_path)

    handler = handlers.get(args.cmd)
    if handler is None:
        raise PolicyError(f"Unknown command {args.cmd}")
    return handler(args)


def console_main() -> None:
    """Entry point for console_scripts."""

    try:
        raise SystemExit(main(sys.argv[1:]))
    except SystemExit:
        raise
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        raise SystemExit(2) from e


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "emit_success",
    "collect_sources",
    "build_context",
    "set_app_config",
    "main",
    "console_main",
    "DEFAULT_LOG_FORMAT",
    "DEFAULT_LOG_MAX_BYTES",
    "DEFAULT_LOG_BACKUP_COUNT",
]


if __name__ == "__main__":
    try:
        sys.exit(main(sys.argv[1:]))
    except Exception as e:  # noqa: BLE001
        logger.exception("Fatal error: %s", e)
        sys.exit(2)
