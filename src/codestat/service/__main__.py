"""Command-line entry point for the codestat query service."""

from __future__ import annotations

import argparse
import importlib
import logging
import os
from typing import Optional

from codestat.config import load_app_config
from codestat.core.stats import DataSource
from codestat.io.manifest import load_manifest

from .api import create_app
from .coordinator import RebuildCoordinator

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 9640


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="codestat hot-line query service.")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Interface to bind (default: %(default)s).")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port to bind (default: %(default)s).")
    parser.add_argument(
        "--source",
        action="append",
        default=[],
        help="Profiling document to load (repeatable).",
    )
    parser.add_argument(
        "--sources-file",
        default=None,
        help="JSON manifest of sources ({'sources': [{'location', 'enabled'}]}).",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to TOML config file (defaults to CODESTAT_CONFIG).",
    )
    parser.add_argument(
        "--log-level",
        default="info",
        help="Uvicorn log level (default: %(default)s).",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    cfg = load_app_config(args.config or os.getenv("CODESTAT_CONFIG"))
    sources = load_manifest(args.sources_file) if args.sources_file else []
    sources.extend(DataSource(location) for location in args.source)

    coordinator = RebuildCoordinator(sources, config=cfg)
    coordinator.request()
    app = create_app(coordinator)

    log_level = args.log_level.lower()
    logging.getLogger("codestat").setLevel(log_level.upper())

    uvicorn = importlib.import_module("uvicorn")
    try:
        uvicorn.run(app, host=args.host, port=args.port, log_level=log_level)
    finally:
        coordinator.shutdown()


if __name__ == "__main__":  # pragma: no cover - manual execution entry point
    main()
