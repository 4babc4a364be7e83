"""Per-line profiling aggregation and hot-line ranking."""

from . import analysis, contracts, core, io

__all__ = [
    "analysis",
    "contracts",
    "core",
    "io",
]
