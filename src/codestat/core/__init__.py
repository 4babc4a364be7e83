from .stats import (
    PATH_KEY,
    DataSource,
    FileRecord,
    FunctionRecord,
    HotLineEntry,
    LineStat,
    Severity,
    Snapshot,
)

__all__ = [
    "PATH_KEY",
    "DataSource",
    "FileRecord",
    "FunctionRecord",
    "HotLineEntry",
    "LineStat",
    "Severity",
    "Snapshot",
]
