"""codestat query service."""

from .api import create_app
from .coordinator import RebuildCoordinator, RebuildResult
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

__all__ = [
    "create_app",
    "RebuildCoordinator",
    "RebuildResult",
    "RebuildRequest",
    "RebuildResponse",
    "DiagnosticModel",
    "SourcesResponse",
    "SourceStatusModel",
    "LineStatResponse",
    "HotLineModel",
    "HotLinesResponse",
]
