"""Contract helpers for the codestat CLI and loaders."""

from .error import (
    BadInputError,
    EnvelopeError,
    ErrorEnvelope,
    Exit,
    InvariantError,
    IOErrorEnvelope,
    ParseError,
    PolicyError,
    SourceMalformed,
    SourceUnreadable,
    die,
    guard_cli,
)

__all__ = [
    "Exit",
    "ErrorEnvelope",
    "EnvelopeError",
    "BadInputError",
    "InvariantError",
    "PolicyError",
    "IOErrorEnvelope",
    "SourceUnreadable",
    "SourceMalformed",
    "ParseError",
    "guard_cli",
    "die",
]
