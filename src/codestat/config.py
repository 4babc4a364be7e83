"""Typed configuration loader for codestat."""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .analysis.formatting import DEFAULT_HIGH_MS, DEFAULT_MEDIUM_MS
from .analysis.ranking import CURRENT_FILE_LIMIT, HOT_LINES_LIMIT
from .contracts.error import BadInputError
from .io.snapshot import DEFAULT_MAX_SOURCE_BYTES


@dataclass
class RankingPolicy:
    hot_lines_limit: int = HOT_LINES_LIMIT
    current_file_limit: int = CURRENT_FILE_LIMIT

    def validate(self) -> None:
        for name in ("hot_lines_limit", "current_file_limit"):
            if not isinstance(getattr(self, name), int):
                raise BadInputError(f"ranking.{name} must be an integer")
        if self.hot_lines_limit <= 0:
            raise BadInputError("ranking.hot_lines_limit must be > 0")
        if self.current_file_limit <= 0:
            raise BadInputError("ranking.current_file_limit must be > 0")


@dataclass
class SeverityPolicy:
    high_ms: float = DEFAULT_HIGH_MS
    medium_ms: float = DEFAULT_MEDIUM_MS

    def validate(self) -> None:
        if self.medium_ms < 0:
            raise BadInputError("severity.medium_ms must be >= 0")
        if self.high_ms < self.medium_ms:
            raise BadInputError("severity.high_ms must be >= severity.medium_ms")


@dataclass
class LoaderPolicy:
    max_source_bytes: int = DEFAULT_MAX_SOURCE_BYTES
    workers: int = 1

    def validate(self) -> None:
        for name in ("max_source_bytes", "workers"):
            if not isinstance(getattr(self, name), int):
                raise BadInputError(f"loader.{name} must be an integer")
        if self.max_source_bytes <= 0:
            raise BadInputError("loader.max_source_bytes must be > 0")
        if self.workers < 1:
            raise BadInputError("loader.workers must be >= 1")


_SECTIONS: dict[str, type[Any]] = {
    "ranking": RankingPolicy,
    "severity": SeverityPolicy,
    "loader": LoaderPolicy,
}

_ENV_OVERRIDES: dict[str, tuple[str, str, Callable[[str], Any]]] = {
    "CODESTAT_HOT_LINES_LIMIT": ("ranking", "hot_lines_limit", int),
    "CODESTAT_CURRENT_FILE_LIMIT": ("ranking", "current_file_limit", int),
    "CODESTAT_SEVERITY_HIGH_MS": ("severity", "high_ms", float),
    "CODESTAT_SEVERITY_MEDIUM_MS": ("severity", "medium_ms", float),
    "CODESTAT_MAX_SOURCE_BYTES": ("loader", "max_source_bytes", int),
    "CODESTAT_LOAD_WORKERS": ("loader", "workers", int),
}


@dataclass
class AppConfig:
    ranking: RankingPolicy = field(default_factory=RankingPolicy)
    severity: SeverityPolicy = field(default_factory=SeverityPolicy)
    loader: LoaderPolicy = field(default_factory=LoaderPolicy)

    @classmethod
    def load(cls, path: Path | None) -> AppConfig:
        if path is None:
            cfg = cls()
        else:
            try:
                data = tomllib.loads(path.read_text(encoding="utf-8"))
            except FileNotFoundError as exc:
                raise BadInputError(f"Config file not found: {path}") from exc
            except tomllib.TOMLDecodeError as exc:
                raise BadInputError(f"Invalid TOML: {exc}") from exc
            cfg = cls.from_dict(data)
        cfg.apply_env_overrides(os.environ)
        cfg.validate()
        return cfg

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        unknown = set(data) - set(_SECTIONS)
        if unknown:
            raise BadInputError(f"Unknown config section(s): {', '.join(sorted(unknown))}")
        sections: dict[str, Any] = {}
        for name, policy_cls in _SECTIONS.items():
            section = data.get(name, {})
            if not isinstance(section, dict):
                raise BadInputError(f"[{name}] section must be a table")
            try:
                sections[name] = policy_cls(**section)
            except TypeError as exc:
                raise BadInputError(f"Invalid [{name}] section: {exc}") from exc
        return cls(**sections)

    def apply_env_overrides(self, env: Mapping[str, str]) -> None:
        for key, (section, attr, caster) in _ENV_OVERRIDES.items():
            raw_value = env.get(key)
            if raw_value is None:
                continue
            try:
                value = caster(raw_value)
            except ValueError as exc:
                raise BadInputError(f"Invalid env override {key}={raw_value!r}") from exc
            setattr(getattr(self, section), attr, value)

    def validate(self) -> None:
        for policy in (self.ranking, self.severity, self.loader):
            for name, value in vars(policy).items():
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise BadInputError(f"{name} must be a number, got {value!r}")
        self.ranking.validate()
        self.severity.validate()
        self.loader.validate()


DEFAULT_CONFIG = AppConfig()


def load_app_config(path: str | None) -> AppConfig:
    config_path = Path(path) if path else None
    return AppConfig.load(config_path)


__all__ = [
    "AppConfig",
    "RankingPolicy",
    "SeverityPolicy",
    "LoaderPolicy",
    "DEFAULT_CONFIG",
    "load_app_config",
]
