from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest

from codestat.config import AppConfig, RankingPolicy, SeverityPolicy
from codestat.contracts.error import BadInputError
from codestat.core.stats import DataSource, LineStat, Severity
from codestat.index import CodeStatContext


@pytest.fixture(name="context")
def context_fixture(two_sources: tuple[Path, Path]) -> CodeStatContext:
    ctx = CodeStatContext([DataSource(str(p)) for p in two_sources])
    ctx.rebuild()
    return ctx


def test_context_starts_empty(two_sources: tuple[Path, Path]) -> None:
    ctx = CodeStatContext([DataSource(str(p)) for p in two_sources])
    assert len(ctx.index) == 0
    assert ctx.diagnostics == ()


def test_toggle_removes_and_restores_contribution(
    context: CodeStatContext, two_sources: tuple[Path, Path]
) -> None:
    path_a, path_b = two_sources
    context.toggle_source(str(path_a))
    assert [s.enabled for s in context.sources] == [False, True]
    assert len(context.index) == 1
    assert context.get_line_stat(0, "a.py", 3) == LineStat(5, 10)
    assert [(e.count, e.time) for e in context.rank_current_file_hot_lines("a.py")] == [(5, 10)]

    context.toggle_source(str(path_a))
    assert len(context.index) == 2
    assert context.rank_current_file_hot_lines("a.py")[0].time == 15


def test_add_and_remove(
    context: CodeStatContext, write_source: Callable[[str, Any], Path]
) -> None:
    extra = write_source("c.json", {"a.py": {"z": {"3": {"count": 1, "time": 100}}}})
    context.add_source(str(extra))
    context.add_source(str(extra))
    assert len(context.sources) == 3
    assert context.rank_current_file_hot_lines("a.py")[0].time == 115

    context.remove_source(str(extra))
    assert len(context.sources) == 2
    assert context.rank_current_file_hot_lines("a.py")[0].time == 15


def test_unknown_source_mutations_raise(context: CodeStatContext) -> None:
    with pytest.raises(BadInputError):
        context.remove_source("missing.json")
    with pytest.raises(BadInputError):
        context.toggle_source("missing.json")


def test_set_sources_and_reset(context: CodeStatContext, two_sources: tuple[Path, Path]) -> None:
    context.set_sources([DataSource(str(two_sources[1]))])
    assert len(context.index) == 1
    context.reset()
    assert len(context.index) == 0
    assert len(context.sources) == 1


def test_config_limits_and_thresholds(two_sources: tuple[Path, Path]) -> None:
    cfg = AppConfig(
        ranking=RankingPolicy(hot_lines_limit=1, current_file_limit=1),
        severity=SeverityPolicy(high_ms=12, medium_ms=6),
    )
    ctx = CodeStatContext([DataSource(str(p)) for p in two_sources], config=cfg)
    ctx.rebuild()
    assert len(ctx.rank_hot_lines(0)) == 1
    assert len(ctx.rank_current_file_hot_lines("a.py")) == 1
    assert ctx.severity_tier(15) is Severity.HIGH
    assert ctx.severity_tier(10) is Severity.MEDIUM
    assert ctx.severity_tier(5) is Severity.NONE


def test_sources_property_is_a_copy(context: CodeStatContext) -> None:
    listed = context.sources
    listed[0].enabled = False
    assert context.sources[0].enabled is True
