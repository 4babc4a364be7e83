import json
import os
import sys
from pathlib import Path
from typing import Any, Callable

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
if SRC.exists():
    sys.path.insert(0, str(SRC))

# Register shared Hypothesis profiles for deterministic CI runs and fast local loops.
from tests.util import hypothesis_profiles  # noqa: E402,F401  pylint: disable=unused-import

SOURCE_A: dict[str, Any] = {
    "/proj/a.py": {
        "#path": "/proj/a.py",
        "f": {"3": {"count": 2, "time": 5}},
    }
}
SOURCE_B: dict[str, Any] = {
    "/other/A.PY": {
        "g": {"3": {"count": 5, "time": 10}},
    }
}


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer CODESTAT_* settings out of the test run."""

    for key in list(os.environ):
        if key.startswith("CODESTAT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(name="write_source")
def write_source_fixture(tmp_path: Path) -> Callable[[str, Any], Path]:
    """Write a profiling document (dict or raw text) under ``tmp_path``."""

    def _write(name: str, document: Any) -> Path:
        path = tmp_path / name
        if isinstance(document, str):
            path.write_text(document, encoding="utf-8")
        else:
            path.write_text(json.dumps(document), encoding="utf-8")
        return path

    return _write


@pytest.fixture(name="two_sources")
def two_sources_fixture(write_source: Callable[[str, Any], Path]) -> tuple[Path, Path]:
    return write_source("a.json", SOURCE_A), write_source("b.json", SOURCE_B)
