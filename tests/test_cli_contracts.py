from __future__ import annotations

import contextlib
import io
import json
import shlex
from pathlib import Path
from typing import Any, Callable

import pytest

from codestat.cli import app


def run_cli(cmd: str) -> tuple[int, str, str]:
    argv = shlex.split(cmd)
    stdout = io.StringIO()
    stderr = io.StringIO()
    try:
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            try:
                code = app.main(argv)
            except SystemExit as exc:  # CLI may call sys.exit
                code = exc.code if isinstance(exc.code, int) else 1
    finally:
        app.OUTPUT_JSON = False
        app.set_app_config(app.AppConfig())
    return code, stdout.getvalue().strip(), stderr.getvalue().strip()


def parse_error(stderr: str) -> dict:
    if not stderr.strip():
        return {}
    return json.loads(stderr.splitlines()[-1])


def _sources(two_sources: tuple[Path, Path]) -> str:
    path_a, path_b = two_sources
    return f"--source {path_a} --source {path_b}"


def test_lookup_json(two_sources: tuple[Path, Path]) -> None:
    code, out, _ = run_cli(f"{_sources(two_sources)} --json lookup --file src/A.py --line 3")
    assert code == 0
    payload = json.loads(out)
    assert payload["ok"] is True
    assert payload["command"] == "lookup"
    stats = payload["stats"]
    assert [(row["count"], row["time"]) for row in stats] == [(2, 5), (5, 10)]
    assert stats[0]["count_text"] == "2× "
    assert stats[0]["time_text"] == " 5ms "
    assert [row["severity"] for row in stats] == ["none", "none"]


def test_lookup_text_renders_placeholder(two_sources: tuple[Path, Path]) -> None:
    code, out, _ = run_cli(f"{_sources(two_sources)} lookup --file a.py --line 4")
    assert code == 0
    lines = out.splitlines()
    assert len(lines) == 2
    assert lines[0].startswith("·  ")
    assert "  · " in lines[0]


def test_file_hot_lines_json(two_sources: tuple[Path, Path]) -> None:
    code, out, _ = run_cli(f"{_sources(two_sources)} --json file-hot-lines --file a.py")
    assert code == 0
    entries = json.loads(out)["entries"]
    assert len(entries) == 1
    assert (entries[0]["count"], entries[0]["time"]) == (7, 15)
    assert entries[0]["severity"] == "medium"
    assert entries[0]["description"] == "15ms (×7) - f"


def test_hot_lines_by_location_and_index(two_sources: tuple[Path, Path]) -> None:
    _, path_b = two_sources
    code, out, _ = run_cli(f"{_sources(two_sources)} --json hot-lines --from {path_b}")
    assert code == 0
    payload = json.loads(out)
    assert payload["source_index"] == 1
    assert [e["function_name"] for e in payload["entries"]] == ["g"]

    code, out, _ = run_cli(f"{_sources(two_sources)} hot-lines --from 0 --limit 5")
    assert code == 0
    assert out == "a.py:3  5ms (×2) - f"


def test_hot_lines_out_of_range_is_bad_input(two_sources: tuple[Path, Path]) -> None:
    code, _, err = run_cli(f"{_sources(two_sources)} hot-lines --from 9")
    assert code == 2
    assert parse_error(err)["error"] == "BadInput"


def test_hot_lines_non_ascii_digit_selector_is_bad_input(two_sources: tuple[Path, Path]) -> None:
    code, _, err = run_cli(f"{_sources(two_sources)} hot-lines --from ²")
    assert code == 2
    error = parse_error(err)
    assert error["error"] == "BadInput"
    assert "Unknown or disabled source" in error["detail"]


def test_negative_limit_is_bad_input(two_sources: tuple[Path, Path]) -> None:
    code, _, err = run_cli(f"{_sources(two_sources)} hot-lines --limit -1")
    assert code == 2
    assert "limit" in parse_error(err)["detail"]


def test_disable_removes_contribution(two_sources: tuple[Path, Path]) -> None:
    path_a, _ = two_sources
    code, out, _ = run_cli(
        f"{_sources(two_sources)} --disable {path_a} --json file-hot-lines --file a.py"
    )
    assert code == 0
    entries = json.loads(out)["entries"]
    assert [(e["count"], e["time"]) for e in entries] == [(5, 10)]


def test_disable_unknown_source(two_sources: tuple[Path, Path]) -> None:
    code, _, err = run_cli(f"{_sources(two_sources)} --disable nowhere.json sources")
    assert code == 2
    assert parse_error(err)["error"] == "BadInput"


def test_sources_reports_failures(
    two_sources: tuple[Path, Path], write_source: Callable[[str, Any], Path]
) -> None:
    broken = write_source("broken.json", "{")
    code, out, _ = run_cli(f"{_sources(two_sources)} --source {broken} --json sources")
    assert code == 0
    payload = json.loads(out)
    assert [row["loaded"] for row in payload["sources"]] == [True, True, False]
    assert [row["position"] for row in payload["sources"]] == [0, 1, 2]
    assert payload["sources"][0]["files"] == 1
    assert payload["diagnostics"][0]["kind"] == "SourceMalformed"


def test_sources_file_manifest(tmp_path: Path, two_sources: tuple[Path, Path]) -> None:
    path_a, path_b = two_sources
    manifest = tmp_path / "sources.json"
    manifest.write_text(
        json.dumps(
            {"sources": [{"location": path_a.name}, {"location": path_b.name, "enabled": False}]}
        ),
        encoding="utf-8",
    )
    code, out, _ = run_cli(f"--sources-file {manifest} --json sources")
    assert code == 0
    rows = json.loads(out)["sources"]
    assert [row["enabled"] for row in rows] == [True, False]
    assert rows[1]["position"] is None


def test_annotate(tmp_path: Path, two_sources: tuple[Path, Path]) -> None:
    target = tmp_path / "a.py"
    target.write_text("import os\n\nrun()\n", encoding="utf-8")
    code, out, _ = run_cli(f"{_sources(two_sources)} annotate --file {target}")
    assert code == 0
    lines = out.splitlines()
    assert len(lines) == 3
    assert lines[2] == "2×  5ms 5× 10ms run()"
    assert lines[0].endswith("import os")
    assert "·" in lines[0]


def test_annotate_missing_file(tmp_path: Path, two_sources: tuple[Path, Path]) -> None:
    code, _, err = run_cli(f"{_sources(two_sources)} annotate --file {tmp_path / 'none.py'}")
    assert code == 5
    assert parse_error(err)["error"] == "IO"


def test_bad_config_is_bad_input(tmp_path: Path, two_sources: tuple[Path, Path]) -> None:
    cfg = tmp_path / "bad.toml"
    cfg.write_text("[ranking]\nhot_lines_limit = -3\n", encoding="utf-8")
    code, _, err = run_cli(f"{_sources(two_sources)} --config {cfg} sources")
    assert code == 2
    assert parse_error(err)["error"] == "BadInput"


def test_config_limit_applies(tmp_path: Path, write_source: Callable[[str, Any], Path]) -> None:
    lines = {str(n): {"count": 1, "time": n} for n in range(1, 11)}
    source = write_source("many.json", {"a.py": {"f": lines}})
    cfg = tmp_path / "codestat.toml"
    cfg.write_text("[ranking]\nhot_lines_limit = 3\n", encoding="utf-8")
    code, out, _ = run_cli(f"--source {source} --config {cfg} --json hot-lines")
    assert code == 0
    assert [e["line"] for e in json.loads(out)["entries"]] == [10, 9, 8]


def test_missing_subcommand_exits_with_usage() -> None:
    code, _, err = run_cli("")
    assert code == 2
    assert "usage" in err.lower()


@pytest.mark.parametrize("command", ["sources", "file-hot-lines --file a.py"])
def test_no_sources_is_not_an_error(command: str) -> None:
    code, _, _ = run_cli(f"--json {command}")
    assert code == 0
