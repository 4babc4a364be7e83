from __future__ import annotations

import gzip
import json
from pathlib import Path

import pytest

from codestat.contracts.error import SourceMalformed, SourceUnreadable
from codestat.core.stats import DataSource, LineStat
from codestat.io.snapshot import (
    Failed,
    Loaded,
    load_snapshot,
    load_source,
    parse_snapshot,
    read_source_text,
)


def test_parse_valid_document() -> None:
    text = json.dumps(
        {
            "/proj/a.py": {
                "#path": "/abs/proj/a.py",
                "main": {"3": {"count": 2, "time": 5}, "4": {"count": 1, "time": 0.5}},
                "helper": {"10": {"count": 0, "time": 0}},
            }
        }
    )
    snapshot = parse_snapshot(text)
    record = snapshot["/proj/a.py"]
    assert record.path == "/abs/proj/a.py"
    assert record.display_path == "/abs/proj/a.py"
    assert set(record.functions) == {"main", "helper"}
    assert record.functions["main"][3] == LineStat(2, 5)
    assert record.functions["main"][4] == LineStat(1, 0.5)
    assert record.functions["helper"][10].is_empty


def test_path_key_is_optional() -> None:
    snapshot = parse_snapshot('{"b.py": {"f": {"1": {"count": 1, "time": 2}}}}')
    record = snapshot["b.py"]
    assert record.path is None
    assert record.display_path == "b.py"


def test_empty_document_is_valid() -> None:
    assert parse_snapshot("{}") == {}


@pytest.mark.parametrize(
    "text",
    [
        "not json",
        "[]",
        '{"a.py": []}',
        '{"a.py": {"f": {"0": {"count": 1, "time": 1}}}}',
        '{"a.py": {"f": {"x": {"count": 1, "time": 1}}}}',
        '{"a.py": {"f": {"1": {"count": -1, "time": 1}}}}',
        '{"a.py": {"f": {"1": {"count": 1.5, "time": 1}}}}',
        '{"a.py": {"f": {"1": {"count": 1, "time": -2}}}}',
        '{"a.py": {"f": {"1": {"count": 1}}}}',
        '{"a.py": {"f": {"1": {"count": "1", "time": 1}}}}',
        '{"a.py": {"#path": 7, "f": {}}}',
        '{"a.py": {"f": {"1": {"count": 1, "time": NaN}}}}',
        '{"a.py": {"f": {"1": {"count": 1, "time": 1e400}}}}',
        '{"a.py": {"f": {"1": {"count": 1, "time": 1' + "0" * 400 + "}}}}",
        "[" * 100_000,
    ],
)
def test_malformed_documents_are_rejected(text: str) -> None:
    with pytest.raises(SourceMalformed):
        parse_snapshot(text, location="mem://doc")


def test_schema_error_names_the_offending_path() -> None:
    with pytest.raises(SourceMalformed) as excinfo:
        parse_snapshot('{"a.py": {"f": {"1": {"count": 1, "time": -2}}}}', location="doc.json")
    message = str(excinfo.value)
    assert "a.py/f/1/time" in message
    assert excinfo.value.hint


def test_read_source_text_strips_bom(tmp_path: Path) -> None:
    path = tmp_path / "bom.json"
    path.write_bytes(b"\xef\xbb\xbf{}")
    assert read_source_text(str(path)) == "{}"


def test_read_source_text_gzip(tmp_path: Path) -> None:
    path = tmp_path / "stats.json.gz"
    with gzip.open(path, "wb") as fh:
        fh.write(b'{"a.py": {"f": {"1": {"count": 1, "time": 3}}}}')
    snapshot = load_snapshot(str(path))
    assert snapshot["a.py"].functions["f"][1] == LineStat(1, 3)


def test_missing_file_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnreadable) as excinfo:
        read_source_text(str(tmp_path / "missing.json"))
    assert excinfo.value.location.endswith("missing.json")


def test_oversized_file_is_unreadable(tmp_path: Path) -> None:
    path = tmp_path / "big.json"
    path.write_text("{}" + " " * 64, encoding="utf-8")
    with pytest.raises(SourceUnreadable):
        read_source_text(str(path), max_bytes=16)


def test_invalid_utf8_is_malformed(tmp_path: Path) -> None:
    path = tmp_path / "latin.json"
    path.write_bytes(b'{"\xff": {}}')
    with pytest.raises(SourceMalformed):
        read_source_text(str(path))


def test_load_source_reports_failure_as_diagnostic(tmp_path: Path) -> None:
    path = tmp_path / "broken.json"
    path.write_text("{", encoding="utf-8")
    result = load_source(DataSource(str(path)))
    assert isinstance(result, Failed)
    assert result.ok is False
    assert result.diagnostic.kind == "SourceMalformed"
    assert result.diagnostic.location == str(path)


def test_load_source_success(tmp_path: Path) -> None:
    path = tmp_path / "ok.json"
    path.write_text('{"a.py": {"f": {"2": {"count": 4, "time": 8}}}}', encoding="utf-8")
    result = load_source(DataSource(str(path)))
    assert isinstance(result, Loaded)
    assert result.ok is True
    assert result.snapshot["a.py"].functions["f"][2] == LineStat(4, 8)


def test_non_finite_time_names_the_offending_line() -> None:
    with pytest.raises(SourceMalformed) as excinfo:
        parse_snapshot('{"a.py": {"f": {"7": {"count": 1, "time": 1e400}}}}', location="doc.json")
    assert "a.py/f/7" in str(excinfo.value)


def test_deeply_nested_document_is_malformed() -> None:
    document = '{"a.py": ' * 50_000 + "{}" + "}" * 50_000
    with pytest.raises(SourceMalformed):
        parse_snapshot(document, location="doc.json")
