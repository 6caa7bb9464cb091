import json
from unittest.mock import patch

import pytest

from pathcraft.utils.file_io import safe_read_json, safe_write_json, safe_write_text


def test_read_missing_returns_default(tmp_path):
    assert safe_read_json(tmp_path / "missing.json") == {}
    assert safe_read_json(tmp_path / "missing.json", default=[]) == []


def test_read_empty_and_corrupt(tmp_path):
    empty = tmp_path / "empty.json"
    empty.write_text("   ")
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json")

    assert safe_read_json(empty) == {}
    assert safe_read_json(corrupt, default={"fallback": True}) == {"fallback": True}


def test_write_json_creates_parents(tmp_path):
    target = tmp_path / "a" / "b" / "data.json"
    assert safe_write_json(target, {"name": "Café", "count": 2})

    content = target.read_text(encoding="utf-8")
    assert content.endswith("}\n")
    assert "Café" in content
    assert json.loads(content) == {"name": "Café", "count": 2}


def test_write_text_reports_os_errors(tmp_path):
    with patch("pathlib.Path.write_text", side_effect=PermissionError("denied")):
        assert safe_write_text(tmp_path / "x.txt", "data") is False
    with patch("pathlib.Path.write_text", side_effect=OSError("disk full")):
        assert safe_write_text(tmp_path / "x.txt", "data") is False


def test_write_text_reraises_unexpected_errors(tmp_path):
    with patch("pathlib.Path.write_text", side_effect=TypeError("bad content")):
        with pytest.raises(TypeError):
            safe_write_text(tmp_path / "x.txt", "data")
