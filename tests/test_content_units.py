"""Tests for content unit ingestion."""

import json

import pytest

from dataset_pipeline.core.document_processing import load_content_units
from dataset_pipeline.core.document_processing.content_units import load_text_dir, load_units_file
from dataset_pipeline.models import OriginType


class TestLoadUnitsFile:
    def test_json_array(self, tmp_path) -> None:
        path = tmp_path / "units.json"
        path.write_text(json.dumps([
            {"id": "a", "originType": "file", "originLabel": "a.pdf", "text": "Alpha"},
            {"id": "b", "originType": "url", "originLabel": "https://b.example", "text": "Beta"},
        ]), encoding="utf-8")

        units = load_units_file(str(path))

        assert [u.id for u in units] == ["a", "b"]
        assert units[1].origin_type == OriginType.URL
        assert units[0].header() == "File: a.pdf"

    def test_wrapped_units_key(self, tmp_path) -> None:
        path = tmp_path / "units.json"
        path.write_text(json.dumps({"units": [{"originType": "file", "text": "Alpha"}]}), encoding="utf-8")
        units = load_units_file(str(path))
        assert units[0].id == "unit-0"

    def test_jsonl(self, tmp_path) -> None:
        path = tmp_path / "units.jsonl"
        path.write_text(
            '{"id": "a", "originType": "file", "text": "Alpha"}\n\n{"id": "b", "originType": "url", "text": "Beta"}\n',
            encoding="utf-8",
        )
        assert [u.text for u in load_units_file(str(path))] == ["Alpha", "Beta"]

    def test_records_without_text_are_skipped(self, tmp_path) -> None:
        path = tmp_path / "units.json"
        path.write_text(json.dumps([
            {"id": "a", "originType": "file", "text": None},
            {"id": "b", "originType": "file"},
            {"id": "c", "originType": "bogus", "text": "bad origin"},
            {"id": "d", "originType": "file", "text": "kept"},
        ]), encoding="utf-8")
        assert [u.id for u in load_units_file(str(path))] == ["d"]


class TestLoadTextDir:
    def test_reads_text_and_markdown_sorted(self, tmp_path) -> None:
        (tmp_path / "b.md").write_text("# Bee", encoding="utf-8")
        (tmp_path / "a.txt").write_text("Ay", encoding="utf-8")
        (tmp_path / "c.pdf").write_bytes(b"%PDF")

        units = load_text_dir(str(tmp_path))

        assert [u.origin_label for u in units] == ["a.txt", "b.md"]
        assert all(u.origin_type == OriginType.FILE for u in units)

    def test_missing_directory(self, tmp_path) -> None:
        with pytest.raises(FileNotFoundError):
            load_text_dir(str(tmp_path / "nope"))


def test_load_content_units_combines_sources(tmp_path) -> None:
    docs = tmp_path / "docs"
    docs.mkdir()
    (docs / "a.txt").write_text("Ay", encoding="utf-8")
    units_file = tmp_path / "units.json"
    units_file.write_text(json.dumps([{"id": "web", "originType": "url", "text": "Web"}]), encoding="utf-8")

    units = load_content_units(input_dir=str(docs), units_file=str(units_file))

    assert [u.id for u in units] == ["a", "web"]
