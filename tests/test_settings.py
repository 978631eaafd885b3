from dataclasses import dataclass, field

import pytest

from patchkit.config.settings import PatchSettings, load_settings
from patchkit.convert.converters import STOCK_COERCIONS


@dataclass
class Document:
    title: str = field(default="", metadata={"api": "title", "access": "locked"})
    body: str = field(default="", metadata={"api": "body", "props": "readonly"})
    words: float = field(default=0.0, metadata={"api": "words"})


@dataclass
class Release:
    tag: str = field(default="v1", metadata={"json": "tag", "props": "readonly"})
    notes: str = field(default="", metadata={"json": "notes"})


def test_load_settings(tmp_path):
    path = tmp_path / "patchkit.toml"
    path.write_text(
        '[patch]\ntag_name = "api"\nreadonly_tag = "access"\nreadonly_token = "locked"\nuse_stock_coercions = true\n',
        encoding="utf-8",
    )
    settings = load_settings(path)
    assert settings.tag_name == "api"
    assert settings.use_stock_coercions

    doc = Document()
    report = settings.build_engine().apply(doc, {"title": "t", "body": "b", "words": 3})
    assert report.updated == ["body", "words"]
    assert report.skipped == ["title"]
    assert doc.words == 3.0


def test_missing_table_means_defaults(tmp_path):
    path = tmp_path / "empty.toml"
    path.write_text("[other]\nkey = 1\n", encoding="utf-8")
    settings = load_settings(path)
    assert settings == PatchSettings()
    engine = settings.build_engine()
    assert engine.tag_name == "json"
    assert engine.coercions == []

    record = Release()
    report = engine.apply(record, {"tag": "v2", "notes": "n"})
    assert report.updated == ["notes"]
    assert report.skipped == ["tag"]


def test_stock_coercions_flag():
    engine = PatchSettings(use_stock_coercions=True).build_engine()
    assert engine.coercions == STOCK_COERCIONS


def test_invalid_settings(tmp_path):
    path = tmp_path / "bad.toml"
    path.write_text('[patch]\ntag_name = ""\n', encoding="utf-8")
    with pytest.raises(ValueError) as excinfo:
        load_settings(path)
    assert "tag_name" in str(excinfo.value)
