import json

import pytest

from patchkit.admin import cli

MODELS = '''
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class Profile:
    name: str = field(default="", metadata={"json": "name"})
    age: int = field(default=0, metadata={"json": "age"})
    nickname: Optional[str] = field(default="kid", metadata={"json": "nickname"})
    owner: str = field(default="", metadata={"json": "owner", "props": "readonly"})
'''


@pytest.fixture()
def documents(tmp_path, monkeypatch):
    (tmp_path / "cli_models.py").write_text(MODELS, encoding="utf-8")
    monkeypatch.syspath_prepend(str(tmp_path))
    record = tmp_path / "record.json"
    record.write_text(json.dumps({"name": "Ada", "age": 30, "owner": "root"}), encoding="utf-8")
    patch = tmp_path / "patch.json"
    patch.write_text(json.dumps({"age": 31.0, "nickname": None, "owner": "eve", "extra": 1}), encoding="utf-8")
    monkeypatch.delenv(cli.SETTINGS_ENV, raising=False)
    return tmp_path, str(record), str(patch)


def test_apply_with_stock_coercions(documents, capsys):
    tmp_path, record, patch = documents
    metrics_out = tmp_path / "metrics.json"
    cli.main([
        "apply",
        "--model",
        "cli_models:Profile",
        "--record",
        record,
        "--patch",
        patch,
        "--stock",
        "--metrics-out",
        str(metrics_out),
    ])
    output = json.loads(capsys.readouterr().out)
    assert output["updated"] == ["age", "nickname"]
    assert output["skipped"] == ["owner"]
    assert output["record"] == {"name": "Ada", "age": 31, "nickname": None, "owner": "root"}
    counters = json.loads(metrics_out.read_text(encoding="utf-8"))["counters"]
    assert counters["fields_updated"] == 2


def test_apply_without_coercions(documents, capsys):
    _, record, patch = documents
    cli.main(["apply", "--model", "cli_models:Profile", "--record", record, "--patch", patch])
    output = json.loads(capsys.readouterr().out)
    assert output["updated"] == []
    assert output["failed"] == ["age", "nickname"]
    assert output["record"]["age"] == 30


def test_settings_from_environment(documents, capsys, monkeypatch):
    tmp_path, record, patch = documents
    settings = tmp_path / "patchkit.toml"
    settings.write_text("[patch]\nuse_stock_coercions = true\n", encoding="utf-8")
    monkeypatch.setenv(cli.SETTINGS_ENV, str(settings))
    cli.main(["apply", "--model", "cli_models:Profile", "--record", record, "--patch", patch])
    output = json.loads(capsys.readouterr().out)
    assert output["updated"] == ["age", "nickname"]


def test_inspect(documents, capsys):
    cli.main(["inspect", "--model", "cli_models:Profile"])
    output = json.loads(capsys.readouterr().out)
    assert [row["key"] for row in output] == ["name", "age", "nickname", "owner"]
    assert output[2]["type"] == "Optional[str]"
    assert output[3]["tags"] == {"json": "owner", "props": "readonly"}


def test_bad_model_spec(documents):
    with pytest.raises(ValueError):
        cli.main(["inspect", "--model", "cli_models"])
    with pytest.raises(ValueError):
        cli.main(["inspect", "--model", "cli_models:Missing"])
