"""Command-line front end for applying patches to records."""
from __future__ import annotations

import argparse
import dataclasses
import importlib
import os
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

import orjson
from dotenv import load_dotenv
from pydantic import BaseModel

from patchkit.config.settings import PatchSettings, load_settings
from patchkit.core.introspect import describe_type
from patchkit.observability.log import configure_logging
from patchkit.observability.metrics import MetricsRegistry

SETTINGS_ENV = "PATCHKIT_SETTINGS"


def _import_model(dotted: str) -> type:
    module_name, sep, attr = dotted.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Model must look like 'package.module:Class', got {dotted!r}")
    module = importlib.import_module(module_name)
    try:
        return getattr(module, attr)
    except AttributeError as exc:
        raise ValueError(f"{module_name} has no attribute {attr!r}") from exc


def _build_record(cls: type, payload: Dict[str, Any]) -> object:
    if isinstance(cls, type) and issubclass(cls, BaseModel):
        return cls.model_validate(payload)
    if dataclasses.is_dataclass(cls):
        return cls(**payload)
    raise ValueError(f"{cls!r} is not a dataclass or pydantic model")


def _dump_record(record: object) -> Dict[str, Any]:
    if isinstance(record, BaseModel):
        return record.model_dump(mode="json")
    return dataclasses.asdict(record)


def _type_name(annotation: Any) -> str:
    if isinstance(annotation, type):
        return annotation.__name__
    return str(annotation).replace("typing.", "")


def _print_json(payload: Any) -> None:
    print(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())


def _resolve_settings(args: argparse.Namespace) -> PatchSettings:
    path = args.settings or os.environ.get(SETTINGS_ENV)
    settings = load_settings(Path(path)) if path else PatchSettings()
    updates: Dict[str, Any] = {}
    if args.tag:
        updates["tag_name"] = args.tag
    if getattr(args, "stock", False):
        updates["use_stock_coercions"] = True
    return settings.model_copy(update=updates) if updates else settings


def cmd_apply(args: argparse.Namespace) -> None:
    cls = _import_model(args.model)
    record = _build_record(cls, orjson.loads(Path(args.record).read_bytes()))
    partial = orjson.loads(Path(args.patch).read_bytes())
    if not isinstance(partial, dict):
        raise ValueError(f"Patch document must be a JSON object: {args.patch}")
    metrics = MetricsRegistry()
    engine = _resolve_settings(args).build_engine(metrics=metrics)
    report = engine.apply(record, partial)
    if args.metrics_out:
        metrics.export(path=Path(args.metrics_out), run_id=uuid.uuid4().hex)
    _print_json(
        {
            "updated": report.updated,
            "failed": report.failed,
            "skipped": report.skipped,
            "record": _dump_record(record),
        }
    )


def cmd_inspect(args: argparse.Namespace) -> None:
    cls = _import_model(args.model)
    settings = _resolve_settings(args)
    fields = [
        {
            "name": descriptor.name,
            "key": descriptor.key,
            "type": _type_name(descriptor.annotation),
            "mutable": descriptor.mutable,
            "tags": dict(descriptor.tags),
        }
        for descriptor in describe_type(cls, settings.tag_name)
    ]
    _print_json(fields)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="patchkit", description="Partial updates for typed records")
    sub = parser.add_subparsers(dest="command", required=True)

    apply = sub.add_parser("apply", help="Apply a JSON patch document onto a record")
    apply.add_argument("--model", required=True, help="Record class as package.module:Class")
    apply.add_argument("--record", required=True, help="JSON file holding the current record")
    apply.add_argument("--patch", required=True, help="JSON file holding the partial map")
    apply.add_argument("--metrics-out", help="Write patch counters to this JSON file")
    apply.add_argument("--stock", action="store_true", help="Enable the stock coercions")

    inspect = sub.add_parser("inspect", help="List the patchable fields of a record class")
    inspect.add_argument("--model", required=True, help="Record class as package.module:Class")

    for command in (apply, inspect):
        command.add_argument("--tag", help="Tag holding the lookup key (default from settings)")
        command.add_argument("--settings", help=f"TOML settings file (or ${SETTINGS_ENV})")

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    load_dotenv()
    configure_logging(Path("config/logging.yaml"))
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "apply":
        cmd_apply(args)
        return
    if args.command == "inspect":
        cmd_inspect(args)
        return


if __name__ == "__main__":
    main()
