"""Settings controlling how patches resolve keys and which fields they skip."""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import tomllib
from pydantic import BaseModel, Field, ValidationError

from patchkit.convert.converters import STOCK_COERCIONS
from patchkit.core.coerce import Coercion
from patchkit.core.engine import PatchEngine
from patchkit.core.skip import SkipCondition, read_only_predicate
from patchkit.observability.metrics import MetricsRegistry


class PatchSettings(BaseModel):
    """Validated ``[patch]`` configuration."""

    tag_name: str = Field(default="json", min_length=1)
    readonly_tag: str = Field(default="props", min_length=1)
    readonly_token: str = Field(default="readonly", min_length=1)
    use_stock_coercions: bool = False

    def skip_conditions(self) -> List[SkipCondition]:
        return [read_only_predicate(self.readonly_tag, self.readonly_token)]

    def coercions(self) -> List[Coercion]:
        return list(STOCK_COERCIONS) if self.use_stock_coercions else []

    def build_engine(self, metrics: Optional[MetricsRegistry] = None) -> PatchEngine:
        """Create an engine wired with these settings."""
        return PatchEngine(
            tag_name=self.tag_name,
            skip_conditions=self.skip_conditions(),
            coercions=self.coercions(),
            metrics=metrics,
        )


def load_settings(path: Path) -> PatchSettings:
    """Read the ``[patch]`` table of a TOML file; a missing table means defaults."""
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    try:
        return PatchSettings(**data.get("patch", {}))
    except ValidationError as exc:
        raise ValueError(f"Invalid patch settings in {path}: {exc}") from exc
