from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

CONFIG_TABLE = "delplan"


@dataclass(frozen=True)
class PlannerConfig:
    expand_subpackages: bool = False
    suggest_accessor_deletion: bool = True

    def with_overrides(self, **overrides: bool | None) -> PlannerConfig:
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


def load_config(root: Path) -> PlannerConfig:
    """Read ``[tool.delplan]`` from ``root/pyproject.toml`` if there is one."""
    pyproject = root / "pyproject.toml"
    if not pyproject.is_file():
        return PlannerConfig()
    with pyproject.open("rb") as handle:
        data = tomllib.load(handle)
    table = data.get("tool", {}).get(CONFIG_TABLE, {})
    return config_from_mapping(table)


def config_from_mapping(table: dict[str, Any]) -> PlannerConfig:
    known = {f.name for f in fields(PlannerConfig)}
    values: dict[str, bool] = {}
    for raw_key, value in table.items():
        key = raw_key.replace("-", "_")
        if key not in known:
            logger.warning("Ignoring unknown [tool.%s] key: %s", CONFIG_TABLE, raw_key)
            continue
        if not isinstance(value, bool):
            raise ValueError(f"[tool.{CONFIG_TABLE}] {raw_key} must be a boolean, got {value!r}")
        values[key] = value
    return PlannerConfig(**values)
