"""Definition loader for unit price rules.

Loads YAML/JSON definitions from cost_guardrail/pricing/definitions.

The loader is intentionally strict:
- it validates required fields and numeric bounds
- it normalizes the schema into PriceRule dataclasses

A broken definition file is a packaging bug, not an operator mistake, so it
raises ValueError with a readable message and CI/test runs fail fast.
Operator overrides are handled leniently later, by PriceRule.resolve().
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .price_rules import PriceRule
from .units import KNOWN_UNITS

DEFINITIONS_DIR = Path(__file__).resolve().parent / "definitions"


def _require(obj: Dict[str, Any], key: str, *, ctx: str) -> Any:
    if key not in obj:
        raise ValueError(f"Missing required key '{key}' in {ctx}")
    return obj[key]


def _number(obj: Dict[str, Any], key: str, *, ctx: str) -> float:
    value = _require(obj, key, ctx=ctx)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{key}' must be a number in {ctx}")
    return float(value)


def _load_one(path: Path) -> Dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
    elif path.suffix.lower() == ".json":
        data = json.loads(raw)
    else:
        raise ValueError(f"Unsupported definition file type: {path}")
    if not isinstance(data, dict):
        raise ValueError(f"Top-level document must be a mapping in {path}")
    return data


def _parse_rule(obj: Any, *, ctx: str) -> PriceRule:
    if not isinstance(obj, dict):
        raise ValueError(f"price rule must be an object in {ctx}")
    key = str(_require(obj, "key", ctx=ctx)).strip()
    if not key:
        raise ValueError(f"price rule key cannot be empty in {ctx}")
    unit = str(_require(obj, "unit", ctx=ctx)).strip()
    if unit not in KNOWN_UNITS:
        raise ValueError(f"Unknown unit '{unit}' in {ctx}")
    return PriceRule(
        key=key,
        name=str(obj.get("name") or key),
        default=_number(obj, "default", ctx=ctx),
        min_value=_number(obj, "min", ctx=ctx),
        max_value=_number(obj, "max", ctx=ctx),
        unit=unit,
        env_var=(str(obj["env_var"]).strip() or None) if obj.get("env_var") else None,
        description=str(obj.get("description") or ""),
    )


def load_price_rules(base_dir: Optional[Path] = None) -> Dict[str, PriceRule]:
    """Load every definition file under `base_dir` into a key -> PriceRule map."""
    base = Path(base_dir) if base_dir else DEFINITIONS_DIR
    files: List[Path] = sorted(
        p for p in base.iterdir() if p.suffix.lower() in (".yaml", ".yml", ".json")
    )

    rules: Dict[str, PriceRule] = {}
    for path in files:
        data = _load_one(path)
        items = data.get("rules") or []
        if not isinstance(items, list):
            raise ValueError(f"'rules' must be a list in {path}")
        for i, item in enumerate(items):
            rule = _parse_rule(item, ctx=f"{path.name}.rules[{i}]")
            if rule.key in rules:
                raise ValueError(f"Duplicate price rule '{rule.key}' in {path}")
            rules[rule.key] = rule
    return rules


@lru_cache(maxsize=1)
def default_price_rules() -> Dict[str, PriceRule]:
    return load_price_rules()


def get_price_rule(key: str) -> PriceRule:
    try:
        return default_price_rules()[key]
    except KeyError:
        raise KeyError(f"No price rule named '{key}'") from None


__all__ = ["DEFINITIONS_DIR", "default_price_rules", "get_price_rule", "load_price_rules"]
