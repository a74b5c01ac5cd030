"""Unit price resolution.

This module is *pure policy* (no I/O besides logging).

Every metered dimension has a default USD price that operators may override
through an environment variable. Overrides are untrusted input: a typo must
never stop the guardrail, and an absurd value must never silently make usage
look free. So an override is accepted only when it parses and falls inside the
inclusive [min_value, max_value] range of its rule; anything else logs a
diagnostic and falls back to the rule's default.

Checks run in a fixed order and the first failure wins:

    missing -> not a number -> not finite -> negative -> below min -> above max
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional

_LOGGER = logging.getLogger(__name__)

_NOT_CONFIGURED = "not configured"


@dataclass(frozen=True)
class PriceCheck:
    """Tagged result of validating a raw override. `reason` is None when valid."""

    value: Optional[float]
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.reason is None


def _parse(raw: Any) -> PriceCheck:
    if raw is None:
        return PriceCheck(None, _NOT_CONFIGURED)
    if isinstance(raw, bool):
        return PriceCheck(None, "not a number")
    if isinstance(raw, (int, float)):
        return PriceCheck(float(raw))
    text = str(raw).strip()
    if not text:
        return PriceCheck(None, _NOT_CONFIGURED)
    try:
        return PriceCheck(float(text))
    except ValueError:
        return PriceCheck(None, "not a number")


def check_price(raw: Any, min_value: float, max_value: float) -> PriceCheck:
    parsed = _parse(raw)
    if not parsed.ok:
        return parsed

    value = parsed.value
    if not math.isfinite(value):
        return PriceCheck(value, "NaN/Infinite")
    if value < 0:
        return PriceCheck(value, "price must not be negative")
    if value < min_value:
        return PriceCheck(value, f"below minimum allowed price of ${min_value}")
    if value > max_value:
        return PriceCheck(value, f"above maximum allowed price of ${max_value}")
    return PriceCheck(value)


def resolve_price(
    name: str,
    raw: Any,
    default: float,
    min_value: float,
    max_value: float,
) -> float:
    """Return the validated override for `name`, or `default`. Never raises."""
    check = check_price(raw, min_value, max_value)
    if check.ok:
        return check.value

    if check.reason == _NOT_CONFIGURED:
        # No override at all is the common case; keep it out of warning noise.
        _LOGGER.info("No custom price for %s. Using default of $%s.", name, default)
    else:
        _LOGGER.warning(
            "Error with custom cost configuration (%s=%r): %s. Using default of $%s.",
            name,
            raw,
            check.reason,
            default,
        )
    return default


@dataclass(frozen=True)
class PriceRule:
    """A named unit price with inclusive bounds and an optional env override."""

    key: str
    name: str
    default: float
    min_value: float
    max_value: float
    unit: str
    env_var: Optional[str] = None
    description: str = ""

    def __post_init__(self) -> None:
        if not (0 <= self.min_value <= self.max_value):
            raise ValueError(f"Invalid bounds for price rule '{self.key}': [{self.min_value}, {self.max_value}]")
        if not (self.min_value <= self.default <= self.max_value):
            raise ValueError(f"Default price of '{self.key}' ({self.default}) is outside its bounds")

    def resolve(self, env: Optional[Mapping[str, str]] = None) -> float:
        raw = (env or {}).get(self.env_var) if self.env_var else None
        return resolve_price(self.name, raw, self.default, self.min_value, self.max_value)


__all__ = ["PriceCheck", "PriceRule", "check_price", "resolve_price"]
