"""Exceptions raised when the guardrail cannot reach a trustworthy decision.

Price misconfiguration is *not* represented here: a bad price override falls
back to its default (see pricing/price_rules.py). Everything below aborts the
run without invoking the disable action.
"""

from __future__ import annotations


class GuardrailError(Exception):
    """Base class for fatal guardrail failures."""


class UsageDataError(GuardrailError):
    """A usage sample or derived cost is negative, non-finite or of an unknown kind."""


class BudgetConfigError(GuardrailError):
    """The configured budget is missing, in an unsupported currency or not a positive amount."""


class SettingsError(GuardrailError):
    """Required runtime settings (e.g. the project id) could not be resolved."""


__all__ = ["GuardrailError", "UsageDataError", "BudgetConfigError", "SettingsError"]
