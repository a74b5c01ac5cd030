"""Budget fetcher.

The budget gates a destructive action, so there is no default, no retry and no
currency conversion: anything unexpected raises BudgetConfigError and the run
stops before a decision is made.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from ..config import NANOS_PER_UNIT, SUPPORTED_CURRENCY
from ..connectors.billing_api import BillingSource
from ..errors import BudgetConfigError

_LOGGER = logging.getLogger(__name__)


def budget_amount(units: Any, nanos: Any) -> float:
    """Combine google.type.Money style whole units and nanos into one amount."""
    try:
        return float(units) + float(nanos) / NANOS_PER_UNIT
    except (TypeError, ValueError):
        return math.nan


async def fetch_budget(project_id: str, budget_id: Any, billing: BillingSource) -> float:
    billing_account_id = await billing.get_billing_account(project_id)
    if not billing_account_id:
        raise BudgetConfigError(f"Project {project_id} is not linked to a billing account.")

    if not isinstance(budget_id, str) or not budget_id.strip():
        _LOGGER.error("Budget ID is not set or invalid: %r", budget_id)
        raise BudgetConfigError(
            "The budget ID is not set or invalid. Please configure a valid budget ID."
        )

    data = await billing.get_budget(billing_account_id, budget_id.strip())

    if data.currency_code != SUPPORTED_CURRENCY:
        raise BudgetConfigError(
            f"Budget currency is not in {SUPPORTED_CURRENCY} - only budgets in "
            f"{SUPPORTED_CURRENCY} are supported. Currency is set to: {data.currency_code or None}"
        )

    amount = budget_amount(data.units, data.nanos)
    if not math.isfinite(amount) or amount <= 0:
        raise BudgetConfigError(
            f"Budget amount is not valid: {data.units} units / {data.nanos} nanos. "
            "Amount must be a positive finite number."
        )

    _LOGGER.info("Budget %s: $%.2f %s", budget_id, amount, SUPPORTED_CURRENCY)
    return amount


__all__ = ["budget_amount", "fetch_budget"]
