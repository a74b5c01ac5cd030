# cost_guardrail/connectors/billing_api.py
"""Cloud Billing / Billing Budgets connector."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from google.cloud import billing_v1
from google.cloud.billing import budgets_v1


@dataclass(frozen=True)
class BudgetData:
    """Specified budget amount as returned by the API (google.type.Money shape)."""

    currency_code: str
    units: int
    nanos: int


class BillingSource(Protocol):
    async def get_billing_account(self, project_id: str) -> Optional[str]: ...

    async def get_budget(self, billing_account_id: str, budget_id: str) -> BudgetData: ...


class CloudBillingSource:
    def __init__(
        self,
        billing_client: Optional[billing_v1.CloudBillingAsyncClient] = None,
        budget_client: Optional[budgets_v1.BudgetServiceAsyncClient] = None,
    ):
        self._billing = billing_client
        self._budgets = budget_client

    @property
    def billing_client(self) -> billing_v1.CloudBillingAsyncClient:
        if self._billing is None:
            self._billing = billing_v1.CloudBillingAsyncClient()
        return self._billing

    @property
    def budget_client(self) -> budgets_v1.BudgetServiceAsyncClient:
        if self._budgets is None:
            self._budgets = budgets_v1.BudgetServiceAsyncClient()
        return self._budgets

    async def get_billing_account(self, project_id: str) -> Optional[str]:
        info = await self.billing_client.get_project_billing_info(name=f"projects/{project_id}")
        # billingAccounts/000000-000000-000000
        name = info.billing_account_name or ""
        return name.split("/")[-1] or None

    async def get_budget(self, billing_account_id: str, budget_id: str) -> BudgetData:
        name = budgets_v1.BudgetServiceAsyncClient.budget_path(billing_account_id, budget_id)
        budget = await self.budget_client.get_budget(name=name)
        money = budget.amount.specified_amount
        return BudgetData(
            currency_code=money.currency_code,
            units=int(money.units),
            nanos=int(money.nanos),
        )


__all__ = ["BillingSource", "BudgetData", "CloudBillingSource"]
