# cost_guardrail/connectors/disable.py
"""Disable action invoked once a budget breach is confirmed.

The default action detaches the project from its billing account, which stops
every paid service of the project. This is destructive on purpose.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from google.cloud import billing_v1

_LOGGER = logging.getLogger(__name__)


class DisableAction(Protocol):
    async def __call__(self) -> None: ...


class DetachBillingAction:
    def __init__(self, project_id: str, client: Optional[billing_v1.CloudBillingAsyncClient] = None):
        self.project_id = project_id
        self._client = client

    @property
    def client(self) -> billing_v1.CloudBillingAsyncClient:
        if self._client is None:
            self._client = billing_v1.CloudBillingAsyncClient()
        return self._client

    async def __call__(self) -> None:
        name = f"projects/{self.project_id}"
        _LOGGER.warning("Disabling billing for %s.", name)
        # An empty billing account name detaches the project.
        await self.client.update_project_billing_info(
            name=name,
            project_billing_info=billing_v1.ProjectBillingInfo(billing_account_name=""),
        )
        _LOGGER.warning("Billing disabled for %s.", name)


__all__ = ["DetachBillingAction", "DisableAction"]
