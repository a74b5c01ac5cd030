# cost_guardrail/connectors/notify.py
"""Operator alerts over a JSON webhook (Slack/Chat-compatible endpoints, Pub/Sub push bridges...)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

from .http_policy import HttpRetryPolicy

_LOGGER = logging.getLogger(__name__)

EVENT_BREACH = "breach"
EVENT_FAILURE = "failure"


class WebhookNotifier:
    def __init__(
        self,
        url: str,
        *,
        policy: Optional[HttpRetryPolicy] = None,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url
        self.policy = policy or HttpRetryPolicy()
        self.timeout = timeout
        self._client = client

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> None:
        attempt = 0
        while True:
            try:
                resp = await client.post(self.url, json=payload)
            except httpx.TransportError:
                if not self.policy.should_retry(attempt):
                    raise
                await self.policy.wait_async(attempt)
                attempt += 1
                continue

            if resp.status_code < 400:
                return
            if not self.policy.should_retry(attempt, resp.status_code):
                resp.raise_for_status()
            await self.policy.wait_async(attempt, resp.headers.get("Retry-After"))
            attempt += 1

    async def send(self, event: str, payload: Dict[str, Any]) -> None:
        body = {"event": event, **payload}
        if self._client is not None:
            await self._post(self._client, body)
        else:
            timeout = httpx.Timeout(self.timeout, connect=5.0)
            async with httpx.AsyncClient(timeout=timeout) as client:
                await self._post(client, body)
        _LOGGER.info("Sent %s alert to webhook.", event)


__all__ = ["EVENT_BREACH", "EVENT_FAILURE", "WebhookNotifier"]
