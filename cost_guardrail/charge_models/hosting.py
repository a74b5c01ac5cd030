from __future__ import annotations

import logging
from typing import List, Mapping

from ..config import BYTES_PER_GB
from ..connectors.metrics_api import MetricsSource
from ..usage.aggregate import paid_usage_by_entity
from ..usage.types import BillingWindow, Number
from .base import BaseChargeModel, fetch_metrics
from .types import ResourceCost

_LOGGER = logging.getLogger(__name__)

HOSTING_SENT_BYTES = "firebasehosting.googleapis.com/network/sent_bytes_count"


class HostingChargeModel(BaseChargeModel):
    """Firebase Hosting bandwidth. No free allowance is modelled."""

    resource = "hosting"

    def metric_types(self) -> List[str]:
        return [HOSTING_SENT_BYTES]

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost:
        data = await fetch_metrics(source, project_id, window, self.metric_types())

        by_site = paid_usage_by_entity(data[HOSTING_SENT_BYTES], id_label="site_name", metric=HOSTING_SENT_BYTES)
        total_bytes: Number = 0
        _LOGGER.info("Hosting bandwidth usage:")
        for site, sent in sorted(by_site.items()):
            _LOGGER.info("  Total bytes for site %s: %s bytes (%.2f GB)", site, sent, sent / BYTES_PER_GB)
            total_bytes += sent

        return self.finish([self.price_line("hosting.bandwidth", total_bytes, env)])
