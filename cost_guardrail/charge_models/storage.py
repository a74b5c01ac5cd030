from __future__ import annotations

import logging
from typing import List, Mapping

from ..config import BYTES_PER_GB, LARGE_RESPONSE_LOG_LIMIT
from ..connectors.metrics_api import MetricsSource
from ..pricing.units import paid_after_allowance
from ..usage.aggregate import entry_sum
from ..usage.types import BillingWindow, Number
from .base import BaseChargeModel, fetch_metrics
from .types import ResourceCost

_LOGGER = logging.getLogger(__name__)

STORAGE_SENT_BYTES = "storage.googleapis.com/network/sent_bytes_count"

# The always-free egress allowance only covers buckets in these regions.
# https://cloud.google.com/storage/pricing#cloud-storage-always-free
FREE_QUOTA_REGIONS = frozenset({"us-central1", "us-west1", "us-east1"})
FREE_EGRESS_BYTES_PER_MONTH = 100 * BYTES_PER_GB


class StorageChargeModel(BaseChargeModel):
    """Cloud Storage network egress, split by free-quota eligibility of the bucket region."""

    resource = "storage"

    def metric_types(self) -> List[str]:
        return [STORAGE_SENT_BYTES]

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost:
        data = await fetch_metrics(source, project_id, window, self.metric_types())
        buckets = data[STORAGE_SENT_BYTES]

        quota_region_bytes: Number = 0
        other_region_bytes: Number = 0
        verbose = len(buckets) < LARGE_RESPONSE_LOG_LIMIT

        _LOGGER.info("Cloud Storage bandwidth usage:")
        if not verbose:
            _LOGGER.info("  %d buckets or more. Detailed per-bucket logging skipped.", LARGE_RESPONSE_LOG_LIMIT)

        for bucket in buckets:
            sent = entry_sum(bucket, STORAGE_SENT_BYTES)
            location = bucket.resource_label("location")
            if verbose:
                _LOGGER.info(
                    "  Network egress for bucket %s (%s): %s bytes (%.2f GB)",
                    bucket.resource_label("bucket_name"),
                    location,
                    sent,
                    sent / BYTES_PER_GB,
                )
            if location in FREE_QUOTA_REGIONS:
                quota_region_bytes += sent
            else:
                other_region_bytes += sent

        overshoot = paid_after_allowance(quota_region_bytes, FREE_EGRESS_BYTES_PER_MONTH)
        _LOGGER.info(
            "  Egress in free quota regions: %s bytes, %.2f%% of free quota used, overshoot %s bytes.",
            quota_region_bytes,
            100.0 * min(quota_region_bytes, FREE_EGRESS_BYTES_PER_MONTH) / FREE_EGRESS_BYTES_PER_MONTH,
            overshoot,
        )
        _LOGGER.info("  Egress in other regions: %s bytes (always billable).", other_region_bytes)

        line = self.price_line(
            "storage.egress",
            quota_region_bytes + other_region_bytes,
            env,
            free_allowance=FREE_EGRESS_BYTES_PER_MONTH,
            paid=overshoot + other_region_bytes,
        )
        return self.finish([line])
