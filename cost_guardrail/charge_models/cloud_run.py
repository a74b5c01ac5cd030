from __future__ import annotations

import logging
from typing import List, Mapping, Tuple

from ..config import BYTES_PER_GB
from ..connectors.metrics_api import MetricsSource
from ..usage.aggregate import entry_sum
from ..usage.types import BillingWindow, Number, TimeSeriesEntry
from .base import BaseChargeModel, fetch_metrics
from .types import ResourceCost

_LOGGER = logging.getLogger(__name__)

CPU_ALLOCATION_TIME = "run.googleapis.com/container/cpu/allocation_time"
MEMORY_ALLOCATION_TIME = "run.googleapis.com/container/memory/allocation_time"
NETWORK_SENT_BYTES = "run.googleapis.com/container/network/sent_bytes_count"
REQUEST_COUNT = "run.googleapis.com/request_count"

# Firebase publishes a larger free tier than plain Cloud Run (180k / 360k).
FREE_CPU_SECONDS_PER_MONTH = 200_000
FREE_MEMORY_GB_SECONDS_PER_MONTH = 400_000
FREE_NETWORK_EGRESS_BYTES_PER_MONTH = 5 * BYTES_PER_GB
FREE_REQUESTS_PER_MONTH = 2_000_000


def _describe(entry: TimeSeriesEntry, metric: str) -> str:
    # request_count is reported against the configuration, not the service.
    if metric == REQUEST_COUNT:
        name = entry.resource_label("configuration_name", default="unknown_function")
        return f"{name} (revision {entry.resource_label('revision_name')}, response code {entry.metric_label('response_code')})"
    name = entry.resource_label("service_name", default="unknown_function")
    if metric == NETWORK_SENT_BYTES:
        name = f"{name}-{entry.metric_label('kind')}"
    return f"{name} (revision {entry.resource_label('revision_name')})"


class CloudRunChargeModel(BaseChargeModel):
    """Cloud Functions (2nd gen) / Cloud Run compute: CPU, memory, egress and requests."""

    resource = "cloud_run"

    # metric -> (price rule, monthly free allowance, log title)
    DIMENSIONS: Tuple[Tuple[str, str, Number, str], ...] = (
        (CPU_ALLOCATION_TIME, "compute.cpu", FREE_CPU_SECONDS_PER_MONTH, "vCPU seconds"),
        (MEMORY_ALLOCATION_TIME, "compute.memory", FREE_MEMORY_GB_SECONDS_PER_MONTH, "memory GiB-seconds"),
        (NETWORK_SENT_BYTES, "compute.egress", FREE_NETWORK_EGRESS_BYTES_PER_MONTH, "network egress bytes"),
        (REQUEST_COUNT, "compute.requests", FREE_REQUESTS_PER_MONTH, "requests"),
    )

    def metric_types(self) -> List[str]:
        return [d[0] for d in self.DIMENSIONS]

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost:
        data = await fetch_metrics(source, project_id, window, self.metric_types())

        lines = []
        for metric, rule_key, free, title in self.DIMENSIONS:
            _LOGGER.info("Cloud Run %s:", title)
            used: Number = 0
            for entry in data[metric]:
                value = entry_sum(entry, metric)
                _LOGGER.info("  %s: %s", _describe(entry, metric), value)
                used += value
            lines.append(self.price_line(rule_key, used, env, free_allowance=free))

        return self.finish(lines)
