from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Mapping, Optional

from ..connectors.metrics_api import MetricsSource
from ..usage.aggregate import mark_enterprise, paid_usage_by_entity
from ..usage.types import DATABASE_ID_LABEL, BillingWindow, Number, QuotaPolicy, TimeSeriesEntry
from .base import BaseChargeModel
from .types import CostLine, ResourceCost

_LOGGER = logging.getLogger(__name__)

# Enterprise metrics only exist for Enterprise databases. Enterprise bills
# deletes as write units too.
ENTERPRISE_READ_UNITS = "firestore.googleapis.com/api/billable_read_units"
ENTERPRISE_WRITE_UNITS = "firestore.googleapis.com/api/billable_write_units"

# The documented "/database/" segment must be left out of these metric types
# or the Monitoring API rejects the filter.
STANDARD_READS = "firestore.googleapis.com/document/read_ops_count"
STANDARD_WRITES = "firestore.googleapis.com/document/write_ops_count"
STANDARD_DELETES = "firestore.googleapis.com/document/delete_ops_count"
STANDARD_TTL_DELETES = "firestore.googleapis.com/document/ttl_deletion_count"

ENTERPRISE_METRICS = (ENTERPRISE_READ_UNITS, ENTERPRISE_WRITE_UNITS)
STANDARD_METRICS = (STANDARD_READS, STANDARD_WRITES, STANDARD_DELETES, STANDARD_TTL_DELETES)

# Daily free tier, granted to a single database per project.
FREE_TIER_ENTERPRISE_DAILY_READ_UNITS = 50_000
FREE_TIER_ENTERPRISE_DAILY_WRITE_UNITS = 40_000
FREE_TIER_STANDARD_DAILY_READS = 50_000
FREE_TIER_STANDARD_DAILY_WRITES = 20_000
FREE_TIER_STANDARD_DAILY_DELETES = 20_000


class FirestoreChargeModel(BaseChargeModel):
    """Firestore document operations, Standard and Enterprise editions."""

    resource = "firestore"

    def __init__(self, free_tier_database_id: Optional[str] = None):
        self.free_tier_database_id = free_tier_database_id

    def metric_types(self) -> List[str]:
        return list(ENTERPRISE_METRICS + STANDARD_METRICS)

    def _quota(self, daily_free: int) -> QuotaPolicy:
        return QuotaPolicy(daily_free, self.free_tier_database_id, DATABASE_ID_LABEL)

    def _paid(
        self,
        title: str,
        entries: List[TimeSeriesEntry],
        daily_free: int,
        metric: str,
        exclude=frozenset(),
    ) -> Number:
        by_db = paid_usage_by_entity(entries, self._quota(daily_free), exclude=exclude, metric=metric)
        total: Number = 0
        for database_id, paid in sorted(by_db.items()):
            _LOGGER.info("  Firestore DB %s paid %s: %s", database_id, title, paid)
            total += paid
        return total

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost:
        tasks: Dict[str, asyncio.Future] = {
            m: asyncio.ensure_future(source.fetch_time_series(project_id, m, window.start, window.end))
            for m in self.metric_types()
        }
        try:
            # Mark phase: the enterprise set must be complete before any
            # standard total is computed.
            ent_reads, ent_writes = await asyncio.gather(*(tasks[m] for m in ENTERPRISE_METRICS))
            enterprise = mark_enterprise(ent_reads) | mark_enterprise(ent_writes)

            _LOGGER.info("Firestore Enterprise Edition usage:")
            ent_read_units = self._paid(
                "read units", ent_reads, FREE_TIER_ENTERPRISE_DAILY_READ_UNITS, ENTERPRISE_READ_UNITS
            )
            ent_write_units = self._paid(
                "write units", ent_writes, FREE_TIER_ENTERPRISE_DAILY_WRITE_UNITS, ENTERPRISE_WRITE_UNITS
            )

            # Filter phase.
            std_reads, std_writes, std_deletes, std_ttl = await asyncio.gather(
                *(tasks[m] for m in STANDARD_METRICS)
            )
        finally:
            for t in tasks.values():
                if not t.done():
                    t.cancel()

        _LOGGER.info("Firestore Standard Edition usage:")
        reads = self._paid("reads", std_reads, FREE_TIER_STANDARD_DAILY_READS, STANDARD_READS, enterprise)
        writes = self._paid("writes", std_writes, FREE_TIER_STANDARD_DAILY_WRITES, STANDARD_WRITES, enterprise)
        # TTL deletions are billed as deletes and share the delete allowance.
        deletes = self._paid(
            "deletes",
            list(std_deletes) + list(std_ttl),
            FREE_TIER_STANDARD_DAILY_DELETES,
            STANDARD_DELETES,
            enterprise,
        )
        if enterprise:
            _LOGGER.info(
                "  Skipped standard metrics for Enterprise databases: %s",
                ", ".join(sorted(enterprise)),
            )

        lines: List[CostLine] = [
            self.price_line("firestore.standard.read", reads, env),
            self.price_line("firestore.standard.write", writes, env),
            self.price_line("firestore.standard.delete", deletes, env),
            self.price_line("firestore.enterprise.read_unit", ent_read_units, env),
            self.price_line("firestore.enterprise.write_unit", ent_write_units, env),
        ]
        return self.finish(lines)
