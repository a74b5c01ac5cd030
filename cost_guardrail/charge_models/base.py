from __future__ import annotations

import logging
import math
from typing import Dict, List, Mapping, Optional, Protocol, Sequence

from ..connectors.metrics_api import MetricsSource
from ..errors import UsageDataError
from ..pricing.loader import get_price_rule
from ..pricing.units import Number, billed_units, format_quantity, paid_after_allowance
from ..usage.types import BillingWindow, TimeSeriesEntry
from ..utils.aio import gather_or_cancel
from .types import CostLine, ResourceCost

_LOGGER = logging.getLogger(__name__)


class ChargeModel(Protocol):
    """Turns one metered resource's monthly usage into a USD cost."""

    resource: str

    def metric_types(self) -> List[str]: ...

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost: ...


async def fetch_metrics(
    source: MetricsSource,
    project_id: str,
    window: BillingWindow,
    metric_types: Sequence[str],
) -> Dict[str, List[TimeSeriesEntry]]:
    """Fetch independent metrics concurrently; the first failure cancels the rest."""
    results = await gather_or_cancel(
        *(source.fetch_time_series(project_id, m, window.start, window.end) for m in metric_types)
    )
    return dict(zip(metric_types, results))


class BaseChargeModel:
    """Default helpers shared by the concrete charge models."""

    resource: str = "other"

    def metric_types(self) -> List[str]:
        return []

    async def calculate(
        self,
        source: MetricsSource,
        project_id: str,
        window: BillingWindow,
        env: Mapping[str, str],
    ) -> ResourceCost:
        raise NotImplementedError

    def price_line(
        self,
        rule_key: str,
        used: Number,
        env: Mapping[str, str],
        *,
        label: Optional[str] = None,
        free_allowance: Optional[Number] = None,
        paid: Optional[Number] = None,
    ) -> CostLine:
        """Price `used` with rule `rule_key`, after an optional flat monthly allowance.

        `paid` overrides the billable quantity when only part of the usage is
        eligible for the allowance.
        """
        rule = get_price_rule(rule_key)
        unit_price = rule.resolve(env)
        if paid is None:
            paid = used if free_allowance is None else paid_after_allowance(used, free_allowance)
        return CostLine(
            key=rule_key,
            label=label or rule.name,
            used=used,
            paid=paid,
            unit=rule.unit,
            unit_price=unit_price,
            cost=billed_units(paid, rule.unit) * unit_price,
            free_allowance=free_allowance,
        )

    def finish(self, lines: List[CostLine]) -> ResourceCost:
        total = 0.0
        for line in lines:
            total += line.cost
        if not math.isfinite(total):
            raise UsageDataError(f"Calculated {self.resource} cost is NaN/Infinite")

        _LOGGER.info("Paid %s usage:", self.resource)
        for line in lines:
            allowance = ""
            if line.free_allowance is not None:
                allowance = f" (free allowance {format_quantity(line.free_allowance, line.unit)})"
            _LOGGER.info(
                "  %s: %s paid%s @ $%s/%s = $%.2f",
                line.label,
                format_quantity(line.paid, line.unit),
                allowance,
                line.unit_price,
                line.unit,
                line.cost,
            )
        _LOGGER.info("  Total %s cost: $%.2f", self.resource, total)
        return ResourceCost(resource=self.resource, cost=total, lines=lines)
