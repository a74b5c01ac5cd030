"""Usage monitor: one guardrail pass.

Fan out (budget + every charge model, concurrently), fan in, decide:

    breached = total_cost > budget_amount      (equal is within budget)

Any failure on either side aborts the run before a decision: an uncertain cost
must never trigger, or suppress, the disable action.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from .billing.budget import fetch_budget
from .charge_models.registry import ChargeModelRegistry, build_default_registry
from .charge_models.types import ResourceCost
from .config import MODE_DISABLED, SUPPORTED_CURRENCY, MonitorSettings
from .connectors.billing_api import BillingSource
from .connectors.disable import DisableAction
from .connectors.metrics_api import MetricsSource
from .connectors.notify import EVENT_BREACH, EVENT_FAILURE, WebhookNotifier
from .errors import SettingsError
from .usage.period import current_window
from .utils.aio import gather_or_cancel
from .utils.trace import TraceLogger

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class MonitorResult:
    total_cost: float
    budget_amount: float
    breached: bool
    mode: str
    costs: List[ResourceCost] = field(default_factory=list)
    disabled: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cost": round(self.total_cost, 6),
            "budget_amount": self.budget_amount,
            "currency": SUPPORTED_CURRENCY,
            "breached": self.breached,
            "mode": self.mode,
            "disabled": self.disabled,
            "costs": [c.to_dict() for c in self.costs],
        }


async def _notify(notifier: Optional[WebhookNotifier], event: str, payload: Dict[str, Any]) -> None:
    if notifier is None:
        return
    try:
        await notifier.send(event, payload)
    except Exception:
        # Alerting is best effort; the decision already stands.
        _LOGGER.exception("Failed to send %s alert.", event)


def _trace(trace: Optional[TraceLogger], phase: str, payload: Dict[str, Any], **kwargs: Any) -> None:
    if trace is not None:
        trace.log(phase, payload, **kwargs)


async def run_monitor(
    settings: MonitorSettings,
    *,
    metrics: MetricsSource,
    billing: BillingSource,
    disable: DisableAction,
    registry: Optional[ChargeModelRegistry] = None,
    notifier: Optional[WebhookNotifier] = None,
    trace: Optional[TraceLogger] = None,
    now: Optional[datetime] = None,
) -> Optional[MonitorResult]:
    """Run the guardrail once. Returns None when monitoring is disabled."""

    if settings.mode == MODE_DISABLED:
        _LOGGER.info(
            "Monitoring is disabled. Set the monitoring schedule to never to avoid "
            "unnecessary invocations. Exiting without doing anything."
        )
        return None
    if not settings.project_id:
        raise SettingsError("Could not determine the project id (GOOGLE_CLOUD_PROJECT / FIREBASE_CONFIG).")

    project_id = settings.project_id
    window = current_window(now)
    registry = registry or build_default_registry(settings.free_tier_database_id)
    models = registry.all()

    _LOGGER.info(
        "Checking usage of %s since %s%s",
        project_id,
        window.start.isoformat(),
        " (TEST MODE - logging only)" if settings.dry_run else "",
    )
    _trace(
        trace,
        "setup",
        {
            "project_id": project_id,
            "mode": settings.mode,
            "period_start": window.start.isoformat(),
            "period_end": window.end.isoformat(),
            "resources": [m.resource for m in models],
        },
    )

    try:
        budget, *costs = await gather_or_cancel(
            fetch_budget(project_id, settings.budget_id, billing),
            *(m.calculate(metrics, project_id, window, settings.env) for m in models),
        )
    except Exception as ex:
        _LOGGER.error("Usage monitor failed - no action taken: %s", ex)
        _trace(trace, "failure", {"error": str(ex), "type": type(ex).__name__})
        await _notify(
            notifier,
            EVENT_FAILURE,
            {"project_id": project_id, "mode": settings.mode, "error": f"{type(ex).__name__}: {ex}"},
        )
        raise

    _trace(trace, "budget", {"amount": budget, "currency": SUPPORTED_CURRENCY})
    for cost in costs:
        _trace(trace, "resource_cost", cost.to_dict(), resource=cost.resource)

    total = 0.0
    for cost in costs:
        total += cost.cost
    breached = total > budget

    result = MonitorResult(total_cost=total, budget_amount=budget, breached=breached, mode=settings.mode, costs=costs)
    _trace(trace, "decision", {"total_cost": total, "budget_amount": budget, "breached": breached})

    if not breached:
        _LOGGER.info("✅ Monitored usage $%.2f is within the budget of $%.2f.", total, budget)
        return result

    _LOGGER.warning("🚨 Monitored usage $%.2f has exceeded the budget of $%.2f.", total, budget)

    if settings.dry_run:
        _LOGGER.warning("⚠️ Monitoring is in test mode - disable strategy will not be executed.")
    else:
        await disable()
        result = MonitorResult(
            total_cost=total, budget_amount=budget, breached=True, mode=settings.mode, costs=costs, disabled=True
        )
        _LOGGER.info("✅ Disable strategy executed.")
        _trace(trace, "disable", {"project_id": project_id})

    await _notify(notifier, EVENT_BREACH, {"project_id": project_id, **result.to_dict()})
    return result


async def run_with_google(
    settings: MonitorSettings,
    *,
    trace: Optional[TraceLogger] = None,
) -> Optional[MonitorResult]:
    """run_monitor() wired to the Cloud Monitoring / Billing APIs."""
    from .connectors.billing_api import CloudBillingSource
    from .connectors.disable import DetachBillingAction
    from .connectors.metrics_api import CloudMonitoringSource

    notifier = WebhookNotifier(settings.alert_webhook_url) if settings.alert_webhook_url else None
    return await run_monitor(
        settings,
        metrics=CloudMonitoringSource(),
        billing=CloudBillingSource(),
        disable=DetachBillingAction(settings.project_id or ""),
        notifier=notifier,
        trace=trace,
    )


__all__ = ["MonitorResult", "run_monitor", "run_with_google"]
