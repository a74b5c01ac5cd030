"""Cloud Functions (2nd gen) entry points.

`monitor_scheduled` is triggered by a Cloud Scheduler -> Pub/Sub event,
`monitor_http` lets an operator run a pass on demand. Both read their settings
from the function's environment on every invocation.

**Warning:** with MONITORING_ENABLED=true a breach detaches the project from
its billing account, which stops every paid service of the project.
"""

import asyncio
import logging
import os
from functools import lru_cache

import functions_framework
import google.cloud.logging
from cloudevents.http.event import CloudEvent

from .config import DEFAULT_LOG_LEVEL, TRACE_PATH, MonitorSettings
from .errors import GuardrailError
from .monitor import run_with_google
from .utils.trace import build_trace_logger

_LOGGER = logging.getLogger(__name__)

APP_NAME = "cost-guardrail"


@lru_cache(maxsize=None)
def setup_logging() -> None:
    """Route Python logging to Cloud Logging when running on Cloud Run / Functions."""
    level = getattr(logging, DEFAULT_LOG_LEVEL.upper(), logging.INFO)
    if os.environ.get("K_SERVICE"):
        logging_client = google.cloud.logging.Client()
        logging_client.setup_logging(log_level=level)
    else:
        logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s - %(message)s")


def _run(trigger: str):
    setup_logging()
    _LOGGER.info("%s invoked (%s).", APP_NAME, trigger)
    settings = MonitorSettings.from_env()
    trace = build_trace_logger(TRACE_PATH or None, run_id=os.environ.get("K_REVISION"))
    return asyncio.run(run_with_google(settings, trace=trace))


@functions_framework.cloud_event
def monitor_scheduled(cloud_event: CloudEvent) -> None:
    # Failures propagate so the invocation is reported as failed.
    _run(f"event {cloud_event['id']}")


@functions_framework.http
def monitor_http(request):
    try:
        result = _run(f"{request.method} {request.path}")
    except GuardrailError as ex:
        _LOGGER.error("Usage monitor aborted: %s", ex)
        return {"status": "error", "error": str(ex)}, 500

    if result is None:
        return {"status": "disabled"}, 200
    return {"status": "breached" if result.breached else "ok", **result.to_dict()}, 200
