from types import SimpleNamespace

import pytest
from cloudevents.http import CloudEvent

from cost_guardrail import entrypoints
from cost_guardrail.config import MODE_TEST
from cost_guardrail.errors import UsageDataError
from cost_guardrail.monitor import MonitorResult


@pytest.fixture(autouse=True)
def _function_env(monkeypatch):
    monkeypatch.delenv("K_SERVICE", raising=False)
    monkeypatch.setenv("GOOGLE_CLOUD_PROJECT", "proj")
    monkeypatch.setenv("MONITORING_ENABLED", "test")
    monkeypatch.setenv("MONITOR_BUDGET_ID", "budget-1")


def _event():
    return CloudEvent(
        {"type": "google.cloud.pubsub.topic.v1.messagePublished", "source": "//pubsub.googleapis.com/"},
        {"message": {"data": ""}},
    )


def test_scheduled_run_reads_settings_from_env(monkeypatch):
    seen = []

    async def fake_run(settings, trace=None):
        seen.append(settings)
        return None

    monkeypatch.setattr(entrypoints, "run_with_google", fake_run)
    entrypoints.monitor_scheduled(_event())

    assert seen[0].project_id == "proj"
    assert seen[0].mode == MODE_TEST
    assert seen[0].budget_id == "budget-1"


def test_scheduled_run_failures_propagate(monkeypatch):
    async def fake_run(settings, trace=None):
        raise UsageDataError("bad sample")

    monkeypatch.setattr(entrypoints, "run_with_google", fake_run)
    with pytest.raises(UsageDataError):
        entrypoints.monitor_scheduled(_event())


def test_http_run_reports_status(monkeypatch):
    async def fake_run(settings, trace=None):
        return MonitorResult(total_cost=12.0, budget_amount=10.0, breached=True, mode=MODE_TEST)

    monkeypatch.setattr(entrypoints, "run_with_google", fake_run)
    body, status = entrypoints.monitor_http(SimpleNamespace(method="POST", path="/"))

    assert status == 200
    assert body["status"] == "breached"
    assert body["total_cost"] == 12.0


def test_http_run_returns_500_on_guardrail_error(monkeypatch):
    async def fake_run(settings, trace=None):
        raise UsageDataError("bad sample")

    monkeypatch.setattr(entrypoints, "run_with_google", fake_run)
    body, status = entrypoints.monitor_http(SimpleNamespace(method="GET", path="/"))

    assert status == 500
    assert body == {"status": "error", "error": "bad sample"}


def test_http_run_when_disabled(monkeypatch):
    async def fake_run(settings, trace=None):
        return None

    monkeypatch.setattr(entrypoints, "run_with_google", fake_run)
    assert entrypoints.monitor_http(SimpleNamespace(method="GET", path="/")) == ({"status": "disabled"}, 200)
