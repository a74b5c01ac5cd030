import sys
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

import pytest

ROOT = Path(__file__).resolve().parents[1].parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from cost_guardrail.connectors.billing_api import BudgetData
from cost_guardrail.usage.types import Point, TimeSeriesEntry

LA = ZoneInfo("America/Los_Angeles")


def pytest_runtest_setup():
    # Price rules are cached per process; tests that point the loader at a
    # temporary directory must not leak into the charge model tests.
    from cost_guardrail.pricing.loader import default_price_rules

    default_price_rules.cache_clear()


def la_ts(day: int, hour: int = 12, month: int = 5, year: int = 2024) -> int:
    return int(datetime(year, month, day, hour, tzinfo=LA).timestamp())


def make_entry(resource_labels=None, values=(), metric_labels=None, day: int = 1) -> TimeSeriesEntry:
    """Entry with one point per value, all on `day` unless values are (day, value) pairs."""
    points = []
    for i, v in enumerate(values):
        if isinstance(v, tuple):
            points.append(Point(la_ts(v[0], 12), v[1]))
        else:
            points.append(Point(la_ts(day, i % 24), v))
    return TimeSeriesEntry(
        resource_labels=dict(resource_labels or {}),
        metric_labels=dict(metric_labels or {}),
        points=tuple(points),
    )


class FakeMetrics:
    def __init__(self, data: Optional[Dict[str, List[TimeSeriesEntry]]] = None, fail_on: Optional[str] = None):
        self.data = data or {}
        self.fail_on = fail_on
        self.calls: List[str] = []

    async def fetch_time_series(self, project_id, metric_type, start, end):
        self.calls.append(metric_type)
        if metric_type == self.fail_on:
            raise RuntimeError(f"monitoring unavailable for {metric_type}")
        return list(self.data.get(metric_type, []))


class FakeBilling:
    def __init__(self, account: Optional[str] = "000000-AAAAAA-BBBBBB", budget: Optional[BudgetData] = None):
        self.account = account
        self.budget = budget or BudgetData(currency_code="USD", units=10, nanos=0)
        self.budget_requests: List[tuple] = []

    async def get_billing_account(self, project_id):
        return self.account

    async def get_budget(self, billing_account_id, budget_id):
        self.budget_requests.append((billing_account_id, budget_id))
        return self.budget


class FakeDisable:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


class FakeNotifier:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.events: List[tuple] = []

    async def send(self, event, payload):
        self.events.append((event, payload))
        if self.fail:
            raise RuntimeError("webhook down")


@pytest.fixture
def fake_metrics():
    return FakeMetrics


@pytest.fixture
def fake_billing():
    return FakeBilling()


@pytest.fixture
def fake_disable():
    return FakeDisable()


@pytest.fixture
def fake_notifier():
    return FakeNotifier


@pytest.fixture
def entry():
    return make_entry


@pytest.fixture
def ts():
    return la_ts
