import json
from datetime import date, datetime, timezone

import pytest

from cost_guardrail.config import (
    MODE_DISABLED,
    MODE_ENABLED,
    MODE_TEST,
    MonitorSettings,
    parse_mode,
    resolve_project_id,
)
from cost_guardrail.usage.period import billing_day, billing_period_start, current_window


def test_period_starts_at_midnight_pacific_on_the_first():
    now = datetime(2024, 5, 15, 18, 30, tzinfo=timezone.utc)
    start = billing_period_start(now)

    assert (start.year, start.month, start.day, start.hour, start.minute) == (2024, 5, 1, 0, 0)
    assert start.utcoffset().total_seconds() == -7 * 3600
    assert start.astimezone(timezone.utc) == datetime(2024, 5, 1, 7, 0, tzinfo=timezone.utc)


def test_early_utc_hours_still_belong_to_the_previous_pacific_month():
    # 03:00 UTC on May 1st is still April 30th in Los Angeles.
    start = billing_period_start(datetime(2024, 5, 1, 3, 0, tzinfo=timezone.utc))
    assert (start.month, start.day) == (4, 1)


def test_naive_datetimes_are_rejected():
    with pytest.raises(ValueError):
        billing_period_start(datetime(2024, 5, 1))


def test_current_window_ends_now():
    now = datetime(2024, 1, 20, tzinfo=timezone.utc)
    window = current_window(now)
    assert window.end == now
    assert window.start_seconds < window.end_seconds


def test_billing_day_uses_pacific_calendar():
    ts = int(datetime(2024, 5, 2, 6, 0, tzinfo=timezone.utc).timestamp())
    assert billing_day(ts) == date(2024, 5, 1)


@pytest.mark.parametrize(
    "raw, mode",
    [
        ("true", MODE_ENABLED),
        (" TRUE ", MODE_ENABLED),
        ("test", MODE_TEST),
        ("false", MODE_DISABLED),
        ("yes", MODE_DISABLED),
        ("", MODE_DISABLED),
        (None, MODE_DISABLED),
    ],
)
def test_parse_mode(raw, mode):
    assert parse_mode(raw) == mode


def test_project_id_prefers_google_cloud_project():
    env = {"GOOGLE_CLOUD_PROJECT": "proj-a", "FIREBASE_CONFIG": json.dumps({"projectId": "proj-b"})}
    assert resolve_project_id(env) == "proj-a"


def test_project_id_falls_back_to_firebase_config():
    assert resolve_project_id({"FIREBASE_CONFIG": json.dumps({"projectId": "proj-b"})}) == "proj-b"
    assert resolve_project_id({"FIREBASE_CONFIG": "{not json"}) is None
    assert resolve_project_id({}) is None


def test_settings_from_env():
    settings = MonitorSettings.from_env(
        {
            "GCLOUD_PROJECT": "proj",
            "MONITORING_ENABLED": "test",
            "MONITOR_BUDGET_ID": "budget-1",
            "FIRESTORE_FREE_TIER_DATABASE_NAME": " (default) ",
            "MONITOR_ALERT_WEBHOOK_URL": "",
        }
    )

    assert settings.project_id == "proj"
    assert settings.mode == MODE_TEST
    assert settings.dry_run is True
    assert settings.budget_id == "budget-1"
    assert settings.free_tier_database_id == "(default)"
    assert settings.alert_webhook_url is None
    assert settings.env["MONITORING_ENABLED"] == "test"
