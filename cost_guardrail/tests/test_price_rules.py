import logging
import math

import pytest

from cost_guardrail.pricing.loader import default_price_rules, get_price_rule, load_price_rules
from cost_guardrail.pricing.price_rules import PriceRule, check_price, resolve_price


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("0.5", 0.5),
        (" 1.25 ", 1.25),
        (2, 2.0),
        ("0.01", 0.01),
        ("5", 5.0),
    ],
)
def test_valid_overrides_are_used(raw, expected):
    assert resolve_price("Firestore Standard Read", raw, 0.3, 0.01, 5.0) == expected


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("abc", "not a number"),
        (True, "not a number"),
        ("nan", "NaN/Infinite"),
        ("inf", "NaN/Infinite"),
        ("-1", "negative"),
        ("0.001", "below minimum"),
        ("6", "above maximum"),
    ],
)
def test_invalid_overrides_fall_back_to_default(raw, reason, caplog):
    check = check_price(raw, 0.01, 5.0)
    assert not check.ok
    assert reason in check.reason

    with caplog.at_level(logging.INFO, logger="cost_guardrail.pricing.price_rules"):
        assert resolve_price("Firestore Standard Read", raw, 0.3, 0.01, 5.0) == 0.3
    assert any(r.levelno == logging.WARNING for r in caplog.records)


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_override_logs_info_only(raw, caplog):
    with caplog.at_level(logging.INFO, logger="cost_guardrail.pricing.price_rules"):
        assert resolve_price("Hosting Bandwidth", raw, 0.15, 0.01, 5.0) == 0.15
    assert caplog.records
    assert all(r.levelno == logging.INFO for r in caplog.records)


def test_checks_run_in_order():
    # Negative wins over "below minimum".
    assert "negative" in check_price(-0.5, 0.01, 5.0).reason
    assert math.isnan(check_price("nan", 0.01, 5.0).value)


def test_rule_resolve_reads_its_env_var():
    rule = get_price_rule("firestore.standard.read")
    assert rule.resolve({}) == rule.default
    assert rule.resolve({"MONITOR_FIRESTORE_STD_READ_COST": "0.6"}) == 0.6
    assert rule.resolve({"MONITOR_FIRESTORE_STD_READ_COST": "100"}) == rule.default


def test_rule_rejects_default_outside_bounds():
    with pytest.raises(ValueError):
        PriceRule("x", "X", default=10.0, min_value=0.01, max_value=5.0, unit="GB")
    with pytest.raises(ValueError):
        PriceRule("x", "X", default=1.0, min_value=5.0, max_value=0.01, unit="GB")


def test_default_definitions_cover_every_priced_dimension():
    rules = default_price_rules()
    assert set(rules) == {
        "firestore.standard.read",
        "firestore.standard.write",
        "firestore.standard.delete",
        "firestore.enterprise.read_unit",
        "firestore.enterprise.write_unit",
        "hosting.bandwidth",
        "storage.egress",
        "compute.cpu",
        "compute.memory",
        "compute.egress",
        "compute.requests",
    }
    assert rules["compute.cpu"].default == pytest.approx(0.000024)
    assert rules["compute.memory"].min_value == pytest.approx(0.000001)
    assert rules["hosting.bandwidth"].unit == "GB"
    assert all(r.env_var for r in rules.values())


def test_loader_rejects_unknown_unit(tmp_path):
    (tmp_path / "bad.yaml").write_text(
        "rules:\n  - {key: a, default: 1, min: 0, max: 2, unit: parsecs}\n", encoding="utf-8"
    )
    with pytest.raises(ValueError, match="Unknown unit"):
        load_price_rules(tmp_path)


def test_loader_rejects_missing_fields(tmp_path):
    (tmp_path / "bad.yaml").write_text("rules:\n  - {key: a, default: 1, unit: GB}\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Missing required key 'min'"):
        load_price_rules(tmp_path)


def test_loader_rejects_duplicate_keys(tmp_path):
    body = "rules:\n  - {key: a, default: 1, min: 0, max: 2, unit: GB}\n"
    (tmp_path / "one.yaml").write_text(body, encoding="utf-8")
    (tmp_path / "two.json").write_text(
        '{"rules": [{"key": "a", "default": 1, "min": 0, "max": 2, "unit": "GB"}]}', encoding="utf-8"
    )
    with pytest.raises(ValueError, match="Duplicate"):
        load_price_rules(tmp_path)


def test_unknown_rule_key():
    with pytest.raises(KeyError):
        get_price_rule("firestore.standard.teleport")
