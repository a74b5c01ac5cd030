import math

import pytest

from cost_guardrail.errors import UsageDataError
from cost_guardrail.usage.aggregate import (
    aggregate,
    daily_usage,
    entry_sum,
    mark_enterprise,
    paid_usage_by_entity,
)
from cost_guardrail.usage.types import QuotaPolicy


def test_daily_quota_applies_per_day_to_free_tier_database(entry):
    quota = QuotaPolicy(50_000, "(default)")
    reads = [entry({"database_id": "(default)"}, [(1, 5_000), (2, 60_000)])]

    # Day 1 stays inside the allowance, day 2 overshoots it by 10k.
    assert aggregate(reads, quota) == 10_000


def test_other_databases_pay_for_everything(entry):
    quota = QuotaPolicy(50_000, "(default)")
    reads = [
        entry({"database_id": "(default)"}, [(1, 40_000)]),
        entry({"database_id": "analytics"}, [(1, 40_000)]),
    ]

    assert paid_usage_by_entity(reads, quota) == {"(default)": 0, "analytics": 40_000}
    assert aggregate(reads, quota) == 40_000


def test_no_free_tier_database_means_no_allowance(entry):
    reads = [entry({"database_id": "(default)"}, [(1, 5_000), (2, 60_000)])]

    assert aggregate(reads, QuotaPolicy(50_000, None)) == 65_000
    assert aggregate(reads) == 65_000


def test_free_tier_entries_are_merged_before_the_quota(entry):
    # The same database split over two metric label sets still gets a single
    # allowance per day.
    quota = QuotaPolicy(50_000, "(default)")
    reads = [
        entry({"database_id": "(default)"}, [(3, 30_000)], metric_labels={"type": "QUERY"}),
        entry({"database_id": "(default)"}, [(3, 30_000)], metric_labels={"type": "LOOKUP"}),
    ]

    assert aggregate(reads, quota) == 10_000


def test_zero_points_do_not_change_the_total(entry):
    quota = QuotaPolicy(20_000, "(default)")
    with_zeros = [entry({"database_id": "(default)"}, [(1, 0), (2, 25_000), (3, 0)])]
    without = [entry({"database_id": "(default)"}, [(2, 25_000)])]

    assert aggregate(with_zeros, quota) == aggregate(without, quota) == 5_000
    assert daily_usage(with_zeros).keys() == daily_usage(without).keys()
    assert aggregate([entry({"database_id": "x"}, [0, 0.0])]) == 0


def test_enterprise_databases_are_excluded_from_standard_totals(entry):
    enterprise_units = [entry({"database_id": "ent-db"}, [1_000])]
    standard_reads = [
        entry({"database_id": "ent-db"}, [999_999]),
        entry({"database_id": "std-db"}, [1_000]),
    ]

    marked = mark_enterprise(enterprise_units)
    assert marked == frozenset({"ent-db"})
    assert aggregate(standard_reads, exclude=marked) == 1_000


def test_hosting_style_grouping_uses_the_given_label(entry):
    sent = [
        entry({"site_name": "app"}, [100, 200]),
        entry({"site_name": "app"}, [50]),
        entry({"site_name": "docs"}, [7]),
    ]

    assert paid_usage_by_entity(sent, id_label="site_name") == {"app": 350, "docs": 7}


def test_missing_identity_label_is_grouped_as_unknown(entry):
    assert paid_usage_by_entity([entry({}, [5])]) == {"unknown": 5}


def test_float_samples_are_summed(entry):
    assert entry_sum(entry({}, [0.5, 1.25])) == pytest.approx(1.75)


@pytest.mark.parametrize("bad", [-1, math.nan, math.inf, "12", True])
def test_invalid_samples_abort_the_calculation(entry, bad):
    with pytest.raises(UsageDataError):
        aggregate([entry({"database_id": "x"}, [10, bad])], metric="firestore reads")


def test_negative_sample_in_free_tier_bucket_is_rejected(entry):
    quota = QuotaPolicy(50_000, "(default)")
    with pytest.raises(UsageDataError, match="negative"):
        aggregate([entry({"database_id": "(default)"}, [(1, -5)])], quota)
