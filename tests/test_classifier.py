from __future__ import annotations

from datetime import date
from decimal import Decimal

from icabanken_export.classifier import (
    DEFAULT_CLUSTERS,
    GroupSummary,
    cluster_by_pattern,
    group_by,
    render_report,
    summarize,
)
from icabanken_export.models import Transaction


def _t(day: int, amount: str, details: str) -> Transaction:
    return Transaction(date=date(2010, 1, day), amount=Decimal(amount), details=details)


TRANSACTIONS = [
    _t(2, "-100.00", "ICA Supermarket Kungsholmen"),
    _t(2, "-350.00", "Restaurang Pelikan"),
    _t(3, "-9.00", "I-tunes"),
    _t(4, "-42.50", "Coop Konsum"),
    _t(5, "-20.00", "SL Access"),
    _t(6, "25000.00", "Lön"),
]


def test_cluster_by_pattern_uses_first_matching_rule_and_default() -> None:
    groups = cluster_by_pattern(TRANSACTIONS, DEFAULT_CLUSTERS, "Other")

    assert {k: [t.details for t in ts] for k, ts in groups.items()} == {
        "iTunes": ["I-tunes"],
        "Other": ["SL Access", "Lön"],
        "Groceries": ["ICA Supermarket Kungsholmen", "Coop Konsum"],
        "Restaurant": ["Restaurang Pelikan"],
    }


def test_groups_are_ordered_by_outgoing_total_ascending() -> None:
    groups = cluster_by_pattern(TRANSACTIONS, DEFAULT_CLUSTERS)
    assert list(groups) == ["iTunes", "Other", "Groceries", "Restaurant"]


def test_every_transaction_lands_in_exactly_one_group() -> None:
    groups = group_by(TRANSACTIONS, lambda t: t.date)
    flattened = [t for ts in groups.values() for t in ts]
    assert sorted(flattened, key=TRANSACTIONS.index) == TRANSACTIONS
    assert len(flattened) == len(TRANSACTIONS)


def test_summarize_reports_absolute_outgoing_totals() -> None:
    groups = group_by(TRANSACTIONS, lambda t: t.date.day)
    summaries = summarize(groups)
    assert summaries[-1] == GroupSummary(key=2, total_out=Decimal("450.00"), count=2)
    assert GroupSummary(key=6, total_out=Decimal("0"), count=1) in summaries


def test_render_report_covers_outgoing_only() -> None:
    text = render_report(TRANSACTIONS)
    assert text.startswith("By cluster:")
    assert " * Groceries: 142.50 (2)" in text
    assert "Lön" not in text
    assert text.rstrip().endswith("Total: 521.50")
