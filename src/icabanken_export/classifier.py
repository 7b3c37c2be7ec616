from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Hashable, Iterable, Pattern, Sequence, Union

from .models import Transaction


DEFAULT_LABEL = "Other"

# (pattern, label) pairs, tried in order.
DEFAULT_CLUSTERS: list[tuple[str, str]] = [
    (r"\b(ICA|Coop|Prisxtra|Vi T-snabben)\b", "Groceries"),
    (r"(?i)\b(restaurang|Dalastugan)\b", "Restaurant"),
    (r"(?i)\bI-tunes\b", "iTunes"),
]

RulePattern = Union[str, Pattern[str]]


@dataclass(frozen=True)
class GroupSummary:
    key: Hashable
    total_out: Decimal
    count: int


def _sum_amounts(transactions: Iterable[Transaction]) -> Decimal:
    return sum((t.amount for t in transactions), Decimal("0"))


def _outgoing_total(transactions: Iterable[Transaction]) -> Decimal:
    return abs(_sum_amounts(t for t in transactions if t.outgoing))


def group_by(
    transactions: Iterable[Transaction],
    key_fn: Callable[[Transaction], Hashable],
) -> dict[Hashable, list[Transaction]]:
    """
    Group transactions by `key_fn`, keeping input order within each group.

    Groups are ordered by their summed absolute outgoing amount, smallest first; ties keep first-seen order.
    """
    groups: dict[Hashable, list[Transaction]] = {}
    for t in transactions:
        groups.setdefault(key_fn(t), []).append(t)

    ordered = sorted(groups.items(), key=lambda kv: _outgoing_total(kv[1]))
    return dict(ordered)


def compile_rules(rules: Iterable[tuple[RulePattern, str]]) -> list[tuple[Pattern[str], str]]:
    return [(re.compile(p) if isinstance(p, str) else p, label) for p, label in rules]


def cluster_label(
    transaction: Transaction,
    rules: Sequence[tuple[Pattern[str], str]],
    default_label: str = DEFAULT_LABEL,
) -> str:
    for pattern, label in rules:
        if pattern.search(transaction.details):
            return label
    return default_label


def cluster_by_pattern(
    transactions: Iterable[Transaction],
    rules: Iterable[tuple[RulePattern, str]],
    default_label: str = DEFAULT_LABEL,
) -> dict[Hashable, list[Transaction]]:
    compiled = compile_rules(rules)
    return group_by(transactions, lambda t: cluster_label(t, compiled, default_label))


def summarize(groups: dict[Hashable, list[Transaction]]) -> list[GroupSummary]:
    return [GroupSummary(key=k, total_out=_outgoing_total(ts), count=len(ts)) for k, ts in groups.items()]


def render_report(
    transactions: Iterable[Transaction],
    rules: Iterable[tuple[RulePattern, str]] = DEFAULT_CLUSTERS,
    default_label: str = DEFAULT_LABEL,
) -> str:
    """
    Plain-text spending summary over the outgoing transactions.
    """
    outgoing = [t for t in transactions if t.outgoing]
    compiled = compile_rules(rules)

    sections = [
        ("By cluster", group_by(outgoing, lambda t: cluster_label(t, compiled, default_label))),
        ("By recipient", group_by(outgoing, lambda t: t.details.strip())),
        ("By date", group_by(outgoing, lambda t: t.date.isoformat())),
    ]

    lines: list[str] = []
    for title, groups in sections:
        lines.append(f"{title}:")
        for s in summarize(groups):
            lines.append(f" * {s.key}: {s.total_out:.2f} ({s.count})")
        lines.append("")

    lines.append(f"Total: {_outgoing_total(outgoing):.2f}")
    return "\n".join(lines)
