"""Filtering, sorting and aggregation of expenses for display.

Every function here is pure: inputs are never mutated and identical inputs
always produce the same ordering.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Sequence

from .exceptions import ValidationError
from .models import ALL_CATEGORIES, Expense

__all__ = [
    "DEFAULT_SORT_KEY",
    "DisplayRules",
    "SORT_KEYS",
    "Summary",
    "count",
    "filter_by_category",
    "project",
    "sort_expenses",
    "summarize",
    "total",
]

DEFAULT_SORT_KEY = "date"


def _by_date_descending(expenses: Sequence[Expense]) -> List[Expense]:
    # sorted() stays stable with reverse=True, so same-day records keep insertion order.
    return sorted(expenses, key=lambda exp: exp.date, reverse=True)


def _by_amount(expenses: Sequence[Expense]) -> List[Expense]:
    return sorted(expenses, key=lambda exp: exp.amount)


def _by_category(expenses: Sequence[Expense]) -> List[Expense]:
    return sorted(expenses, key=lambda exp: exp.category)


_SORTERS: Dict[str, Callable[[Sequence[Expense]], List[Expense]]] = {
    "date": _by_date_descending,
    "amount": _by_amount,
    "category": _by_category,
}

SORT_KEYS = tuple(_SORTERS)


@dataclass(frozen=True)
class Summary:
    total: Decimal
    count: int

    def to_dict(self) -> Dict[str, object]:
        return {"total": f"{self.total:.2f}", "count": self.count}


@dataclass(frozen=True)
class DisplayRules:
    """Presentation-only rules; expenses above the threshold are highlighted."""

    highlight_threshold: Decimal = Decimal("50")

    def is_highlighted(self, expense: Expense) -> bool:
        return expense.amount > self.highlight_threshold


def filter_by_category(expenses: Iterable[Expense], category: str) -> List[Expense]:
    """Keep records whose category equals ``category``; ``All`` keeps everything."""
    if category == ALL_CATEGORIES:
        return list(expenses)
    return [expense for expense in expenses if expense.category == category]


def sort_expenses(expenses: Iterable[Expense], sort_key: str) -> List[Expense]:
    try:
        sorter = _SORTERS[sort_key]
    except KeyError as exc:
        message = f"Sort key must be one of: {', '.join(SORT_KEYS)}"
        raise ValidationError(message, {"sort": message}, {"sort": "INVALID_CHOICE"}) from exc
    return sorter(list(expenses))


def project(
    expenses: Iterable[Expense],
    filter_category: str = ALL_CATEGORIES,
    sort_key: str = DEFAULT_SORT_KEY,
) -> List[Expense]:
    """Return the displayed subset of ``expenses`` in display order."""
    return sort_expenses(filter_by_category(expenses, filter_category), sort_key)


def total(expenses: Iterable[Expense]) -> Decimal:
    return sum((expense.amount for expense in expenses), start=Decimal("0.00"))


def count(expenses: Sequence[Expense]) -> int:
    return len(expenses)


def summarize(expenses: Sequence[Expense]) -> Summary:
    return Summary(total=total(expenses), count=count(expenses))
