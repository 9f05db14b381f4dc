"""In-memory expense store, the single source of truth for expense records."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional, Tuple
from uuid import uuid4

from .exceptions import RecordNotFoundError
from .models import Expense, ExpenseDraft

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid4())


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ExpenseStore:
    """Holds expenses in insertion order; ``add`` and ``remove`` are the only mutators."""

    def __init__(
        self,
        records: Iterable[Expense] = (),
        *,
        id_factory: Callable[[], str] = _new_id,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._id_factory = id_factory
        self._clock = clock
        self._lock = threading.Lock()
        # dicts keep insertion order, which doubles as the traversal order.
        self._expenses: Dict[str, Expense] = {}
        for record in records:
            if record.id in self._expenses:
                raise ValueError(f"Duplicate expense id {record.id}")
            self._expenses[record.id] = record

    # Public API -----------------------------------------------------------
    def add(self, draft: ExpenseDraft) -> Expense:
        """Assign an id and creation time to ``draft`` and append it."""
        if not isinstance(draft, ExpenseDraft):
            raise TypeError("ExpenseStore.add expects an ExpenseDraft; parse raw input first")
        with self._lock:
            expense_id = self._id_factory()
            while expense_id in self._expenses:
                expense_id = self._id_factory()
            expense = Expense.from_draft(draft, expense_id, self._clock())
            self._expenses[expense.id] = expense
        logger.debug("Added expense %s (%s %s)", expense.id, expense.category, expense.amount)
        return expense

    def remove(self, expense_id: str) -> Optional[Expense]:
        """Remove an expense; unknown ids are ignored. Returns the removed record, if any."""
        with self._lock:
            removed = self._expenses.pop(expense_id, None)
        if removed is None:
            logger.debug("Ignoring removal of unknown expense %s", expense_id)
            return None
        logger.debug("Removed expense %s", expense_id)
        return removed

    def get(self, expense_id: str) -> Expense:
        try:
            return self._expenses[expense_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Expense {expense_id} not found") from exc

    def list(self) -> Tuple[Expense, ...]:
        with self._lock:
            return tuple(self._expenses.values())

    def __len__(self) -> int:
        return len(self._expenses)

    def __contains__(self, expense_id: object) -> bool:
        return expense_id in self._expenses
