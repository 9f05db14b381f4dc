"""Data models for the expense tracker domain."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

__all__ = [
    "ALL_CATEGORIES",
    "CATEGORIES",
    "Expense",
    "ExpenseDraft",
    "isoformat_utc",
    "parse_datetime",
]

CATEGORIES = ("Food", "Transportation", "Entertainment", "Shopping", "Other")

# Pseudo-category accepted by the category filter only.
ALL_CATEGORIES = "All"


def isoformat_utc(dt: datetime) -> str:
    """Return an ISO 8601 string with trailing Z for UTC-aware datetimes."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)
    iso = dt.isoformat(timespec="seconds")
    return iso.replace("+00:00", "Z")


def parse_datetime(value: str) -> datetime:
    """Parse ISO 8601 datetime strings with optional trailing Z into UTC-aware datetime."""
    value = value.strip()
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass(frozen=True)
class ExpenseDraft:
    """Validated expense data that has not been assigned an identity yet."""

    description: str
    amount: Decimal
    category: str
    date: date
    receipt_url: Optional[str] = None

    def with_receipt(self, receipt_url: Optional[str]) -> "ExpenseDraft":
        return replace(self, receipt_url=receipt_url)


@dataclass(frozen=True)
class Expense:
    id: str
    description: str
    amount: Decimal
    category: str
    date: date
    created_at: datetime
    receipt_url: Optional[str] = None

    @classmethod
    def from_draft(cls, draft: ExpenseDraft, expense_id: str, created_at: datetime) -> "Expense":
        return cls(
            id=expense_id,
            description=draft.description,
            amount=draft.amount,
            category=draft.category,
            date=draft.date,
            created_at=created_at,
            receipt_url=draft.receipt_url,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialise the expense to JSON-friendly natives."""
        return {
            "id": self.id,
            "description": self.description,
            "amount": f"{self.amount:.2f}",
            "category": self.category,
            "date": self.date.isoformat(),
            "created_at": isoformat_utc(self.created_at),
            "receipt_url": self.receipt_url,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Expense":
        """Hydrate an Expense from JSON-native data."""
        return cls(
            id=str(data["id"]),
            description=data["description"],
            amount=Decimal(str(data["amount"])),
            category=data["category"],
            date=date.fromisoformat(data["date"]),
            created_at=parse_datetime(data["created_at"]),
            receipt_url=data.get("receipt_url"),
        )
