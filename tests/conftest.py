import itertools
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from expense_api.app import create_app
from expense_core.config import Settings
from expense_core.models import ExpenseDraft
from expense_core.store import ExpenseStore

FIXED_NOW = datetime(2024, 1, 16, 9, 30, tzinfo=timezone.utc)


def make_draft(description="Lunch at downtown cafe", amount="12.50", category="Food", day="2024-01-15"):
    return ExpenseDraft(
        description=description,
        amount=Decimal(amount),
        category=category,
        date=date.fromisoformat(day),
    )


@pytest.fixture
def store():
    counter = itertools.count(1)
    return ExpenseStore(id_factory=lambda: f"exp-{next(counter)}", clock=lambda: FIXED_NOW)


@pytest.fixture
def seeded_store(store):
    store.add(make_draft())
    store.add(make_draft("Monthly bus pass", "95.00", "Transportation", "2024-01-14"))
    return store


@pytest.fixture
def settings(tmp_path):
    return Settings(upload_dir=tmp_path / "uploads")


@pytest.fixture
def app(settings, store):
    app = create_app(settings, store=store)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
