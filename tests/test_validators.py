from datetime import date
from decimal import Decimal

import pytest

from expense_core.exceptions import ValidationError
from expense_core.validators import (
    INVALID_CHOICE,
    INVALID_DATE,
    INVALID_RANGE,
    INVALID_URL,
    REQUIRED,
    TOO_LONG,
    parse_draft,
    validate,
)


def valid_form(**overrides):
    form = {
        "description": "Groceries",
        "amount": "23.40",
        "category": "Food",
        "date": "2024-01-15",
    }
    form.update(overrides)
    return form


def test_valid_form_has_no_errors():
    result = validate(valid_form())
    assert result.valid is True
    assert result.errors == {}
    assert result.codes == {}


@pytest.mark.parametrize("description", ["", "   ", None])
def test_blank_description_is_required(description):
    form = valid_form(description=description)
    result = validate(form)
    assert result.valid is False
    assert result.errors == {"description": "Description is required"}
    assert result.codes == {"description": REQUIRED}
    # validate never touches its input
    assert form == valid_form(description=description)


def test_description_too_long():
    result = validate(valid_form(description="x" * 201))
    assert result.codes == {"description": TOO_LONG}


def test_missing_amount_is_required():
    form = valid_form()
    del form["amount"]
    result = validate(form)
    assert result.codes == {"amount": REQUIRED}
    assert result.errors["amount"] == "Amount is required"


@pytest.mark.parametrize("amount", ["0", "-5", "abc", "NaN", "Infinity", "0.001", 0, -1.5, True, [1]])
def test_non_positive_or_non_numeric_amount_is_out_of_range(amount):
    result = validate(valid_form(amount=amount))
    assert result.codes == {"amount": INVALID_RANGE}
    assert result.errors["amount"] == "Amount must be greater than 0"


def test_unknown_category_is_rejected():
    result = validate(valid_form(category="Rent"))
    assert result.codes == {"category": INVALID_CHOICE}


def test_missing_category_is_required():
    result = validate(valid_form(category=""))
    assert result.codes == {"category": REQUIRED}


def test_missing_date_is_required():
    result = validate(valid_form(date=""))
    assert result.codes == {"date": REQUIRED}


@pytest.mark.parametrize("value", ["2024-02-30", "15/01/2024", "yesterday"])
def test_invalid_calendar_date(value):
    result = validate(valid_form(date=value))
    assert result.codes == {"date": INVALID_DATE}


def test_all_violations_reported_together():
    result = validate({"description": " ", "amount": "-1", "category": None, "date": ""})
    assert result.codes == {
        "description": REQUIRED,
        "amount": INVALID_RANGE,
        "category": REQUIRED,
        "date": REQUIRED,
    }


def test_parse_draft_produces_typed_values():
    draft = parse_draft(valid_form(description="  Groceries  ", amount="12.345"))
    assert draft.description == "Groceries"
    assert draft.amount == Decimal("12.35")
    assert draft.category == "Food"
    assert draft.date == date(2024, 1, 15)
    assert draft.receipt_url is None


def test_parse_draft_accepts_native_types():
    draft = parse_draft(valid_form(amount=Decimal("9.99"), date=date(2024, 3, 1)))
    assert draft.amount == Decimal("9.99")
    assert draft.date == date(2024, 3, 1)


def test_parse_draft_keeps_receipt_url():
    draft = parse_draft(valid_form(receipt_url="https://cdn.example.com/r.png"))
    assert draft.receipt_url == "https://cdn.example.com/r.png"


def test_parse_draft_raises_with_field_errors():
    with pytest.raises(ValidationError) as excinfo:
        parse_draft(valid_form(description="", amount="0"))
    assert set(excinfo.value.errors) == {"description", "amount"}
    assert excinfo.value.codes["amount"] == INVALID_RANGE


def test_huge_positive_amount_is_reported_as_too_large():
    result = validate(valid_form(amount="100000000000000000000000000000"))
    assert result.codes == {"amount": INVALID_RANGE}
    assert result.errors["amount"] == "Amount is too large"


@pytest.mark.parametrize(
    "url",
    [
        "https://cdn.example.com/receipts/r.png",
        "http://localhost:5000/receipts/r.png",
        "/receipts/0a1b2c.png",
    ],
)
def test_receipt_url_accepts_http_and_stored_paths(url):
    assert parse_draft(valid_form(receipt_url=url)).receipt_url == url


@pytest.mark.parametrize(
    "url",
    [
        "javascript:alert(1)",
        "data:text/html;base64,PHNjcmlwdD4=",
        "ftp://files.example.com/r.png",
        "https:///no-host.png",
        "//evil.example.com/receipts/r.png",
        "/receipts/../secrets.txt",
        "/static/r.png",
        42,
    ],
)
def test_receipt_url_rejects_other_schemes_and_paths(url):
    result = validate(valid_form(receipt_url=url))
    assert result.codes == {"receipt_url": INVALID_URL}
    with pytest.raises(ValidationError):
        parse_draft(valid_form(receipt_url=url))


def test_blank_receipt_url_means_no_receipt():
    assert parse_draft(valid_form(receipt_url="  ")).receipt_url is None
