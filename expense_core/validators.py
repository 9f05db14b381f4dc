"""Validation helpers and the draft parsing boundary for expenses."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from .exceptions import ValidationError
from .models import CATEGORIES, ExpenseDraft
from .receipts import LOCAL_RECEIPT_PATH

REQUIRED = "REQUIRED"
INVALID_RANGE = "INVALID_RANGE"
INVALID_CHOICE = "INVALID_CHOICE"
INVALID_DATE = "INVALID_DATE"
TOO_LONG = "TOO_LONG"
INVALID_URL = "INVALID_URL"

DESCRIPTION_MAX_LENGTH = 200


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Dict[str, str] = field(default_factory=dict)
    codes: Dict[str, str] = field(default_factory=dict)


def _fail(field_name: str, code: str, message: str) -> ValidationError:
    return ValidationError(message, {field_name: message}, {field_name: code})


def _is_blank(raw: object) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def validate_description(raw: object, field_name: str = "description") -> str:
    if not isinstance(raw, str) or not raw.strip():
        raise _fail(field_name, REQUIRED, "Description is required")
    trimmed = raw.strip()
    if len(trimmed) > DESCRIPTION_MAX_LENGTH:
        raise _fail(
            field_name,
            TOO_LONG,
            f"Description must be at most {DESCRIPTION_MAX_LENGTH} characters",
        )
    return trimmed


def parse_amount(raw: object, field_name: str = "amount") -> Decimal:
    """Convert raw form input to a positive Decimal with exactly two fraction digits."""
    if _is_blank(raw):
        raise _fail(field_name, REQUIRED, "Amount is required")
    invalid = _fail(field_name, INVALID_RANGE, "Amount must be greater than 0")
    # bool is an int subclass but never a meaningful amount.
    if isinstance(raw, bool) or not isinstance(raw, (str, int, float, Decimal)):
        raise invalid
    try:
        amount = Decimal(str(raw).strip())
    except InvalidOperation as exc:
        raise invalid from exc
    if not amount.is_finite() or amount <= 0:
        raise invalid
    try:
        amount = _quantize_two_decimals(amount)
    except InvalidOperation as exc:
        # More digits than the decimal context can hold at cent precision.
        raise _fail(field_name, INVALID_RANGE, "Amount is too large") from exc
    if amount <= 0:
        raise invalid
    return amount


def validate_category(
    raw: object, field_name: str = "category", allowed: Iterable[str] = CATEGORIES
) -> str:
    if _is_blank(raw):
        raise _fail(field_name, REQUIRED, "Category is required")
    allowed = tuple(allowed)
    if not isinstance(raw, str) or raw.strip() not in allowed:
        raise _fail(field_name, INVALID_CHOICE, f"Category must be one of: {', '.join(allowed)}")
    return raw.strip()


def parse_date(raw: object, field_name: str = "date") -> date:
    if _is_blank(raw):
        raise _fail(field_name, REQUIRED, "Date is required")
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, str):
        try:
            return date.fromisoformat(raw.strip())
        except ValueError:
            pass
    raise _fail(field_name, INVALID_DATE, "Date must be a valid YYYY-MM-DD date")


def validate_receipt_url(raw: object, field_name: str = "receipt_url") -> Optional[str]:
    """Accept http(s) URLs or paths under the local receipts route; blank means no receipt."""
    if _is_blank(raw):
        return None
    invalid = _fail(field_name, INVALID_URL, "Receipt URL must be an http(s) URL or a stored receipt path")
    if not isinstance(raw, str):
        raise invalid
    url = raw.strip()
    try:
        parts = urlsplit(url)
    except ValueError as exc:
        raise invalid from exc
    if parts.scheme in {"http", "https"} and parts.netloc:
        return url
    is_local_path = (
        not parts.scheme
        and not parts.netloc
        and parts.path.startswith(LOCAL_RECEIPT_PATH)
        and ".." not in parts.path.split("/")
    )
    if not is_local_path:
        raise invalid
    return url


_FIELD_PARSERS: Tuple[Tuple[str, Callable[[object], Any]], ...] = (
    ("description", validate_description),
    ("amount", parse_amount),
    ("category", validate_category),
    ("date", parse_date),
    ("receipt_url", validate_receipt_url),
)


def _clean(form: Mapping[str, object]) -> Tuple[Dict[str, Any], Dict[str, str], Dict[str, str]]:
    cleaned: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    codes: Dict[str, str] = {}
    # Every field is checked so the caller sees all problems at once.
    for name, parser in _FIELD_PARSERS:
        try:
            cleaned[name] = parser(form.get(name))
        except ValidationError as exc:
            errors.update(exc.errors)
            codes.update(exc.codes)
    return cleaned, errors, codes


def validate(form: Mapping[str, object]) -> ValidationResult:
    """Check a raw draft without raising; reports every violated field."""
    _, errors, codes = _clean(form)
    return ValidationResult(valid=not errors, errors=errors, codes=codes)


def parse_draft(form: Mapping[str, object]) -> ExpenseDraft:
    """Turn raw form data into a typed draft or raise ``ValidationError``."""
    cleaned, errors, codes = _clean(form)
    if errors:
        raise ValidationError(
            "; ".join(f"{name}: {message}" for name, message in errors.items()),
            errors,
            codes,
        )
    return ExpenseDraft(
        description=cleaned["description"],
        amount=cleaned["amount"],
        category=cleaned["category"],
        date=cleaned["date"],
        receipt_url=cleaned["receipt_url"],
    )
