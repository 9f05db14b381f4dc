"""Core business logic package for the expense tracker."""

from .config import Settings
from .exceptions import RecordNotFoundError, UploadError, ValidationError
from .models import ALL_CATEGORIES, CATEGORIES, Expense, ExpenseDraft
from .projection import DisplayRules, Summary, project, summarize
from .receipts import HttpReceiptUploader, LocalReceiptUploader, ReceiptFile
from .store import ExpenseStore
from .submission import ExpenseSubmitter
from .validators import ValidationResult, parse_draft, validate

__all__ = [
    "ALL_CATEGORIES",
    "CATEGORIES",
    "DisplayRules",
    "Expense",
    "ExpenseDraft",
    "ExpenseStore",
    "ExpenseSubmitter",
    "HttpReceiptUploader",
    "LocalReceiptUploader",
    "ReceiptFile",
    "RecordNotFoundError",
    "Settings",
    "Summary",
    "UploadError",
    "ValidationError",
    "ValidationResult",
    "parse_draft",
    "project",
    "summarize",
    "validate",
]
