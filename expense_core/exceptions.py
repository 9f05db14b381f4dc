"""Domain-specific exceptions for the expense tracker core."""

from typing import Dict, Mapping, Optional


class ValidationError(ValueError):
    """Raised when provided data does not meet validation requirements.

    ``errors`` maps each offending field to a user-facing message and
    ``codes`` maps it to a machine-readable rule code such as ``REQUIRED``.
    """

    def __init__(
        self,
        message: str,
        errors: Optional[Mapping[str, str]] = None,
        codes: Optional[Mapping[str, str]] = None,
    ) -> None:
        super().__init__(message)
        self.errors: Dict[str, str] = dict(errors or {})
        self.codes: Dict[str, str] = dict(codes or {})


class RecordNotFoundError(LookupError):
    """Raised when an expense record cannot be located."""


class UploadError(IOError):
    """Raised when a receipt is rejected or its upload fails."""
