"""Environment-driven settings for the expense tracker."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Mapping, Optional, Tuple

from .receipts import MAX_RECEIPT_BYTES

ENV_PREFIX = "EXPENSE_TRACKER_"
DEFAULT_ORPHAN_RECEIPT_SECONDS = 60 * 60


@dataclass(frozen=True)
class Settings:
    env: str = "prod"
    allowed_origins: Tuple[str, ...] = ()
    highlight_threshold: Decimal = Decimal("50")
    upload_url: Optional[str] = None
    upload_dir: Path = field(default_factory=lambda: Path("uploads"))
    max_receipt_bytes: int = MAX_RECEIPT_BYTES
    orphan_receipt_seconds: int = DEFAULT_ORPHAN_RECEIPT_SECONDS
    log_level: str = "INFO"

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "development"}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ

        def get(name: str) -> Optional[str]:
            value = environ.get(ENV_PREFIX + name)
            if value is None or not value.strip():
                return None
            return value.strip()

        origins = get("ALLOWED_ORIGINS")
        threshold = get("HIGHLIGHT_THRESHOLD")
        max_bytes = get("MAX_RECEIPT_BYTES")
        orphan_seconds = get("ORPHAN_RECEIPT_SECONDS")
        try:
            highlight_threshold = Decimal(threshold) if threshold else Decimal("50")
            if not highlight_threshold.is_finite():
                raise InvalidOperation(threshold)
        except InvalidOperation as exc:
            raise ValueError(f"{ENV_PREFIX}HIGHLIGHT_THRESHOLD must be numeric, got {threshold!r}") from exc
        try:
            max_receipt_bytes = int(max_bytes) if max_bytes else MAX_RECEIPT_BYTES
        except ValueError as exc:
            raise ValueError(f"{ENV_PREFIX}MAX_RECEIPT_BYTES must be an integer, got {max_bytes!r}") from exc
        try:
            orphan_receipt_seconds = int(orphan_seconds) if orphan_seconds else DEFAULT_ORPHAN_RECEIPT_SECONDS
        except ValueError as exc:
            raise ValueError(
                f"{ENV_PREFIX}ORPHAN_RECEIPT_SECONDS must be an integer, got {orphan_seconds!r}"
            ) from exc

        return cls(
            env=(get("ENV") or "prod").lower(),
            allowed_origins=tuple(
                origin.strip() for origin in (origins or "").split(",") if origin.strip()
            ),
            highlight_threshold=highlight_threshold,
            upload_url=get("UPLOAD_URL"),
            upload_dir=Path(get("UPLOAD_DIR") or "uploads"),
            max_receipt_bytes=max_receipt_bytes,
            orphan_receipt_seconds=orphan_receipt_seconds,
            log_level=(get("LOG_LEVEL") or "INFO").upper(),
        )
