"""Submit flow: validate a draft, upload its receipt, then add it to the store."""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

from .exceptions import UploadError
from .models import Expense
from .receipts import MAX_RECEIPT_BYTES, ReceiptFile, check_receipt
from .store import ExpenseStore
from .validators import parse_draft

logger = logging.getLogger(__name__)


class ReceiptUploader(Protocol):
    def upload(self, receipt: ReceiptFile) -> str:
        ...


class ExpenseSubmitter:
    """Coordinates a single submission; the store is only touched on full success."""

    def __init__(
        self,
        store: ExpenseStore,
        uploader: Optional[ReceiptUploader] = None,
        *,
        max_receipt_bytes: int = MAX_RECEIPT_BYTES,
    ) -> None:
        self._store = store
        self._uploader = uploader
        self._max_receipt_bytes = max_receipt_bytes

    def submit(self, form: Mapping[str, object], receipt: Optional[ReceiptFile] = None) -> Expense:
        draft = parse_draft(form)
        if receipt is not None:
            check_receipt(receipt, self._max_receipt_bytes)
            if self._uploader is None:
                raise UploadError("Receipt uploads are not configured")
            draft = draft.with_receipt(self._uploader.upload(receipt))
        expense = self._store.add(draft)
        logger.info("Recorded expense %s", expense.id)
        return expense
