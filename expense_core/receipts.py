"""Receipt checks and uploaders."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Collection, Optional
from urllib.parse import urlsplit
from uuid import uuid4

import requests

from .exceptions import UploadError

logger = logging.getLogger(__name__)

MAX_RECEIPT_BYTES = 5 * 1024 * 1024
RECEIPT_FIELD = "receipt"
DEFAULT_UPLOAD_ERROR = "Failed to upload receipt"
LOCAL_RECEIPT_PATH = "/receipts/"

# Stored files always take their extension from this table, never from the client's filename.
RECEIPT_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}


@dataclass(frozen=True)
class ReceiptFile:
    filename: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def media_type(self) -> str:
        return (self.content_type or "").split(";", 1)[0].strip().lower()


def check_receipt(receipt: ReceiptFile, max_bytes: int = MAX_RECEIPT_BYTES) -> None:
    """Reject receipts locally before any network call is made."""
    if receipt.media_type not in RECEIPT_EXTENSIONS:
        raise UploadError("Please select an image file (JPG, PNG, GIF)")
    if receipt.size > max_bytes:
        raise UploadError(f"File size must be less than {format_size_limit(max_bytes)}")


def format_size_limit(max_bytes: int) -> str:
    if max_bytes >= 1024 * 1024:
        return f"{max_bytes // (1024 * 1024)}MB"
    return f"{max_bytes} bytes"


class HttpReceiptUploader:
    """Posts receipts to an upload endpoint as multipart form data."""

    def __init__(
        self,
        endpoint: str,
        session: Optional[requests.Session] = None,
        timeout: float = 30,
    ) -> None:
        self._endpoint = endpoint
        self._session = session or requests.Session()
        self._timeout = timeout

    def upload(self, receipt: ReceiptFile) -> str:
        files = {RECEIPT_FIELD: (receipt.filename, receipt.data, receipt.content_type)}
        try:
            resp = self._session.post(self._endpoint, files=files, timeout=self._timeout)
        except requests.RequestException as exc:
            logger.error("Receipt upload to %s failed: %s", self._endpoint, exc)
            raise UploadError(DEFAULT_UPLOAD_ERROR) from exc

        payload = _json_or_empty(resp)
        if not resp.ok:
            message = payload.get("error") or DEFAULT_UPLOAD_ERROR
            logger.error("Receipt upload rejected with status %s: %s", resp.status_code, message)
            raise UploadError(str(message))

        url = payload.get("url")
        if not url:
            raise UploadError("Upload response did not include a receipt URL")
        logger.info("Uploaded receipt %s to %s", receipt.filename, url)
        return str(url)


def _json_or_empty(resp: requests.Response) -> dict:
    try:
        payload = resp.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


class LocalReceiptUploader:
    """Stores receipts in a local directory and serves them under ``base_url``."""

    def __init__(self, directory: Path, base_url: str = LOCAL_RECEIPT_PATH) -> None:
        self._directory = Path(directory)
        self._base_url = base_url if base_url.endswith("/") else base_url + "/"

    @property
    def directory(self) -> Path:
        return self._directory

    def upload(self, receipt: ReceiptFile) -> str:
        filename = self.store_file(receipt)
        return self._base_url + filename

    def store_file(self, receipt: ReceiptFile) -> str:
        """Write the receipt under a generated name and return that name."""
        try:
            suffix = RECEIPT_EXTENSIONS[receipt.media_type]
        except KeyError as exc:
            raise UploadError("Please select an image file (JPG, PNG, GIF)") from exc
        filename = f"{uuid4().hex}{suffix}"
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            (self._directory / filename).write_bytes(receipt.data)
        except OSError as exc:
            raise UploadError(DEFAULT_UPLOAD_ERROR) from exc
        logger.info("Stored receipt %s as %s", receipt.filename, filename)
        return filename

    def filename_for(self, url: Optional[str]) -> Optional[str]:
        """Return the stored file name behind ``url``, or None for foreign URLs."""
        if not url:
            return None
        path = urlsplit(url).path
        if not path.startswith(self._base_url):
            return None
        name = path[len(self._base_url):]
        if not name or "/" in name or name.startswith("."):
            return None
        return name

    def delete(self, url: Optional[str]) -> bool:
        filename = self.filename_for(url)
        if filename is None:
            return False
        try:
            (self._directory / filename).unlink()
        except FileNotFoundError:
            return False
        logger.info("Deleted receipt %s", filename)
        return True

    def prune(self, referenced: Collection[str], max_age_seconds: float) -> int:
        """Delete stored receipts older than ``max_age_seconds`` that no expense refers to."""
        if not self._directory.is_dir():
            return 0
        keep = {self.filename_for(url) for url in referenced}
        cutoff = time.time() - max_age_seconds
        removed = 0
        for path in self._directory.iterdir():
            if not path.is_file() or path.name in keep:
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        if removed:
            logger.info("Pruned %d unreferenced receipts", removed)
        return removed
