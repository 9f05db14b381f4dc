from decimal import Decimal
from pathlib import Path

import pytest

from expense_core.config import Settings
from expense_core.receipts import MAX_RECEIPT_BYTES


def test_defaults():
    settings = Settings.from_env({})
    assert settings.env == "prod"
    assert settings.is_dev is False
    assert settings.allowed_origins == ()
    assert settings.highlight_threshold == Decimal("50")
    assert settings.upload_url is None
    assert settings.upload_dir == Path("uploads")
    assert settings.max_receipt_bytes == MAX_RECEIPT_BYTES
    assert settings.log_level == "INFO"
    assert settings.orphan_receipt_seconds == 3600


def test_reads_prefixed_variables():
    settings = Settings.from_env({
        "EXPENSE_TRACKER_ENV": "Development",
        "EXPENSE_TRACKER_ALLOWED_ORIGINS": "http://a.test, ,http://b.test",
        "EXPENSE_TRACKER_HIGHLIGHT_THRESHOLD": "75.5",
        "EXPENSE_TRACKER_UPLOAD_URL": "https://uploads.test/receipt",
        "EXPENSE_TRACKER_UPLOAD_DIR": "/tmp/receipts",
        "EXPENSE_TRACKER_MAX_RECEIPT_BYTES": "1024",
        "EXPENSE_TRACKER_LOG_LEVEL": "debug",
        "EXPENSE_TRACKER_ORPHAN_RECEIPT_SECONDS": "120",
    })
    assert settings.is_dev is True
    assert settings.allowed_origins == ("http://a.test", "http://b.test")
    assert settings.highlight_threshold == Decimal("75.5")
    assert settings.upload_url == "https://uploads.test/receipt"
    assert settings.upload_dir == Path("/tmp/receipts")
    assert settings.max_receipt_bytes == 1024
    assert settings.log_level == "DEBUG"
    assert settings.orphan_receipt_seconds == 120


@pytest.mark.parametrize(
    "name,value",
    [
        ("EXPENSE_TRACKER_HIGHLIGHT_THRESHOLD", "lots"),
        ("EXPENSE_TRACKER_HIGHLIGHT_THRESHOLD", "NaN"),
        ("EXPENSE_TRACKER_MAX_RECEIPT_BYTES", "5MB"),
        ("EXPENSE_TRACKER_ORPHAN_RECEIPT_SECONDS", "1h"),
    ],
)
def test_malformed_numbers_fail_fast(name, value):
    with pytest.raises(ValueError):
        Settings.from_env({name: value})
