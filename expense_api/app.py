"""Flask REST API exposing the in-memory expense store."""

from __future__ import annotations

import argparse
import logging
from typing import Any, Dict, List, Optional, Tuple

from flask import Flask, jsonify, request, send_from_directory, url_for
from flask_cors import CORS
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import RequestEntityTooLarge

from expense_core.config import Settings
from expense_core.exceptions import RecordNotFoundError, UploadError, ValidationError
from expense_core.models import ALL_CATEGORIES, CATEGORIES
from expense_core.projection import DEFAULT_SORT_KEY, SORT_KEYS, DisplayRules, project, summarize
from expense_core.receipts import (
    RECEIPT_FIELD,
    HttpReceiptUploader,
    LocalReceiptUploader,
    ReceiptFile,
    check_receipt,
    format_size_limit,
)
from expense_core.store import ExpenseStore
from expense_core.submission import ExpenseSubmitter, ReceiptUploader

# Multipart framing around the receipt itself.
_REQUEST_SLACK_BYTES = 64 * 1024


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[ExpenseStore] = None,
    uploader: Optional[ReceiptUploader] = None,
) -> Flask:
    app = Flask(__name__)
    settings = settings or Settings.from_env()
    app.config["MAX_CONTENT_LENGTH"] = settings.max_receipt_bytes + _REQUEST_SLACK_BYTES

    if settings.is_dev:
        CORS(app, resources={r"/*": {"origins": "*"}}, supports_credentials=True)
    elif settings.allowed_origins:
        CORS(app, resources={r"/*": {"origins": list(settings.allowed_origins)}}, supports_credentials=True)
    else:
        CORS(app)

    store = store if store is not None else ExpenseStore()
    local_receipts = LocalReceiptUploader(settings.upload_dir)
    if uploader is None:
        if settings.upload_url:
            uploader = HttpReceiptUploader(settings.upload_url)
        else:
            uploader = local_receipts
    submitter = ExpenseSubmitter(store, uploader, max_receipt_bytes=settings.max_receipt_bytes)
    rules = DisplayRules(settings.highlight_threshold)

    def _success(payload: Any, status: int = 200):
        if status == 204:
            return ("", status)
        return jsonify(payload), status

    def _handle_error(exc: Exception, status: int, message: str, **extra: Any):
        app.logger.error("%s: %s", message, exc)
        return jsonify({"error": message, "details": str(exc), **extra}), status

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        return _handle_error(exc, 400, "Validation error", fields=exc.errors)

    @app.errorhandler(RecordNotFoundError)
    def handle_not_found(exc: RecordNotFoundError):
        return _handle_error(exc, 404, "Record not found")

    @app.errorhandler(UploadError)
    def handle_upload_error(exc: UploadError):
        app.logger.error("Receipt upload failed: %s", exc)
        return jsonify({"error": str(exc)}), 400

    @app.errorhandler(RequestEntityTooLarge)
    def handle_too_large(exc: RequestEntityTooLarge):
        limit = format_size_limit(settings.max_receipt_bytes)
        return _handle_error(exc, 413, f"File size must be less than {limit}")

    def _receipt_from_request() -> Optional[ReceiptFile]:
        storage: Optional[FileStorage] = request.files.get(RECEIPT_FIELD)
        if storage is None or not storage.filename:
            return None
        return ReceiptFile(
            filename=storage.filename,
            content_type=storage.mimetype or "",
            data=storage.read(),
        )

    def _submission_from_request() -> Tuple[Dict[str, Any], Optional[ReceiptFile]]:
        if request.is_json:
            data = request.get_json(silent=True)
            if not isinstance(data, dict):
                raise ValidationError("Malformed JSON body")
            return data, None
        if request.mimetype in {"multipart/form-data", "application/x-www-form-urlencoded"}:
            return request.form.to_dict(), _receipt_from_request()
        raise ValidationError("Request content must be application/json or multipart/form-data")

    def _serialise(expenses) -> List[Dict[str, Any]]:
        return [
            {**expense.to_dict(), "highlighted": rules.is_highlighted(expense)}
            for expense in expenses
        ]

    @app.get("/categories")
    def list_categories():
        return _success({"items": list(CATEGORIES), "filters": [ALL_CATEGORIES, *CATEGORIES]})

    @app.get("/expenses")
    def list_expenses():
        category = request.args.get("category") or ALL_CATEGORIES
        sort_key = request.args.get("sort") or DEFAULT_SORT_KEY
        visible = project(store.list(), category, sort_key)
        summary = summarize(visible)
        return _success({
            "items": _serialise(visible),
            "sort_keys": list(SORT_KEYS),
            **summary.to_dict(),
        })

    @app.post("/expenses")
    def create_expense():
        form, receipt = _submission_from_request()
        expense = submitter.submit(form, receipt)
        return _success(_serialise([expense])[0], 201)

    @app.get("/expenses/<expense_id>")
    def get_expense(expense_id: str):
        expense = store.get(expense_id)
        return _success(_serialise([expense])[0])

    def _referenced_receipts() -> List[str]:
        return [expense.receipt_url for expense in store.list() if expense.receipt_url]

    @app.delete("/expenses/<expense_id>")
    def delete_expense(expense_id: str):
        removed = store.remove(expense_id)
        if removed is not None and removed.receipt_url:
            still_used = {local_receipts.filename_for(url) for url in _referenced_receipts()}
            if local_receipts.filename_for(removed.receipt_url) not in still_used:
                local_receipts.delete(removed.receipt_url)
        return _success({}, 204)

    @app.get("/summary")
    def summary():
        return _success(summarize(store.list()).to_dict())

    @app.post("/upload-receipt")
    def upload_receipt():
        receipt = _receipt_from_request()
        if receipt is None:
            return jsonify({"error": "No receipt file provided"}), 400
        check_receipt(receipt, settings.max_receipt_bytes)
        local_receipts.prune(_referenced_receipts(), settings.orphan_receipt_seconds)
        filename = local_receipts.store_file(receipt)
        return _success({
            "success": True,
            "filename": filename,
            "url": url_for("serve_receipt", filename=filename, _external=True),
        })

    @app.get("/receipts/<path:filename>")
    def serve_receipt(filename: str):
        resp = send_from_directory(local_receipts.directory.resolve(), filename)
        resp.headers["X-Content-Type-Options"] = "nosniff"
        return resp

    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Expense Tracker API server")
    parser.add_argument("--host", default="127.0.0.1", help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", default=5000, type=int, help="Port to listen on (default: 5000)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger(__name__).info("Starting expense tracker API on %s:%s", args.host, args.port)
    app = create_app(settings)
    app.run(host=args.host, port=args.port, debug=settings.is_dev)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
