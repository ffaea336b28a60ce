# Overview: Flask API routes for invoices and estimates; numbering and deletion without orphans.

from flask import Blueprint, jsonify

from ..extensions import db
from ..services.backup_errors import StoreError
from ..services.document_service import (
    DocumentNumberError,
    delete_estimate,
    delete_invoice,
    next_document_number,
)
from ..services.settings_store import DatabaseSettingsStore


documents_bp = Blueprint("documents", __name__, url_prefix="/api/documents")


@documents_bp.post("/numbers/<kind>")
def allocate_number_route(kind: str):
    """Reserve the next invoice or estimate number and advance the counter."""
    try:
        number = next_document_number(kind, DatabaseSettingsStore())
        db.session.commit()
    except DocumentNumberError as e:
        db.session.rollback()
        return jsonify({"error": str(e)}), 400
    return jsonify({"kind": kind, "number": number}), 201


@documents_bp.delete("/invoices/<invoice_id>")
def delete_invoice_route(invoice_id: str):
    try:
        deleted = delete_invoice(invoice_id)
    except StoreError as e:
        return jsonify(e.to_dict()), 500
    if not deleted:
        return jsonify({"error": "Invoice not found"}), 404
    return jsonify({"ok": True})


@documents_bp.delete("/estimates/<estimate_id>")
def delete_estimate_route(estimate_id: str):
    try:
        deleted = delete_estimate(estimate_id)
    except StoreError as e:
        return jsonify(e.to_dict()), 500
    if not deleted:
        return jsonify({"error": "Estimate not found"}), 404
    return jsonify({"ok": True})
