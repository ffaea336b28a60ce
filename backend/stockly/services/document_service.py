# Overview: Service-layer operations for invoices and estimates; deletion without orphans and numbering.

from __future__ import annotations

import logging

from ..models import (
    CustomEstimateField,
    CustomInvoiceField,
    Estimate,
    EstimateItem,
    Invoice,
    InvoiceItem,
)
from .model_store import ModelStore

logger = logging.getLogger(__name__)

DEFAULT_NEXT_NUMBER = 1001

# kind -> (settings prefix key, settings counter key)
_NUMBERING = {
    "invoice": ("invoicePrefix", "nextInvoiceNumber"),
    "estimate": ("estimatePrefix", "nextEstimateNumber"),
}

# child model -> parent FK column
_CHILD_MODELS = (
    (InvoiceItem, "invoice_id"),
    (CustomInvoiceField, "invoice_id"),
    (EstimateItem, "estimate_id"),
    (CustomEstimateField, "estimate_id"),
)


class DocumentNumberError(Exception):
    """Raised when document numbering settings are unusable."""
    pass


def delete_document(doc, *, store: ModelStore | None = None) -> None:
    """
    Delete an invoice or estimate and its children.

    Child rows carry a nullable back-reference. They are detached first, the
    parent is removed, then the detached children are purged, so a failure
    between steps never leaves a child pointing at a missing parent.
    """
    store = store or ModelStore()
    children = list(doc.items) + list(doc.custom_fields)
    for child in children:
        if isinstance(doc, Invoice):
            child.invoice = None
        else:
            child.estimate = None
    store.delete(doc)
    for child in children:
        store.delete(child)


def delete_invoice(invoice_id: str, *, store: ModelStore | None = None) -> bool:
    store = store or ModelStore()
    invoice = store.get(Invoice, invoice_id)
    if invoice is None:
        return False
    delete_document(invoice, store=store)
    store.save()
    logger.info("Deleted invoice %s", invoice_id)
    return True


def delete_estimate(estimate_id: str, *, store: ModelStore | None = None) -> bool:
    store = store or ModelStore()
    estimate = store.get(Estimate, estimate_id)
    if estimate is None:
        return False
    delete_document(estimate, store=store)
    store.save()
    logger.info("Deleted estimate %s", estimate_id)
    return True


def purge_orphan_children(store: ModelStore | None = None) -> int:
    """Delete line items and custom fields whose parent reference is NULL."""
    store = store or ModelStore()
    purged = 0
    for model, fk in _CHILD_MODELS:
        for row in store.session.query(model).filter(getattr(model, fk).is_(None)).all():
            store.delete(row)
            purged += 1
    if purged:
        logger.info("Purged %d orphaned document rows", purged)
    return purged


def next_document_number(kind: str, settings) -> str:
    """
    Allocate the next invoice/estimate number from settings and advance
    the counter, e.g. prefix "INV-" and counter 1001 -> "INV-1001".
    """
    if kind not in _NUMBERING:
        raise DocumentNumberError(f"unknown document kind {kind!r}")
    prefix_key, counter_key = _NUMBERING[kind]

    prefix = settings.get(prefix_key) or ""
    current = settings.get(counter_key)
    if current is None:
        current = DEFAULT_NEXT_NUMBER
    try:
        current = int(current)
    except (TypeError, ValueError):
        raise DocumentNumberError(f"{counter_key} is not a number") from None

    settings.set(counter_key, current + 1)
    return f"{prefix}{current}"
