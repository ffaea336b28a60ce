from __future__ import annotations

import enum

from sqlalchemy.ext.orderinglist import ordering_list

from ..extensions import db
from stockly.services.totals import DiscountType, document_totals, line_total
from stockly.time_utils import to_utc_z, utcnow
from .base import enum_column, new_uuid, uuid_column


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class EstimateStatus(str, enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CONVERTED = "converted"


DOCUMENT_TYPES = ("invoice", "consignment")


class _LineItemColumns:
    """
    One priced line on an invoice or estimate.

    total_amount is derived (see services.totals.line_total) and is
    recomputed by the parent's recalculate_totals(); it is never trusted
    from input.
    """

    id = uuid_column()
    position = db.Column(db.Integer, nullable=False, default=0)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    quantity = db.Column(db.Integer, nullable=False, default=1)
    unit_price = db.Column(db.Float, nullable=False, default=0.0)
    # Percentages, not amounts
    tax = db.Column(db.Float, nullable=False, default=0.0)
    discount = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    def __init__(self, **kwargs):
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("quantity", 1)
        kwargs.setdefault("unit_price", 0.0)
        kwargs.setdefault("tax", 0.0)
        kwargs.setdefault("discount", 0.0)
        super().__init__(**kwargs)
        self.recalculate()

    def recalculate(self) -> None:
        self.total_amount = float(line_total(self.quantity, self.unit_price, self.tax, self.discount))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "position": self.position,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "tax": self.tax,
            "discount": self.discount,
            "total_amount": self.total_amount,
        }


class _CustomFieldColumns:
    id = uuid_column()
    name = db.Column(db.String(255), nullable=False)
    value = db.Column(db.Text, nullable=False, default="")

    def __init__(self, **kwargs):
        kwargs.setdefault("id", new_uuid())
        super().__init__(**kwargs)

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "value": self.value}


class _DocumentColumns:
    """
    Columns and totals logic shared by invoices and estimates.

    CLIENT SNAPSHOT:
    client_name / client_address / client_email / client_phone are copied
    from the Client at creation time; there is deliberately no FK.

    TOTALS:
    subtotal, tax and total_amount are derived from the line items, the
    document discount and tax_rate (services.totals). Call
    recalculate_totals() after changing any of them.
    """

    id = uuid_column()
    number = db.Column(db.String(64), nullable=False)

    client_name = db.Column(db.String(255), nullable=False)
    client_address = db.Column(db.String(512), nullable=False, default="")
    client_email = db.Column(db.String(255), nullable=True)
    client_phone = db.Column(db.String(64), nullable=True)

    date_created = db.Column(db.DateTime, nullable=False, default=utcnow)

    subtotal = db.Column(db.Float, nullable=False, default=0.0)
    discount = db.Column(db.Float, nullable=False, default=0.0)
    discount_type = enum_column(DiscountType, nullable=False, default=DiscountType.PERCENTAGE)
    tax = db.Column(db.Float, nullable=False, default=0.0)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)

    notes = db.Column(db.Text, nullable=False, default="")
    header_note = db.Column(db.Text, nullable=True)
    footer_note = db.Column(db.Text, nullable=True)
    template_type = db.Column(db.String(32), nullable=False, default="standard")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def _apply_defaults(self, kwargs: dict) -> None:
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("client_address", "")
        kwargs.setdefault("date_created", now)
        kwargs.setdefault("discount", 0.0)
        kwargs.setdefault("discount_type", DiscountType.PERCENTAGE)
        kwargs.setdefault("tax_rate", 0.0)
        kwargs.setdefault("notes", "")
        kwargs.setdefault("template_type", "standard")
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        kwargs["discount_type"] = DiscountType.parse(kwargs["discount_type"])

    def recalculate_totals(self) -> None:
        for line in self.items:
            line.recalculate()
        totals = document_totals(
            (line.total_amount for line in self.items),
            discount=self.discount,
            discount_type=self.discount_type,
            tax_rate=self.tax_rate,
        )
        self.subtotal = float(totals.subtotal)
        self.tax = float(totals.tax)
        self.total_amount = float(totals.total)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def _document_dict(self) -> dict:
        return {
            "id": self.id,
            "number": self.number,
            "client_name": self.client_name,
            "client_address": self.client_address,
            "client_email": self.client_email,
            "client_phone": self.client_phone,
            "status": self.status.value,
            "date_created": to_utc_z(self.date_created),
            "subtotal": self.subtotal,
            "discount": self.discount,
            "discount_type": self.discount_type.value,
            "tax": self.tax,
            "tax_rate": self.tax_rate,
            "total_amount": self.total_amount,
            "notes": self.notes,
            "header_note": self.header_note,
            "footer_note": self.footer_note,
            "template_type": self.template_type,
            "items": [line.to_dict() for line in self.items],
            "custom_fields": [f.to_dict() for f in self.custom_fields],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Invoice(_DocumentColumns, db.Model):
    """
    Invoice (or consignment note, see document_type).

    LIFECYCLE:
    draft -> pending -> paid, with overdue and cancelled as side exits.

    CHILD ROWS:
    items and custom_fields reference the invoice through a nullable FK.
    Deleting an invoice through the ORM nullifies those references; use
    document_service.delete_invoice(), which also purges the detached rows
    so no orphans are left behind.
    """
    __tablename__ = "invoices"
    __table_args__ = (
        db.Index("ix_invoices_number", "number"),
        db.Index("ix_invoices_status_due", "status", "due_date"),
    )

    status = enum_column(InvoiceStatus, nullable=False, default=InvoiceStatus.DRAFT)
    due_date = db.Column(db.DateTime, nullable=False, default=utcnow)
    payment_method = db.Column(db.String(64), nullable=True)
    document_type = db.Column(db.String(16), nullable=False, default="invoice")
    banking_info = db.Column(db.Text, nullable=True)
    signature = db.Column(db.LargeBinary, nullable=True)
    barcode_data = db.Column(db.String(128), nullable=True)
    qr_code_data = db.Column(db.Text, nullable=True)

    items = db.relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.position",
        collection_class=ordering_list("position"),
    )
    custom_fields = db.relationship("CustomInvoiceField", back_populates="invoice")

    def __init__(self, **kwargs):
        self._apply_defaults(kwargs)
        kwargs.setdefault("status", InvoiceStatus.DRAFT)
        kwargs.setdefault("due_date", kwargs["date_created"])
        kwargs.setdefault("document_type", "invoice")
        super().__init__(**kwargs)

    def qr_payload(self) -> str:
        d = self.date_created
        return "\n".join([
            f"INVOICE:{self.number}",
            f"CLIENT:{self.client_name}",
            f"DATE:{d.month}/{d.day}/{d.year}",
            f"AMOUNT:{self.total_amount:.2f}",
            f"STATUS:{self.status.value}",
        ])

    def refresh_codes(self) -> None:
        """Regenerate QR payload; barcode defaults to the invoice number."""
        self.qr_code_data = self.qr_payload()
        if not self.barcode_data:
            self.barcode_data = self.number

    def __repr__(self) -> str:
        return f"<Invoice id={self.id} number={self.number!r} status={self.status}>"

    def to_dict(self) -> dict:
        data = self._document_dict()
        data.update({
            "due_date": to_utc_z(self.due_date),
            "payment_method": self.payment_method,
            "document_type": self.document_type,
            "banking_info": self.banking_info,
            "has_signature": self.signature is not None,
            "barcode_data": self.barcode_data,
            "qr_code_data": self.qr_code_data,
        })
        return data


class InvoiceItem(_LineItemColumns, db.Model):
    __tablename__ = "invoice_items"

    invoice_id = db.Column(db.String(36), db.ForeignKey("invoices.id"), nullable=True, index=True)
    invoice = db.relationship("Invoice", back_populates="items")


class CustomInvoiceField(_CustomFieldColumns, db.Model):
    __tablename__ = "invoice_custom_fields"

    invoice_id = db.Column(db.String(36), db.ForeignKey("invoices.id"), nullable=True, index=True)
    invoice = db.relationship("Invoice", back_populates="custom_fields")


class Estimate(_DocumentColumns, db.Model):
    """
    Quote sent to a client before invoicing.

    Same child-row rules as Invoice; see document_service.delete_estimate().
    """
    __tablename__ = "estimates"
    __table_args__ = (
        db.Index("ix_estimates_number", "number"),
        db.Index("ix_estimates_status_expiry", "status", "expiry_date"),
    )

    status = enum_column(EstimateStatus, nullable=False, default=EstimateStatus.DRAFT)
    expiry_date = db.Column(db.DateTime, nullable=False, default=utcnow)

    items = db.relationship(
        "EstimateItem",
        back_populates="estimate",
        order_by="EstimateItem.position",
        collection_class=ordering_list("position"),
    )
    custom_fields = db.relationship("CustomEstimateField", back_populates="estimate")

    def __init__(self, **kwargs):
        self._apply_defaults(kwargs)
        kwargs.setdefault("status", EstimateStatus.DRAFT)
        kwargs.setdefault("expiry_date", kwargs["date_created"])
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Estimate id={self.id} number={self.number!r} status={self.status}>"

    def to_dict(self) -> dict:
        data = self._document_dict()
        data["expiry_date"] = to_utc_z(self.expiry_date)
        return data


class EstimateItem(_LineItemColumns, db.Model):
    __tablename__ = "estimate_items"

    estimate_id = db.Column(db.String(36), db.ForeignKey("estimates.id"), nullable=True, index=True)
    estimate = db.relationship("Estimate", back_populates="items")


class CustomEstimateField(_CustomFieldColumns, db.Model):
    __tablename__ = "estimate_custom_fields"

    estimate_id = db.Column(db.String(36), db.ForeignKey("estimates.id"), nullable=True, index=True)
    estimate = db.relationship("Estimate", back_populates="custom_fields")
