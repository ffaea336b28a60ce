from datetime import datetime

import pytest

from conftest import make_invoice
from stockly.models import (
    CustomEstimateField,
    CustomInvoiceField,
    Estimate,
    EstimateItem,
    EstimateStatus,
    Invoice,
    InvoiceItem,
)
from stockly.services import document_service
from stockly.services.document_service import DocumentNumberError, next_document_number
from stockly.services.settings_store import MemorySettingsStore


class TestInvoiceModel:
    def test_totals_and_codes(self):
        invoice = make_invoice(lines=((2, 50.0),), discount=10, discount_type="percentage", tax_rate=8)

        assert invoice.subtotal == 100.0
        assert invoice.tax == 7.2
        assert invoice.total_amount == 97.2
        assert invoice.barcode_data == "INV-1001"
        assert invoice.qr_code_data == (
            "INVOICE:INV-1001\nCLIENT:John Smith\nDATE:3/14/2025\nAMOUNT:97.20\nSTATUS:pending"
        )

    def test_due_date_defaults_to_creation(self):
        invoice = make_invoice()
        assert invoice.due_date == invoice.date_created == datetime(2025, 3, 14, 9, 30)
        assert invoice.document_type == "invoice"


class TestDeleteDocument:
    def test_delete_invoice_removes_children(self, db_session, store):
        invoice = make_invoice(lines=((1, 10.0), (1, 20.0)))
        CustomInvoiceField(name="PO", value="1234", invoice=invoice)
        other = make_invoice(number="INV-1002")
        db_session.add_all([invoice, other])
        db_session.commit()

        assert document_service.delete_invoice(invoice.id, store=store) is True

        assert [i.number for i in db_session.query(Invoice).all()] == ["INV-1002"]
        assert db_session.query(InvoiceItem).count() == 1
        assert db_session.query(CustomInvoiceField).count() == 0
        assert document_service.delete_invoice(invoice.id, store=store) is False

    def test_delete_estimate_removes_children(self, db_session, store):
        estimate = Estimate(number="EST-1001", client_name="Emma Johnson", status=EstimateStatus.SENT)
        EstimateItem(name="Ring", quantity=1, unit_price=500.0, estimate=estimate)
        CustomEstimateField(name="Valid For", value="30 days", estimate=estimate)
        estimate.recalculate_totals()
        db_session.add(estimate)
        db_session.commit()

        assert estimate.total_amount == 500.0
        assert document_service.delete_estimate(estimate.id, store=store) is True
        assert db_session.query(EstimateItem).count() == 0
        assert db_session.query(CustomEstimateField).count() == 0

    def test_purge_orphans(self, db_session, store):
        db_session.add_all([
            InvoiceItem(name="Stray", quantity=1, unit_price=1.0),
            EstimateItem(name="Stray", quantity=1, unit_price=1.0),
            make_invoice(),
        ])
        db_session.commit()

        assert document_service.purge_orphan_children(store) == 2
        store.save()
        assert db_session.query(InvoiceItem).count() == 1
        assert db_session.query(EstimateItem).count() == 0


class TestNumbering:
    def test_sequence_from_settings(self):
        settings = MemorySettingsStore({"invoicePrefix": "INV-", "nextInvoiceNumber": 1041})
        assert next_document_number("invoice", settings) == "INV-1041"
        assert next_document_number("invoice", settings) == "INV-1042"
        assert settings.get("nextInvoiceNumber") == 1043

    def test_defaults(self):
        settings = MemorySettingsStore()
        assert next_document_number("estimate", settings) == "1001"

    def test_errors(self):
        with pytest.raises(DocumentNumberError):
            next_document_number("receipt", MemorySettingsStore())
        with pytest.raises(DocumentNumberError):
            next_document_number("invoice", MemorySettingsStore({"nextInvoiceNumber": "abc"}))
