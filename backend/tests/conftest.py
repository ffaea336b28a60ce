"""
Pytest fixtures for Stockly backend tests.

Provides an application with an in-memory database and a per-test backups
directory, the persistence seams used by the backup services, and a few
row factories.
"""

from datetime import datetime

import pytest

from stockly import create_app
from stockly.config import TestingConfig
from stockly.extensions import db
from stockly.models import (
    Category,
    Client,
    CustomField,
    FieldType,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Item,
)
from stockly.services.backup_container import ProducerInfo
from stockly.services.backup_service import BackupService
from stockly.services.model_store import ModelStore
from stockly.services.settings_store import DatabaseSettingsStore


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create application for testing."""
    app = create_app(TestingConfig)
    app.config.update({
        'BACKUP_DIR': str(tmp_path / "Backups"),
        'BACKUP_REMINDER_DAYS': 7,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    yield db.session
    db.session.rollback()


@pytest.fixture(scope='function')
def store(db_session):
    return ModelStore()


@pytest.fixture(scope='function')
def settings(db_session):
    return DatabaseSettingsStore()


@pytest.fixture(scope='function')
def backup_service(store, settings, app):
    return BackupService(
        store,
        settings,
        backup_dir=app.config['BACKUP_DIR'],
        producer=ProducerInfo(app_version="2.1", build_number="42", platform="test"),
    )


def make_item(sku="SKU-1", name="Widget", **kwargs):
    kwargs.setdefault("price", 10.0)
    kwargs.setdefault("buy_price", 6.0)
    kwargs.setdefault("stock_quantity", 5)
    kwargs.setdefault("category", "Rings")
    return Item(sku=sku, name=name, **kwargs)


def make_category(name="Rings", with_fields=True):
    category = Category(name=name, description=f"{name} collection")
    if with_fields:
        CustomField(name="Ring Size", field_type=FieldType.NUMBER, required=True, category=category)
        CustomField(
            name="Metal",
            field_type=FieldType.DROPDOWN,
            options=["14K Gold", "Platinum"],
            category=category,
        )
    return category


def make_client(name="John Smith", **kwargs):
    kwargs.setdefault("email", "john.smith@example.com")
    kwargs.setdefault("address", "123 Main St")
    kwargs.setdefault("city", "New York")
    kwargs.setdefault("postal_code", "10001")
    return Client(name=name, **kwargs)


def make_invoice(number="INV-1001", lines=((1, 100.0),), **kwargs):
    kwargs.setdefault("client_name", "John Smith")
    kwargs.setdefault("status", InvoiceStatus.PENDING)
    kwargs.setdefault("date_created", datetime(2025, 3, 14, 9, 30))
    invoice = Invoice(number=number, **kwargs)
    for index, (quantity, unit_price) in enumerate(lines):
        InvoiceItem(name=f"Line {index + 1}", quantity=quantity, unit_price=unit_price, invoice=invoice)
    invoice.recalculate_totals()
    invoice.refresh_codes()
    return invoice
