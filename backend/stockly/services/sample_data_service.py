# Overview: Demo dataset (Montecristo Jewellers) for a fresh install.

from __future__ import annotations

import logging
from datetime import timedelta

from ..models import (
    Category,
    Client,
    CustomEstimateField,
    CustomField,
    CustomInvoiceField,
    Estimate,
    EstimateItem,
    EstimateStatus,
    FieldType,
    Invoice,
    InvoiceItem,
    InvoiceStatus,
    Item,
    MeasurementUnit,
    Supplier,
)
from stockly.time_utils import utcnow
from .model_store import ModelStore

logger = logging.getLogger(__name__)

HEADER_NOTE = "Montecristo Jewellers - Fine Jewelry Since 1985"
FOOTER_NOTE = "All items come with a 30-day warranty"
BANKING_INFO = "Account: Montecristo Jewellers, Bank: First National Bank, Account #: 5678901234"

CATEGORIES = ["Rings", "Pendants", "Necklaces", "Earrings", "Bracelets", "Watches"]

# category -> [(name, field_type, required, options)]
CATEGORY_FIELDS = {
    "Rings": [
        ("Ring Size", FieldType.NUMBER, True, None),
        ("Metal", FieldType.DROPDOWN, True, ["14K Gold", "18K Gold", "Platinum", "Sterling Silver"]),
    ],
    "Watches": [
        ("Movement", FieldType.DROPDOWN, False, ["Automatic", "Quartz", "Manual"]),
        ("Serial Number", FieldType.TEXT, False, None),
    ],
}

PCS, PAIR = MeasurementUnit.PIECE, MeasurementUnit.PAIR

# (name, description, category, sku, price, buy_price, stock, min_stock, unit)
ITEMS = [
    ("Diamond Solitaire Ring", "14K Gold Diamond Solitaire Ring", "Rings", "MC-R001", 1299.99, 750.00, 5, 2, PCS),
    ("Sapphire Pendant", "18K White Gold Sapphire Pendant", "Pendants", "MC-P001", 899.99, 450.00, 8, 3, PCS),
    ("Pearl Stud Earrings", "Freshwater Pearl Stud Earrings", "Earrings", "MC-E001", 199.99, 80.00, 15, 5, PAIR),
    ("Gold Chain Necklace", "18K Gold Chain Necklace, 18 inch", "Necklaces", "MC-N001", 599.99, 300.00, 10, 4, PCS),
    ("Silver Bangle", "Sterling Silver Bangle with Diamonds", "Bracelets", "MC-B001", 249.99, 120.00, 12, 4, PCS),
    ("Emerald Drop Earrings", "Emerald and Diamond Drop Earrings", "Earrings", "MC-E002", 1499.99, 800.00, 3, 1, PAIR),
    ("Rose Gold Wedding Band", "14K Rose Gold Wedding Band", "Rings", "MC-R002", 799.99, 400.00, 7, 3, PCS),
    ("Diamond Tennis Bracelet", "18K White Gold Diamond Tennis Bracelet", "Bracelets", "MC-B002", 2499.99, 1200.00, 2, 1, PCS),
    ("Ruby Pendant", "Ruby and Diamond Pendant in 14K Gold", "Pendants", "MC-P002", 1099.99, 550.00, 4, 2, PCS),
    ("Pearl Necklace", "Freshwater Pearl Necklace, 16 inch", "Necklaces", "MC-N002", 349.99, 170.00, 6, 2, PCS),
    ("Platinum Watch", "Luxury Platinum Watch with Diamonds", "Watches", "MC-W001", 3999.99, 2200.00, 3, 1, PCS),
    ("Gold Cufflinks", "18K Gold Cufflinks with Onyx", "Accessories", "MC-A001", 499.99, 250.00, 8, 2, PAIR),
]
SAMPLE_TAX_RATE = 7.5
FIRST_BARCODE = 4901234567890

# (name, email, phone, address, city, postal_code, notes)
CLIENTS = [
    ("John Smith", "john.smith@example.com", "555-1234", "123 Main St", "New York", "10001", "Long-time customer since 2018"),
    ("Emma Johnson", "emma.j@example.com", "555-2345", "456 Oak Ave", "Los Angeles", "90001", "Wedding jewelry client"),
    ("Michael Brown", "mbrown@example.com", "555-3456", "789 Pine Rd", "Chicago", "60007", "Anniversary gift purchaser"),
    ("Sophia Martinez", "smartinez@example.com", "555-4567", "101 Elm Blvd", "Miami", "33101", "Interested in diamond investments"),
    ("Robert Wilson", "rwilson@example.com", "555-5678", "202 Cedar St", "Boston", "02108", "Collector of vintage watches"),
    ("Jennifer Garcia", "jgarcia@example.com", "555-6789", "303 Maple Dr", "San Francisco", "94109", "Corporate gifting client"),
    ("David Lee", "dlee@example.com", "555-7890", "404 Birch Ln", "Seattle", "98101", "Regular customer for anniversary gifts"),
]

# (name, email, phone, address, city, country, postal_code, contact_person, notes)
SUPPLIERS = [
    ("Diamond Direct", "orders@diamonddirect.com", "800-123-4567", "1 Diamond Way", "Antwerp", "Belgium", "2000",
     "Johan Van Houten", "Premium diamond supplier with fast international shipping"),
    ("GoldCraft Inc.", "sales@goldcraft.com", "877-765-4321", "555 Gold Ave", "New York", "United States", "10016",
     "Maria Sanchez", "Gold and silver raw materials"),
    ("Gem World", "wholesale@gemworld.com", "888-555-1212", "78 Jewel Street", "Mumbai", "India", "400001",
     "Raj Patel", "Specialized in colored gemstones"),
    ("Luxury Watch Parts", "parts@luxurywatchparts.com", "415-999-8888", "200 Clockwork Blvd", "Geneva", "Switzerland", "1201",
     "Hans Mueller", "Watch movements and repair parts"),
    ("Pearl Paradise", "info@pearlparadise.com", "808-222-3333", "42 Ocean Drive", "Honolulu", "United States", "96815",
     "Leilani Wong", "Freshwater and saltwater pearls direct from farms"),
]

# (number, client, status, payment, created_days_ago, due_in_days, skus, discount, discount_type, template, notes)
INVOICES = [
    ("INV-2025-001", "John Smith", InvoiceStatus.PAID, "Credit Card", 15, 15, ["MC-R001", "MC-E001"],
     50.00, "Fixed", "classic", "Thank you for your business!"),
    ("INV-2025-002", "Emma Johnson", InvoiceStatus.PENDING, "Bank Transfer", 5, 25, ["MC-N001", "MC-B001"],
     0.00, "None", "modern", "Thank you for your business!"),
    ("INV-2025-003", "Michael Brown", InvoiceStatus.PENDING, "Cash", 3, 27, ["MC-P002"],
     100.00, "Fixed", "minimalist", "Thank you for your business!"),
    ("INV-2025-004", "Robert Wilson", InvoiceStatus.OVERDUE, "Credit Card", 45, -15, ["MC-W001", "MC-A001"],
     200.00, "Fixed", "classic", "Payment overdue. Please contact us to arrange payment."),
]

# (number, client, status, created_days_ago, expires_in_days, [(sku, qty)], discount, discount_type, template, notes)
ESTIMATES = [
    ("EST-2025-001", "Sophia Martinez", EstimateStatus.SENT, 10, 20, [("MC-B002", 1), ("MC-E002", 1)],
     300.00, "Fixed", "classic", "This estimate is valid for 30 days."),
    ("EST-2025-002", "John Smith", EstimateStatus.ACCEPTED, 20, 10, [("MC-R002", 2), ("MC-N002", 1)],
     10.00, "Percentage", "modern", "This estimate is valid for 30 days."),
    ("EST-2025-003", "Jennifer Garcia", EstimateStatus.DRAFT, 2, 28, [("MC-W001", 1), ("MC-A001", 1), ("MC-R001", 1)],
     15.00, "Percentage", "minimalist", "Corporate pricing estimate. This estimate is valid for 30 days."),
]

COMPANY_SETTINGS = {
    "companyName": "Montecristo Jewellers",
    "companyAddress": "88 Fifth Avenue, New York, NY 10011",
    "companyPhone": "212-555-0188",
    "companyEmail": "hello@montecristojewellers.com",
    "companyWebsite": "www.montecristojewellers.com",
    "taxRate": SAMPLE_TAX_RATE,
    "currencySymbol": "$",
    "invoicePrefix": "INV-",
    "estimatePrefix": "EST-",
    "nextInvoiceNumber": 1001,
    "nextEstimateNumber": 1001,
    "bankingDetails": BANKING_INFO,
}


class SampleDataError(Exception):
    """Raised when sample data cannot be loaded."""
    pass


def _snapshot(client: Client) -> dict:
    return {
        "client_name": client.name,
        "client_address": f"{client.address}, {client.city}, USA {client.postal_code}",
        "client_email": client.email,
        "client_phone": client.phone,
    }


def load_sample_data(*, store: ModelStore | None = None, settings=None, force: bool = False) -> dict:
    """
    Insert the demo dataset and commit.

    Refuses to run against a database that already has items unless
    force=True (existing rows are kept; SKUs must not collide).
    """
    store = store or ModelStore()
    if not force and store.session.query(Item).first() is not None:
        raise SampleDataError("database already contains items")

    now = utcnow()

    for name in CATEGORIES:
        category = Category(name=name)
        for field_name, field_type, required, options in CATEGORY_FIELDS.get(name, []):
            CustomField(name=field_name, field_type=field_type, required=required, options=options, category=category)
        store.insert(category)

    items = {}
    for offset, (name, description, category, sku, price, buy_price, stock, min_stock, unit) in enumerate(ITEMS):
        item = Item(
            name=name,
            description=description,
            category=category,
            sku=sku,
            price=price,
            buy_price=buy_price,
            stock_quantity=stock,
            min_stock_level=min_stock,
            measurement_unit=unit,
            tax_rate=SAMPLE_TAX_RATE,
            barcode=str(FIRST_BARCODE + offset),
        )
        items[sku] = item
        store.insert(item)

    clients = {}
    for name, email, phone, address, city, postal_code, notes in CLIENTS:
        client = Client(name=name, email=email, phone=phone, address=address, city=city,
                        postal_code=postal_code, notes=notes)
        clients[name] = client
        store.insert(client)

    for name, email, phone, address, city, country, postal_code, contact, notes in SUPPLIERS:
        store.insert(Supplier(name=name, email=email, phone=phone, address=address, city=city, country=country,
                              postal_code=postal_code, contact_person=contact, notes=notes))

    for number, client_name, status, payment, ago, due_in, skus, discount, discount_type, template, notes in INVOICES:
        invoice = Invoice(
            number=number,
            status=status,
            payment_method=payment,
            date_created=now - timedelta(days=ago),
            due_date=now + timedelta(days=due_in),
            discount=discount,
            discount_type=discount_type,
            tax_rate=SAMPLE_TAX_RATE,
            notes=notes,
            header_note=HEADER_NOTE,
            footer_note=FOOTER_NOTE,
            banking_info=BANKING_INFO,
            template_type=template,
            **_snapshot(clients[client_name]),
        )
        for sku in skus:
            item = items[sku]
            InvoiceItem(name=item.name, description=item.description, quantity=1, unit_price=item.price,
                        invoice=invoice)
        CustomInvoiceField(name="Sales Associate", value="Isabella Rossi", invoice=invoice)
        invoice.recalculate_totals()
        invoice.refresh_codes()
        store.insert(invoice)

    for number, client_name, status, ago, expires_in, lines, discount, discount_type, template, notes in ESTIMATES:
        estimate = Estimate(
            number=number,
            status=status,
            date_created=now - timedelta(days=ago),
            expiry_date=now + timedelta(days=expires_in),
            discount=discount,
            discount_type=discount_type,
            tax_rate=SAMPLE_TAX_RATE,
            notes=notes,
            header_note=HEADER_NOTE,
            footer_note=FOOTER_NOTE,
            template_type=template,
            **_snapshot(clients[client_name]),
        )
        for sku, qty in lines:
            item = items[sku]
            EstimateItem(name=item.name, description=item.description, quantity=qty, unit_price=item.price,
                         estimate=estimate)
        CustomEstimateField(name="Valid For", value="30 days", estimate=estimate)
        estimate.recalculate_totals()
        store.insert(estimate)

    if settings is not None:
        for key, value in COMPANY_SETTINGS.items():
            if settings.get(key) is None:
                settings.set(key, value)

    store.save()

    counts = {
        "categories": len(CATEGORIES),
        "items": len(ITEMS),
        "clients": len(CLIENTS),
        "suppliers": len(SUPPLIERS),
        "invoices": len(INVOICES),
        "estimates": len(ESTIMATES),
    }
    logger.info("Loaded sample data %s", counts)
    return counts
