# Overview: Pytest coverage for the item, category and document HTTP endpoints.

from conftest import make_category, make_invoice, make_item
from stockly.models import Category, CustomField, Invoice, InvoiceItem, Item


class TestItemRoutes:
    def test_create_and_list(self, client, db_session):
        response = client.post("/api/items", json={"name": "Pearl Studs", "sku": "MC-E001", "price": 199.99})
        assert response.status_code == 201
        assert response.get_json()["sku"] == "MC-E001"

        data = client.get("/api/items").get_json()
        assert data["count"] == 1
        assert db_session.query(Item).count() == 1

    def test_duplicate_sku_is_conflict(self, client):
        client.post("/api/items", json={"name": "A", "sku": "DUP", "price": 1})
        response = client.post("/api/items", json={"name": "B", "sku": "DUP", "price": 2})
        assert response.status_code == 409
        assert "DUP" in response.get_json()["error"]

    def test_invalid_payload(self, client):
        response = client.post("/api/items", json={"name": "A", "sku": "X", "price": -1})
        assert response.status_code == 400

    def test_update_and_delete(self, client, db_session):
        item = make_item(sku="MC-R001")
        db_session.add(item)
        db_session.commit()
        item_id = item.id

        response = client.put(f"/api/items/{item_id}", json={"stock_quantity": 12})
        assert response.status_code == 200
        assert response.get_json()["stock_quantity"] == 12

        assert client.delete(f"/api/items/{item_id}").status_code == 200
        assert client.delete(f"/api/items/{item_id}").status_code == 404
        assert client.put(f"/api/items/{item_id}", json={"price": 1}).status_code == 404

    def test_lookup_by_sku_and_barcode(self, client, db_session):
        db_session.add(make_item(sku="MC-W001", barcode="4901234567890"))
        db_session.commit()

        assert client.get("/api/items/lookup?sku=MC-W001").get_json()["barcode"] == "4901234567890"
        assert client.get("/api/items/lookup?barcode=4901234567890").get_json()["sku"] == "MC-W001"
        assert client.get("/api/items/lookup?sku=NOPE").status_code == 404
        assert client.get("/api/items/lookup").status_code == 400

    def test_low_stock_and_summary(self, client, db_session):
        db_session.add_all([
            make_item(sku="LOW", stock_quantity=1, min_stock_level=2),
            make_item(sku="OK", stock_quantity=10, min_stock_level=2),
            make_category("Rings", with_fields=False),
        ])
        db_session.commit()

        low = client.get("/api/items?low_stock=1").get_json()
        assert [i["sku"] for i in low["items"]] == ["LOW"]

        summary = client.get("/api/items/summary").get_json()
        assert summary["low_stock_count"] == 1
        assert summary["categories"] == ["Rings"]
        # price 10.0 x (1 + 10)
        assert summary["total_stock_value"] == 110.0


class TestCategoryRoutes:
    def test_delete_category_cascades_fields(self, client, db_session):
        category = make_category()
        db_session.add(category)
        db_session.commit()
        category_id = category.id

        assert client.delete(f"/api/items/categories/{category_id}").status_code == 200
        assert db_session.query(Category).count() == 0
        assert db_session.query(CustomField).count() == 0
        assert client.delete(f"/api/items/categories/{category_id}").status_code == 404


class TestDocumentRoutes:
    def test_allocate_numbers(self, client, settings, db_session):
        settings.set("invoicePrefix", "INV-")
        db_session.commit()

        first = client.post("/api/documents/numbers/invoice")
        second = client.post("/api/documents/numbers/invoice")
        assert first.status_code == 201
        assert first.get_json()["number"] == "INV-1001"
        assert second.get_json()["number"] == "INV-1002"

    def test_unknown_document_kind(self, client):
        assert client.post("/api/documents/numbers/receipt").status_code == 400

    def test_delete_invoice_leaves_no_lines(self, client, db_session):
        invoice = make_invoice(lines=((1, 10.0), (2, 5.0)))
        db_session.add(invoice)
        db_session.commit()
        invoice_id = invoice.id

        assert client.delete(f"/api/documents/invoices/{invoice_id}").status_code == 200
        assert db_session.query(Invoice).count() == 0
        assert db_session.query(InvoiceItem).count() == 0
        assert client.delete(f"/api/documents/estimates/{invoice_id}").status_code == 404
