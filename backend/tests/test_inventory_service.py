import pytest

from conftest import make_category, make_item
from stockly.models import CustomField, Item, MeasurementUnit
from stockly.services import inventory_service
from stockly.validation import SkuConflict, ValidationError


class TestCreateItem:
    def test_creates_with_defaults(self, db_session, store):
        item = inventory_service.create_item(
            {"name": "Pearl Studs", "sku": " MC-E001 ", "price": "199.99", "measurement_unit": "PAIR"},
            store=store,
        )

        assert item.sku == "MC-E001"
        assert item.price == 199.99
        assert item.measurement_unit is MeasurementUnit.PAIR
        assert item.stock_quantity == 0
        assert db_session.get(Item, item.id) is not None

    def test_duplicate_sku(self, db_session, store):
        inventory_service.create_item({"name": "A", "sku": "DUP", "price": 1}, store=store)
        with pytest.raises(SkuConflict) as excinfo:
            inventory_service.create_item({"name": "B", "sku": "DUP", "price": 2}, store=store)
        assert excinfo.value.existing_id is not None

    @pytest.mark.parametrize("payload", [
        {"name": "A", "sku": "X"},
        {"name": "A", "sku": "X", "price": -1},
        {"name": "A", "sku": "X", "price": 1, "tax_rate": 101},
        {"name": "A", "sku": "X", "price": 1, "stock_quantity": "2.5"},
        {"name": "A", "sku": "X", "price": 1, "measurement_unit": "FURLONG"},
        {"name": "A", "sku": "X", "price": 1, "id": "forced"},
        {"name": "", "sku": "X", "price": 1},
    ])
    def test_rejects_invalid_payload(self, db_session, store, payload):
        with pytest.raises(ValidationError):
            inventory_service.create_item(payload, store=store)


class TestUpdateItem:
    def test_updates_and_checks_sku(self, db_session, store):
        first = inventory_service.create_item({"name": "A", "sku": "A-1", "price": 1}, store=store)
        second = inventory_service.create_item({"name": "B", "sku": "B-1", "price": 1}, store=store)

        updated = inventory_service.update_item(first.id, {"stock_quantity": 4, "price": 2.5}, store=store)
        assert updated.stock_quantity == 4
        assert updated.price == 2.5

        with pytest.raises(SkuConflict):
            inventory_service.update_item(second.id, {"sku": "A-1"}, store=store)

    def test_missing_item(self, db_session, store):
        assert inventory_service.update_item("nope", {"price": 1}, store=store) is None
        assert inventory_service.delete_item("nope", store=store) is False


class TestQueries:
    def test_lookup_and_stock(self, db_session, store):
        db_session.add_all([
            make_item(sku="LOW", name="Low", stock_quantity=1, min_stock_level=2, price=10, barcode="111"),
            make_item(sku="OK", name="Fine", stock_quantity=10, min_stock_level=2, price=5),
        ])
        db_session.commit()

        assert inventory_service.get_item_by_sku(" LOW ", store=store).name == "Low"
        assert inventory_service.get_item_by_barcode("111", store=store).sku == "LOW"
        assert [i.sku for i in inventory_service.low_stock_items(store=store)] == ["LOW"]
        assert inventory_service.total_stock_value(store=store) == 60.0

    def test_item_profit(self):
        item = make_item(price=15.0, buy_price=10.0)
        assert item.profit == 5.0
        assert item.profit_percentage == 50.0
        assert make_item(buy_price=0).profit_percentage == 0.0


class TestCategories:
    def test_delete_category_cascades_fields(self, db_session, store):
        category = make_category()
        db_session.add(category)
        db_session.add(make_item(category="Rings"))
        db_session.commit()

        assert inventory_service.category_names(store=store) == ["Rings"]
        assert inventory_service.delete_category(category.id, store=store) is True

        assert db_session.query(CustomField).count() == 0
        # Items keep their category label
        assert db_session.query(Item).one().category == "Rings"
