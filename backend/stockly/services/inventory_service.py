# Overview: Service-layer operations for items and categories; SKU uniqueness and stock queries.

from __future__ import annotations

import logging

from ..models import Category, Item
from ..validation import ModelValidationPolicy, SkuConflict, enforce_rules_item, validate_payload
from .model_store import ModelStore

logger = logging.getLogger(__name__)

ITEM_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "category", "sku", "price", "buy_price",
        "stock_quantity", "min_stock_level", "measurement_unit", "tax_rate",
        "barcode", "image_url",
    },
    required_on_create={"name", "sku", "price"},
)


def _ensure_sku_available(store: ModelStore, sku: str, *, exclude_id: str | None = None) -> None:
    existing = store.find_by(Item, sku=sku)
    if existing is not None and existing.id != exclude_id:
        raise SkuConflict(sku, existing.id)


def create_item(payload: dict, *, store: ModelStore | None = None) -> Item:
    """
    Validate and insert a new item.

    Raises:
        ValidationError: payload fails column/policy checks
        SkuConflict: another item already has this SKU
    """
    store = store or ModelStore()
    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=False)
    enforce_rules_item(patch)
    _ensure_sku_available(store, patch["sku"])

    item = Item(**patch)
    store.insert(item)
    store.save()
    logger.info("Created item %s (sku=%s)", item.id, item.sku)
    return item


def update_item(item_id: str, payload: dict, *, store: ModelStore | None = None) -> Item | None:
    store = store or ModelStore()
    item = store.get(Item, item_id)
    if item is None:
        return None

    patch = validate_payload(model=Item, payload=payload, policy=ITEM_POLICY, partial=True)
    enforce_rules_item(patch)
    if "sku" in patch and patch["sku"] != item.sku:
        _ensure_sku_available(store, patch["sku"], exclude_id=item.id)

    for key, value in patch.items():
        setattr(item, key, value)
    item.touch()
    store.save()
    return item


def delete_item(item_id: str, *, store: ModelStore | None = None) -> bool:
    store = store or ModelStore()
    item = store.get(Item, item_id)
    if item is None:
        return False
    store.delete(item)
    store.save()
    return True


def get_item_by_sku(sku: str, *, store: ModelStore | None = None) -> Item | None:
    store = store or ModelStore()
    return store.find_by(Item, sku=sku.strip())


def get_item_by_barcode(barcode: str, *, store: ModelStore | None = None) -> Item | None:
    store = store or ModelStore()
    return store.find_by(Item, barcode=barcode.strip())


def low_stock_items(*, store: ModelStore | None = None) -> list[Item]:
    store = store or ModelStore()
    return (
        store.session.query(Item)
        .filter(Item.stock_quantity <= Item.min_stock_level)
        .order_by(Item.name.asc())
        .all()
    )


def total_stock_value(*, store: ModelStore | None = None) -> float:
    store = store or ModelStore()
    return round(sum(item.stock_value for item in store.fetch_all(Item)), 2)


def category_names(*, store: ModelStore | None = None) -> list[str]:
    store = store or ModelStore()
    return sorted(c.name for c in store.fetch_all(Category))


def delete_category(category_id: str, *, store: ModelStore | None = None) -> bool:
    """Delete a category and (by cascade) its custom fields. Items keep their category label."""
    store = store or ModelStore()
    category = store.get(Category, category_id)
    if category is None:
        return False
    store.delete(category)
    store.save()
    logger.info("Deleted category %s", category_id)
    return True
