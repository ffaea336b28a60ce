# Overview: Flask API routes for items and categories; parses input and returns JSON responses.

"""
Inventory Routes

Item CRUD with SKU uniqueness, SKU/barcode lookup, low-stock listing and
stock valuation. Deleting a category removes its custom fields; items keep
their category label.
"""

from flask import Blueprint, jsonify, request

from ..models import Item
from ..services.backup_errors import StoreError
from ..services.inventory_service import (
    category_names,
    create_item,
    delete_category,
    delete_item,
    get_item_by_barcode,
    get_item_by_sku,
    low_stock_items,
    total_stock_value,
    update_item,
)
from ..services.model_store import ModelStore
from ..validation import SkuConflict, ValidationError


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/items")


@inventory_bp.get("")
def list_items_route():
    """
    List items ordered by name.

    Query params:
    - low_stock: "1" to return only items at or below their minimum level
    """
    if request.args.get("low_stock") in ("1", "true"):
        items = low_stock_items()
    else:
        items = sorted(ModelStore().fetch_all(Item), key=lambda i: i.name.lower())
    return jsonify({"items": [i.to_dict() for i in items], "count": len(items)})


@inventory_bp.get("/summary")
def inventory_summary_route():
    return jsonify({
        "total_stock_value": total_stock_value(),
        "low_stock_count": len(low_stock_items()),
        "categories": category_names(),
    })


@inventory_bp.get("/lookup")
def lookup_item_route():
    sku = request.args.get("sku")
    barcode = request.args.get("barcode")
    if sku:
        item = get_item_by_sku(sku)
    elif barcode:
        item = get_item_by_barcode(barcode)
    else:
        return jsonify({"error": "sku or barcode is required"}), 400

    if item is None:
        return jsonify({"error": "Item not found"}), 404
    return jsonify(item.to_dict())


@inventory_bp.post("")
def create_item_route():
    payload = request.get_json(silent=True) or {}
    try:
        item = create_item(payload)
    except SkuConflict as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        return jsonify(e.to_dict()), 500
    return jsonify(item.to_dict()), 201


@inventory_bp.put("/<item_id>")
def update_item_route(item_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        item = update_item(item_id, payload)
    except SkuConflict as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StoreError as e:
        return jsonify(e.to_dict()), 500

    if item is None:
        return jsonify({"error": "Item not found"}), 404
    return jsonify(item.to_dict())


@inventory_bp.delete("/<item_id>")
def delete_item_route(item_id: str):
    if not delete_item(item_id):
        return jsonify({"error": "Item not found"}), 404
    return jsonify({"ok": True})


@inventory_bp.delete("/categories/<category_id>")
def delete_category_route(category_id: str):
    if not delete_category(category_id):
        return jsonify({"error": "Category not found"}), 404
    return jsonify({"ok": True})
