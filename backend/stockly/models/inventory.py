from __future__ import annotations

import enum

from ..extensions import db
from stockly.time_utils import to_utc_z, utcnow
from .base import enum_column, new_uuid, uuid_column


class MeasurementUnit(str, enum.Enum):
    PIECE = "PCS"
    KILOGRAM = "KG"
    LITER = "LTR"
    CARAT = "CT"
    METER = "M"
    GRAM = "G"
    UNIT = "UNIT"
    BOX = "BOX"
    PAIR = "PAIR"


class FieldType(str, enum.Enum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"
    DROPDOWN = "dropdown"


class Item(db.Model):
    """
    Inventory item (product).

    SKU DESIGN DECISION:
    Item.sku is the business key and is unique across all items. The
    uniqueness check is done explicitly by inventory_service.create_item and
    by the restore orchestrator before insert, so callers get a typed
    SkuConflict instead of an IntegrityError. The unique constraint is the
    last line, not the first.

    category is the category NAME, not a foreign key. Items keep their
    category label even when the Category row is renamed or deleted.
    """
    __tablename__ = "items"
    __table_args__ = (
        db.UniqueConstraint("sku", name="uq_items_sku"),
        db.Index("ix_items_category", "category"),
        db.Index("ix_items_barcode", "barcode"),
    )

    id = uuid_column()
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")
    category = db.Column(db.String(255), nullable=False, default="")
    sku = db.Column(db.String(64), nullable=False)

    price = db.Column(db.Float, nullable=False, default=0.0)
    buy_price = db.Column(db.Float, nullable=False, default=0.0)
    stock_quantity = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=0)
    measurement_unit = enum_column(MeasurementUnit, nullable=False, default=MeasurementUnit.PIECE)
    tax_rate = db.Column(db.Float, nullable=False, default=0.0)

    barcode = db.Column(db.String(128), nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)
    image_data = db.Column(db.LargeBinary, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    inventory_added_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("description", "")
        kwargs.setdefault("category", "")
        kwargs.setdefault("price", 0.0)
        kwargs.setdefault("buy_price", 0.0)
        kwargs.setdefault("stock_quantity", 0)
        kwargs.setdefault("min_stock_level", 0)
        kwargs.setdefault("measurement_unit", MeasurementUnit.PIECE)
        kwargs.setdefault("tax_rate", 0.0)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        kwargs.setdefault("inventory_added_at", now)
        super().__init__(**kwargs)

    @property
    def is_low_stock(self) -> bool:
        return self.stock_quantity <= self.min_stock_level

    @property
    def stock_value(self) -> float:
        return self.stock_quantity * self.price

    @property
    def profit(self) -> float:
        return self.price - self.buy_price

    @property
    def profit_percentage(self) -> float:
        if self.buy_price <= 0:
            return 0.0
        return (self.profit / self.buy_price) * 100

    def touch(self) -> None:
        self.updated_at = utcnow()

    def __repr__(self) -> str:
        return f"<Item id={self.id} sku={self.sku!r} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "sku": self.sku,
            "price": self.price,
            "buy_price": self.buy_price,
            "stock_quantity": self.stock_quantity,
            "min_stock_level": self.min_stock_level,
            "measurement_unit": self.measurement_unit.value,
            "tax_rate": self.tax_rate,
            "barcode": self.barcode,
            "image_url": self.image_url,
            "has_image": self.image_data is not None,
            "is_low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
            "inventory_added_at": to_utc_z(self.inventory_added_at),
        }


class Category(db.Model):
    """
    Item category. Owns its custom field definitions: deleting a category
    deletes its custom fields (delete-orphan cascade).
    """
    __tablename__ = "categories"
    __table_args__ = (
        db.Index("ix_categories_name", "name"),
    )

    id = uuid_column()
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    custom_fields = db.relationship(
        "CustomField",
        back_populates="category",
        cascade="all, delete-orphan",
        order_by="CustomField.created_at",
    )

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    def __repr__(self) -> str:
        return f"<Category id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "custom_fields": [f.to_dict() for f in self.custom_fields],
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class CustomField(db.Model):
    __tablename__ = "category_custom_fields"

    id = uuid_column()
    category_id = db.Column(db.String(36), db.ForeignKey("categories.id"), nullable=True, index=True)
    name = db.Column(db.String(255), nullable=False)
    field_type = enum_column(FieldType, nullable=False, default=FieldType.TEXT)
    required = db.Column(db.Boolean, nullable=False, default=False)
    # Dropdown choices; NULL for every other type
    options = db.Column(db.JSON, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    category = db.relationship("Category", back_populates="custom_fields")

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("field_type", FieldType.TEXT)
        kwargs.setdefault("required", False)
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "category_id": self.category_id,
            "name": self.name,
            "field_type": self.field_type.value,
            "required": self.required,
            "options": self.options,
        }
