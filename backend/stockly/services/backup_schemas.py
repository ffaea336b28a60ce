# Overview: Per-family conversion between model rows and backup records (camelCase JSON objects).

"""
Backup schemas

One schema per entity family. Each schema turns a model row into a plain
JSON-safe record (to_record) and a record back into an unsaved model row
(from_record).

Record conventions:
- keys are camelCase
- timestamps are Unix epoch seconds (float), money is float
- ids are lowercase hyphenated UUID strings
- optional values that are absent on the row are omitted, never null
- binary values (item image, invoice signature, company logo) are base64

from_record raises MissingData / InvalidData for the record as a whole.
Nested children (line items, custom fields) that are malformed are left out
of the parent and described in the `issues` list instead; they never reject
the parent.
"""

from __future__ import annotations

import base64
import binascii
import math
import uuid
from typing import Any

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
from ..models.documents import DOCUMENT_TYPES
from stockly.time_utils import from_epoch, parse_iso_datetime, to_epoch
from .backup_errors import InvalidData, MissingData
from .totals import DiscountType


def _to_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise InvalidData("expected text")
    text = str(value)
    return text if text.strip() else None


# SQLite INTEGER is a signed 64-bit value
INT_MIN = -(2 ** 63)
INT_MAX = 2 ** 63 - 1


def _to_float(value: Any, field: str) -> float | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise InvalidData(f"{field} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidData(f"{field} must be a number") from None
    except OverflowError:
        raise InvalidData(f"{field} is out of range") from None
    if not math.isfinite(number):
        raise InvalidData(f"{field} must be finite")
    return number


def _to_int(value: Any, field: str) -> int | None:
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        real = _to_float(value, field)
        if real is None:
            return None
        if not real.is_integer():
            raise InvalidData(f"{field} must be a whole number")
        number = int(real)
    if not INT_MIN <= number <= INT_MAX:
        raise InvalidData(f"{field} is out of range")
    return number


def _to_bool(value: Any, field: str) -> bool | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)) and value in (0, 1):
        return bool(value)
    if isinstance(value, str) and value.strip().lower() in {"true", "false", "yes", "no", "1", "0"}:
        return value.strip().lower() in {"true", "yes", "1"}
    raise InvalidData(f"{field} must be true or false")


def _to_uuid(value: Any, field: str) -> str:
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError):
        raise InvalidData(f"{field} is not a valid UUID") from None


def _to_datetime(value: Any, field: str):
    """Epoch seconds (number or numeric string) or ISO-8601 text."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return from_epoch(float(value))
        except (OverflowError, ValueError):
            raise InvalidData(f"{field} is out of range") from None
    if isinstance(value, str):
        try:
            return from_epoch(float(value))
        except ValueError:
            pass
        except OverflowError:
            raise InvalidData(f"{field} is out of range") from None
        try:
            return parse_iso_datetime(value)
        except ValueError:
            raise InvalidData(f"{field} is not a valid date") from None
    raise InvalidData(f"{field} is not a valid date")


def _to_bytes(value: Any, field: str) -> bytes | None:
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise InvalidData(f"{field} must be base64 text")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidData(f"{field} is not valid base64") from None


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _require(record: dict, field: str) -> Any:
    value = record.get(field)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingData(field)
    return value


def _require_text(record: dict, field: str) -> str:
    value = _to_text(_require(record, field))
    if value is None:
        raise MissingData(field)
    return value


def _ensure_record(record: Any) -> dict:
    if not isinstance(record, dict):
        raise InvalidData("record must be an object")
    return record


def _put(record: dict, key: str, value: Any) -> None:
    """Set an optional key only when it has a value."""
    if value is None:
        return
    if isinstance(value, str) and not value:
        return
    record[key] = value


def _set(kwargs: dict, attr: str, value: Any) -> None:
    """Pass a value to the model constructor only when present, so model defaults apply."""
    if value is not None:
        kwargs[attr] = value


def _child_records(record: dict, key: str, issues: list[str]) -> list:
    children = record.get(key)
    if children is None:
        return []
    if not isinstance(children, list):
        issues.append(f"{key}: expected a list, ignored")
        return []
    return children


class BaseBackupSchema:
    family: str = ""
    model = None

    def to_record(self, entity) -> dict:
        raise NotImplementedError

    def from_record(self, record: Any, issues: list[str] | None = None):
        raise NotImplementedError

    def delete(self, store, entity) -> None:
        store.delete(entity)


class ItemSchema(BaseBackupSchema):
    family = "items"
    model = Item

    def to_record(self, item: Item) -> dict:
        record = {
            "id": item.id,
            "name": item.name,
            "description": item.description or "",
            "category": item.category or "",
            "sku": item.sku,
            "price": float(item.price),
            "buyPrice": float(item.buy_price),
            "stockQuantity": int(item.stock_quantity),
            "minStockLevel": int(item.min_stock_level),
            "measurementUnit": item.measurement_unit.value,
            "taxRate": float(item.tax_rate),
            "createdAt": to_epoch(item.created_at),
            "updatedAt": to_epoch(item.updated_at),
            "inventoryAddedAt": to_epoch(item.inventory_added_at),
        }
        _put(record, "barcode", item.barcode)
        _put(record, "imageURL", item.image_url)
        if item.image_data is not None:
            record["imageData"] = _b64(item.image_data)
        return record

    def from_record(self, record: Any, issues: list[str] | None = None) -> Item:
        record = _ensure_record(record)
        kwargs = {
            "id": _to_uuid(_require(record, "id"), "id"),
            "name": _require_text(record, "name"),
            "sku": _require_text(record, "sku").strip(),
            "price": _to_float(_require(record, "price"), "price"),
        }
        _set(kwargs, "description", _to_text(record.get("description")))
        _set(kwargs, "category", _to_text(record.get("category")))
        _set(kwargs, "buy_price", _to_float(record.get("buyPrice"), "buyPrice"))
        _set(kwargs, "stock_quantity", _to_int(record.get("stockQuantity"), "stockQuantity"))
        _set(kwargs, "min_stock_level", _to_int(record.get("minStockLevel"), "minStockLevel"))
        _set(kwargs, "tax_rate", _to_float(record.get("taxRate"), "taxRate"))
        _set(kwargs, "barcode", _to_text(record.get("barcode")))
        _set(kwargs, "image_url", _to_text(record.get("imageURL")))
        _set(kwargs, "image_data", _to_bytes(record.get("imageData"), "imageData"))
        _set(kwargs, "created_at", _to_datetime(record.get("createdAt"), "createdAt"))
        _set(kwargs, "updated_at", _to_datetime(record.get("updatedAt"), "updatedAt"))
        _set(kwargs, "inventory_added_at", _to_datetime(record.get("inventoryAddedAt"), "inventoryAddedAt"))

        unit = _to_text(record.get("measurementUnit"))
        try:
            kwargs["measurement_unit"] = MeasurementUnit(unit.strip().upper()) if unit else MeasurementUnit.PIECE
        except ValueError:
            kwargs["measurement_unit"] = MeasurementUnit.PIECE
        return Item(**kwargs)


class CategorySchema(BaseBackupSchema):
    family = "categories"
    model = Category

    def to_record(self, category: Category) -> dict:
        record = {
            "id": category.id,
            "name": category.name,
            "createdAt": to_epoch(category.created_at),
            "updatedAt": to_epoch(category.updated_at),
        }
        _put(record, "description", category.description)
        record["customFields"] = [self._field_record(f) for f in category.custom_fields]
        return record

    def _field_record(self, field: CustomField) -> dict:
        record = {
            "id": field.id,
            "name": field.name,
            "fieldType": field.field_type.value,
            "required": bool(field.required),
            "createdAt": to_epoch(field.created_at),
            "updatedAt": to_epoch(field.updated_at),
        }
        if field.options:
            record["options"] = list(field.options)
        return record

    def from_record(self, record: Any, issues: list[str] | None = None) -> Category:
        record = _ensure_record(record)
        issues = issues if issues is not None else []
        kwargs = {
            "id": _to_uuid(_require(record, "id"), "id"),
            "name": _require_text(record, "name"),
        }
        _set(kwargs, "description", _to_text(record.get("description")))
        _set(kwargs, "created_at", _to_datetime(record.get("createdAt"), "createdAt"))
        _set(kwargs, "updated_at", _to_datetime(record.get("updatedAt"), "updatedAt"))
        category = Category(**kwargs)

        seen: set[str] = set()
        for index, child in enumerate(_child_records(record, "customFields", issues)):
            try:
                field = self._field_from_record(child)
            except InvalidData as exc:
                issues.append(f"customFields[{index}]: {exc}")
                continue
            if field.id in seen:
                issues.append(f"customFields[{index}]: duplicate id {field.id}")
                continue
            seen.add(field.id)
            field.category = category
        return category

    def _field_from_record(self, record: Any) -> CustomField:
        record = _ensure_record(record)
        kwargs = {"name": _require_text(record, "name")}
        raw_type = _to_text(_require(record, "fieldType"))
        try:
            kwargs["field_type"] = FieldType(raw_type.strip().lower())
        except (AttributeError, ValueError):
            kwargs["field_type"] = FieldType.TEXT
        if record.get("id") not in (None, ""):
            kwargs["id"] = _to_uuid(record["id"], "customFields.id")
        _set(kwargs, "required", _to_bool(record.get("required"), "required"))
        options = record.get("options")
        if isinstance(options, list):
            kwargs["options"] = [str(o) for o in options if o is not None]
        _set(kwargs, "created_at", _to_datetime(record.get("createdAt"), "createdAt"))
        _set(kwargs, "updated_at", _to_datetime(record.get("updatedAt"), "updatedAt"))
        return CustomField(**kwargs)


class _ContactSchema(BaseBackupSchema):
    def to_record(self, contact) -> dict:
        record = {
            "id": contact.id,
            "name": contact.name,
            "address": contact.address or "",
            "city": contact.city or "",
            "country": contact.country or "",
            "postalCode": contact.postal_code or "",
            "createdAt": to_epoch(contact.created_at),
            "updatedAt": to_epoch(contact.updated_at),
        }
        _put(record, "email", contact.email)
        _put(record, "phone", contact.phone)
        _put(record, "notes", contact.notes)
        return record

    def _contact_kwargs(self, record: dict) -> dict:
        kwargs = {
            "id": _to_uuid(_require(record, "id"), "id"),
            "name": _require_text(record, "name"),
        }
        _set(kwargs, "email", _to_text(record.get("email")))
        _set(kwargs, "phone", _to_text(record.get("phone")))
        _set(kwargs, "address", _to_text(record.get("address")))
        _set(kwargs, "city", _to_text(record.get("city")))
        # Only a missing country falls back to the model default
        country = record.get("country")
        if isinstance(country, str):
            kwargs["country"] = country
        else:
            _set(kwargs, "country", _to_text(country))
        # Older backups wrote zipCode
        postal = _to_text(record.get("postalCode")) or _to_text(record.get("zipCode"))
        _set(kwargs, "postal_code", postal)
        _set(kwargs, "notes", _to_text(record.get("notes")))
        _set(kwargs, "created_at", _to_datetime(record.get("createdAt"), "createdAt"))
        _set(kwargs, "updated_at", _to_datetime(record.get("updatedAt"), "updatedAt"))
        return kwargs


class ClientSchema(_ContactSchema):
    family = "clients"
    model = Client

    def from_record(self, record: Any, issues: list[str] | None = None) -> Client:
        return Client(**self._contact_kwargs(_ensure_record(record)))


class SupplierSchema(_ContactSchema):
    family = "suppliers"
    model = Supplier

    def to_record(self, supplier: Supplier) -> dict:
        record = super().to_record(supplier)
        _put(record, "contactPerson", supplier.contact_person)
        return record

    def from_record(self, record: Any, issues: list[str] | None = None) -> Supplier:
        record = _ensure_record(record)
        kwargs = self._contact_kwargs(record)
        _set(kwargs, "contact_person", _to_text(record.get("contactPerson")))
        return Supplier(**kwargs)


class _DocumentSchema(BaseBackupSchema):
    """
    Shared logic for invoices and estimates.

    Stored subtotal / tax / totalAmount are written for readers of the file
    but recomputed from the line items on import.
    """

    line_model = None
    field_model = None
    status_enum = None
    parent_attr = ""
    end_date_key = ""
    end_date_attr = ""

    def to_record(self, doc) -> dict:
        record = {
            "id": doc.id,
            "number": doc.number,
            "clientName": doc.client_name,
            "clientAddress": doc.client_address or "",
            "status": doc.status.value,
            "dateCreated": to_epoch(doc.date_created),
            self.end_date_key: to_epoch(getattr(doc, self.end_date_attr)),
            "subtotal": float(doc.subtotal),
            "discount": float(doc.discount),
            "discountType": doc.discount_type.value,
            "tax": float(doc.tax),
            "taxRate": float(doc.tax_rate),
            "totalAmount": float(doc.total_amount),
            "notes": doc.notes or "",
            "templateType": doc.template_type,
            "createdAt": to_epoch(doc.created_at),
            "updatedAt": to_epoch(doc.updated_at),
        }
        _put(record, "clientEmail", doc.client_email)
        _put(record, "clientPhone", doc.client_phone)
        _put(record, "headerNote", doc.header_note)
        _put(record, "footerNote", doc.footer_note)
        record["items"] = [self._line_record(line) for line in doc.items]
        record["customFields"] = [{"id": f.id, "name": f.name, "value": f.value} for f in doc.custom_fields]
        return record

    def _line_record(self, line) -> dict:
        record = {
            "id": line.id,
            "name": line.name,
            "quantity": int(line.quantity),
            "unitPrice": float(line.unit_price),
            "tax": float(line.tax),
            "discount": float(line.discount),
            "totalAmount": float(line.total_amount),
        }
        _put(record, "description", line.description)
        return record

    def _document_kwargs(self, record: dict) -> dict:
        kwargs = {
            "id": _to_uuid(_require(record, "id"), "id"),
            "number": _require_text(record, "number"),
            "client_name": _require_text(record, "clientName"),
        }
        raw_status = _to_text(_require(record, "status"))
        try:
            kwargs["status"] = self.status_enum(raw_status.strip().lower())
        except ValueError:
            raise InvalidData(f"unknown status {raw_status!r}") from None

        _set(kwargs, "client_address", _to_text(record.get("clientAddress")))
        _set(kwargs, "client_email", _to_text(record.get("clientEmail")))
        _set(kwargs, "client_phone", _to_text(record.get("clientPhone")))
        _set(kwargs, "date_created", _to_datetime(record.get("dateCreated"), "dateCreated"))
        _set(kwargs, self.end_date_attr, _to_datetime(record.get(self.end_date_key), self.end_date_key))
        _set(kwargs, "discount", _to_float(record.get("discount"), "discount"))
        discount_type = _to_text(record.get("discountType"))
        if discount_type is not None:
            kwargs["discount_type"] = DiscountType.parse(discount_type)
        _set(kwargs, "tax_rate", _to_float(record.get("taxRate"), "taxRate"))
        _set(kwargs, "notes", _to_text(record.get("notes")))
        _set(kwargs, "header_note", _to_text(record.get("headerNote")))
        _set(kwargs, "footer_note", _to_text(record.get("footerNote")))
        _set(kwargs, "template_type", _to_text(record.get("templateType")))
        _set(kwargs, "created_at", _to_datetime(record.get("createdAt"), "createdAt"))
        _set(kwargs, "updated_at", _to_datetime(record.get("updatedAt"), "updatedAt"))
        return kwargs

    def _line_from_record(self, record: Any):
        record = _ensure_record(record)
        kwargs = {
            "name": _require_text(record, "name"),
            "quantity": _to_int(_require(record, "quantity"), "quantity"),
            "unit_price": _to_float(_require(record, "unitPrice"), "unitPrice"),
        }
        if record.get("id") not in (None, ""):
            kwargs["id"] = _to_uuid(record["id"], "items.id")
        _set(kwargs, "description", _to_text(record.get("description")))
        _set(kwargs, "tax", _to_float(record.get("tax"), "tax"))
        _set(kwargs, "discount", _to_float(record.get("discount"), "discount"))
        return self.line_model(**kwargs)

    def _field_from_record(self, record: Any):
        record = _ensure_record(record)
        value = _require(record, "value")
        if isinstance(value, (dict, list)):
            raise InvalidData("value must be text")
        kwargs = {"name": _require_text(record, "name"), "value": str(value)}
        if record.get("id") not in (None, ""):
            kwargs["id"] = _to_uuid(record["id"], "customFields.id")
        return self.field_model(**kwargs)

    def _attach_children(self, doc, record: dict, issues: list[str]) -> None:
        """Build children and point each at the new parent before it is added to a session."""
        seen: set[str] = set()
        for key, build in (("items", self._line_from_record), ("customFields", self._field_from_record)):
            for index, child_record in enumerate(_child_records(record, key, issues)):
                try:
                    child = build(child_record)
                except InvalidData as exc:
                    issues.append(f"{key}[{index}]: {exc}")
                    continue
                if child.id in seen:
                    issues.append(f"{key}[{index}]: duplicate id {child.id}")
                    continue
                seen.add(child.id)
                setattr(child, self.parent_attr, doc)
        doc.recalculate_totals()

    def delete(self, store, entity) -> None:
        from .document_service import delete_document

        delete_document(entity, store=store)


class InvoiceSchema(_DocumentSchema):
    family = "invoices"
    model = Invoice
    line_model = InvoiceItem
    field_model = CustomInvoiceField
    status_enum = InvoiceStatus
    parent_attr = "invoice"
    end_date_key = "dueDate"
    end_date_attr = "due_date"

    def to_record(self, invoice: Invoice) -> dict:
        record = super().to_record(invoice)
        record["documentType"] = invoice.document_type
        _put(record, "paymentMethod", invoice.payment_method)
        _put(record, "bankingInfo", invoice.banking_info)
        _put(record, "barcodeData", invoice.barcode_data)
        _put(record, "qrCodeData", invoice.qr_code_data)
        if invoice.signature is not None:
            record["signature"] = _b64(invoice.signature)
        return record

    def from_record(self, record: Any, issues: list[str] | None = None) -> Invoice:
        record = _ensure_record(record)
        issues = issues if issues is not None else []
        kwargs = self._document_kwargs(record)
        document_type = (_to_text(record.get("documentType")) or "invoice").strip().lower()
        kwargs["document_type"] = document_type if document_type in DOCUMENT_TYPES else "invoice"
        _set(kwargs, "payment_method", _to_text(record.get("paymentMethod")))
        _set(kwargs, "banking_info", _to_text(record.get("bankingInfo")))
        _set(kwargs, "barcode_data", _to_text(record.get("barcodeData")))
        _set(kwargs, "qr_code_data", _to_text(record.get("qrCodeData")))
        _set(kwargs, "signature", _to_bytes(record.get("signature"), "signature"))

        invoice = Invoice(**kwargs)
        self._attach_children(invoice, record, issues)
        if invoice.qr_code_data is None:
            invoice.qr_code_data = invoice.qr_payload()
        if invoice.barcode_data is None:
            invoice.barcode_data = invoice.number
        return invoice


class EstimateSchema(_DocumentSchema):
    family = "estimates"
    model = Estimate
    line_model = EstimateItem
    field_model = CustomEstimateField
    status_enum = EstimateStatus
    parent_attr = "estimate"
    end_date_key = "expiryDate"
    end_date_attr = "expiry_date"

    def from_record(self, record: Any, issues: list[str] | None = None) -> Estimate:
        record = _ensure_record(record)
        issues = issues if issues is not None else []
        estimate = Estimate(**self._document_kwargs(record))
        self._attach_children(estimate, record, issues)
        return estimate


SETTINGS_KEYS = (
    "darkModeEnabled",
    "selectedTheme",
    "companyName",
    "companyAddress",
    "companyPhone",
    "companyEmail",
    "companyWebsite",
    "companyLogo",
    "taxRate",
    "currencySymbol",
    "invoicePrefix",
    "estimatePrefix",
    "nextInvoiceNumber",
    "nextEstimateNumber",
    "invoiceTerms",
    "estimateTerms",
    "invoiceFooter",
    "estimateFooter",
    "bankingDetails",
)
BINARY_SETTINGS = frozenset({"companyLogo"})


class SettingsCodec:
    """The settings family is one object keyed by setting name, not a list of rows."""

    family = "settings"
    keys = SETTINGS_KEYS

    def to_record(self, settings) -> dict:
        record: dict[str, Any] = {}
        for key in self.keys:
            value = settings.get(key)
            if value is None:
                continue
            if isinstance(value, (bytes, bytearray)):
                value = _b64(bytes(value))
            record[key] = value
        return record

    def decode_value(self, key: str, value: Any) -> Any:
        """Validate one setting value; raises InvalidData."""
        if key not in self.keys:
            raise InvalidData(f"unknown setting {key!r}")
        if key in BINARY_SETTINGS:
            return _to_bytes(value, key)
        if value is None or isinstance(value, (str, bool, int, float)):
            return value
        raise InvalidData(f"{key} must be a scalar value")


SCHEMAS: dict[str, BaseBackupSchema] = {
    schema.family: schema
    for schema in (
        CategorySchema(),
        ItemSchema(),
        ClientSchema(),
        SupplierSchema(),
        InvoiceSchema(),
        EstimateSchema(),
    )
}


def schema_for(family: str) -> BaseBackupSchema:
    try:
        return SCHEMAS[family]
    except KeyError:
        raise InvalidData(f"unknown family {family!r}") from None
