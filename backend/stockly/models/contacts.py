from __future__ import annotations

from ..extensions import db
from stockly.time_utils import to_utc_z, utcnow
from .base import new_uuid, uuid_column

DEFAULT_COUNTRY = "United States"


class _ContactColumns:
    """Columns shared by clients and suppliers (address book entries)."""

    id = uuid_column()
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(64), nullable=True)
    address = db.Column(db.String(512), nullable=False, default="")
    city = db.Column(db.String(128), nullable=False, default="")
    country = db.Column(db.String(128), nullable=False, default=DEFAULT_COUNTRY)
    postal_code = db.Column(db.String(32), nullable=False, default="")
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __init__(self, **kwargs):
        now = utcnow()
        kwargs.setdefault("id", new_uuid())
        kwargs.setdefault("address", "")
        kwargs.setdefault("city", "")
        kwargs.setdefault("country", DEFAULT_COUNTRY)
        kwargs.setdefault("postal_code", "")
        kwargs.setdefault("created_at", now)
        kwargs.setdefault("updated_at", now)
        super().__init__(**kwargs)

    @property
    def full_address(self) -> str:
        parts = [p for p in (self.address, self.city, self.postal_code, self.country) if p]
        return ", ".join(parts)

    def touch(self) -> None:
        self.updated_at = utcnow()

    def _contact_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address": self.address,
            "city": self.city,
            "country": self.country,
            "postal_code": self.postal_code,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class Client(_ContactColumns, db.Model):
    """
    Customer billed on invoices and estimates.

    Documents keep a snapshot of the client (name, address, email, phone)
    rather than a foreign key, so editing or deleting a client never rewrites
    an issued invoice.
    """
    __tablename__ = "clients"
    __table_args__ = (
        db.Index("ix_clients_name", "name"),
    )

    def to_dict(self) -> dict:
        return self._contact_dict()


class Supplier(_ContactColumns, db.Model):
    __tablename__ = "suppliers"
    __table_args__ = (
        db.Index("ix_suppliers_name", "name"),
    )

    contact_person = db.Column(db.String(255), nullable=True)

    def to_dict(self) -> dict:
        data = self._contact_dict()
        data["contact_person"] = self.contact_person
        return data
