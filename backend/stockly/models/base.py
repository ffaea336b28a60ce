from __future__ import annotations

import uuid

from ..extensions import db


def new_uuid() -> str:
    """Lowercase hyphenated UUID4, the id format used everywhere (and in backups)."""
    return str(uuid.uuid4())


def uuid_column(**kwargs):
    return db.Column(db.String(36), primary_key=True, default=new_uuid, **kwargs)


def enum_column(enum_cls, **kwargs):
    """Persist an enum by its value (e.g. "PCS"), not its member name."""
    return db.Column(
        db.Enum(
            enum_cls,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            validate_strings=True,
            length=32,
        ),
        **kwargs,
    )
