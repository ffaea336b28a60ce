from __future__ import annotations

from ..extensions import db
from stockly.time_utils import to_utc_z, utcnow


class AppSetting(db.Model):
    """
    Key-value application settings (company profile, numbering, theme,
    backup password hash, reminder bookkeeping).

    value is JSON so numbers and booleans survive a round trip without a
    per-key type registry. Binary values are wrapped by
    DatabaseSettingsStore before they reach this table.
    """
    __tablename__ = "app_settings"

    key = db.Column(db.String(128), primary_key=True)
    value = db.Column(db.JSON, nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self):
        return {
            "key": self.key,
            "value": self.value,
            "updated_at": to_utc_z(self.updated_at),
        }
