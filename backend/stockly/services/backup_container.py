# Overview: Versioned backup container: build from sections, serialize to JSON, parse and validate.

"""
Backup container

Unencrypted on-disk form (pretty-printed UTF-8 JSON):

    {
      "version": 1,
      "metadata": {"appVersion", "buildNumber", "creationDate", "platform", "encrypted"},
      "categories": [...], "items": [...], "clients": [...],
      "suppliers": [...], "invoices": [...], "estimates": [...],
      "settings": {...}
    }

Every family key is optional. An encrypted file is this same JSON passed
through encryption_service.encrypt.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

from stockly.time_utils import to_utc_z, utcnow
from .backup_errors import CorruptedBackup, DecodingFailed, EncodingFailed, IncompatibleVersion, InvalidData

CURRENT_BACKUP_VERSION = 1

# Restore order: parents before anything that refers to them by name
FAMILIES = ("categories", "items", "clients", "suppliers", "invoices", "estimates", "settings")
LIST_FAMILIES = FAMILIES[:-1]


@dataclass(frozen=True)
class ProducerInfo:
    app_version: str = "1.0"
    build_number: str = "1"
    platform: str = "server"


@dataclass
class BackupMetadata:
    app_version: str | None = None
    build_number: str | None = None
    creation_date: str | None = None
    platform: str | None = None
    encrypted: bool = False
    import_date: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    _KEYS = {
        "appVersion": "app_version",
        "buildNumber": "build_number",
        "creationDate": "creation_date",
        "platform": "platform",
        "importDate": "import_date",
    }

    def to_dict(self) -> dict[str, Any]:
        data = dict(self.extra)
        for key, attr in self._KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                data[key] = value
        data["encrypted"] = self.encrypted
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BackupMetadata":
        kwargs: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            if key in cls._KEYS:
                kwargs[cls._KEYS[key]] = None if value is None else str(value)
            elif key == "encrypted":
                kwargs["encrypted"] = value is True
            else:
                extra[key] = value
        return cls(extra=extra, **kwargs)

    @classmethod
    def synthesized(cls) -> "BackupMetadata":
        """Stand-in for files that carry no metadata block."""
        return cls(import_date=to_utc_z(utcnow()), encrypted=False)


@dataclass
class BackupContainer:
    version: int
    metadata: BackupMetadata
    sections: dict[str, Any] = field(default_factory=dict)

    def section(self, family: str):
        return self.sections.get(family)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"version": self.version, "metadata": self.metadata.to_dict()}
        for family in FAMILIES:
            if family in self.sections:
                data[family] = self.sections[family]
        return data

    def to_json_bytes(self) -> bytes:
        try:
            return json.dumps(self.to_dict(), indent=2, ensure_ascii=False, allow_nan=False).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodingFailed(str(exc)) from exc


def build(sections: dict[str, Any], producer: ProducerInfo | None = None, encrypted: bool = False) -> BackupContainer:
    producer = producer or ProducerInfo()
    unknown = set(sections) - set(FAMILIES)
    if unknown:
        raise EncodingFailed(f"unknown sections: {', '.join(sorted(unknown))}")
    metadata = BackupMetadata(
        app_version=producer.app_version,
        build_number=producer.build_number,
        creation_date=to_utc_z(utcnow()),
        platform=producer.platform,
        encrypted=encrypted,
    )
    return BackupContainer(version=CURRENT_BACKUP_VERSION, metadata=metadata, sections=dict(sections))


def _load_json(data: bytes) -> Any:
    if not isinstance(data, (bytes, bytearray)):
        raise DecodingFailed("expected bytes")
    try:
        return json.loads(bytes(data).decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodingFailed(str(exc)) from exc


def parse(data: bytes) -> BackupContainer:
    """
    Decode and validate a plaintext container.

    Raises:
        DecodingFailed (an InvalidData): not UTF-8 JSON
        InvalidData: top level is not an object, or version missing / not an int
        IncompatibleVersion: written by a newer format version
        CorruptedBackup (an InvalidData): a family section has the wrong shape
    """
    payload = _load_json(data)
    if not isinstance(payload, dict):
        raise InvalidData("backup must be a JSON object")

    version = payload.get("version")
    if version is None:
        raise InvalidData("missing version")
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidData("version must be an integer")
    if version > CURRENT_BACKUP_VERSION:
        raise IncompatibleVersion(version, CURRENT_BACKUP_VERSION)

    raw_metadata = payload.get("metadata")
    if raw_metadata is None:
        metadata = BackupMetadata.synthesized()
    elif isinstance(raw_metadata, dict):
        metadata = BackupMetadata.from_dict(raw_metadata)
    else:
        raise CorruptedBackup("metadata must be an object")

    sections: dict[str, Any] = {}
    for family in FAMILIES:
        if family not in payload or payload[family] is None:
            continue
        value = payload[family]
        if family == "settings":
            if not isinstance(value, dict):
                raise CorruptedBackup("settings must be an object")
        elif not isinstance(value, list):
            raise CorruptedBackup(f"{family} must be an array")
        sections[family] = value

    return BackupContainer(version=version, metadata=metadata, sections=sections)


def looks_encrypted(data: bytes) -> bool:
    """
    True when the bytes are not a plain JSON container, or the container
    says it is encrypted.
    """
    try:
        payload = _load_json(data)
    except DecodingFailed:
        return True
    if not isinstance(payload, dict):
        return True
    metadata = payload.get("metadata")
    return isinstance(metadata, dict) and metadata.get("encrypted") is True
