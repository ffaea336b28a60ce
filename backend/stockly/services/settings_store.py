# Overview: Key-value settings storage behind a small protocol (database-backed or in-memory).

from __future__ import annotations

import base64
from typing import Any, Iterable, Protocol

from ..extensions import db
from ..models import AppSetting
from stockly.time_utils import utcnow

# JSON cannot hold bytes; binary values are wrapped in a tagged object
_BYTES_TAG = "$base64"


class SettingsStore(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...

    def set(self, key: str, value: Any) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> Iterable[str]: ...


class MemorySettingsStore:
    """Dict-backed store for tests and one-off scripts."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def delete(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._values)


def _encode(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    return value


def _decode(value: Any) -> Any:
    if isinstance(value, dict) and set(value) == {_BYTES_TAG}:
        return base64.b64decode(value[_BYTES_TAG])
    return value


class DatabaseSettingsStore:
    """
    Settings persisted as AppSetting rows in the current session.

    Writes are added to the session but not committed; the caller owns the
    transaction (a restore commits once at the end).
    """

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    def get(self, key: str, default: Any = None) -> Any:
        row = self.session.get(AppSetting, key)
        if row is None:
            return default
        return _decode(row.value)

    def set(self, key: str, value: Any) -> None:
        row = self.session.get(AppSetting, key)
        if row is None:
            row = AppSetting(key=key)
            self.session.add(row)
        row.value = _encode(value)
        row.updated_at = utcnow()

    def delete(self, key: str) -> None:
        row = self.session.get(AppSetting, key)
        if row is not None:
            self.session.delete(row)

    def keys(self) -> list[str]:
        return [k for (k,) in self.session.query(AppSetting.key).order_by(AppSetting.key).all()]
