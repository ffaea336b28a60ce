# Overview: Restores a parsed backup container into the database, one family at a time.

"""
Restore orchestrator

Phases run in a fixed order (categories, items, clients, suppliers,
invoices, estimates, settings); a phase is skipped when its section is
absent from the container.

TRANSACTION MODEL:
The whole restore is one database transaction. Each row is inserted inside
its own SAVEPOINT; a row that fails to parse, conflicts, or fails to flush
is rolled back to that savepoint and recorded as a SkippedRow. Anything
that is not a row problem (store failure, programming error) rolls back the
entire restore and raises ImportFailed, leaving the database untouched.

CONFLICT POLICY:
- REPLACE (default): every row of a family is deleted before that family's
  rows are inserted. Families absent from the backup are left alone.
- MERGE: rows are upserted by id; rows not in the backup are kept.

SKU uniqueness is checked explicitly before insert, both within the backup
and against rows already in the database.
"""

from __future__ import annotations

import enum
import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from ..models import Category, CustomField, Item
from ..validation import SkuConflict
from .backup_container import FAMILIES, BackupContainer
from .backup_errors import BackupError, ImportFailed, InvalidData, StoreError
from .backup_schemas import SCHEMAS, SettingsCodec
from .document_service import purge_orphan_children
from .model_store import ModelStore
from .settings_store import SettingsStore

logger = logging.getLogger(__name__)


class ConflictPolicy(str, enum.Enum):
    REPLACE = "replace"
    MERGE = "merge"

    @classmethod
    def parse(cls, value) -> "ConflictPolicy":
        if isinstance(value, ConflictPolicy):
            return value
        try:
            return cls(str(value or "replace").strip().lower())
        except ValueError:
            raise InvalidData(f"unknown restore mode {value!r}") from None


@dataclass(frozen=True)
class SkippedRow:
    family: str
    index: Any
    reason: str
    # True when only a nested child of the row was dropped
    nested: bool = False

    def to_dict(self) -> dict:
        return {"family": self.family, "index": self.index, "reason": self.reason, "nested": self.nested}


@dataclass
class RestoreReport:
    policy: ConflictPolicy = ConflictPolicy.REPLACE
    imported: Counter = field(default_factory=Counter)
    skipped: list[SkippedRow] = field(default_factory=list)
    auto_created_categories: list[str] = field(default_factory=list)

    def skip(self, family: str, index: Any, reason: str, nested: bool = False) -> None:
        self.skipped.append(SkippedRow(family, index, reason, nested))
        logger.warning("Skipped %s[%s]: %s", family, index, reason)

    def skipped_rows(self, family: str | None = None) -> list[SkippedRow]:
        """Whole rows that were not imported (nested child drops excluded)."""
        return [s for s in self.skipped if not s.nested and (family is None or s.family == family)]

    @property
    def total_imported(self) -> int:
        return sum(self.imported.values())

    def to_dict(self) -> dict:
        return {
            "policy": self.policy.value,
            "imported": dict(self.imported),
            "total_imported": self.total_imported,
            "skipped": [s.to_dict() for s in self.skipped],
            "skipped_count": len(self.skipped_rows()),
            "auto_created_categories": list(self.auto_created_categories),
        }


class RestoreOrchestrator:
    def __init__(self, store: ModelStore, settings: SettingsStore, policy=ConflictPolicy.REPLACE):
        self.store = store
        self.settings = settings
        self.policy = ConflictPolicy.parse(policy)

    def restore(self, container: BackupContainer) -> RestoreReport:
        report = RestoreReport(policy=self.policy)
        try:
            for family in FAMILIES:
                section = container.section(family)
                if section is None:
                    continue
                if family == "settings":
                    self._restore_settings(section, report)
                else:
                    restored = self._restore_family(family, section, report)
                    if family == "items":
                        self._ensure_categories(restored, report)
            self.store.save()
        except StoreError as exc:
            raise ImportFailed(exc.detail) from exc
        except BackupError:
            self.store.rollback()
            raise
        except SQLAlchemyError as exc:
            self.store.rollback()
            logger.exception("Restore aborted")
            raise ImportFailed(str(exc)) from exc
        except Exception as exc:
            self.store.rollback()
            logger.exception("Restore aborted by unexpected error")
            raise ImportFailed(str(exc)) from exc

        logger.info(
            "Restore complete (%s): %d rows imported, %d skipped",
            self.policy.value,
            report.total_imported,
            len(report.skipped_rows()),
        )
        return report

    def _clear_family(self, schema) -> None:
        existing = self.store.fetch_all(schema.model)
        for entity in existing:
            schema.delete(self.store, entity)
        if schema.family == "categories":
            for orphan in self.store.fetch_all(CustomField):
                if orphan.category_id is None:
                    self.store.delete(orphan)
        elif schema.family in ("invoices", "estimates"):
            purge_orphan_children(self.store)
        self.store.flush()
        logger.info("Cleared %d existing %s", len(existing), schema.family)

    def _check_sku(self, item: Item, batch_skus: dict[str, int]) -> None:
        if item.sku in batch_skus:
            raise SkuConflict(item.sku)
        existing = self.store.find_by(Item, sku=item.sku)
        if existing is not None and existing.id != item.id:
            raise SkuConflict(item.sku, existing.id)

    def _restore_family(self, family: str, rows: list, report: RestoreReport) -> list:
        schema = SCHEMAS[family]
        if self.policy is ConflictPolicy.REPLACE:
            self._clear_family(schema)

        restored = []
        seen_ids: set[str] = set()
        batch_skus: dict[str, int] = {}

        for index, record in enumerate(rows):
            issues: list[str] = []
            nested = self.store.begin_nested()
            try:
                entity = schema.from_record(record, issues)
                if entity.id in seen_ids:
                    raise InvalidData(f"duplicate id {entity.id}")
                if family == "items":
                    self._check_sku(entity, batch_skus)

                if self.policy is ConflictPolicy.MERGE:
                    existing = self.store.get(schema.model, entity.id)
                    if existing is not None:
                        schema.delete(self.store, existing)
                        self.store.flush()

                self.store.insert(entity)
                self.store.flush()
                nested.commit()
            except (BackupError, SkuConflict, SQLAlchemyError, OverflowError) as exc:
                nested.rollback()
                report.skip(family, index, str(exc))
                continue

            seen_ids.add(entity.id)
            if family == "items":
                batch_skus[entity.sku] = index
            restored.append(entity)
            report.imported[family] += 1
            for issue in issues:
                report.skip(family, index, issue, nested=True)

        logger.info("Restored %d/%d %s", len(restored), len(rows), family)
        return restored

    def _ensure_categories(self, items: list, report: RestoreReport) -> None:
        """Create a Category for every item category name that has none."""
        wanted = {item.category.strip() for item in items if item.category and item.category.strip()}
        if not wanted:
            return
        known = {c.name for c in self.store.fetch_all(Category)}
        for name in sorted(wanted - known):
            self.store.insert(Category(name=name))
            report.auto_created_categories.append(name)
            logger.info("Auto-created category %r", name)
        self.store.flush()

    def _restore_settings(self, values: dict, report: RestoreReport) -> None:
        codec = SettingsCodec()
        if self.policy is ConflictPolicy.REPLACE:
            for key in codec.keys:
                if key not in values:
                    self.settings.delete(key)

        for key, raw in values.items():
            try:
                value = codec.decode_value(key, raw)
            except InvalidData as exc:
                report.skip("settings", key, str(exc))
                if self.policy is ConflictPolicy.REPLACE and key in codec.keys:
                    self.settings.delete(key)
                continue
            if value is None:
                self.settings.delete(key)
            else:
                self.settings.set(key, value)
            report.imported["settings"] += 1
