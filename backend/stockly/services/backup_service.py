# Overview: Backup export/import facade: files on disk, encryption, password and reminder bookkeeping.

"""
Backup service

The one entry point used by routes and CLI commands.

EXPORT:
collect every family through the schemas, build a versioned container,
optionally encrypt it, and write stockly_backup_YYYYMMDD_HHMMSS.stocklybackup
into the backups directory. The file is written in a scratch directory and
moved into place, so a failed export never leaves a partial backup.

IMPORT:
read the file, decrypt if it is not plain JSON, parse and validate the
container, then hand it to the RestoreOrchestrator.

CONCURRENCY:
single writer. A process-wide lock rejects a second export/import while one
is running (BackupInProgress) instead of queueing it.

PASSWORD:
the optional backup password is stored as a bcrypt hash in the settings
store, never in clear, and is not part of exported settings.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path

import bcrypt
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from stockly.time_utils import parse_iso_datetime, to_utc_z, utcnow
from .backup_container import BackupContainer, ProducerInfo, build, looks_encrypted, parse
from .backup_errors import (
    AccessDenied,
    BackupError,
    BackupInProgress,
    DecodingFailed,
    DecryptionFailed,
    ExportFailed,
    FileCreationFailed,
    FileNotFound,
    ImportFailed,
)
from .backup_schemas import SCHEMAS, SettingsCodec
from .encryption_service import decrypt, encrypt
from .model_store import ModelStore
from .restore_service import ConflictPolicy, RestoreOrchestrator, RestoreReport
from .settings_store import DatabaseSettingsStore

logger = logging.getLogger(__name__)

BACKUP_EXTENSION = ".stocklybackup"
FILENAME_PREFIX = "stockly_backup_"
DEFAULT_REMINDER_DAYS = 7

# Settings-store keys owned by this service (not exported)
LAST_BACKUP_DATE_KEY = "lastBackupDate"
REMINDER_INTERVAL_KEY = "backupReminderInterval"
PASSWORD_ENABLED_KEY = "backupPasswordEnabled"
PASSWORD_HASH_KEY = "backupPasswordHash"

# bcrypt only looks at the first 72 bytes
MAX_PASSWORD_BYTES = 72

_operation_lock = threading.Lock()


class BackupPasswordError(ValueError):
    """Rejected backup password (too long for bcrypt)."""


@contextmanager
def _exclusive(operation: str):
    if not _operation_lock.acquire(blocking=False):
        raise BackupInProgress(f"cannot start {operation}")
    try:
        yield
    finally:
        _operation_lock.release()


def is_backup_running() -> bool:
    return _operation_lock.locked()


class BackupService:
    def __init__(self, store=None, settings=None, *, backup_dir=None, producer: ProducerInfo | None = None,
                 reminder_days: int | None = None):
        self.store = store or ModelStore()
        self.settings = settings if settings is not None else DatabaseSettingsStore()
        self._backup_dir = Path(backup_dir) if backup_dir else None
        self._producer = producer
        self._reminder_days = reminder_days

    # Directory and files

    @property
    def producer(self) -> ProducerInfo:
        if self._producer is None:
            cfg = current_app.config
            self._producer = ProducerInfo(
                app_version=str(cfg.get("APP_VERSION", "1.0")),
                build_number=str(cfg.get("BUILD_NUMBER", "1")),
                platform=str(cfg.get("BACKUP_PLATFORM", "server")),
            )
        return self._producer

    def backups_directory(self) -> Path:
        directory = self._backup_dir or Path(current_app.config["BACKUP_DIR"])
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except PermissionError as exc:
            raise AccessDenied(str(directory)) from exc
        except OSError as exc:
            raise FileCreationFailed(str(exc)) from exc
        return directory

    def list_backup_files(self) -> list[Path]:
        """Backup files in the backups directory, newest first."""
        directory = self.backups_directory()
        files = [p for p in directory.iterdir() if p.is_file() and p.suffix == BACKUP_EXTENSION]
        return sorted(files, key=lambda p: (p.stat().st_mtime, p.name), reverse=True)

    def describe(self, path: Path) -> dict:
        stat = path.stat()
        return {
            "name": path.name,
            "size": stat.st_size,
            "modified": to_utc_z(datetime.fromtimestamp(stat.st_mtime, timezone.utc)),
        }

    def resolve_backup_path(self, name: str) -> Path:
        """Map a bare file name to a path inside the backups directory."""
        if not name or "/" in name or "\\" in name or name in (".", "..") or "\x00" in name:
            raise AccessDenied(f"invalid backup name {name!r}")
        if not name.endswith(BACKUP_EXTENSION):
            raise AccessDenied(f"not a backup file: {name!r}")
        directory = self.backups_directory().resolve()
        path = (directory / name).resolve()
        if path.parent != directory:
            raise AccessDenied(f"invalid backup name {name!r}")
        return path

    def delete_backup_file(self, target) -> None:
        path = self.resolve_backup_path(target) if isinstance(target, str) else Path(target).resolve()
        if path.parent != self.backups_directory().resolve():
            raise AccessDenied(str(path))
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise FileNotFound(path.name) from exc
        except PermissionError as exc:
            raise AccessDenied(path.name) from exc
        logger.info("Deleted backup %s", path.name)

    def _new_backup_path(self) -> Path:
        directory = self.backups_directory()
        stem = f"{FILENAME_PREFIX}{utcnow():%Y%m%d_%H%M%S}"
        path = directory / f"{stem}{BACKUP_EXTENSION}"
        suffix = 1
        while path.exists():
            path = directory / f"{stem}_{suffix}{BACKUP_EXTENSION}"
            suffix += 1
        return path

    # Backup password

    @property
    def is_backup_password_enabled(self) -> bool:
        return self.settings.get(PASSWORD_ENABLED_KEY) is True

    def set_backup_password(self, password: str | None) -> None:
        """Store a bcrypt hash of the password; None or "" turns protection off."""
        if password:
            secret = password.encode("utf-8")
            if len(secret) > MAX_PASSWORD_BYTES:
                raise BackupPasswordError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
            hashed = bcrypt.hashpw(secret, bcrypt.gensalt(rounds=12)).decode("utf-8")
            self.settings.set(PASSWORD_ENABLED_KEY, True)
            self.settings.set(PASSWORD_HASH_KEY, hashed)
        else:
            self.settings.set(PASSWORD_ENABLED_KEY, False)
            self.settings.delete(PASSWORD_HASH_KEY)
        self.store.save()

    def verify_backup_password(self, password: str) -> bool:
        stored = self.settings.get(PASSWORD_HASH_KEY)
        if not self.is_backup_password_enabled or not stored or not password:
            return False
        secret = password.encode("utf-8")
        if len(secret) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(secret, stored.encode("utf-8"))
        except ValueError:
            logger.warning("Stored backup password hash is malformed")
            return False

    # Reminder

    @property
    def last_backup_date(self) -> datetime | None:
        value = self.settings.get(LAST_BACKUP_DATE_KEY)
        if not value:
            return None
        try:
            return parse_iso_datetime(value)
        except ValueError:
            return None

    @property
    def backup_reminder_interval(self) -> int:
        value = self.settings.get(REMINDER_INTERVAL_KEY)
        if value is None:
            value = self._reminder_days or self._configured_reminder_days()
            self.settings.set(REMINDER_INTERVAL_KEY, value)
        return int(value)

    @backup_reminder_interval.setter
    def backup_reminder_interval(self, days: int) -> None:
        if int(days) < 1:
            raise ValueError("reminder interval must be at least 1 day")
        self.settings.set(REMINDER_INTERVAL_KEY, int(days))

    def _configured_reminder_days(self) -> int:
        try:
            return int(current_app.config.get("BACKUP_REMINDER_DAYS", DEFAULT_REMINDER_DAYS))
        except RuntimeError:
            return DEFAULT_REMINDER_DAYS

    def should_show_backup_reminder(self, now: datetime | None = None) -> bool:
        interval = self.backup_reminder_interval
        last = self.last_backup_date
        if last is None:
            return True
        now = now or utcnow()
        return (now - last).days >= interval

    def status(self) -> dict:
        last = self.last_backup_date
        return {
            "last_backup_date": to_utc_z(last),
            "reminder_interval_days": self.backup_reminder_interval,
            "reminder_due": self.should_show_backup_reminder(),
            "password_enabled": self.is_backup_password_enabled,
            "in_progress": is_backup_running(),
        }

    # Export

    def collect_sections(self) -> dict:
        sections = {
            family: [schema.to_record(entity) for entity in self.store.fetch_all(schema.model)]
            for family, schema in SCHEMAS.items()
        }
        sections["settings"] = SettingsCodec().to_record(self.settings)
        return sections

    def export_all_data(self, password: str | None = None) -> Path:
        """
        Write a full backup and return its path.

        Raises:
            BackupInProgress: another export/import is running
            EncodingFailed / EncryptionFailed / KeyDerivationFailed
            FileCreationFailed: the file could not be written
            ExportFailed: reading the database failed
        """
        with _exclusive("export"):
            try:
                container = build(self.collect_sections(), self.producer, encrypted=bool(password))
                payload = container.to_json_bytes()
                if password:
                    payload = encrypt(payload, password)

                target = self._new_backup_path()
                with tempfile.TemporaryDirectory(prefix="stockly-export-") as scratch:
                    staged = Path(scratch) / target.name
                    staged.write_bytes(payload)
                    shutil.move(str(staged), str(target))
            except BackupError:
                raise
            except SQLAlchemyError as exc:
                logger.exception("Export failed while reading data")
                raise ExportFailed(str(exc)) from exc
            except OSError as exc:
                raise FileCreationFailed(str(exc)) from exc

            self.settings.set(LAST_BACKUP_DATE_KEY, to_utc_z(utcnow()))
            self.store.save()

        counts = {f: len(v) for f, v in container.sections.items() if isinstance(v, list)}
        logger.info("Exported backup %s (encrypted=%s) %s", target.name, bool(password), counts)
        return target

    # Import

    def _read(self, path) -> bytes:
        path = Path(path)
        try:
            return path.read_bytes()
        except FileNotFoundError as exc:
            raise FileNotFound(path.name) from exc
        except PermissionError as exc:
            raise AccessDenied(path.name) from exc
        except OSError as exc:
            raise ImportFailed(str(exc)) from exc

    def is_backup_encrypted(self, path) -> bool:
        return looks_encrypted(self._read(path))

    def read_container(self, path, password: str | None = None) -> BackupContainer:
        data = self._read(path)
        try:
            return parse(data)
        except DecodingFailed:
            pass
        if not password:
            raise DecryptionFailed("backup is encrypted and no password was given")
        return parse(decrypt(data, password))

    def import_all_data(self, path, password: str | None = None, policy=ConflictPolicy.REPLACE) -> RestoreReport:
        """
        Restore a backup file into the database.

        Row-level problems are reported in the returned RestoreReport.
        Structural problems raise a BackupError and change nothing.
        """
        with _exclusive("import"):
            container = self.read_container(path, password)
            logger.info(
                "Importing backup %s (version %s, from %s)",
                Path(path).name,
                container.version,
                container.metadata.platform or "unknown",
            )
            return RestoreOrchestrator(self.store, self.settings, policy).restore(container)

    def import_from_stream(self, stream, password: str | None = None, policy=ConflictPolicy.REPLACE) -> RestoreReport:
        """Import an uploaded file object via a scratch copy."""
        with tempfile.TemporaryDirectory(prefix="stockly-import-") as scratch:
            staged = Path(scratch) / f"upload{BACKUP_EXTENSION}"
            try:
                with staged.open("wb") as fh:
                    shutil.copyfileobj(stream, fh)
            except OSError as exc:
                raise ImportFailed(str(exc)) from exc
            return self.import_all_data(staged, password=password, policy=policy)
