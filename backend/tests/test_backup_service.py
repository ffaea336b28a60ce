# Overview: Pytest coverage for the backup service facade (files, encryption, restore, password, reminder).

import io
import json
import os
import re
from datetime import timedelta

import pytest

from conftest import make_client, make_item
from stockly.models import Category, Client, Estimate, Invoice, InvoiceItem, Item
from stockly.services import backup_service as backup_module
from stockly.services.backup_container import parse
from stockly.services.backup_errors import (
    AccessDenied,
    BackupInProgress,
    DecryptionFailed,
    FileNotFound,
    IncompatibleVersion,
)
from stockly.services.backup_service import (
    BACKUP_EXTENSION,
    LAST_BACKUP_DATE_KEY,
    BackupPasswordError,
    is_backup_running,
)
from stockly.services.restore_service import ConflictPolicy
from stockly.services.sample_data_service import load_sample_data
from stockly.time_utils import to_utc_z, utcnow


@pytest.fixture()
def sample_data(store, settings):
    return load_sample_data(store=store, settings=settings)


class TestExport:
    def test_writes_plain_container(self, db_session, backup_service, sample_data):
        path = backup_service.export_all_data()

        assert re.fullmatch(r"stockly_backup_\d{8}_\d{6}\.stocklybackup", path.name)
        container = parse(path.read_bytes())
        assert container.metadata.app_version == "2.1"
        assert container.metadata.platform == "test"
        assert container.metadata.encrypted is False
        assert len(container.section("items")) == 12
        assert len(container.section("invoices")) == 4
        assert container.section("settings")["companyName"] == "Montecristo Jewellers"

    def test_records_last_backup_date(self, db_session, backup_service):
        assert backup_service.last_backup_date is None
        backup_service.export_all_data()
        assert backup_service.last_backup_date is not None
        assert backup_service.should_show_backup_reminder() is False

    def test_password_hash_never_exported(self, db_session, backup_service):
        backup_service.set_backup_password("correct-horse")
        path = backup_service.export_all_data()
        text = path.read_text(encoding="utf-8")
        assert "backupPasswordHash" not in text
        assert "$2b$" not in text

    def test_same_second_exports_get_distinct_names(self, db_session, backup_service):
        first = backup_service.export_all_data()
        second = backup_service.export_all_data()
        assert first != second
        assert first.exists() and second.exists()

    def test_encrypted_export(self, db_session, backup_service):
        path = backup_service.export_all_data(password="correct-horse")
        assert backup_service.is_backup_encrypted(path) is True
        with pytest.raises(ValueError):
            json.loads(path.read_bytes())

    def test_rejected_while_another_operation_runs(self, db_session, backup_service):
        backup_module._operation_lock.acquire()
        try:
            assert is_backup_running() is True
            with pytest.raises(BackupInProgress):
                backup_service.export_all_data()
        finally:
            backup_module._operation_lock.release()
        assert is_backup_running() is False
        assert backup_service.list_backup_files() == []


class TestImport:
    def test_round_trip_replace(self, db_session, backup_service, sample_data):
        totals = {i.number: i.total_amount for i in db_session.query(Invoice).all()}
        path = backup_service.export_all_data()

        for client in db_session.query(Client).all():
            db_session.delete(client)
        db_session.add(make_item(sku="NOT-IN-BACKUP"))
        db_session.commit()

        report = backup_service.import_all_data(path)

        assert report.imported["items"] == 12
        assert report.imported["clients"] == 7
        assert report.imported["suppliers"] == 5
        assert report.imported["estimates"] == 3
        assert report.skipped_rows() == []
        assert db_session.query(Item).filter_by(sku="NOT-IN-BACKUP").count() == 0
        assert db_session.query(Client).count() == 7
        assert {i.number: i.total_amount for i in db_session.query(Invoice).all()} == totals
        assert db_session.query(InvoiceItem).filter(InvoiceItem.invoice_id.is_(None)).count() == 0
        assert db_session.query(Estimate).count() == 3
        # Sample items use "Accessories", which has no category row
        assert report.auto_created_categories == ["Accessories"]
        assert db_session.query(Category).count() == 7

    def test_merge_keeps_rows_missing_from_backup(self, db_session, backup_service):
        db_session.add(make_client(name="In Backup"))
        db_session.commit()
        path = backup_service.export_all_data()

        db_session.add(make_client(name="Added Later"))
        db_session.commit()

        backup_service.import_all_data(path, policy=ConflictPolicy.MERGE)

        assert sorted(c.name for c in db_session.query(Client).all()) == ["Added Later", "In Backup"]

    def test_encrypted_round_trip(self, db_session, backup_service):
        db_session.add(make_client())
        db_session.commit()
        path = backup_service.export_all_data(password="correct-horse")
        db_session.query(Client).delete()
        db_session.commit()

        with pytest.raises(DecryptionFailed):
            backup_service.import_all_data(path)
        with pytest.raises(DecryptionFailed):
            backup_service.import_all_data(path, password="wrong-password")
        assert db_session.query(Client).count() == 0

        report = backup_service.import_all_data(path, password="correct-horse")
        assert report.imported["clients"] == 1
        assert db_session.query(Client).one().name == "John Smith"

    def test_password_ignored_for_plain_file(self, db_session, backup_service):
        path = backup_service.export_all_data()
        report = backup_service.import_all_data(path, password="unused")
        assert report.policy is ConflictPolicy.REPLACE

    def test_newer_version_changes_nothing(self, db_session, backup_service):
        db_session.add(make_client())
        db_session.commit()
        path = backup_service.backups_directory() / f"future{BACKUP_EXTENSION}"
        path.write_text(json.dumps({"version": 99, "clients": []}), encoding="utf-8")

        with pytest.raises(IncompatibleVersion):
            backup_service.import_all_data(path)
        assert db_session.query(Client).count() == 1

    def test_missing_file(self, db_session, backup_service, tmp_path):
        with pytest.raises(FileNotFound):
            backup_service.import_all_data(tmp_path / f"nope{BACKUP_EXTENSION}")

    def test_import_from_stream(self, db_session, backup_service):
        db_session.add(make_client())
        db_session.commit()
        data = backup_service.export_all_data().read_bytes()
        db_session.query(Client).delete()
        db_session.commit()

        report = backup_service.import_from_stream(io.BytesIO(data))

        assert report.imported["clients"] == 1
        assert is_backup_running() is False


class TestBackupFiles:
    def test_list_newest_first(self, backup_service):
        directory = backup_service.backups_directory()
        older = directory / f"stockly_backup_20240101_000000{BACKUP_EXTENSION}"
        newer = directory / f"stockly_backup_20240102_000000{BACKUP_EXTENSION}"
        for path in (older, newer):
            path.write_text("{}", encoding="utf-8")
        (directory / "notes.txt").write_text("ignored", encoding="utf-8")
        os.utime(older, (1_700_000_000, 1_700_000_000))
        os.utime(newer, (1_700_100_000, 1_700_100_000))

        files = backup_service.list_backup_files()

        assert [p.name for p in files] == [newer.name, older.name]
        info = backup_service.describe(files[0])
        assert info["size"] == 2
        assert info["modified"].endswith("Z")

    @pytest.mark.parametrize("name", [
        "../escape.stocklybackup",
        "nested/file.stocklybackup",
        "..\\escape.stocklybackup",
        "..",
        "",
        "backup.json",
    ])
    def test_resolve_rejects_unsafe_names(self, backup_service, name):
        with pytest.raises(AccessDenied):
            backup_service.resolve_backup_path(name)

    def test_delete(self, backup_service):
        path = backup_service.backups_directory() / f"old{BACKUP_EXTENSION}"
        path.write_text("{}", encoding="utf-8")

        backup_service.delete_backup_file(path.name)

        assert not path.exists()
        with pytest.raises(FileNotFound):
            backup_service.delete_backup_file(path.name)

    def test_delete_outside_directory_denied(self, backup_service, tmp_path):
        outside = tmp_path / f"elsewhere{BACKUP_EXTENSION}"
        outside.write_text("{}", encoding="utf-8")
        with pytest.raises(AccessDenied):
            backup_service.delete_backup_file(outside)
        assert outside.exists()


class TestBackupPassword:
    def test_set_verify_and_disable(self, db_session, backup_service):
        assert backup_service.is_backup_password_enabled is False
        assert backup_service.verify_backup_password("anything") is False

        backup_service.set_backup_password("correct-horse")
        assert backup_service.is_backup_password_enabled is True
        assert backup_service.verify_backup_password("correct-horse") is True
        assert backup_service.verify_backup_password("wrong-password") is False

        backup_service.set_backup_password(None)
        assert backup_service.is_backup_password_enabled is False
        assert backup_service.verify_backup_password("correct-horse") is False

    def test_too_long_for_bcrypt(self, db_session, backup_service):
        with pytest.raises(BackupPasswordError):
            backup_service.set_backup_password("x" * 73)
        assert backup_service.is_backup_password_enabled is False


class TestBackupReminder:
    def test_due_when_never_backed_up(self, db_session, backup_service, settings):
        assert backup_service.should_show_backup_reminder() is True
        # First read persists the configured default
        assert settings.get("backupReminderInterval") == 7

    def test_due_after_interval(self, db_session, backup_service, settings):
        now = utcnow()
        settings.set(LAST_BACKUP_DATE_KEY, to_utc_z(now - timedelta(days=8)))
        assert backup_service.should_show_backup_reminder(now=now) is True

        settings.set(LAST_BACKUP_DATE_KEY, to_utc_z(now - timedelta(days=3)))
        assert backup_service.should_show_backup_reminder(now=now) is False

        backup_service.backup_reminder_interval = 2
        assert backup_service.should_show_backup_reminder(now=now) is True

    def test_interval_must_be_positive(self, db_session, backup_service):
        with pytest.raises(ValueError):
            backup_service.backup_reminder_interval = 0

    def test_status(self, db_session, backup_service):
        status = backup_service.status()
        assert status == {
            "last_backup_date": None,
            "reminder_interval_days": 7,
            "reminder_due": True,
            "password_enabled": False,
            "in_progress": False,
        }
