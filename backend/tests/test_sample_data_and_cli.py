import os

import pytest

from stockly.models import Category, CustomField, Invoice, Item
from stockly.services.sample_data_service import SampleDataError, load_sample_data


class TestSampleData:
    def test_loads_montecristo_dataset(self, db_session, store, settings):
        counts = load_sample_data(store=store, settings=settings)

        assert counts == {
            "categories": 6,
            "items": 12,
            "clients": 7,
            "suppliers": 5,
            "invoices": 4,
            "estimates": 3,
        }
        assert db_session.query(CustomField).count() == 4
        ring = db_session.query(Item).filter_by(sku="MC-R001").one()
        assert ring.barcode == "4901234567890"
        assert settings.get("companyName") == "Montecristo Jewellers"

        first = db_session.query(Invoice).filter_by(number="INV-2025-001").one()
        # 1299.99 + 199.99 - 50 fixed, +7.5%
        assert first.total_amount == 1558.73
        assert first.qr_code_data.startswith("INVOICE:INV-2025-001")

    def test_refuses_non_empty_database(self, db_session, store):
        load_sample_data(store=store)
        with pytest.raises(SampleDataError):
            load_sample_data(store=store)
        assert db_session.query(Category).count() == 6


class TestCli:
    def test_export_list_and_import(self, app, db_session):
        runner = app.test_cli_runner()

        result = runner.invoke(args=["sample-data", "load"])
        assert result.exit_code == 0, result.output
        assert "items" in result.output

        result = runner.invoke(args=["backups", "export", "--password", "correct-horse"])
        assert result.exit_code == 0, result.output
        path = result.output.strip().split("Backup written: ")[1]
        assert os.path.exists(path)

        result = runner.invoke(args=["backups", "list"])
        assert os.path.basename(path) in result.output

        result = runner.invoke(args=["backups", "import", path], input="wrong-password\n")
        assert result.exit_code != 0
        assert "Failed to decrypt backup" in result.output

        result = runner.invoke(args=["backups", "import", path, "--password", "correct-horse", "--merge"])
        assert result.exit_code == 0, result.output
        assert "Imported (merge)" in result.output
        assert "auto-created categories: Accessories" in result.output

        result = runner.invoke(args=["backups", "delete", os.path.basename(path)])
        assert result.exit_code == 0
        assert not os.path.exists(path)

    def test_delete_unknown_backup(self, app, db_session):
        result = app.test_cli_runner().invoke(args=["backups", "delete", "missing.stocklybackup"])
        assert result.exit_code != 0
        assert "Backup file not found" in result.output
