# Overview: Pytest coverage for the versioned backup container.

import json

import pytest

from stockly.services.backup_container import (
    CURRENT_BACKUP_VERSION,
    BackupMetadata,
    ProducerInfo,
    build,
    looks_encrypted,
    parse,
)
from stockly.services.backup_errors import (
    CorruptedBackup,
    DecodingFailed,
    EncodingFailed,
    IncompatibleVersion,
    InvalidData,
)


def _dump(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


class TestBuild:
    def test_metadata_from_producer(self):
        container = build({"items": []}, ProducerInfo("2.1", "42", "test"), encrypted=True)

        assert container.version == CURRENT_BACKUP_VERSION
        meta = container.metadata.to_dict()
        assert meta["appVersion"] == "2.1"
        assert meta["buildNumber"] == "42"
        assert meta["platform"] == "test"
        assert meta["encrypted"] is True
        assert meta["creationDate"].endswith("Z")

    def test_unknown_section_rejected(self):
        with pytest.raises(EncodingFailed):
            build({"payments": []})

    def test_json_is_pretty_printed(self):
        data = build({"clients": [{"id": "x", "name": "Zoë"}]}).to_json_bytes()
        text = data.decode("utf-8")
        assert "\n  " in text
        assert "Zoë" in text

    def test_non_finite_numbers_fail_encoding(self):
        container = build({"items": [{"price": float("nan")}]})
        with pytest.raises(EncodingFailed):
            container.to_json_bytes()


class TestParse:
    def test_round_trip(self):
        sections = {
            "categories": [{"id": "c1", "name": "Rings"}],
            "items": [{"id": "i1", "sku": "MC-R001"}],
            "settings": {"companyName": "Montecristo Jewellers"},
        }
        original = build(sections, ProducerInfo("1.0", "1", "server"))
        parsed = parse(original.to_json_bytes())

        assert parsed.version == 1
        assert parsed.section("items") == sections["items"]
        assert parsed.section("settings") == sections["settings"]
        assert parsed.section("clients") is None
        assert parsed.metadata.platform == "server"
        assert parsed.metadata.encrypted is False

    def test_newer_version_rejected(self):
        with pytest.raises(IncompatibleVersion) as excinfo:
            parse(_dump({"version": CURRENT_BACKUP_VERSION + 1}))
        assert excinfo.value.found == CURRENT_BACKUP_VERSION + 1
        assert excinfo.value.supported == CURRENT_BACKUP_VERSION

    @pytest.mark.parametrize("payload", [
        {},
        {"version": "1"},
        {"version": True},
        {"version": 1.5},
        [1, 2, 3],
    ])
    def test_bad_version_or_shape(self, payload):
        with pytest.raises(InvalidData):
            parse(_dump(payload))

    @pytest.mark.parametrize("data", [b"\xff\xfe\x00", b"{not json", b""])
    def test_not_json(self, data):
        with pytest.raises(DecodingFailed):
            parse(data)

    @pytest.mark.parametrize("payload", [
        {"version": 1, "items": {"id": "x"}},
        {"version": 1, "settings": []},
        {"version": 1, "metadata": "yesterday"},
    ])
    def test_wrong_section_shape(self, payload):
        with pytest.raises(CorruptedBackup):
            parse(_dump(payload))

    def test_missing_metadata_is_synthesized(self):
        parsed = parse(_dump({"version": 1, "clients": []}))
        assert parsed.metadata.import_date is not None
        assert parsed.metadata.encrypted is False
        assert parsed.section("clients") == []

    def test_null_section_treated_as_absent(self):
        parsed = parse(_dump({"version": 1, "invoices": None}))
        assert parsed.section("invoices") is None

    def test_unknown_metadata_keys_are_kept(self):
        parsed = parse(_dump({"version": 1, "metadata": {"deviceName": "iPad", "encrypted": False}}))
        assert parsed.metadata.extra == {"deviceName": "iPad"}
        assert parsed.metadata.to_dict()["deviceName"] == "iPad"


class TestLooksEncrypted:
    def test_plain_container(self):
        assert looks_encrypted(build({}).to_json_bytes()) is False

    def test_binary_blob(self):
        assert looks_encrypted(b"\x8a\x01\x02 random bytes") is True

    def test_flagged_in_metadata(self):
        assert looks_encrypted(_dump({"version": 1, "metadata": {"encrypted": True}})) is True


def test_metadata_from_dict_coerces_to_text():
    meta = BackupMetadata.from_dict({"appVersion": 3, "buildNumber": None})
    assert meta.app_version == "3"
    assert meta.build_number is None
