"""Tests for the asset audit validator."""

import json

import pytest

from assets.factories import (
    AssetAuditFactory,
    AssetFactory,
    ConsumableFactory,
)
from assets.models import AssetAudit
from itdesk.exceptions import InvalidState, PermissionDenied


def _payload(asset, **overrides):
    data = {
        "company": "IDESOLUSI",
        "hostname": asset.hostname,
        "serialNumber": asset.serial_number,
        "year": 2024,
    }
    data.update(overrides)
    return json.dumps(data)


@pytest.mark.django_db
class TestDecodePayload:
    def test_json_object(self):
        from assets.services.audit import decode_payload

        assert decode_payload('{"hostname": "A"}') == {"hostname": "A"}

    def test_raw_tokens(self):
        from assets.services.audit import decode_payload

        assert decode_payload("LAPTOP001") is None
        assert decode_payload("12345") is None
        assert decode_payload('["a", "b"]') is None


@pytest.mark.django_db
class TestScanAsset:
    def test_structured_payload_validates(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(engineer, _payload(asset), code_format="QR Code")

        assert result.status == "valid"
        assert result.asset == asset
        assert result.message == (
            "Asset validated successfully (scanned via QR Code)"
        )
        audit = AssetAudit.objects.get(pk=result.audit_id)
        assert audit.asset == asset
        assert audit.audited_by == engineer.full_name
        assert audit.scanned_data.startswith("QR Code: {")

    def test_payload_hostname_may_be_asset_id(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(engineer, _payload(asset, hostname="LAPTOP001"))
        assert result.status == "valid"

    def test_raw_barcode_matches_asset_id(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(engineer, "LAPTOP001", code_format="Code128")

        assert result.status == "valid"
        assert result.asset == asset
        assert result.message == (
            "Asset found and validated (scanned via Code128)"
        )
        audit = AssetAudit.objects.get(pk=result.audit_id)
        assert audit.scanned_data == "Code128: LAPTOP001"

    def test_raw_barcode_matches_serial(self, admin, asset):
        from assets.services.audit import scan_asset

        assert scan_asset(admin, "DL123456789").asset == asset

    def test_raw_scan_of_consumable_serial(self, engineer):
        from assets.services.audit import scan_asset

        first, second = ConsumableFactory.create_batch(2)
        result = scan_asset(engineer, second.serial_number)
        assert result.asset == second

    def test_unknown_code_is_recorded_as_not_found(self, engineer, asset):
        from assets.services.audit import scan_asset

        first = scan_asset(engineer, "UNKNOWN999")
        second = scan_asset(engineer, "UNKNOWN999")

        assert first.status == "not_found"
        assert first.asset is None
        assert first.message == (
            "Asset not found in database (scanned via QR Code)"
        )
        assert first.audit_id != second.audit_id
        audits = AssetAudit.objects.filter(status="not_found")
        assert audits.count() == 2
        assert {a.audited_asset_id for a in audits} == {0}
        assert audits.first().scanned_data == "UNKNOWN999"

    def test_serial_is_matched_exactly(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(
            engineer, _payload(asset, serialNumber="dl123456789")
        )

        assert result.status == "not_found"
        assert result.asset is None
        assert AssetAudit.objects.get(pk=result.audit_id).asset is None

    def test_hostname_is_matched_exactly(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(
            engineer, _payload(asset, hostname="laptop-john01")
        )
        assert result.status == "not_found"

    def test_case_variants_resolve_to_exact_asset(self, engineer):
        from assets.services.audit import scan_asset

        AssetFactory(asset_id="A1", hostname="H1", serial_number="abc")
        upper = AssetFactory(asset_id="A2", hostname="H1", serial_number="ABC")

        result = scan_asset(
            engineer,
            json.dumps({"hostname": "H1", "serialNumber": "ABC"}),
        )

        assert result.status == "valid"
        assert result.asset == upper

    def test_payload_for_other_asset_is_not_found(self, engineer, asset):
        from assets.services.audit import scan_asset

        other = AssetFactory()
        result = scan_asset(
            engineer, _payload(asset, hostname=other.hostname)
        )
        assert result.status == "not_found"

    def test_payload_missing_keys(self, engineer, asset):
        from assets.services.audit import scan_asset

        payload = json.dumps({"hostname": asset.hostname})
        assert scan_asset(engineer, payload).status == "not_found"

    def test_notes_kept(self, engineer, asset):
        from assets.services.audit import scan_asset

        result = scan_asset(engineer, "LAPTOP001", notes="Desk 4B")
        assert AssetAudit.objects.get(pk=result.audit_id).notes == "Desk 4B"

    def test_reporter_cannot_scan(self, reporter, asset):
        from assets.services.audit import scan_asset

        with pytest.raises(PermissionDenied, match="cannot perform"):
            scan_asset(reporter, "LAPTOP001")
        assert not AssetAudit.objects.exists()

    def test_empty_scan_rejected(self, engineer):
        from assets.services.audit import scan_asset

        with pytest.raises(InvalidState):
            scan_asset(engineer, "")
        assert not AssetAudit.objects.exists()

    def test_audit_recorded_signal(
        self, engineer, asset, django_capture_on_commit_callbacks
    ):
        from assets.services.audit import scan_asset
        from assets.signals import audit_recorded

        received = []

        def handler(sender, audit, asset, **kwargs):
            received.append(audit.status)

        audit_recorded.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                scan_asset(engineer, "NOPE")
        finally:
            audit_recorded.disconnect(handler)

        assert received == ["not_found"]


@pytest.mark.django_db
class TestListAudits:
    def test_filters_by_asset_and_unmatched(self, engineer, asset):
        from assets.services.audit import list_audits

        matched = AssetAuditFactory(asset=asset)
        unmatched = AssetAuditFactory(asset=None, status="not_found")
        AssetAuditFactory()

        assert list_audits(engineer)[1] == 3
        assert list_audits(engineer, asset_pk=asset.pk) == ([matched], 1)
        assert list_audits(engineer, asset_pk=0) == ([unmatched], 1)

    def test_newest_first_with_limit(self, admin, asset):
        from assets.services.audit import list_audits

        older = AssetAuditFactory(asset=asset)
        newer = AssetAuditFactory(asset=asset)

        assert list_audits(admin) == ([newer, older], 2)
        assert list_audits(admin, limit=1) == ([newer], 2)

    def test_reporter_denied(self, reporter):
        from assets.services.audit import list_audits

        with pytest.raises(PermissionDenied):
            list_audits(reporter)
