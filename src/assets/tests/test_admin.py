"""Tests for assets Django admin interface."""

import json

import pytest

from django.urls import reverse

from assets.factories import AssetAuditFactory
from assets.models import Asset, AssetAudit, StockTransaction


def _change_form_data(asset, **overrides):
    data = {
        "asset_id": asset.asset_id,
        "hostname": asset.hostname or "",
        "product_name": asset.product_name,
        "serial_number": asset.serial_number,
        "brand_name": asset.brand_name,
        "model": asset.model or "",
        "category": asset.category,
        "status": asset.status,
        "location": asset.location or "",
        "assigned_user": asset.assigned_user or "",
        "assigned_user_email": asset.assigned_user_email or "",
        "date_acquired": "",
        "warranty_expiry_date": "",
        "comments": asset.comments or "",
        "min_stock_level": str(asset.min_stock_level),
        "stock_transactions-TOTAL_FORMS": "0",
        "stock_transactions-INITIAL_FORMS": "0",
        "stock_transactions-MIN_NUM_FORMS": "0",
        "stock_transactions-MAX_NUM_FORMS": "1000",
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
class TestAssetAdmin:
    def test_changelist_loads(self, admin_client, asset):
        response = admin_client.get(reverse("admin:assets_asset_changelist"))
        assert response.status_code == 200
        assert b"LAPTOP001" in response.content

    def test_change_form_shows_ledger(self, admin_client, consumable):
        response = admin_client.get(
            reverse("admin:assets_asset_change", args=[consumable.pk])
        )
        assert response.status_code == 200
        assert b"Initial stock setup" in response.content

    def test_editing_hostname_rebuilds_qr_payload(self, admin_client, asset):
        response = admin_client.post(
            reverse("admin:assets_asset_change", args=[asset.pk]),
            _change_form_data(asset, hostname="LAPTOP-JANE02"),
        )
        assert response.status_code == 302

        asset.refresh_from_db()
        assert asset.hostname == "LAPTOP-JANE02"
        payload = json.loads(asset.qr_code_data)
        assert payload["hostname"] == "LAPTOP-JANE02"
        assert payload["serialNumber"] == "DL123456789"

    def test_deleting_asset_takes_its_history(self, admin_client, consumable):
        AssetAuditFactory(asset=consumable)
        response = admin_client.post(
            reverse("admin:assets_asset_delete", args=[consumable.pk]),
            {"post": "yes"},
        )
        assert response.status_code == 302
        assert not Asset.objects.filter(pk=consumable.pk).exists()
        assert not StockTransaction.objects.exists()
        assert not AssetAudit.objects.exists()


@pytest.mark.django_db
class TestReadOnlyLedgerAdmins:
    def test_stock_transactions_browsable(self, admin_client, consumable):
        response = admin_client.get(
            reverse("admin:assets_stocktransaction_changelist")
        )
        assert response.status_code == 200

    def test_stock_transactions_cannot_be_added(self, admin_client):
        response = admin_client.get(
            reverse("admin:assets_stocktransaction_add")
        )
        assert response.status_code == 403

    def test_ledger_rows_cannot_be_deleted(
        self, admin, admin_client, consumable
    ):
        from assets.services.stock import adjust_stock

        adjust_stock(admin, consumable.pk, "remove", 2)
        rows = list(StockTransaction.objects.values_list("pk", flat=True))

        response = admin_client.post(
            reverse("admin:assets_stocktransaction_changelist"),
            {"action": "delete_selected", "_selected_action": rows},
        )
        assert response.status_code in (200, 302)
        assert StockTransaction.objects.count() == 2
        consumable.refresh_from_db()
        assert consumable.quantity == 8

        response = admin_client.post(
            reverse("admin:assets_stocktransaction_delete", args=[rows[0]]),
            {"post": "yes"},
        )
        assert response.status_code == 403
        assert StockTransaction.objects.count() == 2

    def test_audits_cannot_be_deleted(self, admin_client, asset):
        audit = AssetAuditFactory(asset=asset)
        response = admin_client.post(
            reverse("admin:assets_assetaudit_delete", args=[audit.pk]),
            {"post": "yes"},
        )
        assert response.status_code == 403
        assert AssetAudit.objects.filter(pk=audit.pk).exists()

    def test_audits_browsable(self, admin_client, asset):
        AssetAuditFactory(asset=asset)
        response = admin_client.get(
            reverse("admin:assets_assetaudit_changelist")
        )
        assert response.status_code == 200

    def test_transfers_browsable(self, admin_client):
        response = admin_client.get(
            reverse("admin:assets_assettransfer_changelist")
        )
        assert response.status_code == 200
