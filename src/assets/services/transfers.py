"""Custody and location hand-over of assets."""

import logging

from django.db import transaction

from accounts.permissions import require
from itdesk.db import lock_row
from itdesk.exceptions import NotFound

from ..models import Asset, AssetTransfer
from ..signals import asset_transferred
from .registry import get_asset

logger = logging.getLogger(__name__)


def record_transfer(
    actor,
    asset_pk,
    *,
    to_user=None,
    to_user_email=None,
    to_location=None,
    reason=None,
    notes=None,
) -> AssetTransfer:
    """Hand an asset over and append the transfer record.

    The asset's assignment and location are replaced wholesale: a field
    left out of the hand-over is cleared.
    """
    require(actor, "asset.transfer")
    with transaction.atomic():
        try:
            asset = lock_row(Asset.objects.all(), pk=asset_pk)
        except Asset.DoesNotExist:
            raise NotFound("Asset not found.")

        transfer = AssetTransfer.objects.create(
            asset=asset,
            from_user=asset.assigned_user,
            from_user_email=asset.assigned_user_email,
            from_location=asset.location,
            to_user=to_user or None,
            to_user_email=to_user_email or None,
            to_location=to_location or None,
            transferred_by=actor.email or actor.full_name,
            reason=reason or None,
            notes=notes or None,
        )
        asset.assigned_user = transfer.to_user
        asset.assigned_user_email = transfer.to_user_email
        asset.location = transfer.to_location
        asset.save(
            update_fields=[
                "assigned_user",
                "assigned_user_email",
                "location",
                "updated_at",
            ]
        )
        transaction.on_commit(
            lambda: asset_transferred.send(
                sender=AssetTransfer,
                transfer=transfer,
                asset=asset,
                actor=actor,
            )
        )

    logger.info(
        "Asset %s transferred from %s to %s by %s",
        asset.asset_id,
        transfer.from_user or "-",
        transfer.to_user or "-",
        transfer.transferred_by,
    )
    return transfer


def get_transfer_history(actor, asset_pk) -> list[AssetTransfer]:
    """Transfers of an asset the actor may see, newest first."""
    asset = get_asset(actor, asset_pk)
    return list(asset.transfers.order_by("-transfer_date", "-pk"))
