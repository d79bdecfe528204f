"""Consumable stock ledger.

``Asset.quantity`` is a cache of the ledger: it is only ever written in
the same transaction that appends the ``StockTransaction`` explaining
the change, with the asset row locked for the duration.
"""

import logging
from dataclasses import dataclass

from django.db import DatabaseError, transaction
from django.db.models import F, IntegerField
from django.db.models.expressions import ExpressionWrapper

from accounts.permissions import require
from itdesk.db import lock_row
from itdesk.exceptions import (
    InsufficientStock,
    Internal,
    InvalidState,
    NotConsumable,
    NotFound,
)

from ..models import Asset, StockTransaction
from ..signals import stock_changed

logger = logging.getLogger(__name__)

SYSTEM_PERFORMER = "system"


@dataclass(frozen=True)
class StockAdjustment:
    new_quantity: int
    transaction: StockTransaction


def _lock_consumable(asset_pk) -> Asset:
    try:
        asset = lock_row(Asset.objects.all(), pk=asset_pk)
    except Asset.DoesNotExist:
        raise NotFound("Asset not found.")
    if not asset.is_consumable:
        raise NotConsumable()
    return asset


def _plan(asset: Asset, transaction_type: str, quantity: int):
    """Return ``(before, change, after)`` for the requested movement.

    Raises before anything is written.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidState("Quantity must be a whole number.")
    before = asset.quantity
    if transaction_type == "add":
        change = abs(quantity)
    elif transaction_type == "remove":
        change = -abs(quantity)
        if before + change < 0:
            raise InsufficientStock(
                f"Insufficient stock: {before} available, "
                f"{abs(quantity)} requested."
            )
    elif transaction_type == "adjustment":
        if quantity < 0:
            raise InvalidState("Stock cannot be adjusted below zero.")
        change = quantity - before
    elif transaction_type == "initial":
        if asset.stock_transactions.exists():
            raise InvalidState(
                f"Stock for {asset.asset_id} is already initialised."
            )
        before, change = 0, abs(quantity)
    else:
        raise InvalidState(
            f"'{transaction_type}' is not a valid transaction type."
        )
    return before, change, before + change


def _record(
    asset: Asset,
    transaction_type: str,
    quantity: int,
    performed_by: str,
    reason=None,
    reference_number=None,
    actor=None,
) -> StockTransaction:
    """Apply a movement to a locked asset and append its ledger row."""
    before, change, after = _plan(asset, transaction_type, quantity)
    try:
        asset.quantity = after
        asset.save(update_fields=["quantity", "updated_at"])
        txn = StockTransaction.objects.create(
            asset=asset,
            transaction_type=transaction_type,
            quantity_change=change,
            quantity_before=before,
            quantity_after=after,
            performed_by=performed_by,
            reason=reason or None,
            reference_number=reference_number or None,
        )
    except DatabaseError as exc:
        logger.exception(
            "Ledger write failed for asset %s (%s %+d)",
            asset.asset_id,
            transaction_type,
            change,
        )
        raise Internal("Failed to record stock transaction.") from exc

    transaction.on_commit(
        lambda: stock_changed.send(
            sender=StockTransaction,
            asset=asset,
            transaction=txn,
            actor=actor,
        )
    )
    logger.info(
        "Stock %s on %s: %d %+d -> %d by %s",
        transaction_type,
        asset.asset_id,
        before,
        change,
        after,
        performed_by,
    )
    return txn


def adjust_stock(
    actor,
    asset_pk,
    transaction_type: str,
    quantity: int,
    reason: str | None = None,
    reference_number: str | None = None,
) -> StockAdjustment:
    """Move a consumable's stock and append the ledger row atomically.

    ``add`` and ``remove`` use the magnitude of ``quantity``;
    ``adjustment`` sets an absolute level; ``initial`` bootstraps an
    asset that has no ledger yet.
    """
    require(actor, "asset.stock_adjust")
    with transaction.atomic():
        asset = _lock_consumable(asset_pk)
        txn = _record(
            asset,
            transaction_type,
            quantity,
            performed_by=actor.full_name,
            reason=reason,
            reference_number=reference_number,
            actor=actor,
        )
    return StockAdjustment(new_quantity=txn.quantity_after, transaction=txn)


def initialise_stock(
    asset: Asset,
    quantity: int | None = None,
    performed_by: str = SYSTEM_PERFORMER,
    reason: str = "Initial stock setup",
) -> StockTransaction:
    """Write the opening ``initial`` row for a consumable.

    ``quantity`` defaults to the asset's current cached level.
    """
    with transaction.atomic():
        locked = _lock_consumable(asset.pk)
        if quantity is None:
            quantity = locked.quantity
        txn = _record(
            locked,
            "initial",
            quantity,
            performed_by=performed_by,
            reason=reason,
        )
    asset.quantity = locked.quantity
    return txn


def get_stock_transactions(actor, asset_pk) -> list[StockTransaction]:
    """Ledger of one asset, newest first."""
    require(actor, "asset.stock_read")
    if not Asset.objects.filter(pk=asset_pk).exists():
        raise NotFound("Asset not found.")
    return list(
        StockTransaction.objects.filter(asset_id=asset_pk).order_by(
            "-created_at", "-pk"
        )
    )


def get_low_stock_items(actor) -> list[Asset]:
    """Active consumables at or below their minimum, worst deficit first."""
    require(actor, "asset.stock_read")
    return list(
        Asset.objects.filter(
            is_consumable=True,
            quantity__lte=F("min_stock_level"),
        )
        .exclude(status="retired")
        .annotate(
            deficit=ExpressionWrapper(
                F("quantity") - F("min_stock_level"),
                output_field=IntegerField(),
            )
        )
        .order_by("deficit", "pk")
    )
