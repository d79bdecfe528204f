"""Tests for the consumable stock ledger."""

import pytest

from assets.factories import AssetFactory, ConsumableFactory
from assets.models import Asset, StockTransaction
from itdesk.exceptions import (
    InsufficientStock,
    InvalidState,
    NotConsumable,
    NotFound,
)


def _ledger_is_chained(asset):
    rows = list(asset.stock_transactions.order_by("created_at", "pk"))
    assert rows[0].transaction_type == "initial"
    assert rows[0].quantity_before == 0
    for previous, current in zip(rows, rows[1:]):
        assert current.quantity_before == previous.quantity_after
    for row in rows:
        assert row.quantity_after == row.quantity_before + row.quantity_change
    asset.refresh_from_db()
    assert asset.quantity == rows[-1].quantity_after


@pytest.mark.django_db
class TestAdjustStock:
    def test_remove_appends_ledger_row(self, engineer, consumable):
        from assets.services.stock import adjust_stock

        result = adjust_stock(
            engineer,
            consumable.pk,
            "remove",
            4,
            reason="Issued to new starters",
            reference_number="REQ-42",
        )
        assert result.new_quantity == 6

        txn = result.transaction
        assert txn.quantity_before == 10
        assert txn.quantity_change == -4
        assert txn.quantity_after == 6
        assert txn.performed_by == engineer.full_name
        assert txn.reference_number == "REQ-42"

        consumable.refresh_from_db()
        assert consumable.quantity == 6
        assert consumable.stock_transactions.count() == 2

    def test_remove_more_than_available_changes_nothing(
        self, engineer, consumable
    ):
        from assets.services.stock import adjust_stock

        adjust_stock(engineer, consumable.pk, "remove", 4)
        with pytest.raises(InsufficientStock) as exc_info:
            adjust_stock(engineer, consumable.pk, "remove", 10)

        assert str(exc_info.value) == (
            "Insufficient stock: 6 available, 10 requested."
        )
        consumable.refresh_from_db()
        assert consumable.quantity == 6
        assert consumable.stock_transactions.count() == 2

    def test_remove_everything(self, admin, consumable):
        from assets.services.stock import adjust_stock

        result = adjust_stock(admin, consumable.pk, "remove", 10)
        assert result.new_quantity == 0

    def test_add_uses_magnitude(self, admin, consumable):
        from assets.services.stock import adjust_stock

        result = adjust_stock(admin, consumable.pk, "add", -5)
        assert result.new_quantity == 15
        assert result.transaction.quantity_change == 5

    def test_adjustment_sets_absolute_level(self, admin, consumable):
        from assets.services.stock import adjust_stock

        result = adjust_stock(
            admin, consumable.pk, "adjustment", 7, reason="Stocktake"
        )
        assert result.new_quantity == 7
        assert result.transaction.quantity_change == -3

    def test_negative_adjustment_rejected(self, admin, consumable):
        from assets.services.stock import adjust_stock

        with pytest.raises(InvalidState):
            adjust_stock(admin, consumable.pk, "adjustment", -1)
        assert consumable.stock_transactions.count() == 1

    def test_any_role_may_adjust(self, reporter, consumable):
        from assets.services.stock import adjust_stock

        result = adjust_stock(reporter, consumable.pk, "add", 1)
        assert result.new_quantity == 11

    def test_ledger_stays_chained(self, admin, consumable):
        from assets.services.stock import adjust_stock

        adjust_stock(admin, consumable.pk, "add", 5)
        adjust_stock(admin, consumable.pk, "remove", 12)
        adjust_stock(admin, consumable.pk, "adjustment", 20)
        adjust_stock(admin, consumable.pk, "remove", 1)
        _ledger_is_chained(consumable)
        assert consumable.quantity == 19

    def test_initial_refused_once_ledger_exists(self, admin, consumable):
        from assets.services.stock import adjust_stock

        with pytest.raises(InvalidState, match="already initialised"):
            adjust_stock(admin, consumable.pk, "initial", 50)

    def test_unknown_type(self, admin, consumable):
        from assets.services.stock import adjust_stock

        with pytest.raises(InvalidState, match="not a valid transaction"):
            adjust_stock(admin, consumable.pk, "borrow", 1)

    def test_quantity_must_be_integer(self, admin, consumable):
        from assets.services.stock import adjust_stock

        with pytest.raises(InvalidState):
            adjust_stock(admin, consumable.pk, "add", "3")

    def test_non_consumable(self, admin, asset):
        from assets.services.stock import adjust_stock

        with pytest.raises(NotConsumable):
            adjust_stock(admin, asset.pk, "add", 1)
        assert not StockTransaction.objects.exists()

    def test_missing_asset(self, admin):
        from assets.services.stock import adjust_stock

        with pytest.raises(NotFound):
            adjust_stock(admin, 99999, "add", 1)

    def test_stock_changed_sent_after_commit(
        self, admin, consumable, django_capture_on_commit_callbacks
    ):
        from assets.services.stock import adjust_stock
        from assets.signals import stock_changed

        received = []

        def handler(sender, asset, transaction, **kwargs):
            received.append((asset.pk, transaction.quantity_after))

        stock_changed.connect(handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                adjust_stock(admin, consumable.pk, "remove", 2)
        finally:
            stock_changed.disconnect(handler)

        assert received == [(consumable.pk, 8)]


@pytest.mark.django_db
class TestInitialiseStock:
    def test_defaults_to_cached_quantity(self):
        from assets.services.stock import initialise_stock

        item = ConsumableFactory(quantity=25)
        txn = initialise_stock(item)
        assert txn.transaction_type == "initial"
        assert txn.quantity_before == 0
        assert txn.quantity_after == 25
        assert txn.performed_by == "system"
        assert item.quantity == 25

    def test_explicit_quantity_updates_asset(self):
        from assets.services.stock import initialise_stock

        item = ConsumableFactory()
        initialise_stock(item, 4, performed_by="Ada Admin")
        item.refresh_from_db()
        assert item.quantity == 4


@pytest.mark.django_db
class TestStockQueries:
    def test_transactions_newest_first(self, admin, consumable):
        from assets.services.stock import (
            adjust_stock,
            get_stock_transactions,
        )

        adjust_stock(admin, consumable.pk, "remove", 1)
        adjust_stock(admin, consumable.pk, "remove", 2)

        types = [
            (t.transaction_type, t.quantity_after)
            for t in get_stock_transactions(admin, consumable.pk)
        ]
        assert types == [("remove", 7), ("remove", 9), ("initial", 10)]

    def test_transactions_for_missing_asset(self, admin):
        from assets.services.stock import get_stock_transactions

        with pytest.raises(NotFound):
            get_stock_transactions(admin, 99999)

    def test_low_stock_worst_first(self, engineer):
        from assets.services.stock import get_low_stock_items

        at_minimum = ConsumableFactory(quantity=3, min_stock_level=3)
        empty = ConsumableFactory(quantity=0, min_stock_level=5)
        ConsumableFactory(quantity=10, min_stock_level=3)
        ConsumableFactory(quantity=0, min_stock_level=5, status="retired")
        AssetFactory(quantity=0, min_stock_level=5)

        items = get_low_stock_items(engineer)
        assert items == [empty, at_minimum]
        assert items[0].deficit == -5
        assert items[1].deficit == 0

    def test_is_low_stock_property(self):
        item = ConsumableFactory.build(quantity=2, min_stock_level=3)
        assert item.is_low_stock
        assert item.stock_deficit == -1
        assert not Asset(quantity=0, min_stock_level=3).is_low_stock
