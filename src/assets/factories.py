"""Factory Boy factories for asset test data."""

import factory
from factory.django import DjangoModelFactory


class AssetFactory(DjangoModelFactory):
    """Factory for Asset model."""

    class Meta:
        model = "assets.Asset"

    asset_id = factory.Sequence(lambda n: f"LAPTOP{n:03d}")
    hostname = factory.LazyAttribute(lambda o: f"{o.asset_id}-HOST")
    product_name = "Laptop"
    serial_number = factory.Sequence(lambda n: f"SN-{n:06d}")
    brand_name = "Dell"
    model = "XPS 13"
    category = "laptop"
    status = "in_use"
    location = "Office Floor 1"


class ConsumableFactory(AssetFactory):
    """Consumable stock item; quantity is written directly, so tests that
    need a ledger should go through the stock service."""

    asset_id = factory.Sequence(lambda n: f"CONSUMABLE{n:03d}")
    product_name = "Wireless Mouse"
    serial_number = factory.Sequence(lambda n: f"CS-{n:06d}")
    brand_name = "Logitech"
    category = "consumable"
    status = "available"
    location = "IT Storage"
    is_consumable = True
    quantity = 0
    min_stock_level = 3


class AssetAuditFactory(DjangoModelFactory):
    """Factory for AssetAudit model."""

    class Meta:
        model = "assets.AssetAudit"

    asset = factory.SubFactory(AssetFactory)
    audited_by = factory.Faker("name")
    status = "valid"
    scanned_data = factory.LazyAttribute(
        lambda o: o.asset.asset_id if o.asset else "UNKNOWN"
    )
