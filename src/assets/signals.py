"""Domain events published by the asset services.

Sent from ``transaction.on_commit`` so receivers only ever see
committed ledger and audit rows.
"""

from django.dispatch import Signal

# kwargs: asset, transaction (StockTransaction), actor
stock_changed = Signal()

# kwargs: audit (AssetAudit), asset (or None), actor
audit_recorded = Signal()

# kwargs: transfer (AssetTransfer), asset, actor
asset_transferred = Signal()
