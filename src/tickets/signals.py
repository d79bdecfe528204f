"""Domain events published by the ticket workflow.

Sent from ``transaction.on_commit`` so receivers only ever see
committed state and can never hold the mutating transaction open.
"""

from django.dispatch import Signal

# kwargs: ticket, action ("created" | "updated"), actor,
# previous_status, status_changed
ticket_changed = Signal()
