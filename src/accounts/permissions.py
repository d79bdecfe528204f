"""Role-based access policy for tickets, comments and assets.

Every service asks this module before mutating or disclosing anything.
The policy is a pure function of (role, action, ownership facts): it
never touches the database and never raises for an unknown role or
action, it just denies.

Ownership facts are passed as keyword arguments:

``is_assigned``
    the ticket's assigned engineer is the actor
``is_reporter``
    the ticket's reporter email is the actor's email
``is_self``
    a ticket being created names the actor as its reporter
``is_internal``
    the comment being created is an internal note
``is_author``
    the comment was written by the actor
``is_assigned_user``
    the asset is assigned to the actor (by name or email)
"""

import logging
from dataclasses import dataclass

from itdesk.exceptions import PermissionDenied

from .models import CustomUser

logger = logging.getLogger(__name__)

ADMIN = CustomUser.ROLE_ADMIN
ENGINEER = CustomUser.ROLE_ENGINEER
REPORTER = CustomUser.ROLE_REPORTER

ROLES = frozenset((ADMIN, ENGINEER, REPORTER))


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: str = ""

    def __bool__(self):
        return self.allowed


ALLOW = Decision(True)


def _assigned(facts):
    return bool(facts.get("is_assigned"))


def _reporter(facts):
    return bool(facts.get("is_reporter"))


def _self(facts):
    return bool(facts.get("is_self"))


def _author(facts):
    return bool(facts.get("is_author"))


def _assigned_user(facts):
    return bool(facts.get("is_assigned_user"))


def _public_comment_on_own_ticket(facts):
    return bool(facts.get("is_reporter")) and not facts.get("is_internal")


# action -> {role: True | predicate(facts)}; a missing role is a hard deny.
POLICY = {
    "ticket.create": {ADMIN: True, REPORTER: _self},
    "ticket.read": {ADMIN: True, ENGINEER: _assigned, REPORTER: _reporter},
    "ticket.update_fields": {ADMIN: True},
    "ticket.update_status": {ADMIN: True, ENGINEER: _assigned},
    "ticket.close": {ADMIN: True, ENGINEER: _assigned},
    "ticket.delete": {ADMIN: True},
    "comment.create": {
        ADMIN: True,
        ENGINEER: _assigned,
        REPORTER: _public_comment_on_own_ticket,
    },
    "comment.read_internal": {ADMIN: True, ENGINEER: _assigned},
    "comment.modify": {ADMIN: True, ENGINEER: _author, REPORTER: _author},
    "asset.read": {ADMIN: True, ENGINEER: True, REPORTER: _assigned_user},
    "asset.create": {ADMIN: True},
    "asset.update_fields": {ADMIN: True},
    "asset.update_status": {ADMIN: True, ENGINEER: True},
    "asset.bulk_import": {ADMIN: True},
    "asset.delete": {ADMIN: True},
    "asset.scan": {ADMIN: True, ENGINEER: True},
    "asset.audit_read": {ADMIN: True, ENGINEER: True},
    # No role gate on stock adjustments: any authenticated actor may
    # adjust.
    "asset.stock_adjust": {ADMIN: True, ENGINEER: True, REPORTER: True},
    "asset.stock_read": {ADMIN: True, ENGINEER: True, REPORTER: True},
    "asset.transfer": {ADMIN: True, ENGINEER: True},
    "notification_log.read": {ADMIN: True},
    "engineer.list": {ADMIN: True, ENGINEER: True},
}

DENY_REASONS = {
    "ticket.create": "only admins and reporters can create tickets",
    "ticket.read": "you can only view your own tickets",
    "ticket.update_fields": "only admins can edit ticket details",
    "ticket.update_status": "you can only update tickets assigned to you",
    "ticket.close": "you can only close tickets assigned to you",
    "ticket.delete": "only admins can delete tickets",
    "comment.create": "you cannot comment on this ticket",
    "comment.read_internal": "internal comments are not visible to you",
    "comment.modify": "only the author or an admin can change a comment",
    "asset.read": "you can only view assets assigned to you",
    "asset.create": "only admins can create assets",
    "asset.update_fields": "only admins can edit asset details",
    "asset.update_status": "reporters cannot update assets",
    "asset.bulk_import": "only admins can bulk import assets",
    "asset.delete": "only admins can delete assets",
    "asset.scan": "reporters cannot perform asset audits",
    "asset.audit_read": "reporters cannot view audit records",
    "asset.stock_adjust": "you cannot adjust stock",
    "asset.stock_read": "you cannot view stock transactions",
    "asset.transfer": "reporters cannot record asset transfers",
    "notification_log.read": "only admins can view email logs",
    "engineer.list": "reporters cannot list engineers",
}

ROLE_DENY_REASONS = {
    ("ticket.read", ENGINEER): "you can only view tickets assigned to you",
    ("ticket.create", REPORTER): "reporters can only open tickets as "
    "themselves",
    ("ticket.update_fields", ENGINEER): "engineers can only change the "
    "status of a ticket",
    ("ticket.update_status", REPORTER): "reporters cannot change ticket "
    "status",
    ("ticket.close", REPORTER): "reporters cannot close tickets",
    ("comment.create", REPORTER): "you can only add public comments to "
    "your own tickets",
    ("asset.update_fields", ENGINEER): "engineers can only update asset "
    "status and comments",
}


def _deny(role, action) -> Decision:
    reason = ROLE_DENY_REASONS.get(
        (action, role),
        DENY_REASONS.get(action, "you do not have permission to do that"),
    )
    return Decision(False, reason)


def authorize(role: str, action: str, **facts) -> Decision:
    """Decide whether ``role`` may perform ``action`` given the facts."""
    rule = POLICY.get(action, {}).get(role)
    if rule is None:
        return _deny(role, action)
    if rule is True or rule(facts):
        return ALLOW
    return _deny(role, action)


def role_may(role: str, action: str) -> bool:
    """Return True unless the role can never perform the action.

    Lets services reject a request before loading the target row.
    """
    return POLICY.get(action, {}).get(role) is not None


def require(actor, action: str, **facts) -> None:
    """Raise PermissionDenied unless the actor may perform the action."""
    decision = authorize(actor.role, action, **facts)
    if not decision:
        logger.warning(
            "Denied %s to actor #%s (%s): %s",
            action,
            actor.id,
            actor.role,
            decision.reason,
        )
        raise PermissionDenied(decision.reason)


def require_role(actor, action: str) -> None:
    """Raise PermissionDenied if the actor's role rules the action out."""
    if not role_may(actor.role, action):
        require(actor, action)
