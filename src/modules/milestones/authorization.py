"""Authorization policy for milestone operations.

Services receive a policy object instead of consulting a hard-coded
administrator list.  ``RoleAuthorizationPolicy`` reads the administrator
roles from ``settings.MILESTONE_ADMIN_ROLES``.
"""

from __future__ import annotations

from typing import Iterable, Optional, Protocol

from django.conf import settings

from modules.core.actors import Actor


class AuthorizationPolicy(Protocol):
    def is_admin(self, actor: Actor) -> bool: ...

    def can_operate(self, actor: Actor, milestone) -> bool: ...

    def can_decide_delay(self, actor: Actor, order) -> bool: ...

    def can_manage_order(self, actor: Actor, order) -> bool: ...


class RoleAuthorizationPolicy:
    """Administrators may do anything; others act on their own role's milestones."""

    def __init__(self, admin_roles: Optional[Iterable[str]] = None) -> None:
        if admin_roles is None:
            admin_roles = settings.MILESTONE_ADMIN_ROLES
        self._admin_roles = frozenset(str(r) for r in admin_roles)

    def is_admin(self, actor: Actor) -> bool:
        return actor.role in self._admin_roles

    def can_operate(self, actor: Actor, milestone) -> bool:
        return self.is_admin(actor) or (
            bool(actor.role) and actor.role == milestone.owner_role
        )

    def can_decide_delay(self, actor: Actor, order) -> bool:
        return self.can_manage_order(actor, order)

    def can_manage_order(self, actor: Actor, order) -> bool:
        """Creator or administrator: completes, cancels and decides delays."""
        return self.is_admin(actor) or order.created_by == actor.user_id
