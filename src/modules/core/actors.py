"""Acting-user identity resolved once per request.

The milestone engine never looks at Django users or Auth0 payloads
directly; views turn ``request.user`` into an ``Actor`` and pass it down.
"""

from __future__ import annotations

from dataclasses import dataclass

from modules.core.constants import SYSTEM_ACTOR_ID, Role


@dataclass(frozen=True)
class Actor:
    """Identity and business role of whoever performs an operation."""

    user_id: str
    role: str = ""
    display_name: str = ""

    @property
    def is_system(self) -> bool:
        return self.user_id == SYSTEM_ACTOR_ID


SYSTEM_ACTOR = Actor(user_id=SYSTEM_ACTOR_ID, role="system", display_name="system")


def actor_from_user(user) -> Actor:
    """Build an ``Actor`` from ``request.user``.

    Auth0 users expose ``sub`` and ``role``; Django users get their role
    from ``StaffProfile`` (superusers are administrators).
    """
    sub = getattr(user, "sub", None)
    if sub:
        return Actor(user_id=sub, role=getattr(user, "role", "") or "", display_name=sub)

    profile = getattr(user, "staff_profile", None)
    role = profile.role if profile is not None else ""
    if not role and getattr(user, "is_superuser", False):
        role = Role.ADMIN
    display_name = (profile.display_name if profile is not None else "") or str(user)
    return Actor(user_id=str(user.pk), role=str(role), display_name=display_name)
