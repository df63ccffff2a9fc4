"""
Visibility policies deciding whether a resolved principal may be rendered as a link.

Groups are never linked: they have no profile page, so they render as labels
whatever the policy. For users two policies exist:

- AllowResolvedUsersPolicy (default): any resolved, active user is linkable.
  The rendered output is the same whether or not the viewer could open the
  user's profile.
- ProfileVisibilityPolicy: asks an injected `can_view(viewer, user)` callable.
  Users the viewer may not see are left as their original literal text.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from mention_engine.core.mention_resolver.models import Group, Principal, User

logger = logging.getLogger(__name__)


class VisibilityPolicy(ABC):
    """Decides whether `viewer` may see a link to `principal`."""

    def may_link_to(self, principal: Principal, viewer: Optional[Any]) -> bool:
        if isinstance(principal, Group):
            return False
        if isinstance(principal, User):
            return self.may_link_to_user(principal, viewer)
        return False

    @abstractmethod
    def may_link_to_user(self, user: User, viewer: Optional[Any]) -> bool:
        ...


class AllowResolvedUsersPolicy(VisibilityPolicy):
    def may_link_to_user(self, user: User, viewer: Optional[Any]) -> bool:
        return True


class ProfileVisibilityPolicy(VisibilityPolicy):
    """Links a user only if `can_view(viewer, user)` allows it."""

    def __init__(self, can_view: Callable[[Optional[Any], User], bool]):
        self.can_view = can_view

    def may_link_to_user(self, user: User, viewer: Optional[Any]) -> bool:
        allowed = bool(self.can_view(viewer, user))
        if not allowed:
            logger.info(f"Viewer may not see user {user.id}, mention left as text")
        return allowed
