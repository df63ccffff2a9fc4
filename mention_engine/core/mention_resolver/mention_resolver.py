"""
Mention resolution component.

Maps a located token to a concrete principal using the injected PrincipalStore.

Lookup strategies:
==================
- USER_BY_ID: exact id lookup
- USER_BY_LOGIN / USER_BY_EMAIL: the quoted form is overloaded, so both are
  resolved with the same two-step strategy:
    1. case-insensitive match against registered email addresses
    2. case-insensitive login match
  The first hit wins. An address-shaped login (e.g. a user whose login is
  `foo@bar.com`) therefore still resolves through step 2.
- GROUP_BY_ID: exact id lookup among groups only

Inactive users never surface: they degrade to NOT_FOUND.

Resolution is total. Not finding a principal is a normal outcome; only store
faults propagate to the caller.
"""

import logging
from typing import Callable, List, Optional, Tuple

from mention_engine.core.mention_resolver.models import (
    MentionKind,
    MentionToken,
    Principal,
    ResolutionOutcome,
    User,
)
from mention_engine.core.mention_resolver.principal_store import PrincipalStore

logger = logging.getLogger(__name__)


class MentionResolver:
    """Resolves mention tokens against a principal store."""

    def __init__(self, store: PrincipalStore):
        """
        Initialize the resolver.

        Args:
            store: Principal lookup capability
        """
        self.store = store

    def resolve(self, token: MentionToken) -> ResolutionOutcome:
        """
        Resolve one token.

        Args:
            token: Token produced by MentionLocator

        Returns:
            ResolutionOutcome.found(principal) or ResolutionOutcome.not_found()
        """
        if token.kind == MentionKind.USER_BY_ID:
            principal = self._resolve_user_by_id(token.identifier)
        elif token.kind in (MentionKind.USER_BY_LOGIN, MentionKind.USER_BY_EMAIL):
            principal = self._resolve_quoted_user(token.identifier)
        elif token.kind == MentionKind.GROUP_BY_ID:
            principal = self.store.find_group_by_id(int(token.identifier))
        else:
            raise ValueError(f"Unsupported mention kind: {token.kind}")

        if principal is None:
            logger.debug(f"No principal found for {token.raw_match}")
            return ResolutionOutcome.not_found()

        logger.debug(f"Resolved {token.raw_match} to principal {principal.id}")
        return ResolutionOutcome.found(principal)

    def _resolve_user_by_id(self, identifier: str) -> Optional[Principal]:
        return self._active_only(self.store.find_user_by_id(int(identifier)), identifier)

    def _resolve_quoted_user(self, identifier: str) -> Optional[Principal]:
        for strategy_name, lookup in self._quoted_strategies():
            user = lookup(identifier)
            if user is not None:
                logger.debug(f"Quoted mention '{identifier}' matched by {strategy_name}")
                return self._active_only(user, identifier)
        return None

    def _quoted_strategies(self) -> List[Tuple[str, Callable[[str], Optional[User]]]]:
        # Email first, login second
        return [
            ("email", self.store.find_user_by_email),
            ("login", self.store.find_user_by_login),
        ]

    def _active_only(self, user: Optional[User], identifier: str) -> Optional[User]:
        if user is not None and not user.active:
            logger.warning(f"Mention '{identifier}' points at inactive user {user.id}, leaving it unresolved")
            return None
        return user
