"""
Principal lookup interface and an in-memory implementation.

The mention resolver never talks to persistence directly: it consumes a
PrincipalStore. Production callers adapt their user/group storage to this
interface; tests and scripts use InMemoryPrincipalStore.
"""

from __future__ import annotations

import logging
import unicodedata
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

from mention_engine.core.mention_resolver.models import Group, User

logger = logging.getLogger(__name__)


class PrincipalStoreError(RuntimeError):
    """Raised by a store when a lookup cannot be performed (connectivity, storage faults)."""


class PrincipalStore(ABC):
    """
    Read-only principal lookups used by the mention resolver.

    Every method returns None when nothing matches; raising is reserved for
    store faults.
    """

    @abstractmethod
    def find_user_by_id(self, user_id: int) -> Optional[User]:
        ...

    @abstractmethod
    def find_user_by_email(self, address: str) -> Optional[User]:
        """Case-insensitive match against any registered address of a user."""

    @abstractmethod
    def find_user_by_login(self, login: str) -> Optional[User]:
        """Case-insensitive login match."""

    @abstractmethod
    def find_group_by_id(self, group_id: int) -> Optional[Group]:
        ...


class InMemoryPrincipalStore(PrincipalStore):
    """
    Dictionary-backed principal store.

    Logins and email addresses are indexed in normalized form (trimmed, NFKC,
    case-folded). At most one user per login and per address.
    """

    def __init__(self, users: Iterable[User] = (), groups: Iterable[Group] = ()) -> None:
        self._users: Dict[int, User] = {}
        self._groups: Dict[int, Group] = {}
        self._by_login: Dict[str, int] = {}
        self._by_email: Dict[str, int] = {}

        for user in users:
            self.add_user(user)
        for group in groups:
            self.add_group(group)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "InMemoryPrincipalStore":
        """
        Build a store from a JSON-style payload.

        Expected shape:
            {
              "users": [{"id": 1, "name": "Foo Barrit", "login": "foo",
                         "emails": ["foo@bar.com"], "active": true}],
              "groups": [{"id": 7, "name": "Developers"}]
            }
        """
        store = cls()
        for entry in payload.get("users", []):
            store.add_user(User(
                id=int(entry["id"]),
                display_name=entry["name"],
                login=entry.get("login", ""),
                email_addresses=tuple(entry.get("emails", [])),
                active=bool(entry.get("active", True)),
            ))
        for entry in payload.get("groups", []):
            store.add_group(Group(id=int(entry["id"]), display_name=entry["name"]))

        logger.info(f"Loaded {len(store._users)} users and {len(store._groups)} groups")
        return store

    def _norm(self, s: str) -> str:
        return unicodedata.normalize("NFKC", (s or "").strip()).casefold()

    def add_user(self, user: User) -> None:
        """
        Register a user.

        Raises:
            ValueError: If the id, login or one of the addresses is already taken
        """
        if user.id in self._users or user.id in self._groups:
            raise ValueError(f"Principal id {user.id} already registered")

        login_key = self._norm(user.login)
        if login_key and login_key in self._by_login:
            raise ValueError(f"Login '{user.login}' already registered")

        email_keys = [self._norm(address) for address in user.email_addresses]
        for address, key in zip(user.email_addresses, email_keys):
            if key in self._by_email:
                raise ValueError(f"Email address '{address}' already registered")

        self._users[user.id] = user
        if login_key:
            self._by_login[login_key] = user.id
        for key in email_keys:
            self._by_email[key] = user.id

    def add_group(self, group: Group) -> None:
        if group.id in self._groups or group.id in self._users:
            raise ValueError(f"Principal id {group.id} already registered")
        self._groups[group.id] = group

    def find_user_by_id(self, user_id: int) -> Optional[User]:
        return self._users.get(user_id)

    def find_user_by_email(self, address: str) -> Optional[User]:
        user_id = self._by_email.get(self._norm(address))
        return self._users.get(user_id) if user_id is not None else None

    def find_user_by_login(self, login: str) -> Optional[User]:
        user_id = self._by_login.get(self._norm(login))
        return self._users.get(user_id) if user_id is not None else None

    def find_group_by_id(self, group_id: int) -> Optional[Group]:
        return self._groups.get(group_id)

    def __len__(self) -> int:  # pragma: no cover
        return len(self._users) + len(self._groups)
