"""
Data models for the mention resolver.
"""

import html
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple

from mention_engine.core.mention_resolver.config import MentionSettings


# --- Enums ---

class MentionKind(Enum):
    """
    Kinds of mention tokens recognized in text.

    - USER_BY_ID: `user#42`
    - USER_BY_LOGIN: `user:"jane.doe"`
    - USER_BY_EMAIL: `user:"jane@example.com"` (falls back to login lookup)
    - GROUP_BY_ID: `group#7`
    """
    USER_BY_ID = "user_by_id"
    USER_BY_LOGIN = "user_by_login"
    USER_BY_EMAIL = "user_by_email"
    GROUP_BY_ID = "group_by_id"

class LinkMode(Enum):
    RELATIVE = "relative"
    ABSOLUTE = "absolute"

class ResolutionStatus(Enum):
    """Status of token resolution."""
    FOUND = "found"
    NOT_FOUND = "not_found"

class FragmentKind(Enum):
    USER_LINK = "user_link"
    GROUP_LABEL = "group_label"
    MAILTO_LINK = "mailto_link"
    LITERAL = "literal"


# --- Principals ---

@dataclass(frozen=True)
class Principal:
    """A user or group that can be the target of a mention."""
    id: int
    display_name: str


@dataclass(frozen=True)
class User(Principal):
    login: str = ""
    email_addresses: Tuple[str, ...] = ()
    active: bool = True


@dataclass(frozen=True)
class Group(Principal):
    pass


# --- Scanning ---

@dataclass(frozen=True)
class MentionToken:
    """
    A mention token found in text.

    Offsets are absolute positions in the scanned text. `identifier` is the
    value inside the token (digits, login or address), never the sigil or quotes;
    `identifier_start`/`identifier_end` locate it so that a renderer can replace
    only that part.
    """
    kind: MentionKind
    raw_match: str
    start_pos: int
    end_pos: int
    identifier: str
    identifier_start: int
    identifier_end: int

    @property
    def is_email_style(self) -> bool:
        return self.kind == MentionKind.USER_BY_EMAIL


# --- Rendering context ---

@dataclass(frozen=True)
class RenderContext:
    """Read-only context supplied once per formatting call."""
    acting_viewer: Optional[Any] = None
    link_mode: LinkMode = LinkMode.RELATIVE
    host_name: str = ""
    protocol: str = ""

    @classmethod
    def from_options(
        cls,
        only_path: bool = True,
        acting_viewer: Optional[Any] = None,
        host_name: Optional[str] = None,
        protocol: Optional[str] = None,
        settings: Optional[MentionSettings] = None,
    ) -> "RenderContext":
        """
        Build a context from caller-facing options.

        Args:
            only_path: When False, user links are absolute URLs on the configured host
            acting_viewer: The principal viewing the rendered text (None for anonymous)
            host_name: Host for absolute links (defaults to the configured host)
            protocol: Scheme for absolute links (defaults to the configured protocol)
            settings: Settings supplying defaults (read from the environment if None)

        Returns:
            RenderContext
        """
        settings = settings or MentionSettings.from_env()
        return cls(
            acting_viewer=acting_viewer,
            link_mode=LinkMode.RELATIVE if only_path else LinkMode.ABSOLUTE,
            host_name=host_name or settings.host_name,
            protocol=protocol or settings.protocol,
        )

    @property
    def only_path(self) -> bool:
        return self.link_mode == LinkMode.RELATIVE


# --- Resolution ---

@dataclass(frozen=True)
class ResolutionOutcome:
    """Result of resolving one token: a principal, or not found."""
    status: ResolutionStatus
    principal: Optional[Principal] = None

    @classmethod
    def found(cls, principal: Principal) -> "ResolutionOutcome":
        return cls(status=ResolutionStatus.FOUND, principal=principal)

    @classmethod
    def not_found(cls) -> "ResolutionOutcome":
        return cls(status=ResolutionStatus.NOT_FOUND)

    @property
    def is_found(self) -> bool:
        return self.status == ResolutionStatus.FOUND


# --- Rendering ---

@dataclass(frozen=True)
class RenderedFragment:
    """
    Text spliced in place of a token.

    `prefix` and `suffix` are literal token text kept around the element
    (the mailto fallback keeps `user:"` and the closing quote).
    """
    kind: FragmentKind
    raw_text: str
    label: str = ""
    href: Optional[str] = None
    title: Optional[str] = None
    css_classes: Tuple[str, ...] = ()
    prefix: str = ""
    suffix: str = ""

    def to_html(self) -> str:
        if self.kind == FragmentKind.LITERAL:
            return self.raw_text

        attributes = [f'class="{_escape(" ".join(self.css_classes))}"']
        if self.href is not None:
            attributes.append(f'href="{_escape(self.href)}"')
        if self.title is not None:
            attributes.append(f'title="{_escape(self.title)}"')

        tag = "span" if self.kind == FragmentKind.GROUP_LABEL else "a"
        element = f"<{tag} {' '.join(attributes)}>{_escape(self.label)}</{tag}>"
        return f"{self.prefix}{element}{self.suffix}"


@dataclass
class FormattedText:
    """The detailed output of one formatting call."""
    original_text: str
    formatted_text: str
    tokens: List[MentionToken] = field(default_factory=list)
    outcomes: List[ResolutionOutcome] = field(default_factory=list)


def _escape(value: str) -> str:
    return html.escape(value, quote=True)
