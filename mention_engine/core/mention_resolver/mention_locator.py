"""
Mention location component.

Scans text for mention tokens naming a user or a group and returns them as an
ordered, non-overlapping list of MentionToken objects with absolute offsets.

Token grammar (alternatives tried left-to-right at each position):
==================================================================
- `user#<digits>`          → USER_BY_ID
- `user:"<quoted-value>"`  → USER_BY_EMAIL if the value looks like an address,
                             USER_BY_LOGIN otherwise
- `group#<digits>`         → GROUP_BY_ID

Markup awareness:
=================
The locator runs on text that may already contain inline markup produced by
other formatting passes (or by a previous run of this engine). Tokens never
start inside, or overlap, a protected span:
- an `<a>...</a>`, `<code>...</code>` or `<pre>...</pre>` element
- a rendered group label (`<span class="user-mention">...</span>`)
- any other well-formed HTML tag (attributes are never scanned); a bare
  `<` in prose such as `a<b` does not open a protected span
- a backtick code span
"""

import logging
import re
from typing import List, Tuple

from mention_engine.core.mention_resolver.config import MENTION_CSS_CLASS
from mention_engine.core.mention_resolver.models import MentionKind, MentionToken

logger = logging.getLogger(__name__)


_TOKEN_PATTERN = re.compile(
    r'(?<!\w)(?:'
    r'user#(?P<user_id>\d+)(?!\w)'
    r'|user:"(?P<quoted>[^"<>\r\n]+)"'
    r'|group#(?P<group_id>\d+)(?!\w)'
    r')'
)

# Attribute list of a start tag: name, name=value, name="value" or name='value'
_TAG_ATTRIBUTES = (
    r'(?:\s+[A-Za-z_:][-\w:.]*'
    r'(?:\s*=\s*(?:"[^"]*"|\'[^\']*\'|[^\s"\'=<>`]+))?)*\s*'
)

_PROTECTED_PATTERN = re.compile(
    r'<(?P<element>a|code|pre)\b' + _TAG_ATTRIBUTES + r'>.*?</(?P=element)\s*>'
    r'|<span\b(?=[^>]*\bclass="[^"]*\b' + re.escape(MENTION_CSS_CLASS) + r'\b)'
    + _TAG_ATTRIBUTES + r'>.*?</span\s*>'
    r'|(?P<ticks>`+).+?(?P=ticks)'
    r'|</?[A-Za-z][A-Za-z0-9-]*' + _TAG_ATTRIBUTES + r'/?>',
    re.IGNORECASE | re.DOTALL,
)

_EMAIL_SHAPE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s.]+$')


def is_email_shaped(value: str) -> bool:
    """True if value has a single `@` splitting a local part from a dotted domain."""
    return bool(_EMAIL_SHAPE.match(value))


class MentionLocator:
    """
    Locates mention tokens in text.

    Stateless: `locate` is a pure function of its input and can be called
    repeatedly on the same instance.
    """

    def locate(self, text: str) -> List[MentionToken]:
        """
        Locate all mention tokens in the text.

        Args:
            text: The text to scan

        Returns:
            Tokens sorted by start position, pairwise disjoint

        Raises:
            ValueError: If text is not a string
        """
        if not isinstance(text, str):
            raise ValueError("Input must be a string")

        if not text:
            return []

        protected_spans = self._find_protected_spans(text)
        tokens = []
        skipped = 0

        for match in _TOKEN_PATTERN.finditer(text):
            if self._overlaps_protected(match.start(), match.end(), protected_spans):
                skipped += 1
                continue
            tokens.append(self._create_token(match))

        if skipped:
            logger.debug(f"Skipped {skipped} mention-shaped matches inside existing markup")
        logger.debug(f"Located {len(tokens)} mention tokens")

        return tokens

    def _find_protected_spans(self, text: str) -> List[Tuple[int, int]]:
        return [(m.start(), m.end()) for m in _PROTECTED_PATTERN.finditer(text)]

    def _overlaps_protected(self, start: int, end: int, protected_spans: List[Tuple[int, int]]) -> bool:
        for span_start, span_end in protected_spans:
            if span_start >= end:
                # Spans are sorted, nothing further can overlap
                break
            if start < span_end:
                return True
        return False

    def _create_token(self, match: "re.Match") -> MentionToken:
        if match.group("user_id") is not None:
            kind = MentionKind.USER_BY_ID
            group_name = "user_id"
        elif match.group("quoted") is not None:
            group_name = "quoted"
            if is_email_shaped(match.group("quoted")):
                kind = MentionKind.USER_BY_EMAIL
            else:
                kind = MentionKind.USER_BY_LOGIN
        else:
            kind = MentionKind.GROUP_BY_ID
            group_name = "group_id"

        return MentionToken(
            kind=kind,
            raw_match=match.group(0),
            start_pos=match.start(),
            end_pos=match.end(),
            identifier=match.group(group_name),
            identifier_start=match.start(group_name),
            identifier_end=match.end(group_name),
        )
