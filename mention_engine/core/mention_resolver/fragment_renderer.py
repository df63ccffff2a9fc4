"""
Fragment rendering component.

Turns each (token, outcome) pair into a RenderedFragment and splices the
fragments into the text at the token offsets. Text between tokens is copied
through verbatim; escaping it is left to the surrounding formatter.

Output shapes:
==============
- Linked user:   <a class="user-mention op-uc-link" href="/users/1" title="User Foo">Foo</a>
- Group:         <span class="user-mention" title="Group Devs">Devs</span>
- Unknown email: user:"<a class="op-uc-link" href="mailto:foo@bar.com">foo@bar.com</a>"
                 (only the address is replaced, the quotes stay)
- Anything else: the token's literal text
"""

import logging
from typing import List, Optional, Sequence

from mention_engine.core.mention_resolver.config import (
    GROUP_TITLE_PREFIX,
    MENTION_CSS_CLASS,
    RICH_LINK_CSS_CLASS,
    USER_TITLE_PREFIX,
)
from mention_engine.core.mention_resolver.link_builder import LinkBuilder, UserLinkBuilder
from mention_engine.core.mention_resolver.models import (
    FragmentKind,
    Group,
    MentionToken,
    RenderContext,
    RenderedFragment,
    ResolutionOutcome,
    User,
)
from mention_engine.core.mention_resolver.visibility import AllowResolvedUsersPolicy, VisibilityPolicy

logger = logging.getLogger(__name__)


class FragmentRenderer:
    """Renders resolution outcomes back into the text."""

    def __init__(
        self,
        visibility_policy: Optional[VisibilityPolicy] = None,
        link_builder: Optional[LinkBuilder] = None,
    ):
        """
        Initialize the renderer.

        Args:
            visibility_policy: Decides which users may be linked (allow-all if None)
            link_builder: Builds user and mailto links (profile links if None)
        """
        self.visibility_policy = visibility_policy or AllowResolvedUsersPolicy()
        self.link_builder = link_builder or UserLinkBuilder()

    def render(
        self,
        text: str,
        tokens: Sequence[MentionToken],
        outcomes: Sequence[ResolutionOutcome],
        context: RenderContext,
    ) -> str:
        """
        Splice rendered fragments into the text.

        Args:
            text: The scanned text
            tokens: Tokens sorted by start position
            outcomes: One outcome per token, same order

        Returns:
            The text with every token replaced by its fragment

        Raises:
            ValueError: If tokens and outcomes differ in length or tokens overlap
        """
        if len(tokens) != len(outcomes):
            raise ValueError(f"Got {len(tokens)} tokens but {len(outcomes)} outcomes")

        parts: List[str] = []
        cursor = 0
        for token, outcome in zip(tokens, outcomes):
            if token.start_pos < cursor:
                raise ValueError(f"Token at {token.start_pos} overlaps the previous token")
            parts.append(text[cursor:token.start_pos])
            parts.append(self.fragment_for(token, outcome, context).to_html())
            cursor = token.end_pos
        parts.append(text[cursor:])

        return "".join(parts)

    def fragment_for(
        self, token: MentionToken, outcome: ResolutionOutcome, context: RenderContext
    ) -> RenderedFragment:
        """Choose the fragment for one token."""
        if outcome.is_found:
            principal = outcome.principal
            if isinstance(principal, Group):
                return self._group_label(token, principal)
            if isinstance(principal, User) and self.visibility_policy.may_link_to(principal, context.acting_viewer):
                return self._user_link(token, principal, context)
            return self._literal(token)

        if token.is_email_style:
            return self._mailto_link(token)
        return self._literal(token)

    def _user_link(self, token: MentionToken, user: User, context: RenderContext) -> RenderedFragment:
        return RenderedFragment(
            kind=FragmentKind.USER_LINK,
            raw_text=token.raw_match,
            label=user.display_name,
            href=self.link_builder.build_user_link(user, context),
            title=f"{USER_TITLE_PREFIX} {user.display_name}",
            css_classes=(MENTION_CSS_CLASS, RICH_LINK_CSS_CLASS),
        )

    def _group_label(self, token: MentionToken, group: Group) -> RenderedFragment:
        return RenderedFragment(
            kind=FragmentKind.GROUP_LABEL,
            raw_text=token.raw_match,
            label=group.display_name,
            title=f"{GROUP_TITLE_PREFIX} {group.display_name}",
            css_classes=(MENTION_CSS_CLASS,),
        )

    def _mailto_link(self, token: MentionToken) -> RenderedFragment:
        # Only the address becomes a link, sigil and quotes stay as text
        return RenderedFragment(
            kind=FragmentKind.MAILTO_LINK,
            raw_text=token.raw_match,
            label=token.identifier,
            href=self.link_builder.build_mailto(token.identifier),
            css_classes=(RICH_LINK_CSS_CLASS,),
            prefix=token.raw_match[:token.identifier_start - token.start_pos],
            suffix=token.raw_match[token.identifier_end - token.start_pos:],
        )

    def _literal(self, token: MentionToken) -> RenderedFragment:
        return RenderedFragment(kind=FragmentKind.LITERAL, raw_text=token.raw_match)
