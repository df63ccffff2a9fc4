"""
Mention resolver module.

This module locates user and group mentions (`user#42`, `user:"jane"`,
`group#7`) in text, resolves them against a principal store and renders them
as links, labels or literal text.

The main entry point is the MentionFormattingPipeline class in pipeline.py.
"""

# Core components
from mention_engine.core.mention_resolver.mention_locator import MentionLocator
from mention_engine.core.mention_resolver.mention_resolver import MentionResolver
from mention_engine.core.mention_resolver.fragment_renderer import FragmentRenderer
from mention_engine.core.mention_resolver.link_builder import LinkBuilder, UserLinkBuilder
from mention_engine.core.mention_resolver.visibility import (
    AllowResolvedUsersPolicy,
    ProfileVisibilityPolicy,
    VisibilityPolicy,
)
from mention_engine.core.mention_resolver.principal_store import (
    InMemoryPrincipalStore,
    PrincipalStore,
    PrincipalStoreError,
)

# Main pipeline entry point
from mention_engine.core.mention_resolver.pipeline import (
    MentionFormattingError,
    MentionFormattingPipeline,
    format_mentions,
)

from mention_engine.core.mention_resolver.config import MentionSettings

# Data models
from mention_engine.core.mention_resolver.models import (
    FormattedText,
    FragmentKind,
    Group,
    LinkMode,
    MentionKind,
    MentionToken,
    Principal,
    RenderContext,
    RenderedFragment,
    ResolutionOutcome,
    ResolutionStatus,
    User,
)

__all__ = [
    # Main pipeline entry point
    'MentionFormattingPipeline',
    'MentionFormattingError',
    'format_mentions',

    # Core components
    'MentionLocator',
    'MentionResolver',
    'FragmentRenderer',
    'LinkBuilder',
    'UserLinkBuilder',
    'VisibilityPolicy',
    'AllowResolvedUsersPolicy',
    'ProfileVisibilityPolicy',
    'PrincipalStore',
    'InMemoryPrincipalStore',
    'PrincipalStoreError',
    'MentionSettings',

    # Data models
    'FormattedText',
    'FragmentKind',
    'Group',
    'LinkMode',
    'MentionKind',
    'MentionToken',
    'Principal',
    'RenderContext',
    'RenderedFragment',
    'ResolutionOutcome',
    'ResolutionStatus',
    'User',
]
