"""
Mention formatting pipeline.

Wires the components together for one formatting call:

    text ──► MentionLocator ──► MentionResolver (per token) ──► FragmentRenderer ──► text
                                    │                              │
                              PrincipalStore            VisibilityPolicy + LinkBuilder

Each call is all-or-nothing. Tokens are resolved independently (optionally on a
thread pool) and spliced back in offset order, so output is deterministic. If
the principal store fails, or the optional deadline expires, the call raises
MentionFormattingError and nothing is rendered.

Ordering contract with the surrounding formatter:
=================================================
The locator skips existing links, code spans and HTML tags, so this pass can
run either before or after generic autolinking without corrupting (or being
corrupted by) other inline markup. Escaping of the non-mention text remains
the surrounding formatter's job.
"""

import logging
import time
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Dict, List, Optional, Tuple

from mention_engine.core.mention_resolver.config import MentionSettings
from mention_engine.core.mention_resolver.fragment_renderer import FragmentRenderer
from mention_engine.core.mention_resolver.link_builder import LinkBuilder, UserLinkBuilder
from mention_engine.core.mention_resolver.mention_locator import MentionLocator
from mention_engine.core.mention_resolver.mention_resolver import MentionResolver
from mention_engine.core.mention_resolver.models import (
    FormattedText,
    Group,
    MentionKind,
    MentionToken,
    RenderContext,
    ResolutionOutcome,
    User,
)
from mention_engine.core.mention_resolver.principal_store import PrincipalStore
from mention_engine.core.mention_resolver.resolution_cache import ResolutionCache
from mention_engine.core.mention_resolver.visibility import VisibilityPolicy

logger = logging.getLogger(__name__)


class MentionFormattingError(RuntimeError):
    """Raised when a formatting call has to be aborted as a whole."""


class MentionFormattingPipeline:
    """
    Entry point of the mention engine.

    Usage:
        pipeline = MentionFormattingPipeline(store)
        html = pipeline.format_mentions('Ping user:"jane"', RenderContext.from_options())
    """

    def __init__(
        self,
        store: PrincipalStore,
        visibility_policy: Optional[VisibilityPolicy] = None,
        link_builder: Optional[LinkBuilder] = None,
        settings: Optional[MentionSettings] = None,
        max_workers: Optional[int] = None,
        timeout: Optional[float] = None,
        locator: Optional[MentionLocator] = None,
        resolver: Optional[MentionResolver] = None,
        renderer: Optional[FragmentRenderer] = None,
    ):
        """
        Initialize the pipeline with its components.

        Args:
            store: Principal lookup capability
            visibility_policy: Which resolved users may be linked (allow-all if None)
            link_builder: Builds user and mailto links (profile links if None)
            settings: Configuration (read from MENTION_* environment variables if None)
            max_workers: Threads used to resolve tokens; 1 resolves inline
            timeout: Deadline in seconds for the whole call, None for no deadline.
                With max_workers > 1, lookups already running when the deadline
                expires are abandoned rather than interrupted: they finish against
                the store in the background and their results are discarded.
            locator: Component for locating tokens
            resolver: Component for resolving tokens (built on `store` if None)
            renderer: Component for rendering outcomes
        """
        self.settings = settings or MentionSettings.from_env()
        self.max_workers = max_workers if max_workers is not None else self.settings.max_workers
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")
        if timeout is not None and timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.timeout = timeout

        self.locator = locator or MentionLocator()
        self.resolver = resolver or MentionResolver(store)
        self.renderer = renderer or FragmentRenderer(
            visibility_policy=visibility_policy,
            link_builder=link_builder or UserLinkBuilder(settings=self.settings),
        )

    def format_mentions(self, text: str, context: Optional[RenderContext] = None) -> str:
        """Format mentions in text and return the rendered string."""
        return self.format(text, context).formatted_text

    def format(self, text: str, context: Optional[RenderContext] = None) -> FormattedText:
        """
        Format mentions in text.

        Args:
            text: Raw text
            context: Render context (defaults built from settings, relative links, anonymous viewer)

        Returns:
            FormattedText with the rendered text, tokens and outcomes

        Raises:
            ValueError: If input validation fails
            MentionFormattingError: If the principal store fails or the deadline expires
        """
        if context is None:
            context = RenderContext.from_options(settings=self.settings)
        if not isinstance(context, RenderContext):
            raise ValueError("context must be a RenderContext")

        tokens = self.locator.locate(text)
        if not tokens:
            return FormattedText(original_text=text, formatted_text=text)

        deadline = time.monotonic() + self.timeout if self.timeout is not None else None
        outcomes = self._resolve_all(tokens, deadline)

        formatted = self.renderer.render(text, tokens, outcomes, context)
        self._log_summary(outcomes)

        return FormattedText(
            original_text=text,
            formatted_text=formatted,
            tokens=tokens,
            outcomes=outcomes,
        )

    def _resolve_all(self, tokens: List[MentionToken], deadline: Optional[float]) -> List[ResolutionOutcome]:
        cache = ResolutionCache()
        distinct: Dict[Tuple[MentionKind, str], MentionToken] = {}
        for token in tokens:
            distinct.setdefault(ResolutionCache.key(token), token)

        if self.max_workers == 1 or len(distinct) == 1:
            outcomes = []
            for token in tokens:
                outcome = cache.get(token)
                if outcome is None:
                    self._check_deadline(deadline)
                    outcome = self._resolve_one(token)
                    cache.set(token, outcome)
                outcomes.append(outcome)
            self._check_deadline(deadline)
        else:
            self._resolve_concurrently(list(distinct.values()), cache, deadline)
            outcomes = [cache.get(token) for token in tokens]

        logger.debug(f"Resolution cache stats: {cache.get_stats()}")
        return outcomes

    def _resolve_concurrently(
        self, tokens: List[MentionToken], cache: ResolutionCache, deadline: Optional[float]
    ) -> None:
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(tokens)))
        # On a store fault running lookups are waited for; on a deadline they are abandoned
        wait_for_running = True
        try:
            futures = {executor.submit(self._resolve_one, token): token for token in tokens}
            remaining = max(deadline - time.monotonic(), 0) if deadline is not None else None
            done, not_done = wait(futures, timeout=remaining, return_when=FIRST_EXCEPTION)

            for future in done:
                # Re-raises the store failure, already wrapped
                cache.set(futures[future], future.result())

            if not_done:
                wait_for_running = False
                logger.error(f"Mention resolution exceeded the {self.timeout}s deadline "
                             f"with {len(not_done)} tokens pending")
                raise MentionFormattingError(f"Mention resolution exceeded the {self.timeout}s deadline")
        finally:
            executor.shutdown(wait=wait_for_running, cancel_futures=True)

    def _resolve_one(self, token: MentionToken) -> ResolutionOutcome:
        try:
            return self.resolver.resolve(token)
        except Exception as e:
            logger.error(f"Principal lookup failed for {token.raw_match}: {e}")
            raise MentionFormattingError(f"Principal lookup failed for {token.raw_match}: {e}") from e

    def _check_deadline(self, deadline: Optional[float]) -> None:
        if deadline is not None and time.monotonic() > deadline:
            logger.error(f"Mention resolution exceeded the {self.timeout}s deadline")
            raise MentionFormattingError(f"Mention resolution exceeded the {self.timeout}s deadline")

    def _log_summary(self, outcomes: List[ResolutionOutcome]) -> None:
        users = sum(1 for o in outcomes if o.is_found and isinstance(o.principal, User))
        groups = sum(1 for o in outcomes if o.is_found and isinstance(o.principal, Group))
        unresolved = sum(1 for o in outcomes if not o.is_found)
        logger.info(f"Formatted {len(outcomes)} mentions: {users} users, {groups} groups, {unresolved} unresolved")


def format_mentions(
    text: str,
    context: Optional[RenderContext] = None,
    store: Optional[PrincipalStore] = None,
    **pipeline_options,
) -> str:
    """
    Convenience wrapper building a pipeline for a single call.

    Args:
        text: Raw text
        context: Render context
        store: Principal lookup capability
        **pipeline_options: Forwarded to MentionFormattingPipeline

    Returns:
        The formatted text
    """
    if store is None:
        raise ValueError("A principal store is required")
    return MentionFormattingPipeline(store, **pipeline_options).format_mentions(text, context)
