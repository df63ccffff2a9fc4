"""
Per-call memo of resolution outcomes.

A text often mentions the same principal several times. Within one formatting
call each distinct (kind, identifier) pair is resolved once and the outcome is
reused. The cache is created fresh for every call and discarded afterwards:
the principal store can change between calls, so outcomes are never reused
across calls.
"""

import logging
import threading
from typing import Any, Dict, Optional, Tuple

from mention_engine.core.mention_resolver.models import MentionKind, MentionToken, ResolutionOutcome

logger = logging.getLogger(__name__)


class ResolutionCache:
    """Thread-safe in-memory cache of outcomes keyed by token kind and identifier."""

    def __init__(self):
        self._entries: Dict[Tuple[MentionKind, str], ResolutionOutcome] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    @staticmethod
    def key(token: MentionToken) -> Tuple[MentionKind, str]:
        return (token.kind, token.identifier)

    def get(self, token: MentionToken) -> Optional[ResolutionOutcome]:
        """
        Retrieve the outcome for a token with the same kind and identifier.

        Returns:
            Cached outcome if found, None otherwise
        """
        with self._lock:
            outcome = self._entries.get(self.key(token))
            if outcome is None:
                self.misses += 1
                return None
            self.hits += 1

        logger.debug(f"Resolution cache HIT for {token.raw_match}")
        return outcome

    def set(self, token: MentionToken, outcome: ResolutionOutcome) -> None:
        with self._lock:
            self._entries[self.key(token)] = outcome

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "entries": len(self._entries),
                "hits": self.hits,
                "misses": self.misses,
            }
