"""
Configuration for the mention resolver.

Values come from environment variables (scripts load `.env.local` and `.env`
with python-dotenv before building a pipeline) and fall back to the defaults
below.
"""

import os
from dataclasses import dataclass


# CSS classes carried by rendered mentions
MENTION_CSS_CLASS = "user-mention"
RICH_LINK_CSS_CLASS = "op-uc-link"

# Title prefixes for rendered principals
USER_TITLE_PREFIX = "User"
GROUP_TITLE_PREFIX = "Group"

DEFAULT_HOST_NAME = "localhost:3000"
DEFAULT_PROTOCOL = "http"
DEFAULT_USER_PATH_TEMPLATE = "/users/{id}"
DEFAULT_MAX_WORKERS = 1


@dataclass
class MentionSettings:
    """Settings controlling link generation and resolution fan-out."""
    host_name: str = DEFAULT_HOST_NAME
    protocol: str = DEFAULT_PROTOCOL
    user_path_template: str = DEFAULT_USER_PATH_TEMPLATE
    max_workers: int = DEFAULT_MAX_WORKERS

    @classmethod
    def from_env(cls) -> "MentionSettings":
        """Build settings from MENTION_* environment variables."""
        max_workers = os.getenv("MENTION_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))
        try:
            workers = int(max_workers)
        except ValueError as e:
            raise ValueError(f"MENTION_MAX_WORKERS must be an integer, got {max_workers!r}") from e
        if workers < 1:
            raise ValueError(f"MENTION_MAX_WORKERS must be at least 1, got {workers}")

        return cls(
            host_name=os.getenv("MENTION_HOST_NAME", DEFAULT_HOST_NAME),
            protocol=os.getenv("MENTION_PROTOCOL", DEFAULT_PROTOCOL),
            user_path_template=os.getenv("MENTION_USER_PATH_TEMPLATE", DEFAULT_USER_PATH_TEMPLATE),
            max_workers=workers,
        )
