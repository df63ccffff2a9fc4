"""
Link construction for rendered mentions.
"""

from abc import ABC, abstractmethod
from typing import Optional

from mention_engine.core.mention_resolver.config import DEFAULT_USER_PATH_TEMPLATE, MentionSettings
from mention_engine.core.mention_resolver.models import LinkMode, RenderContext, User


class LinkBuilder(ABC):
    """Builds the two link shapes a mention can produce."""

    @abstractmethod
    def build_user_link(self, user: User, context: RenderContext) -> str:
        ...

    def build_mailto(self, address: str) -> str:
        """Fallback link for an address no user is registered with."""
        return f"mailto:{address}"


class UserLinkBuilder(LinkBuilder):
    """
    Links users to their profile page.

    The path comes from a template parameterized by the user id
    (`/users/{id}` by default). With LinkMode.ABSOLUTE it is prefixed with
    `<protocol>://<host_name>` from the render context.
    """

    def __init__(self, path_template: Optional[str] = None, settings: Optional[MentionSettings] = None):
        if path_template is None:
            path_template = settings.user_path_template if settings else DEFAULT_USER_PATH_TEMPLATE
        if "{id}" not in path_template:
            raise ValueError(f"User path template must contain '{{id}}': {path_template!r}")
        self.path_template = path_template

    def user_path(self, user: User) -> str:
        return self.path_template.format(id=user.id)

    def build_user_link(self, user: User, context: RenderContext) -> str:
        path = self.user_path(user)
        if context.link_mode == LinkMode.ABSOLUTE:
            if not context.host_name:
                raise ValueError("Absolute links require a host name")
            protocol = context.protocol or "http"
            return f"{protocol}://{context.host_name.rstrip('/')}{path}"
        return path
