"""
Tests for the FragmentRenderer, link builders and visibility policies.
"""

import pytest

from mention_engine.core.mention_resolver.config import MentionSettings
from mention_engine.core.mention_resolver.fragment_renderer import FragmentRenderer
from mention_engine.core.mention_resolver.link_builder import UserLinkBuilder
from mention_engine.core.mention_resolver.mention_locator import MentionLocator
from mention_engine.core.mention_resolver.models import (
    FragmentKind,
    Group,
    LinkMode,
    RenderContext,
    ResolutionOutcome,
    User,
)
from mention_engine.core.mention_resolver.visibility import (
    AllowResolvedUsersPolicy,
    ProfileVisibilityPolicy,
)


FOO = User(id=3, display_name="Foo Barrit", login="foo@bar.com")
DEVS = Group(id=7, display_name="Developers")


class TestUserLinkBuilder:

    def setup_method(self):
        self.builder = UserLinkBuilder()

    def test_relative_link(self):
        context = RenderContext(link_mode=LinkMode.RELATIVE, host_name="openproject.org", protocol="http")

        assert self.builder.build_user_link(FOO, context) == "/users/3"

    def test_absolute_link(self):
        context = RenderContext(link_mode=LinkMode.ABSOLUTE, host_name="openproject.org", protocol="http")

        assert self.builder.build_user_link(FOO, context) == "http://openproject.org/users/3"

    def test_absolute_link_requires_host(self):
        context = RenderContext(link_mode=LinkMode.ABSOLUTE)

        with pytest.raises(ValueError, match="require a host name"):
            self.builder.build_user_link(FOO, context)

    def test_path_template_from_settings(self):
        builder = UserLinkBuilder(settings=MentionSettings(user_path_template="/people/{id}/profile"))

        assert builder.user_path(FOO) == "/people/3/profile"

    def test_invalid_path_template(self):
        with pytest.raises(ValueError, match="must contain"):
            UserLinkBuilder(path_template="/users")

    def test_mailto(self):
        assert self.builder.build_mailto("foo@bar.com") == "mailto:foo@bar.com"


class TestVisibilityPolicies:

    def test_groups_never_linked(self):
        assert AllowResolvedUsersPolicy().may_link_to(DEVS, viewer=FOO) is False
        assert ProfileVisibilityPolicy(lambda viewer, user: True).may_link_to(DEVS, viewer=FOO) is False

    def test_allow_resolved_users(self):
        assert AllowResolvedUsersPolicy().may_link_to(FOO, viewer=None) is True

    def test_profile_visibility(self):
        viewer = User(id=10, display_name="Viewer")
        policy = ProfileVisibilityPolicy(lambda v, user: v is not None and v.id == 10)

        assert policy.may_link_to(FOO, viewer) is True
        assert policy.may_link_to(FOO, None) is False


class TestFragmentRenderer:
    """Test cases for the FragmentRenderer component."""

    def setup_method(self):
        self.locator = MentionLocator()
        self.renderer = FragmentRenderer()
        self.context = RenderContext(link_mode=LinkMode.RELATIVE, host_name="localhost:3000", protocol="http")

    def _render(self, text, outcomes, renderer=None, context=None):
        tokens = self.locator.locate(text)
        return (renderer or self.renderer).render(text, tokens, outcomes, context or self.context)

    def test_user_link(self):
        result = self._render("Hi user#3!", [ResolutionOutcome.found(FOO)])

        assert result == (
            'Hi <a class="user-mention op-uc-link" href="/users/3" '
            'title="User Foo Barrit">Foo Barrit</a>!'
        )

    def test_group_label(self):
        result = self._render("group#7", [ResolutionOutcome.found(DEVS)])

        assert result == '<span class="user-mention" title="Group Developers">Developers</span>'

    def test_unresolved_email_keeps_quotes(self):
        result = self._render('Link to user:"foo@bar.com"', [ResolutionOutcome.not_found()])

        assert result == (
            'Link to user:"<a class="op-uc-link" href="mailto:foo@bar.com">foo@bar.com</a>"'
        )

    @pytest.mark.parametrize("text", ["user#9", 'user:"nobody"', "group#000000"])
    def test_unresolved_left_verbatim(self, text):
        assert self._render(f"x {text} y", [ResolutionOutcome.not_found()]) == f"x {text} y"

    def test_hidden_user_left_verbatim(self):
        renderer = FragmentRenderer(visibility_policy=ProfileVisibilityPolicy(lambda viewer, user: False))

        assert self._render("user#3", [ResolutionOutcome.found(FOO)], renderer=renderer) == "user#3"

    def test_display_name_is_escaped(self):
        evil = User(id=8, display_name='<script>"x"</script>')
        result = self._render("user#8", [ResolutionOutcome.found(evil)])

        assert "<script>" not in result
        assert 'title="User &lt;script&gt;&quot;x&quot;&lt;/script&gt;"' in result

    def test_multiple_tokens_spliced_in_order(self):
        text = "user#3, group#7 and user#9."
        result = self._render(text, [
            ResolutionOutcome.found(FOO),
            ResolutionOutcome.found(DEVS),
            ResolutionOutcome.not_found(),
        ])

        assert result.startswith('<a class="user-mention op-uc-link" href="/users/3"')
        assert ', <span class="user-mention" title="Group Developers">Developers</span> and user#9.' in result

    def test_fragment_kinds(self):
        token = self.locator.locate('user:"foo@bar.com"')[0]

        assert self.renderer.fragment_for(token, ResolutionOutcome.found(FOO), self.context).kind == FragmentKind.USER_LINK
        assert self.renderer.fragment_for(token, ResolutionOutcome.not_found(), self.context).kind == FragmentKind.MAILTO_LINK

    def test_outcome_count_mismatch(self):
        with pytest.raises(ValueError, match="1 tokens but 0 outcomes"):
            self._render("user#3", [])
