"""
Tests for the MentionLocator component.
"""

import pytest

from mention_engine.core.mention_resolver.mention_locator import MentionLocator, is_email_shaped
from mention_engine.core.mention_resolver.models import MentionKind


class TestMentionLocator:
    """Test cases for the MentionLocator component."""

    def setup_method(self):
        """Set up test fixtures."""
        self.locator = MentionLocator()

    def test_locate_user_by_id(self):
        tokens = self.locator.locate("Ping user#42 please")

        assert len(tokens) == 1
        token = tokens[0]
        assert token.kind == MentionKind.USER_BY_ID
        assert token.identifier == "42"
        assert token.raw_match == "user#42"
        assert (token.start_pos, token.end_pos) == (5, 12)
        assert (token.identifier_start, token.identifier_end) == (10, 12)

    def test_locate_quoted_login(self):
        text = 'Ask user:"jane.doe" about it'
        tokens = self.locator.locate(text)

        assert len(tokens) == 1
        token = tokens[0]
        assert token.kind == MentionKind.USER_BY_LOGIN
        assert token.identifier == "jane.doe"
        assert token.raw_match == 'user:"jane.doe"'
        assert text[token.identifier_start:token.identifier_end] == "jane.doe"

    def test_locate_quoted_email(self):
        tokens = self.locator.locate('Link to user:"foo@bar.com"')

        assert len(tokens) == 1
        assert tokens[0].kind == MentionKind.USER_BY_EMAIL
        assert tokens[0].identifier == "foo@bar.com"
        assert tokens[0].is_email_style

    def test_locate_group_by_id(self):
        tokens = self.locator.locate("group#000000")

        assert len(tokens) == 1
        assert tokens[0].kind == MentionKind.GROUP_BY_ID
        assert tokens[0].identifier == "000000"

    def test_tokens_sorted_and_disjoint(self):
        text = 'group#7, user#1 and user:"foo" then user#1 again'
        tokens = self.locator.locate(text)

        assert [t.kind for t in tokens] == [
            MentionKind.GROUP_BY_ID,
            MentionKind.USER_BY_ID,
            MentionKind.USER_BY_LOGIN,
            MentionKind.USER_BY_ID,
        ]
        for previous, current in zip(tokens, tokens[1:]):
            assert previous.end_pos <= current.start_pos

    def test_text_without_mentions(self):
        assert self.locator.locate("Nothing to see here, #42 and user 5") == []
        assert self.locator.locate("") == []

    @pytest.mark.parametrize("text", [
        "superuser#4",
        "user#",
        "user#abc",
        "user#42abc",
        "subgroup#3",
        "group#x1",
        "user:foo",
        'user:""',
        'user:"unterminated',
        'user:"split\nacross lines"',
        "User#42",
    ])
    def test_non_tokens(self, text):
        assert self.locator.locate(text) == []

    def test_token_after_punctuation(self):
        tokens = self.locator.locate("(user#3), [group#4]")

        assert [t.raw_match for t in tokens] == ["user#3", "group#4"]

    def test_skips_existing_links(self):
        text = '<a href="/x" title="user#5">see user#5</a> but user#6'
        tokens = self.locator.locate(text)

        assert [t.identifier for t in tokens] == ["6"]

    def test_skips_code_spans(self):
        text = "`user#1` and <code>group#2</code> and <pre>user#3</pre> but user#4"
        tokens = self.locator.locate(text)

        assert [t.identifier for t in tokens] == ["4"]

    def test_skips_tag_attributes(self):
        tokens = self.locator.locate('<img alt="user#9"> user#10')

        assert [t.identifier for t in tokens] == ["10"]

    def test_less_than_sign_is_not_markup(self):
        tokens = self.locator.locate("a < user#1 > b")

        assert [t.identifier for t in tokens] == ["1"]

    def test_unspaced_comparison_is_not_markup(self):
        """A `<` glued to a word in prose must not hide the mentions after it."""
        tokens = self.locator.locate("if a<b ask user#3, result>0")

        assert [t.identifier for t in tokens] == ["3"]

    def test_tags_with_attributes_are_protected(self):
        text = "<img src='x.png' alt=\"user#1\" data-ref=user#2 /> <br/> user#3"
        tokens = self.locator.locate(text)

        assert [t.identifier for t in tokens] == ["3"]

    def test_skips_rendered_group_label(self):
        text = '<span class="user-mention" title="Group Fans of user#5">Fans of user#5</span> user#6'
        tokens = self.locator.locate(text)

        assert [t.identifier for t in tokens] == ["6"]

    def test_other_spans_are_scanned(self):
        tokens = self.locator.locate('<span class="note">ask user#5</span>')

        assert [t.identifier for t in tokens] == ["5"]

    def test_quoted_value_cannot_contain_markup(self):
        text = 'user:"<a class="op-uc-link" href="mailto:foo@bar.com">foo@bar.com</a>"'

        assert self.locator.locate(text) == []

    def test_locate_is_restartable(self):
        text = 'user#1 user:"x" group#2'

        assert self.locator.locate(text) == self.locator.locate(text)

    def test_invalid_input(self):
        with pytest.raises(ValueError, match="Input must be a string"):
            self.locator.locate(None)


class TestEmailShape:

    @pytest.mark.parametrize("value,expected", [
        ("foo@bar.com", True),
        ("first.last@sub.example.org", True),
        ("jane.doe", False),
        ("foo@bar", False),
        ("@bar.com", False),
        ("foo@@bar.com", False),
        ("foo bar@baz.com", False),
    ])
    def test_is_email_shaped(self, value, expected):
        assert is_email_shaped(value) is expected
