"""Tests for mention detection."""

import pytest

from pingpal.filters import is_mention, mention_tokens
from pingpal.models import InboundMessage

TARGET = "123456789"


def make_msg(**overrides) -> InboundMessage:
    """Create an InboundMessage with sensible defaults, overriding specific fields."""
    defaults = dict(
        id="m-1",
        room_id="room-1",
        sender_id="555",
        text="hello world",
    )
    defaults.update(overrides)
    return InboundMessage(**defaults)


class TestMentionTokens:
    def test_tokens_for_user(self):
        assert mention_tokens("42") == ["<@42>", "<@!42>", "(@42)"]


class TestTextMentions:
    @pytest.mark.parametrize(
        "text",
        [
            f"hey <@{TARGET}> can you look?",
            f"<@!{TARGET}> ping",
            f"deadline today (@{TARGET})",
        ],
    )
    def test_mention_token_matches(self, text):
        assert is_mention(make_msg(text=text), TARGET) is True

    def test_no_mention(self):
        assert is_mention(make_msg(text="nothing to see here"), TARGET) is False

    def test_bare_id_is_not_a_mention(self):
        assert is_mention(make_msg(text=f"user {TARGET} said hi"), TARGET) is False

    def test_partial_id_does_not_match(self):
        # The target ID is a prefix of the mentioned ID.
        assert is_mention(make_msg(text=f"<@{TARGET}0> hi"), TARGET) is False

    def test_longer_target_does_not_match_shorter_mention(self):
        assert is_mention(make_msg(text="<@1234> hi"), "12345") is False

    def test_other_user_mentioned(self):
        assert is_mention(make_msg(text="<@999> hello"), TARGET) is False


class TestStructuredMentions:
    def test_structured_mentions_preferred_over_text(self):
        msg = make_msg(text="no token here", mentions=[TARGET])
        assert is_mention(msg, TARGET) is True

    def test_empty_structured_mentions_ignore_text(self):
        msg = make_msg(text=f"quoted <@{TARGET}>", mentions=[])
        assert is_mention(msg, TARGET) is False

    def test_structured_mentions_of_other_users(self):
        msg = make_msg(text="hi", mentions=["1", "2"])
        assert is_mention(msg, TARGET) is False


class TestMissingTarget:
    def test_empty_target_raises(self):
        with pytest.raises(ValueError):
            is_mention(make_msg(), "")
