"""Tests for token estimation."""

from smart_agent.compaction.token import TokenEstimator
from smart_agent.messages import assistant, human, tool_call


class TestEstimateText:
    """Tests for estimate_text method."""

    def test_empty_string_returns_zero(self):
        assert TokenEstimator.estimate_text("") == 0

    def test_none_returns_zero(self):
        assert TokenEstimator.estimate_text(None) == 0

    def test_english_text_4_chars_per_token(self):
        """Input: 400 characters, expected 100 tokens."""
        assert TokenEstimator.estimate_text("a" * 400) == 100

    def test_chinese_text_1_5_chars_per_token(self):
        """Input: 15 CJK characters, expected 10 tokens."""
        assert TokenEstimator.estimate_text("你" * 15) == 10

    def test_minimum_one_for_non_empty(self):
        assert TokenEstimator.estimate_text("a") == 1


class TestEstimateValue:
    def test_string(self):
        assert TokenEstimator.estimate_value("a" * 40) == 10

    def test_dict_rendered_as_json(self):
        assert TokenEstimator.estimate_value({"k": "v"}) == TokenEstimator.estimate_text('{"k": "v"}')

    def test_none(self):
        assert TokenEstimator.estimate_value(None) == 0


class TestEstimateMessages:
    def test_message_overhead(self):
        assert TokenEstimator.estimate_message(human("")) == TokenEstimator.MESSAGE_OVERHEAD_TOKENS

    def test_tool_calls_add_overhead(self):
        plain = TokenEstimator.estimate_message(assistant("hi"))
        with_call = TokenEstimator.estimate_message(assistant("hi", tool_calls=[tool_call("search", {"q": "x"})]))
        assert with_call >= plain + TokenEstimator.TOOL_CALL_BASE_OVERHEAD

    def test_sum_of_messages(self):
        messages = [human("a" * 40), assistant("b" * 80)]
        assert TokenEstimator.estimate_messages(messages) == 10 + 10 + 10 + 20

    def test_empty(self):
        assert TokenEstimator.estimate_messages([]) == 0
