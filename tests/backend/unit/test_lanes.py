"""
Unit tests for client.lanes module.
Tests the lane transitions that aggregate streamed answers.
"""
import pytest

from arena.client.lanes import (
    ERROR_TEXT,
    Lane,
    LaneBusy,
    LaneMessage,
    LaneState,
    add_result,
    apply_chunk,
    begin_turn,
    estimate_tokens,
    fail,
    settle,
)


class TestTokenEstimate:
    """Tests for estimate_tokens."""

    def test_rounds_up(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2


class TestStreaming:
    """Tests for the begin_turn / apply_chunk / settle path."""

    def test_begin_turn_appends_user_message(self):
        """Starting a turn adds the prompt and marks the lane streaming."""
        lane = begin_turn(Lane(key="single"), "hi")
        assert lane.state is LaneState.STREAMING
        assert lane.messages == (LaneMessage(role="user", text="hi"),)

    def test_chunks_grow_one_answer(self):
        """Chunks accumulate into a single in-flight assistant message."""
        lane = begin_turn(Lane(key="single"), "hi")
        lane = apply_chunk(lane, "Hel", "gpt-5-nano")
        lane = apply_chunk(lane, "lo", "gpt-5-nano")
        assert len(lane.messages) == 2
        assert lane.last.text == "Hello"
        assert lane.last.is_streaming is True

    def test_settle_closes_answer(self):
        """Settling keeps the text and clears the streaming flag."""
        lane = begin_turn(Lane(key="single"), "hi")
        lane = apply_chunk(lane, "Hello", "gpt-5-nano")
        lane = settle(lane, "gpt-5-nano")
        assert lane.state is LaneState.SETTLED
        assert lane.last == LaneMessage(role="assistant", text="Hello", model="gpt-5-nano")
        assert lane.buffer == ""

    def test_settle_without_chunks_adds_empty_answer(self):
        """A stream that produced nothing still yields one (empty) answer."""
        lane = settle(begin_turn(Lane(key="single"), "hi"), "mistral")
        assert [m.role for m in lane.messages] == ["user", "assistant"]
        assert lane.last.text == ""

    def test_second_turn_opens_new_answer(self):
        """A new turn never rewrites the previous answer."""
        lane = settle(apply_chunk(begin_turn(Lane(key="single"), "one"), "A", "m"), "m")
        lane = settle(apply_chunk(begin_turn(lane, "two"), "B", "m"), "m")
        assert [m.text for m in lane.messages] == ["one", "A", "two", "B"]

    def test_transitions_do_not_mutate(self):
        """Every transition returns a new lane."""
        original = Lane(key="single")
        begin_turn(original, "hi")
        assert original.messages == ()
        assert original.state is LaneState.IDLE


class TestGuards:
    """Tests for illegal transitions."""

    def test_begin_turn_while_streaming(self):
        lane = begin_turn(Lane(key="single"), "hi")
        with pytest.raises(LaneBusy):
            begin_turn(lane, "again")

    def test_chunk_on_idle_lane(self):
        with pytest.raises(LaneBusy):
            apply_chunk(Lane(key="single"), "x", "m")


class TestResultsAndFailures:
    """Tests for add_result and fail."""

    def test_add_result_appends_media(self):
        """Media answers arrive whole and settle the lane."""
        lane = begin_turn(Lane(key="single"), "a fox")
        message = LaneMessage(role="assistant", text="u", model="flux", type="image", url="https://img/fox.png", is_streaming=True)
        lane = add_result(lane, message)
        assert lane.state is LaneState.SETTLED
        assert lane.last.is_streaming is False
        assert lane.last.to_payload() == {
            "role": "assistant", "content": "u", "type": "image", "model": "flux", "imageUrl": "https://img/fox.png",
        }

    def test_fail_appends_error_and_returns_to_idle(self):
        """A failed request keeps partial text and appends the fixed error message."""
        lane = apply_chunk(begin_turn(Lane(key="m"), "hi"), "partial", "m")
        lane = fail(lane, "m")
        assert lane.state is LaneState.IDLE
        assert [m.text for m in lane.messages] == ["hi", "partial", ERROR_TEXT]
        assert not any(m.is_streaming for m in lane.messages)

    def test_lane_usable_after_failure(self):
        """A failed lane accepts the next turn."""
        lane = fail(begin_turn(Lane(key="m"), "hi"), "m")
        lane = begin_turn(lane, "retry")
        assert lane.state is LaneState.STREAMING


class TestPayload:
    """Tests for LaneMessage.to_payload."""

    def test_text_payload_has_no_urls(self):
        payload = LaneMessage(role="user", text="hi").to_payload()
        assert payload == {"role": "user", "content": "hi", "type": "text"}

    def test_audio_payload(self):
        payload = LaneMessage(role="assistant", text="", model="m", type="audio", url="https://a/x.mp3").to_payload()
        assert payload["audioUrl"] == "https://a/x.mp3"
        assert "imageUrl" not in payload
