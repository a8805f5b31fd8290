"""
Conversation lanes

A lane is one column of a conversation: the single-model chat, the smart
chat, or one model's column in compare mode. Lanes are immutable; every
transition below takes a Lane and returns a new one, so a session only ever
swaps whole values in its lane map.

    IDLE --begin_turn--> STREAMING --apply_chunk--> STREAMING
    STREAMING --settle--> SETTLED
    STREAMING --add_result--> SETTLED
    STREAMING --fail--> IDLE   (error message appended)
"""
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

ERROR_TEXT = "Error: Failed to get response"


def estimate_tokens(text: str) -> int:
    """Rough token estimate: 1 token ≈ 4 characters."""
    return math.ceil(len(text) / 4)


class LaneState(str, Enum):
    IDLE = "idle"
    STREAMING = "streaming"
    SETTLED = "settled"


class LaneBusy(RuntimeError):
    """A turn was started on a lane that is still streaming."""


@dataclass(frozen=True)
class LaneMessage:
    """One rendered message; `url` carries image/audio payloads"""
    role: str  # user / assistant
    text: str
    model: Optional[str] = None
    type: str = "text"  # text / image / audio
    url: Optional[str] = None
    is_streaming: bool = False

    @property
    def tokens(self) -> int:
        return estimate_tokens(self.text)

    def to_payload(self) -> dict:
        """Wire format accepted by the save/update chat endpoints."""
        payload = {"role": self.role, "content": self.text, "type": self.type}
        if self.model:
            payload["model"] = self.model
        if self.url and self.type == "image":
            payload["imageUrl"] = self.url
        if self.url and self.type == "audio":
            payload["audioUrl"] = self.url
        return payload


@dataclass(frozen=True)
class Lane:
    key: str
    messages: Tuple[LaneMessage, ...] = field(default_factory=tuple)
    state: LaneState = LaneState.IDLE
    buffer: str = ""  # Text accumulated for the in-flight answer

    @property
    def last(self) -> Optional[LaneMessage]:
        return self.messages[-1] if self.messages else None


def _is_open_answer(message: Optional[LaneMessage], model: str) -> bool:
    return (
        message is not None
        and message.role == "assistant"
        and message.model == model
        and message.is_streaming
    )


def begin_turn(lane: Lane, prompt: str) -> Lane:
    if lane.state is LaneState.STREAMING:
        raise LaneBusy(f"lane {lane.key!r} is still streaming")
    user_message = LaneMessage(role="user", text=prompt)
    return replace(lane, messages=lane.messages + (user_message,), state=LaneState.STREAMING, buffer="")


def apply_chunk(lane: Lane, chunk: str, model: str) -> Lane:
    """
    Append a partial chunk to the in-flight answer.
    The answer is rewritten in place, so the lane holds one growing message
    rather than one message per chunk.
    """
    if lane.state is not LaneState.STREAMING:
        raise LaneBusy(f"lane {lane.key!r} is not streaming")
    acc = lane.buffer + chunk
    answer = LaneMessage(role="assistant", text=acc, model=model, is_streaming=True)
    if _is_open_answer(lane.last, model):
        messages = lane.messages[:-1] + (answer,)
    else:
        messages = lane.messages + (answer,)
    return replace(lane, messages=messages, buffer=acc)


def settle(lane: Lane, model: str) -> Lane:
    """End of stream: close the answer (an empty one if no chunk ever arrived)."""
    if _is_open_answer(lane.last, model):
        messages = lane.messages[:-1] + (replace(lane.last, is_streaming=False),)
    else:
        messages = lane.messages + (LaneMessage(role="assistant", text=lane.buffer, model=model),)
    return replace(lane, messages=messages, state=LaneState.SETTLED, buffer="")


def add_result(lane: Lane, message: LaneMessage) -> Lane:
    """Complete, non-streaming answer (passthrough text, image or audio URL)."""
    closed = replace(message, is_streaming=False)
    return replace(lane, messages=lane.messages + (closed,), state=LaneState.SETTLED, buffer="")


def fail(lane: Lane, model: str) -> Lane:
    """Request threw: freeze any partial answer and append the fixed error message."""
    messages = lane.messages
    if _is_open_answer(lane.last, model):
        messages = messages[:-1] + (replace(lane.last, is_streaming=False),)
    error = LaneMessage(role="assistant", text=ERROR_TEXT, model=model)
    return replace(lane, messages=messages + (error,), state=LaneState.IDLE, buffer="")
