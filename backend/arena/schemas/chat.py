# arena/schemas/chat.py
"""
Pydantic schemas for saved chat endpoints.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field, model_validator
from arena.schemas.battle import MODEL_ID_MAX

__all__ = [
    "ChatRole",
    "ChatMode",
    "GenerationType",
    "ChatMessageIn",
    "SaveChatIn",
    "UpdateChatIn",
]

ChatRole = Literal["user", "assistant"]
ChatMode = Literal["single", "compare", "smart"]
GenerationType = Literal["text", "image", "audio"]
MEDIA_URL_MAX = 2048


class ChatMessageIn(BaseModel):
    """
    One turn of a conversation as sent by the client.
    Client-supplied timestamps are ignored; the server stamps every message.
    """
    role: ChatRole
    content: str  # May be empty for failed generations
    model: Optional[str] = Field(default=None, max_length=MODEL_ID_MAX)
    type: Optional[GenerationType] = None
    imageUrl: Optional[str] = Field(default=None, max_length=MEDIA_URL_MAX)
    audioUrl: Optional[str] = Field(default=None, max_length=MEDIA_URL_MAX)

    @model_validator(mode="after")
    def media_url_matches_type(self):
        # At most one side-channel URL, and only for the matching message type
        if self.imageUrl and self.type != "image":
            raise ValueError("imageUrl is only allowed on image messages")
        if self.audioUrl and self.type != "audio":
            raise ValueError("audioUrl is only allowed on audio messages")
        return self


class SaveChatIn(BaseModel):
    title: str = Field(min_length=1, max_length=100)
    messages: List[ChatMessageIn] = Field(min_length=1)  # An empty conversation is never persisted
    mode: ChatMode
    generationType: GenerationType
    models: Optional[List[str]] = None


class UpdateChatIn(BaseModel):
    """
    Partial update: omitted fields are left unchanged.
    `messages`, when present, replaces the whole message list.
    """
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    messages: Optional[List[ChatMessageIn]] = Field(default=None, min_length=1)
    mode: Optional[ChatMode] = None
    generationType: Optional[GenerationType] = None
    models: Optional[List[str]] = None
