# arena/models/chat.py
"""
Database models for saved chats.
A SavedChat is one persisted conversation belonging to a user; its turns are
stored as ChatMessage rows ordered by `seq`.
"""
import uuid
from tortoise import fields, models


def new_chat_id() -> str:
    return f"chat_{uuid.uuid4().hex}"


class SavedChat(models.Model):
    """
    Saved conversation.

    Relationships:
    - Belongs to a User (many-to-one, cascade delete)
    - Has many ChatMessages (one-to-many, via related_name="messages")
    """
    id = fields.CharField(max_length=64, pk=True, default=new_chat_id)
    user = fields.ForeignKeyField("models.User", related_name="chats", on_delete=fields.CASCADE)
    title = fields.CharField(max_length=100)
    mode = fields.CharField(max_length=16)             # single / compare / smart
    generation_type = fields.CharField(max_length=16)  # text / image / audio
    model_ids = fields.JSONField(null=True)            # Model ids in play, e.g. ["gpt-5-nano"]
    created_at = fields.DatetimeField()
    updated_at = fields.DatetimeField(index=True)

    class Meta:
        table = "saved_chats"


class ChatMessage(models.Model):
    id = fields.IntField(pk=True)
    chat = fields.ForeignKeyField("models.SavedChat", related_name="messages", on_delete=fields.CASCADE)
    seq = fields.IntField()  # Conversation order inside the chat
    role = fields.CharField(max_length=16)  # user / assistant
    content = fields.TextField()  # May be empty for failed generations
    timestamp = fields.DatetimeField()  # Server-side write time
    model = fields.CharField(max_length=128, null=True)
    type = fields.CharField(max_length=16, null=True)  # text / image / audio
    image_url = fields.CharField(max_length=2048, null=True)
    audio_url = fields.CharField(max_length=2048, null=True)

    class Meta:
        table = "chat_messages"
