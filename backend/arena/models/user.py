# arena/models/user.py
"""
Database model for users.
Represents a user account: credentials, profile and token usage counters.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many SavedChats (one-to-many, via related_name="chats")
    - Has many CommunityBattles (one-to-many, via related_name="battles")

    Usage counters:
    - total_tokens grows for the lifetime of the account
    - monthly_tokens is reset to 0 when the calendar month of
      last_token_reset differs from the current one
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    email = fields.CharField(max_length=256, unique=True, index=True)
    username = fields.CharField(max_length=32, unique=True, index=True)  # Also the display name shown as battle creator
    password_hash = fields.CharField(max_length=255)
    total_tokens = fields.BigIntField(default=0)
    monthly_tokens = fields.BigIntField(default=0)
    last_token_reset = fields.DatetimeField()
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"
