# arena/models/__init__.py
"""
Database models module initialization.
Exports all database models for convenient imports throughout the application.

Models exported:
- User: Account, credentials and token usage counters
- SavedChat: Persisted conversation (belongs to User)
- ChatMessage: One turn of a SavedChat
- CommunityBattle: Public AI-vs-AI voting contest (belongs to its creator)
- BattleVote: One voter's ballot on a CommunityBattle
"""
from .user import User
from .chat import SavedChat, ChatMessage
from .battle import CommunityBattle, BattleVote
