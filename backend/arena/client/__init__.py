"""
Client Module

Everything a chat front end needs on top of the backend API:
- API: async HTTP client for the REST surface
- Lanes: immutable per-model conversation state and its transitions
- Providers: where model answers come from (streamed text, media URLs)
- Smart: keyword-based model routing for smart mode
- Session: multi-lane turns, token reporting and debounced auto-save
- Debate: two models answer one debate prompt, published as a community battle
"""

from .api import ArenaAPIError, ArenaClient
from .lanes import (
    ERROR_TEXT,
    Lane,
    LaneBusy,
    LaneMessage,
    LaneState,
    estimate_tokens,
)
from .providers import BackendProvider, ModelProvider
from .smart import KeywordScorer, ModelProfile, ScoringStrategy, Selection, SmartRouter
from .session import ChatSession
from .debate import Debate, debate_prompt, publish_battle, run_debate

__all__ = [
    # API
    "ArenaAPIError",
    "ArenaClient",
    # Lanes
    "ERROR_TEXT",
    "Lane",
    "LaneBusy",
    "LaneMessage",
    "LaneState",
    "estimate_tokens",
    # Providers
    "BackendProvider",
    "ModelProvider",
    # Smart routing
    "KeywordScorer",
    "ModelProfile",
    "ScoringStrategy",
    "Selection",
    "SmartRouter",
    # Session
    "ChatSession",
    # Debate
    "Debate",
    "debate_prompt",
    "publish_battle",
    "run_debate",
]
