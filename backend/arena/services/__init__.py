"""
Services Module

Domain logic shared by the routers, plus external integrations:
- Usage: token counters and the monthly reset
- Battles: expiry sweep, voting and battle serialization
- Pollinations: text / image / audio generation passthrough
"""

from .usage import (
    add_tokens,
    month_changed,
    reset_monthly_if_due,
)
from .battles import (
    BattleNotFound,
    BattleRuleViolation,
    apply_update,
    cast_vote,
    render_battle,
    sweep_expired,
)
from .pollinations import (
    ProviderError,
    pollinations_service,
)

__all__ = [
    # Usage
    "add_tokens",
    "month_changed",
    "reset_monthly_if_due",
    # Battles
    "BattleNotFound",
    "BattleRuleViolation",
    "apply_update",
    "cast_vote",
    "render_battle",
    "sweep_expired",
    # Generation
    "ProviderError",
    "pollinations_service",
]
