"""
Token usage accounting.

Counters live on the User row. Increments are issued as single UPDATE
statements with F() expressions so two turns finishing at the same time
cannot overwrite each other's increment.
"""
import datetime as dt

from tortoise.expressions import F

from arena.core import clock
from arena.models.user import User


def month_changed(last_reset: dt.datetime | None, now: dt.datetime) -> bool:
    """True when `now` falls in a different calendar month/year than `last_reset`."""
    if last_reset is None:
        return True
    return (last_reset.year, last_reset.month) != (now.year, now.month)


async def reset_monthly_if_due(user: User) -> bool:
    """
    Lazily reset the monthly counter when the calendar month has rolled over.
    Returns True if a reset was written.
    """
    now = clock.utcnow()
    if not month_changed(user.last_token_reset, now):
        return False
    await User.filter(id=user.id).update(monthly_tokens=0, last_token_reset=now)
    user.monthly_tokens = 0
    user.last_token_reset = now
    return True


async def add_tokens(user: User, tokens: int) -> User:
    """
    Add `tokens` to both counters.

    On the first update of a new month the monthly counter restarts at
    exactly `tokens` and last_token_reset moves to now.
    """
    now = clock.utcnow()
    if month_changed(user.last_token_reset, now):
        await User.filter(id=user.id).update(
            total_tokens=F("total_tokens") + tokens,
            monthly_tokens=tokens,
            last_token_reset=now,
        )
    else:
        await User.filter(id=user.id).update(
            total_tokens=F("total_tokens") + tokens,
            monthly_tokens=F("monthly_tokens") + tokens,
        )
    await user.refresh_from_db()
    return user
