# arena/core/clock.py
"""
Timezone-aware UTC clock.

Every timestamp the backend writes (chat/message stamps, battle end times,
token reset dates) is taken from `utcnow()`. Callers must go through the
module attribute (`clock.utcnow()`) so tests can move time forward by
patching a single function.
"""
import datetime as dt


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def isoformat(value: dt.datetime | None) -> str | None:
    """Serialize a stored datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=dt.timezone.utc)
    return value.astimezone(dt.timezone.utc).isoformat()
