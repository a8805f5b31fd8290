# arena/core/bootstrap.py
"""
Bootstrap module for application initialization.
Runs one-off housekeeping when the server starts.
"""
import logging
from arena.config import settings
from arena.services.battles import sweep_expired

logger = logging.getLogger("uvicorn.error")

async def close_expired_battles() -> int:
    """
    Mark battles that expired while the server was down as inactive.
    Controlled by BATTLE_SWEEP_ON_STARTUP (default: enabled).
    Returns the number of battles flipped.
    """
    if not settings.battle_sweep_on_startup:
        logger.info("[bootstrap] BATTLE_SWEEP_ON_STARTUP disabled -> skip expired battle sweep.")
        return 0
    cleaned = await sweep_expired()
    logger.info("[bootstrap] expired battle sweep done -> %s battle(s) closed", cleaned)
    return cleaned
