import datetime as dt
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from tortoise.exceptions import IntegrityError
from arena.api.deps import get_current_user, get_current_user_id
from arena.core import clock
from arena.models.user import User
from arena.models.battle import CommunityBattle
from arena.schemas.battle import CreateBattleIn, UpdateBattleIn, VoteIn
from arena.services.battles import (
    BattleNotFound,
    BattleRuleViolation,
    apply_update,
    battle_to_dict,
    cast_vote,
    render_battle,
    sweep_expired,
    votes_by_battle,
)

router = APIRouter(prefix="/community-battles", tags=["community-battles"])
logger = logging.getLogger("uvicorn.error")

# Attempts at drawing a fresh battle id before giving up
ID_ATTEMPTS = 3


async def _get_battle(battle_id: str) -> CommunityBattle:
    battle = await CommunityBattle.get_or_none(id=battle_id)
    if not battle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Battle not found")
    return battle


@router.post("")
async def create_battle(body: CreateBattleIn, user: User = Depends(get_current_user)):
    """
    Open a new battle owned by the current user.

    The voting window runs from now for `duration` minutes. Votes start at
    zero and no one has participated yet.

    Returns:
        dict: {success, battle}

    Raises:
        HTTPException (400): Invalid input
        HTTPException (500): The battle could not be stored
    """
    now = clock.utcnow()
    battle = None
    for _ in range(ID_ATTEMPTS):
        try:
            battle = await CommunityBattle.create(
                owner_id=user.id,
                question=body.question,
                model1=body.model1,
                model2=body.model2,
                model1_response=body.model1Response,
                model2_response=body.model2Response,
                created_at=now,
                end_time=now + dt.timedelta(minutes=body.duration),
                is_active=True,
            )
            break
        except IntegrityError as e:
            logger.warning("[battles] id collision, retrying: %s", e)
        except Exception as e:
            logger.error("[battles] save failed user=%s: %s", user.id, e)
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                                detail=f"Failed to save battle to database: {e}")
    if battle is None:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                            detail="Failed to save battle to database: could not allocate a unique id")

    logger.info("[battles] created id=%s by=%s duration=%smin", battle.id, user.username, body.duration)
    return {"success": True, "battle": battle_to_dict(battle, user.username, [])}


@router.get("")
async def list_battles(user_id: str = Depends(get_current_user_id)):
    """
    Global battle feed, newest first.

    Expired battles are marked inactive before the feed is built. Each item
    carries `creator` plus `hasVoted`/`userVote` for the caller.
    """
    await sweep_expired()
    battles = await CommunityBattle.all().order_by("-created_at", "-id").prefetch_related("owner")
    votes = await votes_by_battle(b.id for b in battles)
    return [battle_to_dict(b, b.owner.username, votes[b.id], user_id) for b in battles]


@router.post("/cleanup-expired")
async def cleanup_expired(user_id: str = Depends(get_current_user_id)):
    """
    Flip every expired but still active battle to inactive.

    Returns:
        dict: {success, message, cleanedCount}
    """
    cleaned = await sweep_expired()
    return {"success": True, "message": f"Cleaned up {cleaned} expired battles", "cleanedCount": cleaned}


@router.get("/{battle_id}")
async def get_battle(battle_id: str, user_id: str = Depends(get_current_user_id)):
    """
    Get one battle by id.

    Raises:
        HTTPException (404): Battle not found
    """
    await sweep_expired()
    battle = await _get_battle(battle_id)
    return await render_battle(battle, user_id)


@router.put("/{battle_id}")
async def update_battle(battle_id: str, body: UpdateBattleIn, user_id: str = Depends(get_current_user_id)):
    """
    Merge a partial update into a battle (vote counts, roster, activity flag,
    responses). Mostly used to mark a battle inactive once it has expired.

    Raises:
        HTTPException (400): Counters would break totalVotes = model1Votes + model2Votes
        HTTPException (404): Battle not found
    """
    battle = await _get_battle(battle_id)
    try:
        battle = await apply_update(battle, body)
    except BattleRuleViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except Exception as e:
        logger.error("[battles] update failed id=%s: %s", battle_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update battle: {e}")
    return {"success": True, "battle": await render_battle(battle, user_id)}


@router.post("/{battle_id}/vote")
async def vote(battle_id: str, body: VoteIn, user_id: str = Depends(get_current_user_id)):
    """
    Cast the caller's single vote for `model1` or `model2`.

    A vote cannot be changed or retracted once accepted.

    Raises:
        HTTPException (400): Invalid choice, battle inactive/expired, or already voted
        HTTPException (404): Battle not found
    """
    try:
        battle = await cast_vote(battle_id, user_id, body.model)
    except BattleNotFound:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Battle not found")
    except BattleRuleViolation as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)

    logger.info("[battles] vote id=%s choice=%s", battle_id, body.model)
    return {"success": True, "battle": await render_battle(battle, user_id), "message": "Vote recorded successfully"}


@router.delete("/{battle_id}")
async def delete_battle(battle_id: str, user: User = Depends(get_current_user)):
    """
    Delete a battle. Only its creator may do so.

    Raises:
        HTTPException (403): Caller is not the creator
        HTTPException (404): Battle not found
    """
    battle = await _get_battle(battle_id)
    if str(battle.owner_id) != str(user.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="You can only delete your own battles")
    await battle.delete()  # Ballots cascade
    return {"success": True, "message": "Battle deleted successfully"}
