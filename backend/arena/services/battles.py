"""
Community battle service.

Holds the rules shared by the battle routes and the startup task:
- expiry: active battles whose end_time has passed are flipped inactive by
  one indexed UPDATE (sweep_expired), run lazily before reads and votes
- voting: one ballot per user, enforced by the (battle, voter_id) unique
  constraint, with both counters advanced in a single UPDATE
- serialization to the public JSON contract
"""
import logging
from typing import Iterable

from tortoise.exceptions import IntegrityError
from tortoise.expressions import F
from tortoise.transactions import in_transaction

from arena.core import clock
from arena.models.battle import BattleVote, CommunityBattle
from arena.schemas.battle import UpdateBattleIn

logger = logging.getLogger("uvicorn.error")


class BattleNotFound(Exception):
    pass


class BattleRuleViolation(Exception):
    """A request that is well-formed but breaks a battle rule (HTTP 400)."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


async def sweep_expired() -> int:
    """Mark every expired but still active battle inactive. Returns the number flipped."""
    now = clock.utcnow()
    cleaned = await CommunityBattle.filter(is_active=True, end_time__lt=now).update(is_active=False)
    if cleaned:
        logger.info("[battles] marked %s expired battle(s) inactive", cleaned)
    return cleaned


async def votes_by_battle(battle_ids: Iterable[str]) -> dict[str, list[BattleVote]]:
    """Load ballots for the given battles, grouped by battle id in casting order."""
    ids = list(battle_ids)
    grouped: dict[str, list[BattleVote]] = {bid: [] for bid in ids}
    if not ids:
        return grouped
    for vote in await BattleVote.filter(battle_id__in=ids).order_by("id"):
        grouped[vote.battle_id].append(vote)
    return grouped


def battle_to_dict(
    battle: CommunityBattle,
    creator: str,
    votes: list[BattleVote],
    viewer_id: str | None = None,
) -> dict:
    data = {
        "id": battle.id,
        "question": battle.question,
        "model1": battle.model1,
        "model2": battle.model2,
        "model1Response": battle.model1_response,
        "model2Response": battle.model2_response,
        "model1Votes": battle.model1_votes,
        "model2Votes": battle.model2_votes,
        "totalVotes": battle.total_votes,
        "creator": creator,
        "createdAt": clock.isoformat(battle.created_at),
        "endTime": clock.isoformat(battle.end_time),
        "isActive": battle.is_active,
        "participants": [v.voter_id for v in votes],
    }
    if viewer_id is not None:
        mine = next((v for v in votes if v.voter_id == viewer_id), None)
        data["hasVoted"] = mine is not None
        data["userVote"] = mine.choice if mine else None
    return data


async def render_battle(battle: CommunityBattle, viewer_id: str | None = None) -> dict:
    """Serialize one battle, loading its creator and ballots."""
    await battle.fetch_related("owner")
    votes = await votes_by_battle([battle.id])
    return battle_to_dict(battle, battle.owner.username, votes[battle.id], viewer_id)


async def cast_vote(battle_id: str, voter_id: str, choice: str) -> CommunityBattle:
    """
    Record one vote for `choice` ("model1" or "model2").

    Raises:
        BattleNotFound: No battle with this id
        BattleRuleViolation: Battle inactive/expired, or voter already participated
    """
    await sweep_expired()
    battle = await CommunityBattle.get_or_none(id=battle_id)
    if not battle:
        raise BattleNotFound(battle_id)
    if not battle.is_active:
        raise BattleRuleViolation("Battle is no longer active")
    if await BattleVote.filter(battle_id=battle.id, voter_id=voter_id).exists():
        raise BattleRuleViolation("You have already voted in this battle")

    counter = f"{choice}_votes"
    now = clock.utcnow()
    try:
        async with in_transaction():
            await BattleVote.create(battle_id=battle.id, voter_id=voter_id, choice=choice)
            # Guarded on activity so a battle that expires mid-request takes no vote
            updated = await CommunityBattle.filter(id=battle.id, is_active=True, end_time__gt=now).update(
                **{counter: F(counter) + 1, "total_votes": F("total_votes") + 1}
            )
            if not updated:
                raise BattleRuleViolation("Battle is no longer active")
    except IntegrityError:
        # Lost a race against another request from the same voter
        raise BattleRuleViolation("You have already voted in this battle")

    await battle.refresh_from_db()
    return battle


async def apply_update(battle: CommunityBattle, body: UpdateBattleIn) -> CommunityBattle:
    """
    Merge a partial update into a battle.

    Only the supplied columns are written. When any counter is supplied,
    totalVotes is recomputed from the two model counters; an explicit
    totalVotes that disagrees is rejected. `participants` replaces the roster.
    """
    changes: dict = {}
    if body.model1Votes is not None or body.model2Votes is not None or body.totalVotes is not None:
        m1 = body.model1Votes if body.model1Votes is not None else battle.model1_votes
        m2 = body.model2Votes if body.model2Votes is not None else battle.model2_votes
        if body.totalVotes is not None and body.totalVotes != m1 + m2:
            raise BattleRuleViolation("totalVotes must equal model1Votes + model2Votes")
        changes.update(model1_votes=m1, model2_votes=m2, total_votes=m1 + m2)
    if body.isActive is not None:
        changes["is_active"] = body.isActive
    if body.model1Response is not None:
        changes["model1_response"] = body.model1Response
    if body.model2Response is not None:
        changes["model2_response"] = body.model2Response

    async with in_transaction():
        if changes:
            await CommunityBattle.filter(id=battle.id).update(**changes)
        if body.participants is not None:
            roster = list(dict.fromkeys(body.participants))
            stale = BattleVote.filter(battle_id=battle.id)
            if roster:
                stale = stale.exclude(voter_id__in=roster)
            await stale.delete()
            present = set(await BattleVote.filter(battle_id=battle.id).values_list("voter_id", flat=True))
            missing = [BattleVote(battle_id=battle.id, voter_id=vid) for vid in roster if vid not in present]
            if missing:
                await BattleVote.bulk_create(missing)

    await battle.refresh_from_db()
    return battle
