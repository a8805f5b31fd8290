# arena/models/battle.py
import secrets
import time
from tortoise import fields, models


def new_battle_id() -> str:
    # Millisecond timestamp + random suffix; the primary key enforces uniqueness
    return f"battle_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class CommunityBattle(models.Model):
    """
    Public AI-vs-AI voting contest.

    - id: globally unique, used for direct lookup without knowing the owner
    - total_votes: always model1_votes + model2_votes
    - is_active: flipped to False explicitly or once end_time has passed
    - participants are the voter ids stored in BattleVote (one row per voter)
    """
    id = fields.CharField(max_length=64, pk=True, default=new_battle_id)
    owner = fields.ForeignKeyField("models.User", related_name="battles", on_delete=fields.CASCADE)
    question = fields.CharField(max_length=1000)
    model1 = fields.CharField(max_length=128)
    model2 = fields.CharField(max_length=128)
    model1_response = fields.TextField(default="")
    model2_response = fields.TextField(default="")
    model1_votes = fields.IntField(default=0)
    model2_votes = fields.IntField(default=0)
    total_votes = fields.IntField(default=0)
    created_at = fields.DatetimeField(index=True)
    end_time = fields.DatetimeField()
    is_active = fields.BooleanField(default=True)

    class Meta:
        table = "community_battles"
        indexes = (("is_active", "end_time"),)  # Expiry sweep lookup


class BattleVote(models.Model):
    """
    One participant of a battle.
    The (battle, voter_id) unique constraint makes a second vote by the same
    user fail at the storage layer even when two requests race.
    """
    id = fields.IntField(pk=True)
    battle = fields.ForeignKeyField("models.CommunityBattle", related_name="votes", on_delete=fields.CASCADE)
    voter_id = fields.CharField(max_length=64)
    choice = fields.CharField(max_length=8, null=True)  # model1 / model2; null when written by a roster update
    created_at = fields.DatetimeField(auto_now_add=True)

    class Meta:
        table = "battle_votes"
        unique_together = (("battle", "voter_id"),)
