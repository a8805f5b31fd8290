# arena/schemas/battle.py
"""
Pydantic schemas for community battle endpoints.
"""
from typing import List, Literal, Optional
from pydantic import BaseModel, Field

__all__ = [
    "VoteChoice",
    "MODEL_ID_MAX",
    "CreateBattleIn",
    "UpdateBattleIn",
    "VoteIn",
]

VoteChoice = Literal["model1", "model2"]
MODEL_ID_MAX = 128  # Width of the model columns


class CreateBattleIn(BaseModel):
    question: str = Field(min_length=1, max_length=1000)
    model1: str = Field(min_length=1, max_length=MODEL_ID_MAX)
    model2: str = Field(min_length=1, max_length=MODEL_ID_MAX)
    model1Response: str = ""
    model2Response: str = ""
    duration: float = Field(default=5, ge=1, le=1440, description="Voting window in minutes (1 minute to 24 hours)")


class UpdateBattleIn(BaseModel):
    """
    Generic partial update of a battle.
    Used mainly by clients to mark a battle inactive once it has expired.
    """
    model1Votes: Optional[int] = Field(default=None, ge=0)
    model2Votes: Optional[int] = Field(default=None, ge=0)
    totalVotes: Optional[int] = Field(default=None, ge=0)
    participants: Optional[List[str]] = None
    isActive: Optional[bool] = None
    model1Response: Optional[str] = None
    model2Response: Optional[str] = None


class VoteIn(BaseModel):
    model: VoteChoice
