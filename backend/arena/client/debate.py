"""
AI-vs-AI debates.

Two models receive the same debate prompt concurrently. The viewer can vote
on the answers locally, and the pair can be published as a community battle
so other users vote on it too.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from .api import ArenaClient
from .providers import ModelProvider

logger = logging.getLogger(__name__)

DEBATE_PROMPT = (
    'You are in a debate. Take a strong position on this topic: "{question}".\n'
    "Give a SHORT, punchy argument (max 2-3 sentences). Be persuasive and direct.\n"
    "Make your point quickly and powerfully."
)
NO_RESPONSE = "No response generated"
DEFAULT_BATTLE_MINUTES = 5


def debate_prompt(question: str) -> str:
    return DEBATE_PROMPT.format(question=question)


@dataclass
class Debate:
    """Both answers to one debate question plus the local vote tally."""
    question: str
    model1: str
    model2: str
    model1_response: str
    model2_response: str
    model1_votes: int = 0
    model2_votes: int = 0

    @property
    def total_votes(self) -> int:
        return self.model1_votes + self.model2_votes

    @property
    def winner(self) -> Optional[str]:
        """Model with more votes; None while tied."""
        if self.model1_votes == self.model2_votes:
            return None
        return self.model1 if self.model1_votes > self.model2_votes else self.model2

    def vote(self, choice: str) -> None:
        if choice == "model1":
            self.model1_votes += 1
        elif choice == "model2":
            self.model2_votes += 1
        else:
            raise ValueError(f"invalid vote choice: {choice}")


async def collect_answer(provider: ModelProvider, prompt: str, model: str) -> str:
    """Drain one stream into the full answer text."""
    parts = [chunk async for chunk in provider.stream(prompt, model)]
    return "".join(parts) or NO_RESPONSE


async def run_debate(provider: ModelProvider, question: str, model1: str, model2: str) -> Debate:
    """
    Ask both models the debate prompt at the same time.

    Raises:
        ValueError: Blank question
        Exception: Whatever either stream raised; a debate needs both answers
    """
    question = question.strip()
    if not question:
        raise ValueError("debate question must not be blank")

    prompt = debate_prompt(question)
    answer1, answer2 = await asyncio.gather(
        collect_answer(provider, prompt, model1),
        collect_answer(provider, prompt, model2),
    )
    logger.debug("debate finished: %s vs %s", model1, model2)
    return Debate(question, model1, model2, answer1, answer2)


async def publish_battle(api: ArenaClient, debate: Debate, duration: float = DEFAULT_BATTLE_MINUTES) -> dict:
    """Post the debate as a community battle; local votes stay local."""
    battle = await api.create_battle(
        debate.question,
        debate.model1,
        debate.model2,
        model1_response=debate.model1_response,
        model2_response=debate.model2_response,
        duration=duration,
    )
    logger.info("debate published as battle %s", battle["id"])
    return battle
