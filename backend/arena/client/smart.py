"""
Smart model routing

Picks one model for a prompt in "smart" mode. Scoring is a plain keyword
heuristic with noise on top: every score gets a small random
jitter, and when the two best scores are within TIE_MARGIN the winner is
drawn at random from the top three. The random source is injectable so the
choice is reproducible under a seed.
"""
import logging
import random
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

TIE_MARGIN = 0.5
JITTER = 0.3


@dataclass(frozen=True)
class ModelProfile:
    """What a model is good at, expressed as prompt keywords"""
    model: str
    strengths: Tuple[str, ...]
    keywords: Tuple[str, ...]
    # (terms, bonus): bonus is added once if any term occurs in the prompt
    boosts: Tuple[Tuple[Tuple[str, ...], float], ...] = ()
    prefers_long: bool = False   # Long, complex prompts
    prefers_short: bool = False  # Short, conversational prompts


@dataclass
class Selection:
    model: str
    score: float
    reasoning: str
    confidence: float
    scores: Dict[str, float] = field(default_factory=dict)


class ScoringStrategy(ABC):
    @abstractmethod
    def score(self, prompt: str, profile: ModelProfile) -> float:
        pass


_TECHNICAL = ("api", "database", "algorithm", "function", "debug", "code", "programming",
              "html", "css", "react", "component", "landing", "page")
_MATH = ("calculate", "solve", "equation", "formula", "probability", "statistics",
         "7x7", "multiply", "times", "math")
_RESEARCH = ("what is", "explain", "define", "describe", "research", "science")
_BUSINESS = ("business", "money", "earn", "startup", "entrepreneur", "marketing", "strategy")
_CREATIVE = ("write", "story", "essay", "creative", "poem", "novel", "script")

DEFAULT_PROFILES: Tuple[ModelProfile, ...] = (
    ModelProfile(
        model="gpt-5-nano",
        strengths=("creative", "conversational", "general", "writing", "storytelling"),
        keywords=("write", "story", "creative", "poem", "essay", "article", "novel", "script", "blog",
                  "content", "hello", "how are you", "chat", "talk", "conversation", "help", "advice"),
        boosts=((_CREATIVE, 2.0),),
        prefers_short=True,
    ),
    ModelProfile(
        model="deepseek-chat",
        strengths=("programming", "coding", "technical", "debugging", "algorithms"),
        keywords=("code", "programming", "debug", "algorithm", "function", "api", "python", "javascript",
                  "react", "node", "sql", "database", "software", "development", "html", "css"),
        boosts=((_TECHNICAL, 2.0),),
    ),
    ModelProfile(
        model="deepseek-reasoner",
        strengths=("mathematical", "analytical", "reasoning", "problem-solving"),
        keywords=("calculate", "math", "equation", "statistics", "analysis", "data", "solve", "formula",
                  "probability", "geometry", "algebra", "calculus", "reasoning", "multiply", "times"),
        boosts=((_TECHNICAL, 2.0), (_MATH, 2.5)),
    ),
    ModelProfile(
        model="gemini-2.0-flash",
        strengths=("research", "factual", "knowledge", "explanations", "science"),
        keywords=("what is", "explain", "research", "history", "science", "facts", "define", "describe",
                  "information", "knowledge", "how does", "why", "when", "where"),
        boosts=((_RESEARCH, 2.0),),
    ),
    ModelProfile(
        model="claude-sonnet-4",
        strengths=("business", "professional", "strategic", "analytical"),
        keywords=("business", "marketing", "strategy", "planning", "presentation", "report", "proposal",
                  "meeting", "professional", "corporate", "management", "startup", "entrepreneur"),
        boosts=((_BUSINESS, 2.0),),
        prefers_long=True,
    ),
    ModelProfile(
        model="o3-mini",
        strengths=("advanced", "complex", "reasoning", "multimodal"),
        keywords=("complex", "advanced", "sophisticated", "detailed", "comprehensive", "thorough",
                  "in-depth", "explain", "code", "react", "component"),
        prefers_long=True,
    ),
    ModelProfile(
        model="mistral",
        strengths=("efficient", "fast", "general", "multilingual"),
        keywords=("quick", "fast", "simple", "basic", "general", "multilingual", "european", "french", "spanish"),
    ),
)


class KeywordScorer(ScoringStrategy):
    """Keyword hits plus topic bonuses and prompt-length adjustments (deterministic)"""

    def score(self, prompt: str, profile: ModelProfile) -> float:
        text = prompt.lower()
        words = len(text.split())
        score = float(sum(1 for kw in profile.keywords if kw in text))

        for terms, bonus in profile.boosts:
            if any(term in text for term in terms):
                score += bonus

        if profile.prefers_long:
            if words > 20:
                score += 0.5
            if len(text) > 100:
                score += 1.5
        if profile.prefers_short and words < 5:
            score += 0.5
        return score


class SmartRouter:
    """
    Chooses the model for a smart-mode turn.

    Parameters:
    - profiles: Candidate models
    - scorer: Scoring strategy (KeywordScorer by default)
    - rng: Random source for jitter and tie-breaks (seed it in tests)
    """

    def __init__(
        self,
        profiles: Sequence[ModelProfile] = DEFAULT_PROFILES,
        scorer: Optional[ScoringStrategy] = None,
        rng: Optional[random.Random] = None,
    ):
        if not profiles:
            raise ValueError("SmartRouter needs at least one model profile")
        self.profiles = {p.model: p for p in profiles}
        self.scorer = scorer or KeywordScorer()
        self.rng = rng or random.Random()

    def select(self, prompt: str) -> Selection:
        scores = {
            model: self.scorer.score(prompt, profile) + self.rng.random() * JITTER
            for model, profile in self.profiles.items()
        }
        ranked: List[Tuple[str, float]] = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)[:3]

        top = ranked[0][1]
        second = ranked[1][1] if len(ranked) > 1 else 0.0
        if top - second < TIE_MARGIN:
            model, score = ranked[self.rng.randrange(len(ranked))]
        else:
            model, score = ranked[0]

        profile = self.profiles[model]
        if top > JITTER:
            reasoning = f"{', '.join(profile.strengths)} capabilities match best"
        else:
            reasoning = f"General question - {model} selected as reliable default"
        confidence = min(0.9, 0.5 + score * 0.1)

        logger.debug("smart selection model=%s scores=%s", model, scores)
        return Selection(model=model, score=score, reasoning=reasoning, confidence=confidence, scores=scores)
