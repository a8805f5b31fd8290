"""
Model Provider Abstract Interface

Provides a unified interface for whatever actually runs the models
(a streaming chat SDK, the backend passthrough, test doubles).
"""
from abc import ABC, abstractmethod
from typing import AsyncIterator

from .api import ArenaClient


class ModelProvider(ABC):
    """Model Provider Abstract Base Class"""

    @abstractmethod
    def stream(self, prompt: str, model: str) -> AsyncIterator[str]:
        """
        Stream an answer

        Parameters:
        - prompt: Full user prompt
        - model: Model identifier (e.g., "gpt-5-nano")

        Returns:
        - Async iterator of text chunks, in arrival order
        """
        pass

    async def generate_media(self, prompt: str, kind: str, model: str) -> str:
        """
        Produce an image or audio payload in one call

        Optional capability: text-only providers keep this default, and a
        session turns the NotImplementedError into a failed answer.

        Parameters:
        - prompt: Description of the image, or the text to speak
        - kind: "image" or "audio"
        - model: Model selected in the session

        Returns:
        - URL of the generated media
        """
        raise NotImplementedError(f"{type(self).__name__} cannot generate {kind}")


class BackendProvider(ModelProvider):
    """
    Runs every model through the backend generation passthrough.
    Text answers arrive complete, so each one is a single chunk.
    """

    def __init__(self, api: ArenaClient, voice: str = "alloy"):
        self.api = api
        self.voice = voice

    async def stream(self, prompt: str, model: str) -> AsyncIterator[str]:
        yield await self.api.generate_text(prompt, model)

    async def generate_media(self, prompt: str, kind: str, model: str) -> str:
        if kind == "image":
            return await self.api.generate_image(prompt)
        if kind == "audio":
            return await self.api.generate_audio(prompt, self.voice)
        raise ValueError(f"unsupported media kind: {kind}")
