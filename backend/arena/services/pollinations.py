"""
Pollinations generation service

Thin passthrough to the public Pollinations API:
1. Image and audio: build a cache-busted URL the browser loads directly
2. Text: call the provider for models the in-browser SDK cannot serve
"""
import logging
import time
from urllib.parse import quote, urlencode

import httpx

from ..config import settings

logger = logging.getLogger("uvicorn.error")


class ProviderError(Exception):
    """Upstream provider failure carrying the HTTP status to report."""

    def __init__(self, status_code: int, message: str, details: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.details = details


class PollinationsService:
    """Pollinations API wrapper"""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None):
        self.api_key = settings.pollinations_api_key
        self.text_url = settings.pollinations_text_url.rstrip("/")
        self.image_url = settings.pollinations_image_url.rstrip("/")
        self.timeout = settings.generation_timeout
        self.text_models = set(settings.pollinations_text_models)
        self.transport = transport  # Tests inject an httpx.MockTransport

    def supports_text_model(self, model: str) -> bool:
        return model in self.text_models

    def image_url_for(self, prompt: str, model: str, width: int, height: int) -> str:
        # Timestamp busts the CDN cache so the same prompt yields a fresh image
        query = urlencode({
            "model": model,
            "width": width,
            "height": height,
            "nologo": "true",
            "enhance": "true",
            "t": int(time.time() * 1000),
        })
        return f"{self.image_url}/{quote(prompt, safe='')}?{query}"

    def audio_url_for(self, text: str, voice: str) -> str:
        query = urlencode({
            "model": "openai-audio",
            "voice": voice,
            "t": int(time.time() * 1000),
        })
        return f"{self.text_url}/{quote(text, safe='')}?{query}"

    async def generate_text(self, prompt: str, model: str) -> str:
        """
        Generate a complete (non-streaming) answer.

        Raises:
            ProviderError: 402 when the model needs a paid tier, 400 when the
                provider rejects the request, 502 for any other failure
        """
        params = {"model": model}
        if self.api_key:
            params["token"] = self.api_key
        url = f"{self.text_url}/{quote(prompt, safe='')}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.get(url, params=params)
                resp.raise_for_status()
                return resp.text
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning("[pollinations] model=%s upstream status=%s", model, status)
            if status == 402:
                raise ProviderError(
                    402,
                    "Model requires higher tier access. Please try a different model.",
                    "This model requires a paid tier.",
                )
            if status == 400:
                raise ProviderError(400, "Invalid request to Pollinations API", "The request format was incorrect. Please try again.")
            raise ProviderError(502, "Failed to generate text with Pollinations API", e.response.text or str(e))
        except httpx.HTTPError as e:
            logger.error("[pollinations] model=%s request failed: %s", model, e)
            raise ProviderError(502, "Failed to generate text with Pollinations API", str(e) or type(e).__name__)


# Global instance
pollinations_service = PollinationsService()
