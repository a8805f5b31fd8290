# arena/schemas/generation.py
"""
Pydantic schemas for the generation passthrough endpoints.
"""
from pydantic import BaseModel, Field

__all__ = [
    "ImageGenerationIn",
    "AudioGenerationIn",
    "TextGenerationIn",
]


class ImageGenerationIn(BaseModel):
    prompt: str = Field(min_length=1, max_length=500)
    model: str = "flux"
    width: int = Field(default=1024, ge=256, le=2048)
    height: int = Field(default=1024, ge=256, le=2048)


class AudioGenerationIn(BaseModel):
    text: str = Field(min_length=1, max_length=1000)
    voice: str = "alloy"


class TextGenerationIn(BaseModel):
    prompt: str = Field(min_length=1, max_length=20000)
    model: str
