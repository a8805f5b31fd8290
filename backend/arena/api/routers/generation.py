"""
Generation passthrough router

Forwards text/image/audio requests to the external generation provider
"""
from fastapi import APIRouter, Depends, HTTPException, status
from arena.api.deps import get_current_user_id
from arena.schemas.generation import AudioGenerationIn, ImageGenerationIn, TextGenerationIn
from arena.services.pollinations import ProviderError, pollinations_service

router = APIRouter(prefix="/generation", tags=["generation"])


@router.post("/image")
async def generate_image(body: ImageGenerationIn, user_id: str = Depends(get_current_user_id)):
    image_url = pollinations_service.image_url_for(body.prompt, body.model, body.width, body.height)
    return {
        "success": True,
        "imageUrl": image_url,
        "prompt": body.prompt,
        "model": body.model,
        "width": body.width,
        "height": body.height,
    }


@router.post("/audio")
async def generate_audio(body: AudioGenerationIn, user_id: str = Depends(get_current_user_id)):
    audio_url = pollinations_service.audio_url_for(body.text, body.voice)
    return {"success": True, "audioUrl": audio_url, "text": body.text, "voice": body.voice}


@router.post("/text")
async def generate_text(body: TextGenerationIn, user_id: str = Depends(get_current_user_id)):
    """
    Complete (non-streaming) text generation for provider-served models.

    Raises:
        HTTPException (400): Model not served by the passthrough, or rejected upstream
        HTTPException (402): Model requires a paid tier
        HTTPException (502): Any other provider failure
    """
    if not pollinations_service.supports_text_model(body.model):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail=f"Model not supported for direct text generation: {body.model}")
    try:
        text = await pollinations_service.generate_text(body.prompt, body.model)
    except ProviderError as e:
        raise HTTPException(status_code=e.status_code, detail={"error": e.message, "details": e.details})
    return {"success": True, "text": text, "model": body.model, "source": "pollinations"}
