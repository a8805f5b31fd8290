import logging
from fastapi import APIRouter, Depends, HTTPException, status
from tortoise.expressions import Q
from tortoise.transactions import in_transaction
from arena.api.deps import get_current_user
from arena.core import clock
from arena.models.user import User
from arena.models.chat import SavedChat, ChatMessage
from arena.schemas.chat import ChatMessageIn, SaveChatIn, UpdateChatIn

# Mounted next to the account routes: /api/auth/save-chat, /api/auth/chats/...
router = APIRouter(prefix="/auth", tags=["chats"])
logger = logging.getLogger("uvicorn.error")


# ===== Helpers =====
def _message_rows(chat_id: str, messages: list[ChatMessageIn]) -> list[ChatMessage]:
    now = clock.utcnow()  # Client timestamps are ignored
    return [
        ChatMessage(
            chat_id=chat_id,
            seq=i,
            role=m.role,
            content=m.content,
            timestamp=now,
            model=m.model,
            type=m.type,
            image_url=m.imageUrl,
            audio_url=m.audioUrl,
        )
        for i, m in enumerate(messages)
    ]


def _chat_to_dict(chat: SavedChat) -> dict:
    messages = sorted(chat.messages, key=lambda m: m.seq)
    return {
        "id": chat.id,
        "title": chat.title,
        "messages": [{
            "role": m.role,
            "content": m.content,
            "timestamp": clock.isoformat(m.timestamp),
            "model": m.model,
            "type": m.type,
            "imageUrl": m.image_url,
            "audioUrl": m.audio_url,
        } for m in messages],
        "mode": chat.mode,
        "generationType": chat.generation_type,
        "models": chat.model_ids,
        "createdAt": clock.isoformat(chat.created_at),
        "updatedAt": clock.isoformat(chat.updated_at),
    }


async def _get_own_chat(chat_id: str, user: User) -> SavedChat:
    chat = await SavedChat.get_or_none(id=chat_id, user_id=user.id)
    if not chat:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Chat not found")
    return chat


# ===== Routes =====
@router.post("/save-chat")
async def save_chat(body: SaveChatIn, user: User = Depends(get_current_user)):
    """
    Persist a new conversation for the current user.

    Every message is stamped with the server time, and createdAt/updatedAt
    are set to now.

    Returns:
        dict: {chatId, message}
    """
    now = clock.utcnow()
    try:
        async with in_transaction():
            chat = await SavedChat.create(
                user_id=user.id,
                title=body.title,
                mode=body.mode,
                generation_type=body.generationType,
                model_ids=body.models,
                created_at=now,
                updated_at=now,
            )
            await ChatMessage.bulk_create(_message_rows(chat.id, body.messages))
    except Exception as e:
        logger.error("[chats] save failed user=%s: %s", user.id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to save chat: {e}")
    return {"chatId": chat.id, "message": "Chat saved successfully"}


@router.get("/chats")
async def list_chats(user: User = Depends(get_current_user)):
    """
    List the current user's chats, most recently updated first.
    """
    chats = await SavedChat.filter(user_id=user.id).order_by("-updated_at").prefetch_related("messages")
    return {"chats": [_chat_to_dict(c) for c in chats]}


@router.get("/chats/search/{query}")
async def search_chats(query: str, user: User = Depends(get_current_user)):
    """
    Case-insensitive substring search over chat titles and message contents.
    Results are ordered most recently updated first.
    """
    hit_ids = set(await ChatMessage.filter(chat__user_id=user.id, content__icontains=query)
                  .values_list("chat_id", flat=True))
    condition = Q(title__icontains=query)
    if hit_ids:
        condition = condition | Q(id__in=list(hit_ids))
    chats = await (SavedChat.filter(condition, user_id=user.id)
                   .order_by("-updated_at").prefetch_related("messages"))
    return {"chats": [_chat_to_dict(c) for c in chats]}


@router.get("/chats/{chat_id}")
async def get_chat(chat_id: str, user: User = Depends(get_current_user)):
    """
    Get one of the current user's chats with all its messages.

    Raises:
        HTTPException (404): No chat with this id belongs to the user
    """
    chat = await _get_own_chat(chat_id, user)
    await chat.fetch_related("messages")
    return {"chat": _chat_to_dict(chat)}


@router.put("/chats/{chat_id}")
async def update_chat(chat_id: str, body: UpdateChatIn, user: User = Depends(get_current_user)):
    """
    Partially update a chat.

    Only the fields present in the body change; `messages` replaces the
    whole list. updatedAt is refreshed on every call.

    Raises:
        HTTPException (404): No chat with this id belongs to the user
    """
    chat = await _get_own_chat(chat_id, user)
    if body.title is not None:
        chat.title = body.title
    if body.mode is not None:
        chat.mode = body.mode
    if body.generationType is not None:
        chat.generation_type = body.generationType
    if body.models is not None:
        chat.model_ids = body.models
    chat.updated_at = clock.utcnow()

    try:
        async with in_transaction():
            await chat.save()
            if body.messages is not None:
                await ChatMessage.filter(chat_id=chat.id).delete()
                await ChatMessage.bulk_create(_message_rows(chat.id, body.messages))
    except Exception as e:
        logger.error("[chats] update failed chat=%s: %s", chat_id, e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to update chat: {e}")
    return {"message": "Chat updated successfully"}


@router.delete("/chats/{chat_id}")
async def delete_chat(chat_id: str, user: User = Depends(get_current_user)):
    """
    Delete one of the current user's chats and its messages.

    Raises:
        HTTPException (404): No chat with this id belongs to the user
    """
    chat = await _get_own_chat(chat_id, user)
    await chat.delete()  # Messages cascade
    return {"message": "Chat deleted successfully"}
