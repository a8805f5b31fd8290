# arena/api/deps.py
from fastapi import Depends, Header, HTTPException, status
from tortoise.exceptions import OperationalError
from arena.core.security import bearer_token, decode_access_token
from arena.models.user import User

async def get_current_user_id(authorization: str | None = Header(default=None)) -> str:
    """
    FastAPI dependency that authenticates the request.

    Extracts the bearer token from the Authorization header, verifies its
    signature and expiry, and returns the `userId` claim. It does not touch
    the database, so it is cheap enough for every protected route.

    Raises:
        HTTPException (401): Header missing or not "Bearer <token>"
        HTTPException (401): Token invalid, expired, or missing the userId claim
    """
    token = bearer_token(authorization)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    try:
        payload = decode_access_token(token)
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    user_id = payload.get("userId")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return str(user_id)

async def get_current_user(user_id: str = Depends(get_current_user_id)) -> User:
    """
    FastAPI dependency that loads the authenticated user.

    Raises:
        HTTPException (401): From get_current_user_id
        HTTPException (404): The token references an account that no longer exists
    """
    try:
        user = await User.get_or_none(id=user_id)
    except (ValueError, OperationalError):
        # userId claim is not a valid UUID
        user = None
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user
