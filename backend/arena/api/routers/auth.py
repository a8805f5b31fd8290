import logging
from fastapi import APIRouter, HTTPException, status, Depends
from arena.config import settings
from arena.core import clock
from arena.core.security import verify_password, create_access_token, hash_password
from arena.api.deps import get_current_user
from arena.models.user import User
from arena.schemas.auth import SignupIn, LoginIn, UpdateTokensIn, ChangePasswordIn, UpdateProfileIn
from arena.services.usage import add_tokens, reset_monthly_if_due

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger("uvicorn.error")


def _session_payload(user: User) -> dict:
    return {
        "token": create_access_token(str(user.id)),
        "user": {
            "email": user.email,
            "username": user.username,
            "totalTokens": user.total_tokens,
            "monthlyTokens": user.monthly_tokens,
        },
    }


def _profile(user: User) -> dict:
    return {
        "email": user.email,
        "username": user.username,
        "totalTokens": user.total_tokens,
        "monthlyTokens": user.monthly_tokens,
        "lastTokenReset": clock.isoformat(user.last_token_reset),
        "createdAt": clock.isoformat(user.created_at),
    }


@router.post("/signup")
async def signup(body: SignupIn):
    """
    Register a new account and log it in.

    Args:
        body: email, username (3-20 chars), password and confirmPassword
            (at least 6 chars, must match)

    Returns:
        dict: {token, user: {email, username, totalTokens, monthlyTokens}}

    Raises:
        HTTPException (400): Invalid input, or a disposable email domain
        HTTPException (409): Email or username already taken
    """
    email = str(body.email)
    domain = email.rsplit("@", 1)[-1].lower()
    if not domain or domain in settings.disposable_email_domains:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST,
                            detail="Disposable or temporary email addresses are not allowed")

    if await User.filter(email=email).exists():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
    if await User.filter(username=body.username).exists():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")

    user = await User.create(
        email=email,
        username=body.username,
        password_hash=hash_password(body.password),
        last_token_reset=clock.utcnow(),
    )
    logger.info("[auth] signup user=%s", user.id)
    return _session_payload(user)


@router.post("/login")
async def login(body: LoginIn):
    """
    Authenticate with email + password and issue a JWT.

    Raises:
        HTTPException (401): Unknown email or wrong password (same message for both)
    """
    user = await User.get_or_none(email=str(body.email))
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _session_payload(user)


@router.get("/profile")
async def profile(user: User = Depends(get_current_user)):
    """
    Get identity and usage counters for the current user.
    The monthly counter is reset here if the calendar month has changed.
    """
    await reset_monthly_if_due(user)
    return _profile(user)


@router.post("/update-tokens")
async def update_tokens(body: UpdateTokensIn, user: User = Depends(get_current_user)):
    """
    Add the tokens consumed by one completed turn to the usage counters.

    Returns:
        dict: {totalTokens, monthlyTokens, lastTokenReset}
    """
    user = await add_tokens(user, body.tokens)
    return {
        "totalTokens": user.total_tokens,
        "monthlyTokens": user.monthly_tokens,
        "lastTokenReset": clock.isoformat(user.last_token_reset),
    }


@router.post("/change-password")
async def change_password(body: ChangePasswordIn, user: User = Depends(get_current_user)):
    """
    Change password for the current user.

    Raises:
        HTTPException (401): currentPassword does not match
    """
    if not verify_password(body.currentPassword, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Current password is incorrect")
    user.password_hash = hash_password(body.newPassword)
    await user.save(update_fields=["password_hash", "updated_at"])
    return {"message": "Password changed successfully"}


@router.post("/update-profile")
async def update_profile(body: UpdateProfileIn, user: User = Depends(get_current_user)):
    """
    Change email and/or username.

    Raises:
        HTTPException (409): The new value already belongs to another account
    """
    if body.email and str(body.email) != user.email:
        if await User.filter(email=str(body.email)).exclude(id=user.id).exists():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already exists")
        user.email = str(body.email)

    if body.username and body.username != user.username:
        if await User.filter(username=body.username).exclude(id=user.id).exists():
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already exists")
        user.username = body.username

    await user.save(update_fields=["email", "username", "updated_at"])
    return _profile(user)
