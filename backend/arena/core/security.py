# arena/core/security.py
"""
Authentication primitives.
Argon2 password hashes (passlib) and HS256 session tokens (PyJWT).

Session token claims:
    - userId: id of the signed-in user
    - iat / exp: issue and expiry instants (exp = iat + JWT_EXPIRES_MINUTES)
"""
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from arena.config import settings

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

JWT_SECRET = settings.jwt_secret
ACCESS_TOKEN_EXPIRE_MINUTES = settings.jwt_expires_minutes
JWT_ALG = "HS256"
BEARER_PREFIX = "Bearer "

def hash_password(plain: str) -> str:
    """Hash a password for storage. The result embeds its own salt."""
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str) -> str:
    """
    Issue a session token for `user_id`.

    Args:
        user_id: User primary key (UUID string)

    Returns:
        Signed JWT string
    """
    issued = dt.datetime.now(dt.timezone.utc)
    claims = {
        "userId": user_id,
        "iat": issued,
        "exp": issued + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALG)

def decode_access_token(token: str) -> dict:
    """
    Verify signature and expiry, then return the claims.

    Raises:
        jwt.ExpiredSignatureError: Token is past its exp
        jwt.InvalidTokenError: Bad signature or malformed token
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])

def bearer_token(authorization: str | None) -> str | None:
    """Token part of an `Authorization: Bearer <token>` header, or None."""
    if not authorization or not authorization.lower().startswith(BEARER_PREFIX.lower()):
        return None
    return authorization[len(BEARER_PREFIX):].strip() or None
