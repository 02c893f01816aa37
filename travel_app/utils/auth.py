import json
import logging
from datetime import datetime, timedelta
from typing import Optional
from fastapi import Header
from jose import JWTError, jwt
from passlib.context import CryptContext
from travel_app.config import get_settings
from travel_app.utils.errors import Unauthorized

logger = logging.getLogger(__name__)

IDENTITY_HEADER = "x-user"
ACCESS = "access"
REFRESH = "refresh"

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password, hashed_password):
    """Verify a plain password against a hashed password."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password):
    """Hash a password for storage."""
    return pwd_context.hash(password)


def _secret(token_type: str) -> str:
    settings = get_settings()
    return settings.jwt_refresh_secret if token_type == REFRESH else settings.jwt_secret


def create_token(data: dict, token_type: str = ACCESS):
    """Create a signed JWT of the given type with an expiration time."""
    settings = get_settings()
    minutes = (
        settings.refresh_token_expire_minutes
        if token_type == REFRESH
        else settings.access_token_expire_minutes
    )
    to_encode = data.copy()
    to_encode.update({"type": token_type, "exp": datetime.utcnow() + timedelta(minutes=minutes)})
    return jwt.encode(to_encode, _secret(token_type), algorithm=settings.jwt_algorithm)


def decode_token(token: str, token_type: str = ACCESS) -> Optional[dict]:
    """Return the token's claims, or None if it is invalid, expired or of another type."""
    try:
        payload = jwt.decode(token, _secret(token_type), algorithms=[get_settings().jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Rejected {token_type} token: {e}")
        return None
    if payload.get("type") != token_type or payload.get("id") is None:
        return None
    return payload


def token_claims(user) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "role": getattr(user.role, "value", user.role),
        "firstName": user.first_name,
    }


class IdentityMiddleware:
    """
    Turn a verified bearer access token into the x-user identity header.

    Any x-user header sent by the client is dropped first, so route handlers
    only ever see identities this middleware vouched for.
    """

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = [
            (name, value) for name, value in scope["headers"] if name.lower() != IDENTITY_HEADER.encode()
        ]
        authorization = dict(headers).get(b"authorization", b"").decode("latin-1")
        if authorization.lower().startswith("bearer "):
            payload = decode_token(authorization[7:].strip(), ACCESS)
            if payload:
                identity = {key: payload[key] for key in ("id", "email", "role", "firstName") if key in payload}
                headers.append((IDENTITY_HEADER.encode(), json.dumps(identity).encode("latin-1")))

        scope = dict(scope, headers=headers)
        await self.app(scope, receive, send)


def parse_identity(raw: Optional[str]) -> dict:
    """Decode the x-user header; anything unusable is a 401."""
    if not raw:
        raise Unauthorized("Unauthorized or Invalid token")
    try:
        user = json.loads(raw)
    except ValueError:
        raise Unauthorized("Invalid user data")
    if not isinstance(user, dict) or not user.get("id"):
        raise Unauthorized("Unauthorized or Invalid token")
    return user


def get_current_user(x_user: Optional[str] = Header(None)):
    """Return the identity the middleware attached to this request."""
    return parse_identity(x_user)
