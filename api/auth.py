"""Password hashing and the authenticated-session guard."""

import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Annotated

from fastapi import Cookie, HTTPException, status

from api.session import SESSION_KEY_USER_ID, extract_session_id, get_session
from config import config


logger = logging.getLogger(__name__)

# User-facing error messages
ERRORS = {
    "NOT_AUTHENTICATED": "You need to log in to do that.",
    "INVALID_SESSION": "Your session is invalid. Please log in again.",
    "NO_ACTIVE_GAME": "You dont have any active game! Why dont you start one?",
    "USER_NOT_FOUND": "No user found with the specified username",
    "INCORRECT_PASSWORD": "Incorrect password",
    "ALREADY_SIGNED_IN": "You are already signed in",
    "USERNAME_TAKEN": "That username is already taken",
    "CONCURRENT_UPDATE": "The game was changed by another request. Please retry.",
}

# scrypt cost parameters (n=2**14 keeps a hash around 50ms)
_SCRYPT_N = 2**14
_SCRYPT_R = 8
_SCRYPT_P = 1


def hash_password(password: str, salt: str | None = None) -> tuple[str, str]:
    """
    Hash a password with a per-user salt and the configured pepper.

    Args:
        password: Plain-text password
        salt: Hex salt to reuse; a new one is generated when None

    Returns:
        (hex digest, hex salt)
    """
    salt = salt or secrets.token_hex(16)
    digest = hashlib.scrypt(
        (password + config.security.password_pepper).encode(),
        salt=bytes.fromhex(salt),
        n=_SCRYPT_N,
        r=_SCRYPT_R,
        p=_SCRYPT_P,
    ).hex()
    return digest, salt


def verify_password(password: str, password_hash: str, salt: str) -> bool:
    """Check a password against a stored hash in constant time."""
    candidate, _ = hash_password(password, salt)
    return secrets.compare_digest(candidate, password_hash)


@dataclass(frozen=True)
class SessionContext:
    """The authenticated caller of a request."""

    token: str
    user_id: int


async def load_session(token: str | None) -> SessionContext | None:
    """Resolve a session cookie to its context, or None if it is not a live session."""
    if not token or extract_session_id(token) is None:
        return None
    data = await get_session(token)
    if not data or data.get(SESSION_KEY_USER_ID) is None:
        return None
    return SessionContext(token=token, user_id=int(data[SESSION_KEY_USER_ID]))


async def optional_session(
    session_token: Annotated[str | None, Cookie(alias=config.session.cookie_name)] = None,
) -> SessionContext | None:
    """Dependency for routes that behave differently when logged in."""
    return await load_session(session_token)


async def require_user(
    session_token: Annotated[str | None, Cookie(alias=config.session.cookie_name)] = None,
) -> SessionContext:
    """
    Dependency guarding authenticated routes.

    Raises:
        HTTPException: 401 when the cookie is missing, forged, expired
            or no longer backed by a stored session
    """
    context = await load_session(session_token)
    if context is None:
        if session_token:
            logger.warning("Rejected request with stale or forged session token")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ERRORS["NOT_AUTHENTICATED"],
        )
    return context
