"""Login sessions with Redis backend and in-memory fallback."""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any
from uuid import uuid4

import redis.asyncio as redis
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from redis.exceptions import RedisError

from config import config

logger = logging.getLogger(__name__)

# Session data keys
SESSION_KEY_USER_ID = "user_id"


class SessionSigner:
    """Timestamped signatures over session IDs, so cookies cannot be forged."""

    def __init__(self, secret_key: str | None = None) -> None:
        self._secret_key = secret_key or config.security.secret_key
        self._serializer = URLSafeTimedSerializer(self._secret_key, salt="aces-session")

    def sign(self, session_id: str) -> str:
        """Wrap a session ID in a URL-safe signed token."""
        return self._serializer.dumps(session_id)

    def unsign(self, token: str, max_age: int | None = None) -> str | None:
        """
        Check a token and return the session ID it carries.

        Args:
            token: Token from the session cookie
            max_age: Oldest accepted token in seconds (the session TTL by default)

        Returns:
            The session ID, or None for a bad or expired signature
        """
        try:
            return self._serializer.loads(token, max_age=max_age or config.session.ttl)
        except (BadSignature, SignatureExpired):
            return None


# Global signer instance
_session_signer: SessionSigner | None = None


def get_session_signer() -> SessionSigner:
    """Get or create the session signer."""
    global _session_signer
    if _session_signer is None:
        _session_signer = SessionSigner()
    return _session_signer


class SessionStore(ABC):
    """Login sessions keyed by signed token, each holding a small JSON dict."""

    @abstractmethod
    async def get(self, token: str) -> dict[str, Any] | None:
        """Return the session data, or None when unknown or expired."""

    @abstractmethod
    async def set(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        """Store session data for ttl seconds (the configured TTL by default)."""

    @abstractmethod
    async def delete(self, token: str) -> None:
        """Forget a session; unknown tokens are ignored."""

    def create_session_id(self) -> str:
        """Create a new signed session token."""
        return get_session_signer().sign(str(uuid4()))


class InMemorySessionStore(SessionStore):
    """Process-local sessions, used when Redis is not configured or reachable."""

    def __init__(self) -> None:
        self._sessions: dict[str, tuple[dict[str, Any], datetime]] = {}

    async def get(self, token: str) -> dict[str, Any] | None:
        entry = self._sessions.get(token)
        if entry is None:
            return None

        data, expires_at = entry
        if expires_at < datetime.now():
            del self._sessions[token]
            return None
        return data

    async def set(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        expires_at = datetime.now() + timedelta(seconds=ttl or config.session.ttl)
        self._sessions[token] = (data, expires_at)

    async def delete(self, token: str) -> None:
        self._sessions.pop(token, None)


class RedisSessionStore(SessionStore):
    """Sessions as JSON strings under aces:session:<token>, expired by Redis."""

    KEY_PREFIX = "aces:session:"

    def __init__(self, redis_client: redis.Redis) -> None:
        self._redis = redis_client

    def _key(self, token: str) -> str:
        return f"{self.KEY_PREFIX}{token}"

    async def get(self, token: str) -> dict[str, Any] | None:
        raw = await self._redis.get(self._key(token))
        return None if raw is None else json.loads(raw)

    async def set(self, token: str, data: dict[str, Any], ttl: int | None = None) -> None:
        await self._redis.setex(self._key(token), ttl or config.session.ttl, json.dumps(data))

    async def delete(self, token: str) -> None:
        await self._redis.delete(self._key(token))


# Global session store instance
_session_store: SessionStore | None = None


async def _connect_redis() -> RedisSessionStore:
    redis_client = redis.from_url(config.redis.url)
    await redis_client.ping()
    return RedisSessionStore(redis_client)


async def get_session_store() -> SessionStore:
    """Get or create the session store for the configured backend."""
    global _session_store

    if _session_store is not None:
        return _session_store

    backend = config.session.backend
    if backend == "redis":
        _session_store = await _connect_redis()
    elif backend == "auto":
        try:
            _session_store = await _connect_redis()
        except (RedisError, OSError) as e:
            logger.warning("Redis unavailable at %s (%s), using in-memory sessions", config.redis.url, e)
            _session_store = InMemorySessionStore()
    else:
        _session_store = InMemorySessionStore()

    logger.info("Session store: %s", type(_session_store).__name__)
    return _session_store


def set_session_store(store: SessionStore | None) -> None:
    """Replace the global store (None forces re-selection on next use)."""
    global _session_store
    _session_store = store


async def create_session(data: dict[str, Any] | None = None) -> str:
    """Open a session holding data and return its token for the cookie."""
    store = await get_session_store()
    token = store.create_session_id()
    await store.set(token, data or {})
    return token


async def get_session(token: str) -> dict[str, Any] | None:
    store = await get_session_store()
    return await store.get(token)


async def delete_session(token: str) -> None:
    store = await get_session_store()
    await store.delete(token)


def extract_session_id(token: str) -> str | None:
    """Return the session ID inside a token, or None if forged or too old."""
    return get_session_signer().unsign(token)
