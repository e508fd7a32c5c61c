"""Tests for login session storage and signing."""

import json
import time
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

import api.session as session_module
from api.session import (
    InMemorySessionStore,
    RedisSessionStore,
    SessionSigner,
    create_session,
    delete_session,
    extract_session_id,
    get_session,
    get_session_signer,
    get_session_store,
    set_session_store,
)


class TestSessionSigner:
    """Tests for SessionSigner class."""

    def test_round_trip(self):
        """Test that a signed token unsigns to the original session ID."""
        signer = SessionSigner(secret_key="test-secret")

        token = signer.sign("session-456")

        assert token != "session-456"
        assert signer.unsign(token, max_age=3600) == "session-456"

    def test_tampered_token_rejected(self):
        """Test that garbage and edited tokens are refused."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("session-1")

        assert signer.unsign("invalid-token-data", max_age=3600) is None
        assert signer.unsign(token[:-2] + "xx", max_age=3600) is None

    def test_wrong_secret_rejected(self):
        """Test that a token from another key is refused."""
        token = SessionSigner(secret_key="secret-one").sign("session")

        assert SessionSigner(secret_key="secret-two").unsign(token, max_age=3600) is None

    def test_expired_token_rejected(self):
        """Test that tokens older than max_age are refused."""
        signer = SessionSigner(secret_key="test-secret")
        token = signer.sign("session")
        now = time.time()

        with patch("time.time", return_value=now + 7200):
            assert signer.unsign(token, max_age=3600) is None

    def test_get_session_signer_is_singleton(self):
        """Test that the module signer is created once."""
        session_module._session_signer = None

        assert get_session_signer() is get_session_signer()


class TestInMemorySessionStore:
    """Tests for InMemorySessionStore class."""

    @pytest_asyncio.fixture
    async def store(self):
        return InMemorySessionStore()

    @pytest.mark.asyncio
    async def test_set_get_delete(self, store):
        """Test the basic lifecycle of a session."""
        await store.set("sid", {"user_id": 3}, ttl=3600)
        assert await store.get("sid") == {"user_id": 3}

        await store.delete("sid")

        assert await store.get("sid") is None
        # Deleting twice is harmless
        await store.delete("sid")

    @pytest.mark.asyncio
    async def test_expired_session_is_gone(self, store):
        """Test that sessions past their TTL are not returned."""
        await store.set("sid", {"user_id": 1}, ttl=1)
        time.sleep(1.5)

        assert await store.get("sid") is None

    def test_create_session_id_is_signed(self, store):
        """Test that new tokens carry a verifiable UUID."""
        token = store.create_session_id()

        session_id = get_session_signer().unsign(token)
        assert session_id is not None
        assert len(session_id) == 36
        assert token != store.create_session_id()


class TestRedisSessionStore:
    """Tests for RedisSessionStore against a mocked client."""

    @pytest.fixture
    def redis_client(self):
        client = MagicMock()
        client.get = AsyncMock(return_value=None)
        client.setex = AsyncMock()
        client.delete = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_keys_are_prefixed(self, redis_client):
        """Test that sessions live under the aces prefix as JSON."""
        store = RedisSessionStore(redis_client)

        await store.set("sid", {"user_id": 9}, ttl=60)

        redis_client.setex.assert_awaited_once_with(
            "aces:session:sid", 60, json.dumps({"user_id": 9})
        )

    @pytest.mark.asyncio
    async def test_get_decodes_json(self, redis_client):
        """Test reading a stored session."""
        redis_client.get.return_value = b'{"user_id": 9}'
        store = RedisSessionStore(redis_client)

        assert await store.get("sid") == {"user_id": 9}
        redis_client.get.assert_awaited_once_with("aces:session:sid")

    @pytest.mark.asyncio
    async def test_missing_session(self, redis_client):
        """Test that a missing key reads as no session."""
        store = RedisSessionStore(redis_client)

        assert await store.get("sid") is None


class TestStoreSelection:
    """Tests for choosing the session backend."""

    @pytest.fixture(autouse=True)
    def reset_store(self):
        set_session_store(None)
        yield
        set_session_store(None)

    @staticmethod
    def _config(backend: str) -> MagicMock:
        fake = MagicMock()
        fake.session.backend = backend
        fake.redis.url = "redis://localhost:1/0"
        return fake

    @pytest.mark.asyncio
    async def test_memory_backend(self):
        """Test the explicit in-memory backend."""
        with patch.object(session_module, "config", self._config("memory")):
            store = await get_session_store()

        assert isinstance(store, InMemorySessionStore)
        assert await get_session_store() is store

    @pytest.mark.asyncio
    async def test_auto_falls_back_to_memory(self):
        """Test that auto mode survives an unreachable Redis."""
        failing = AsyncMock(side_effect=RedisConnectionError("refused"))
        with (
            patch.object(session_module, "config", self._config("auto")),
            patch.object(session_module, "_connect_redis", failing),
        ):
            store = await get_session_store()

        assert isinstance(store, InMemorySessionStore)

    @pytest.mark.asyncio
    async def test_redis_backend_propagates_errors(self):
        """Test that a required Redis that is down is an error."""
        failing = AsyncMock(side_effect=RedisConnectionError("refused"))
        with (
            patch.object(session_module, "config", self._config("redis")),
            patch.object(session_module, "_connect_redis", failing),
        ):
            with pytest.raises(RedisConnectionError):
                await get_session_store()


class TestModuleFunctions:
    """Tests for module-level session functions."""

    @pytest.mark.asyncio
    async def test_create_get_delete(self, session_store):
        """Test the session helpers over the installed store."""
        token = await create_session({"user_id": 5})

        assert extract_session_id(token) is not None
        assert await get_session(token) == {"user_id": 5}

        await delete_session(token)
        assert await get_session(token) is None

    def test_extract_session_id_invalid(self):
        """Test that a junk token yields no session ID."""
        assert extract_session_id("invalid-token") is None
