# tests/test_credential_store.py
"""
자격증명 저장소 테스트

테스트 범위:
1. InMemory / JsonFile / Redis 저장소 load/save
2. 값 없음 → 빈 자격증명, 손상된 JSON → 빈 자격증명
3. create_credential_store 백엔드 선택

실행:
    pytest tests/test_credential_store.py -v
"""

from __future__ import annotations

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest

from contentguard.schemas import PlatformCredentials
from contentguard.store import credential_store
from contentguard.store.credential_store import (
    STORAGE_KEY,
    InMemoryCredentialStore,
    JsonFileCredentialStore,
    RedisCredentialStore,
    create_credential_store,
)


# =============================================================================
# InMemoryCredentialStore
# =============================================================================


class TestInMemoryCredentialStore:
    """메모리 저장소"""

    @pytest.mark.asyncio
    async def test_empty_load(self):
        assert await InMemoryCredentialStore().load() == PlatformCredentials()

    @pytest.mark.asyncio
    async def test_save_and_load(self, full_credentials):
        store = InMemoryCredentialStore()
        await store.save(full_credentials)

        assert await store.load() == full_credentials
        assert json.loads(store.raw)["telegramChatId"] == "@contentguard_channel"

    @pytest.mark.asyncio
    async def test_save_overwrites_wholesale(self, full_credentials):
        store = InMemoryCredentialStore()
        await store.save(full_credentials)
        await store.save(PlatformCredentials(vk_token="only-vk"))

        loaded = await store.load()
        assert loaded.vk_token == "only-vk"
        assert loaded.telegram_token == ""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("blob", ["{not json", "[1, 2]", '"string"'])
    async def test_corrupt_blob_loads_empty(self, blob):
        store = InMemoryCredentialStore(initial=blob)
        assert await store.load() == PlatformCredentials()


# =============================================================================
# JsonFileCredentialStore
# =============================================================================


class TestJsonFileCredentialStore:
    """로컬 JSON 파일 저장소"""

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        store = JsonFileCredentialStore(tmp_path / "nowhere")
        assert await store.load() == PlatformCredentials()

    @pytest.mark.asyncio
    async def test_save_creates_file(self, tmp_path, full_credentials):
        store = JsonFileCredentialStore(tmp_path / "data")
        await store.save(full_credentials)

        path = tmp_path / "data" / f"{STORAGE_KEY}.json"
        assert store.path == path
        assert json.loads(path.read_text(encoding="utf-8"))["vkToken"] == "vk1.a.token"
        assert await JsonFileCredentialStore(tmp_path / "data").load() == full_credentials

    @pytest.mark.asyncio
    async def test_corrupt_file(self, tmp_path):
        (tmp_path / f"{STORAGE_KEY}.json").write_text("{{{", encoding="utf-8")
        assert await JsonFileCredentialStore(tmp_path).load() == PlatformCredentials()

    @pytest.mark.asyncio
    async def test_file_io_runs_in_worker_thread(self, tmp_path, full_credentials):
        store = JsonFileCredentialStore(tmp_path)

        with patch.object(
            credential_store.asyncio, "to_thread", wraps=asyncio.to_thread
        ) as to_thread_mock:
            await store.save(full_credentials)
            assert await store.load() == full_credentials

        called = [call.args[0] for call in to_thread_mock.call_args_list]
        assert called == [store._write, store._read]


# =============================================================================
# RedisCredentialStore
# =============================================================================


class TestRedisCredentialStore:
    """Redis 저장소 (클라이언트 mock)"""

    @pytest.fixture
    def redis_client(self):
        client = AsyncMock()
        client.get.return_value = None
        return client

    @pytest.mark.asyncio
    async def test_key(self, redis_client):
        store = RedisCredentialStore(redis_client=redis_client)
        assert store.key == "contentguard:cg_credentials"

    @pytest.mark.asyncio
    async def test_load_missing(self, redis_client):
        store = RedisCredentialStore(redis_client=redis_client)

        assert await store.load() == PlatformCredentials()
        redis_client.get.assert_awaited_once_with("contentguard:cg_credentials")

    @pytest.mark.asyncio
    async def test_save(self, redis_client, full_credentials):
        store = RedisCredentialStore(redis_client=redis_client)
        await store.save(full_credentials)

        key, blob = redis_client.set.await_args.args
        assert key == "contentguard:cg_credentials"
        assert PlatformCredentials.model_validate_json(blob) == full_credentials

    @pytest.mark.asyncio
    async def test_load_existing(self, redis_client, full_credentials):
        redis_client.get.return_value = full_credentials.to_storage_json()
        store = RedisCredentialStore(redis_client=redis_client)

        assert await store.load() == full_credentials

    @pytest.mark.asyncio
    async def test_close(self, redis_client):
        store = RedisCredentialStore(redis_client=redis_client)
        await store.close()

        redis_client.aclose.assert_awaited_once()


# =============================================================================
# Factory
# =============================================================================


class TestCreateCredentialStore:
    def test_memory(self, settings):
        assert isinstance(create_credential_store(settings), InMemoryCredentialStore)

    def test_file(self, settings, tmp_path):
        store = create_credential_store(settings.model_copy(update={"credentials_backend": "file"}))
        assert isinstance(store, JsonFileCredentialStore)
        assert store.path == tmp_path / "data" / f"{STORAGE_KEY}.json"

    def test_redis(self, settings):
        store = create_credential_store(
            settings.model_copy(
                update={"credentials_backend": "redis", "redis_url": "redis://cache:6379/1"}
            )
        )
        assert isinstance(store, RedisCredentialStore)
        assert store.redis_url == "redis://cache:6379/1"
