# src/contentguard/store/credential_store.py
"""
플랫폼 자격증명 저장소

하나의 고정 키(cg_credentials) 아래 camelCase JSON 한 덩어리로 저장한다.
- 저장 시 전체 덮어쓰기 (버전 관리 없음)
- 값 없음 → 빈 자격증명
- 손상된 JSON → 빈 자격증명 + 에러 로그
- 암호화 없음 (평문 저장)

Backends:
- InMemoryCredentialStore: 테스트용
- JsonFileCredentialStore: <credentials_dir>/cg_credentials.json
- RedisCredentialStore: contentguard:cg_credentials
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from pathlib import Path

import redis.asyncio as aioredis
from pydantic import ValidationError
from redis.asyncio import Redis

from contentguard.config.settings import Settings, get_settings
from contentguard.core.errors import ConfigurationError
from contentguard.schemas import PlatformCredentials
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)

STORAGE_KEY = "cg_credentials"


def _decode(raw: str | bytes | None, source: str) -> PlatformCredentials:
    """저장된 JSON → 자격증명 (실패 시 빈 자격증명)"""
    if raw is None:
        return PlatformCredentials()
    try:
        return PlatformCredentials.model_validate_json(raw)
    except ValidationError as e:
        logger.error(
            "Stored credentials are corrupt, starting empty",
            extra={"source": source, "error_count": e.error_count()},
        )
        return PlatformCredentials()


class CredentialStore(ABC):
    """자격증명 저장소 인터페이스"""

    @abstractmethod
    async def load(self) -> PlatformCredentials:
        """저장된 자격증명 로드 (없으면 빈 자격증명)"""
        ...

    @abstractmethod
    async def save(self, credentials: PlatformCredentials) -> None:
        """자격증명 전체 덮어쓰기"""
        ...

    async def close(self) -> None:
        return None


class InMemoryCredentialStore(CredentialStore):
    """메모리 기반 저장소 (테스트용)"""

    def __init__(self, initial: str | None = None):
        self._blob: str | None = initial

    @property
    def raw(self) -> str | None:
        return self._blob

    async def load(self) -> PlatformCredentials:
        return _decode(self._blob, "memory")

    async def save(self, credentials: PlatformCredentials) -> None:
        self._blob = credentials.to_storage_json()


class JsonFileCredentialStore(CredentialStore):
    """로컬 JSON 파일 저장소"""

    def __init__(self, directory: Path | str):
        self.path = Path(directory) / f"{STORAGE_KEY}.json"

    async def load(self) -> PlatformCredentials:
        raw = await asyncio.to_thread(self._read)
        return _decode(raw, str(self.path))

    async def save(self, credentials: PlatformCredentials) -> None:
        await asyncio.to_thread(self._write, credentials.to_storage_json())
        logger.info("Credentials saved", extra={"path": str(self.path)})

    def _read(self) -> str | None:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def _write(self, blob: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(blob, encoding="utf-8")


class RedisCredentialStore(CredentialStore):
    """Redis 기반 저장소"""

    def __init__(
        self,
        redis_client: Redis | None = None,
        redis_url: str | None = None,
        prefix: str = "contentguard:",
    ):
        self._client = redis_client
        self.redis_url = redis_url
        self.prefix = prefix

    @property
    def key(self) -> str:
        return f"{self.prefix}{STORAGE_KEY}"

    def _get_client(self) -> Redis:
        """Redis 클라이언트 (Lazy initialization)"""
        if self._client is None:
            if not self.redis_url:
                raise ConfigurationError("redis_url is not configured")
            self._client = aioredis.from_url(
                self.redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def load(self) -> PlatformCredentials:
        raw = await self._get_client().get(self.key)
        return _decode(raw, self.key)

    async def save(self, credentials: PlatformCredentials) -> None:
        await self._get_client().set(self.key, credentials.to_storage_json())
        logger.info("Credentials saved", extra={"key": self.key})

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def create_credential_store(settings: Settings | None = None) -> CredentialStore:
    """설정의 credentials_backend 에 맞는 저장소 생성"""
    settings = settings or get_settings()

    if settings.credentials_backend == "redis":
        return RedisCredentialStore(redis_url=settings.redis_url)
    if settings.credentials_backend == "memory":
        return InMemoryCredentialStore()
    return JsonFileCredentialStore(settings.credentials_path)
