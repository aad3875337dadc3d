# src/contentguard/publisher/base.py
"""
플랫폼 발행기 공통 기반

모든 발행기는 같은 계약을 따른다:
    result = await publisher.publish(credentials, text, image)

- 자격증명 누락, 플랫폼 거부 등 예상된 실패는 예외 대신
  PublishResult(success=False) 로 반환
- HTTP 클라이언트는 lazy 생성 (테스트에서는 주입 가능)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from contentguard.schemas import ImageAttachment, PlatformCredentials, PlatformId, PublishResult

logger = logging.getLogger(__name__)

USER_AGENT = "ContentGuard/1.0"


def utf16_length(text: str) -> int:
    """UTF-16 코드 유닛 수 (Telegram 글자 수 제한의 기준)"""
    return len(text.encode("utf-16-le")) // 2


def truncate_text(text: str, limit: int, ellipsis: str = "...") -> str:
    """
    UTF-16 기준 limit 초과 시 앞부분 + ellipsis 로 자르기

    이모지 등 BMP 밖 문자는 2 유닛으로 계산하며, 서로게이트 쌍은 나누지 않는다.
    """
    if utf16_length(text) <= limit:
        return text

    budget = limit - utf16_length(ellipsis)
    units = 0
    cut = 0
    for char in text:
        width = 2 if ord(char) > 0xFFFF else 1
        if units + width > budget:
            break
        units += width
        cut += 1
    return text[:cut] + ellipsis


class BasePublisher(ABC):
    """플랫폼 발행기 추상 클래스"""

    platform: PlatformId

    def __init__(
        self,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Args:
            timeout: HTTP 타임아웃 (None 이면 제한 없음)
            client: 외부에서 주입할 HTTP 클라이언트
        """
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """HTTP 클라이언트 (Lazy initialization)"""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                headers={"User-Agent": USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        """HTTP 클라이언트 종료"""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> BasePublisher:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @abstractmethod
    async def publish(
        self,
        credentials: PlatformCredentials,
        text: str,
        image: ImageAttachment | None = None,
    ) -> PublishResult:
        """콘텐츠 직접 발행"""
        ...

    def _ok(self, message: str) -> PublishResult:
        logger.info(f"Published to {self.platform.value}")
        return PublishResult.ok(self.platform.value, message)

    def _fail(self, message: str, **kwargs) -> PublishResult:
        return PublishResult.fail(self.platform.value, message, **kwargs)
