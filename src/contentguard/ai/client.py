# src/contentguard/ai/client.py
"""
OpenAI 호환 Chat Completions 클라이언트

- AsyncOpenAI 사용 (base_url 만 교체하면 A4F 등 호환 엔드포인트 사용 가능)
- Bearer 토큰 인증
- 재시도 없음 (max_retries=0)
- 에러를 ContentGuard 분류 체계(ConfigurationError / TransportError / ApiError)로 변환
"""

from __future__ import annotations

import time
from typing import Any

import httpx
import openai
from openai import AsyncOpenAI

from contentguard.config.settings import Settings, get_settings
from contentguard.core.errors import ApiError, ConfigurationError, TransportError
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)

NO_CONTENT_MESSAGE = "No content generated"


def _remote_error_message(error: openai.APIStatusError) -> str:
    """에러 응답 본문의 error.message 추출 (없으면 SDK 메시지)"""
    body = error.body
    if isinstance(body, dict):
        if isinstance(body.get("error"), dict):
            body = body["error"]
        message = body.get("message")
        if message:
            return str(message)
    return error.message


class CompletionClient:
    """
    Chat Completions 호출 래퍼

    Usage:
        async with CompletionClient() as client:
            content = await client.complete(
                model="provider-1/deepseek-r1-0528",
                messages=[{"role": "user", "content": "..."}],
                temperature=0.1,
                max_tokens=2000,
            )
    """

    def __init__(
        self,
        settings: Settings | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings or get_settings()
        self._http_client = http_client
        self._client: AsyncOpenAI | None = None

    @property
    def client(self) -> AsyncOpenAI:
        """AsyncOpenAI 클라이언트 (lazy initialization)"""
        if not self._settings.ai_api_key:
            raise ConfigurationError("AI API key is not configured")

        if self._client is None:
            kwargs: dict[str, Any] = {
                "base_url": self._settings.ai_base_url,
                "api_key": self._settings.ai_api_key,
                "max_retries": 0,
            }
            if self._settings.http_timeout_seconds is not None:
                kwargs["timeout"] = self._settings.http_timeout_seconds
            if self._http_client is not None:
                kwargs["http_client"] = self._http_client

            self._client = AsyncOpenAI(**kwargs)
            logger.info(
                "Completion client initialized",
                extra={"base_url": self._settings.ai_base_url},
            )
        return self._client

    async def complete(
        self,
        model: str,
        messages: list[dict[str, Any]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> str:
        """
        Chat Completion 요청 후 choices[0].message.content 반환

        Raises:
            ConfigurationError: API 키 미설정 (네트워크 호출 없음)
            TransportError: 연결 실패/타임아웃
            ApiError: 원격 에러 응답 또는 빈 응답
        """
        client = self.client
        params: dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        start_time = time.time()
        try:
            response = await client.chat.completions.create(**params)
        except openai.APIConnectionError as e:
            # APITimeoutError 포함
            logger.error(f"Completion transport error: {e}", extra={"model": model})
            raise TransportError(str(e)) from e
        except openai.APIStatusError as e:
            message = _remote_error_message(e)
            logger.error(
                f"Completion API error: {message}",
                extra={"model": model, "status_code": e.status_code},
            )
            raise ApiError(message, status_code=e.status_code) from e

        # 200 응답에 error 필드가 담겨 오는 호환 엔드포인트 대응
        extra = getattr(response, "model_extra", None) or {}
        remote_error = extra.get("error")
        if remote_error:
            message = (
                remote_error.get("message") if isinstance(remote_error, dict) else str(remote_error)
            ) or "AI API Error"
            logger.error(f"Completion API error: {message}", extra={"model": model})
            raise ApiError(message)

        choices = getattr(response, "choices", None)
        if not choices:
            raise ApiError(NO_CONTENT_MESSAGE)

        content = choices[0].message.content or ""
        logger.debug(
            "Completion received",
            extra={
                "model": model,
                "elapsed_seconds": round(time.time() - start_time, 2),
                "response_length": len(content),
                "finish_reason": choices[0].finish_reason,
            },
        )
        return content

    async def close(self) -> None:
        """클라이언트 리소스 정리"""
        if self._client is not None:
            await self._client.close()
            self._client = None

    async def __aenter__(self) -> CompletionClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
