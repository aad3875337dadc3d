# src/contentguard/ai/generation.py
"""
AI 포스트 생성 클라이언트

주제 문자열 → 게시 가능한 포스트 텍스트
(단락 구분, 문단 시작에만 이모지, 마크다운 강조 금지, 컴플라이언스 규칙)
"""

from __future__ import annotations

from typing import Any

from contentguard.ai.client import NO_CONTENT_MESSAGE, CompletionClient
from contentguard.ai.parsing import strip_reasoning
from contentguard.ai.prompts import GENERATION_SYSTEM_PROMPT, GENERATION_USER_TEMPLATE
from contentguard.config.settings import Settings, get_settings
from contentguard.core.errors import ContentGuardError, ErrorKind, GenerationError
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)


class GenerationClient:
    """주제 기반 포스트 생성기"""

    def __init__(
        self,
        completion: CompletionClient | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self._completion = completion or CompletionClient(settings=self._settings)

    async def generate(self, topic: str) -> str:
        """
        포스트 텍스트 생성

        Raises:
            GenerationError: 빈 주제, API 에러, 빈 응답 (원격 메시지 그대로)
        """
        if not topic or not topic.strip():
            raise GenerationError("Topic cannot be empty", kind=ErrorKind.CONFIGURATION)

        logger.info("Generating post", extra={"topic_length": len(topic)})

        try:
            content = await self._completion.complete(
                model=self._settings.text_model,
                messages=[
                    {"role": "system", "content": GENERATION_SYSTEM_PROMPT},
                    {"role": "user", "content": GENERATION_USER_TEMPLATE.format(topic=topic.strip())},
                ],
                temperature=self._settings.generation_temperature,
                max_tokens=self._settings.generation_max_tokens,
            )
        except ContentGuardError as e:
            logger.error(f"Generation failed: {e}", extra={"kind": e.kind.value})
            raise GenerationError(str(e), kind=e.kind) from e

        text = strip_reasoning(content)
        if not text:
            raise GenerationError(NO_CONTENT_MESSAGE, kind=ErrorKind.API)

        return text

    async def close(self) -> None:
        await self._completion.close()

    async def __aenter__(self) -> GenerationClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
