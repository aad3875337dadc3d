# src/contentguard/ai/moderation.py
"""
AI 콘텐츠 위험 분석 클라이언트

Flow:
1. 텍스트 분석 (텍스트 모델, JSON 구조화 출력)
2. 이미지 분석 (vision 모델, 자연어 의견) - 이미지가 있을 때만
3. 1, 2는 동시에 실행되며 둘 중 하나라도 실패하면 전체 실패 (부분 결과 없음)
4. 병합: 텍스트 분석 결과의 imageAnalysis 를 vision 응답으로 덮어쓴다

vision 의견은 참고용이다. 키워드 매칭 등으로 isSafe/overallRisk 를
뒤집지 않는다 (오탐 방지).
"""

from __future__ import annotations

import asyncio
from typing import Any

from pydantic import ValidationError

from contentguard.ai.client import CompletionClient
from contentguard.ai.parsing import PARSE_FAILURE_MESSAGE, parse_json_object
from contentguard.ai.prompts import (
    MODERATION_SYSTEM_PROMPT,
    MODERATION_USER_TEMPLATE,
    VISION_PROMPT,
)
from contentguard.config.settings import Settings, get_settings
from contentguard.core.errors import AnalysisError, ContentGuardError, ErrorKind
from contentguard.schemas import AnalysisResult, ImageAttachment
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)


class ModerationClient:
    """
    텍스트 + 이미지 위험 분석기

    Usage:
        async with ModerationClient() as moderation:
            result = await moderation.analyze(text, image)
            if not result.is_safe:
                for issue in result.issues:
                    print(issue.category, issue.suggestion)
    """

    def __init__(
        self,
        completion: CompletionClient | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()
        self._completion = completion or CompletionClient(settings=self._settings)

    async def analyze(
        self,
        text: str,
        image: ImageAttachment | None = None,
    ) -> AnalysisResult:
        """
        콘텐츠 위험 분석

        Args:
            text: 게시물 텍스트
            image: 첨부 이미지 (optional)

        Returns:
            AnalysisResult: imageAnalysis 는 vision 응답 원문 (이미지 없으면 None)

        Raises:
            AnalysisError: API/전송 실패 또는 모델 출력 파싱 실패
        """
        logger.info(
            "Starting moderation",
            extra={"text_length": len(text), "has_image": image is not None},
        )

        tasks: list[asyncio.Task[Any]] = [asyncio.create_task(self._analyze_text(text))]
        if image is not None:
            tasks.append(asyncio.create_task(self._analyze_image(image)))

        try:
            results = await asyncio.gather(*tasks)
        except ContentGuardError as e:
            logger.error(f"Moderation failed: {e}", extra={"kind": e.kind.value})
            raise AnalysisError(str(e), kind=e.kind) from e
        finally:
            for task in tasks:
                if not task.done():
                    task.cancel()

        text_result: AnalysisResult = results[0]
        image_analysis: str | None = results[1] if image is not None else None

        final_result = text_result.with_image_analysis(image_analysis)
        logger.info("Moderation completed", extra=final_result.to_log_dict())
        return final_result

    async def _analyze_text(self, text: str) -> AnalysisResult:
        """텍스트 위험 분석 (JSON 구조화 출력)"""
        content = await self._completion.complete(
            model=self._settings.text_model,
            messages=[
                {"role": "system", "content": MODERATION_SYSTEM_PROMPT},
                {"role": "user", "content": MODERATION_USER_TEMPLATE.format(text=text)},
            ],
            temperature=self._settings.analysis_temperature,
            max_tokens=self._settings.analysis_max_tokens,
        )

        data = parse_json_object(content)
        try:
            return AnalysisResult.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "Model output did not match analysis schema",
                extra={"errors": e.error_count()},
            )
            raise AnalysisError(PARSE_FAILURE_MESSAGE, kind=ErrorKind.PARSE) from e

    async def _analyze_image(self, image: ImageAttachment) -> str:
        """이미지 위험 분석 (자연어 응답 원문 반환)"""
        return await self._completion.complete(
            model=self._settings.vision_model,
            messages=[
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": VISION_PROMPT},
                        {"type": "image_url", "image_url": {"url": image.to_data_url()}},
                    ],
                }
            ],
            max_tokens=self._settings.vision_max_tokens,
        )

    async def close(self) -> None:
        await self._completion.close()

    async def __aenter__(self) -> ModerationClient:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
