# src/contentguard/publisher/vk_publisher.py
"""
VK wall.post 발행기

Flow:
- GET https://api.vk.com/method/wall.post (access_token, owner_id, message, v)

Limitations:
- 텍스트 전용. 이미지 업로드는 서버 측 프록시가 필요하므로 (브라우저 CORS 제한)
  이미지가 첨부되면 네트워크 호출 없이 '공유' 링크 사용을 안내하고 실패 처리
- 인증 실패와 CORS 차단을 구분할 수 없으므로 모든 API 에러는
  일반 메시지로 보고하고, 실제 error_msg 는 로그에만 남긴다
"""

from __future__ import annotations

import logging

import httpx

from contentguard.core.errors import ErrorClassifier, ErrorKind
from contentguard.publisher.base import BasePublisher
from contentguard.schemas import ImageAttachment, PlatformCredentials, PlatformId, PublishResult

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Отсутствуют учетные данные VK"
IMAGE_UNSUPPORTED_MESSAGE = (
    "Загрузка фото в VK через API требует прокси. Используйте ссылку 'Поделиться'."
)
GENERIC_FAILURE_MESSAGE = "Ошибка API VK (CORS). Используйте кнопку 'Поделиться'."
SUCCESS_MESSAGE = "Успешно опубликовано на стене VK"


class VKPublisher(BasePublisher):
    """VK 커뮤니티/사용자 벽 발행기"""

    platform = PlatformId.VK

    BASE_URL = "https://api.vk.com/method"
    API_VERSION = "5.131"

    async def publish(
        self,
        credentials: PlatformCredentials,
        text: str,
        image: ImageAttachment | None = None,
    ) -> PublishResult:
        """
        VK 벽 게시

        Args:
            credentials: vk_token, vk_owner_id 필요
            text: 게시물 텍스트
            image: 첨부 시 항상 실패 (수동 공유 안내)
        """
        if not credentials.vk_token or not credentials.vk_owner_id:
            return self._fail(MISSING_CREDENTIALS_MESSAGE, error_kind=ErrorKind.CONFIGURATION)

        if image is not None:
            logger.info("VK direct publish declined: image attached")
            return self._fail(IMAGE_UNSUPPORTED_MESSAGE, error_kind=ErrorKind.CONFIGURATION)

        params = {
            "access_token": credentials.vk_token,
            "owner_id": credentials.vk_owner_id,
            "message": text,
            "v": self.API_VERSION,
        }

        try:
            client = await self._get_client()
            response = await client.get(f"{self.BASE_URL}/wall.post", params=params)
            response_data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"VK request failed: {type(e).__name__}")
            return self._fail(GENERIC_FAILURE_MESSAGE, error_kind=ErrorClassifier.classify(e))

        error = response_data.get("error") if isinstance(response_data, dict) else None
        if error or not isinstance(response_data, dict):
            error_msg = error.get("error_msg") if isinstance(error, dict) else error
            logger.error(f"VK API error: {error_msg}")
            return self._fail(GENERIC_FAILURE_MESSAGE, error_kind=ErrorKind.API)

        return self._ok(SUCCESS_MESSAGE)
