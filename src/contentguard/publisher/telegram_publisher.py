# src/contentguard/publisher/telegram_publisher.py
"""
Telegram Bot API 발행기

Flow:
- 이미지 없음 → sendMessage (chat_id, text)
- 이미지 있음 → sendPhoto (multipart: chat_id, caption, photo)

Limitations:
- 캡션 최대 1024 UTF-16 유닛 → 초과 시 1021 유닛 이내 + "..."
  (텍스트 전용 메시지에도 같은 상한을 적용한다)

Usage:
    async with TelegramPublisher() as publisher:
        result = await publisher.publish(credentials, text="Привет!")
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from contentguard.core.errors import ErrorClassifier, ErrorKind
from contentguard.publisher.base import BasePublisher, truncate_text, utf16_length
from contentguard.schemas import ImageAttachment, PlatformCredentials, PlatformId, PublishResult
from contentguard.utils.logger import mask_secret

logger = logging.getLogger(__name__)

MISSING_CREDENTIALS_MESSAGE = "Отсутствуют учетные данные Telegram"
SUCCESS_MESSAGE = "Успешно отправлено в Telegram"
API_ERROR_MESSAGE = "Ошибка API Telegram"


class TelegramPublisher(BasePublisher):
    """Telegram 채널/채팅 발행기"""

    platform = PlatformId.TELEGRAM

    BASE_URL = "https://api.telegram.org"
    MAX_CAPTION_LENGTH = 1024

    def _build_url(self, token: str, method: str) -> str:
        """Bot API URL 생성 (토큰은 경로에 포함)"""
        return f"{self.BASE_URL}/bot{token}/{method}"

    async def publish(
        self,
        credentials: PlatformCredentials,
        text: str,
        image: ImageAttachment | None = None,
    ) -> PublishResult:
        """
        Telegram 발행

        Args:
            credentials: telegram_token, telegram_chat_id 필요
            text: 게시물 텍스트
            image: 첨부 이미지 (optional)
        """
        token = credentials.telegram_token
        chat_id = credentials.telegram_chat_id

        if not token or not chat_id:
            return self._fail(MISSING_CREDENTIALS_MESSAGE, error_kind=ErrorKind.CONFIGURATION)

        caption = truncate_text(text, self.MAX_CAPTION_LENGTH)
        if caption != text:
            logger.warning(
                f"Caption truncated from {utf16_length(text)} to "
                f"{utf16_length(caption)} UTF-16 units"
            )

        data: dict[str, Any] = {"chat_id": chat_id}
        files: dict[str, Any] | None = None

        if image is not None:
            method = "sendPhoto"
            files = {"photo": image.as_upload()}
            if caption:
                data["caption"] = caption
        else:
            method = "sendMessage"
            data["text"] = caption

        try:
            client = await self._get_client()
            response = await client.post(
                self._build_url(token, method),
                data=data,
                files=files,
            )
            response_data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            # 토큰이 URL 경로에 있으므로 메시지에서 가린다
            message = str(e).replace(token, mask_secret(token)) or API_ERROR_MESSAGE
            logger.error(f"Telegram request failed: {type(e).__name__}: {message}")
            return self._fail(message, error_kind=ErrorClassifier.classify(e))

        if not isinstance(response_data, dict) or not response_data.get("ok"):
            response_data = response_data if isinstance(response_data, dict) else {}
            description = response_data.get("description") or API_ERROR_MESSAGE
            logger.error(f"Telegram API error: {description}")
            return self._fail(description, error_kind=ErrorKind.API)

        return self._ok(SUCCESS_MESSAGE)
