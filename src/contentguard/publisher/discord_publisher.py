# src/contentguard/publisher/discord_publisher.py
"""
Discord 발행기 (Webhook / Bot)

Modes (우선순위 순):
1. Webhook - discord_webhook_url 설정 시
   - URL 은 https://discord.com/api/webhooks 로 시작해야 함
   - discord_channel_id 가 함께 있으면 thread_id 쿼리 파라미터로 전달
2. Bot - webhook 없이 discord_bot_token + discord_channel_id 설정 시
   - POST /api/v10/channels/{channel_id}/messages
   - Authorization: Bot <token>

Payload:
- 이미지 없음 → JSON {"content": text}
- 이미지 있음 → multipart (payload_json + file)
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from contentguard.core.errors import ErrorClassifier, ErrorKind
from contentguard.publisher.base import BasePublisher
from contentguard.schemas import ImageAttachment, PlatformCredentials, PlatformId, PublishResult

logger = logging.getLogger(__name__)

WEBHOOK_PREFIX = "https://discord.com/api/webhooks"
API_BASE_URL = "https://discord.com/api/v10"

MISSING_CREDENTIALS_MESSAGE = "Отсутствуют данные Discord (Webhook URL или Токен Бота)"
INVALID_WEBHOOK_MESSAGE = "Неверный формат URL вебхука Discord"
WEBHOOK_SUCCESS_MESSAGE = "Успешно опубликовано через Discord Webhook"
WEBHOOK_FAILURE_MESSAGE = "Не удалось отправить через Webhook"
BOT_SUCCESS_MESSAGE = "Успешно опубликовано через Discord Bot"
BOT_FAILURE_MESSAGE = "Ошибка Discord Bot API (CORS или токен)"


def _build_request_kwargs(text: str, image: ImageAttachment | None) -> dict[str, Any]:
    """이미지 유무에 따라 JSON 또는 multipart 요청 인자"""
    if image is None:
        return {"json": {"content": text}}
    return {
        "data": {"payload_json": json.dumps({"content": text}, ensure_ascii=False)},
        "files": {"file": image.as_upload()},
    }


class DiscordPublisher(BasePublisher):
    """Discord 채널 발행기"""

    platform = PlatformId.DISCORD

    async def publish(
        self,
        credentials: PlatformCredentials,
        text: str,
        image: ImageAttachment | None = None,
    ) -> PublishResult:
        """
        Discord 발행 (webhook 우선)

        Args:
            credentials: discord_webhook_url 또는 discord_bot_token + discord_channel_id
            text: 메시지 본문
            image: 첨부 이미지 (optional)
        """
        if credentials.discord_webhook_url:
            return await self._publish_webhook(
                credentials.discord_webhook_url,
                credentials.discord_channel_id,
                text,
                image,
            )

        if credentials.discord_bot_token and credentials.discord_channel_id:
            return await self._publish_bot(
                credentials.discord_bot_token,
                credentials.discord_channel_id,
                text,
                image,
            )

        return self._fail(MISSING_CREDENTIALS_MESSAGE, error_kind=ErrorKind.CONFIGURATION)

    async def _publish_webhook(
        self,
        webhook_url: str,
        thread_id: str,
        text: str,
        image: ImageAttachment | None,
    ) -> PublishResult:
        if not webhook_url.startswith(WEBHOOK_PREFIX):
            return self._fail(INVALID_WEBHOOK_MESSAGE, error_kind=ErrorKind.CONFIGURATION)

        params = {"thread_id": thread_id} if thread_id else None

        try:
            client = await self._get_client()
            response = await client.post(
                webhook_url,
                params=params,
                **_build_request_kwargs(text, image),
            )
        except httpx.HTTPError as e:
            # webhook URL 자체가 비밀이므로 예외 메시지를 그대로 노출하지 않는다
            logger.error(f"Discord webhook request failed: {type(e).__name__}")
            return self._fail(WEBHOOK_FAILURE_MESSAGE, error_kind=ErrorClassifier.classify(e))

        if not response.is_success:
            logger.error(f"Discord webhook error: HTTP {response.status_code}")
            return self._fail(
                f"Ошибка Discord Webhook: {response.status_code}",
                error_kind=ErrorKind.API,
            )

        return self._ok(WEBHOOK_SUCCESS_MESSAGE)

    async def _publish_bot(
        self,
        bot_token: str,
        channel_id: str,
        text: str,
        image: ImageAttachment | None,
    ) -> PublishResult:
        endpoint = f"{API_BASE_URL}/channels/{channel_id}/messages"
        headers = {"Authorization": f"Bot {bot_token}"}

        try:
            client = await self._get_client()
            response = await client.post(
                endpoint,
                headers=headers,
                **_build_request_kwargs(text, image),
            )
        except httpx.HTTPError as e:
            logger.error(f"Discord bot request failed: {type(e).__name__}")
            return self._fail(BOT_FAILURE_MESSAGE, error_kind=ErrorClassifier.classify(e))

        if not response.is_success:
            logger.error(f"Discord bot API error: HTTP {response.status_code}")
            return self._fail(BOT_FAILURE_MESSAGE, error_kind=ErrorKind.API)

        return self._ok(BOT_SUCCESS_MESSAGE)
