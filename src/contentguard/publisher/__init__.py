# src/contentguard/publisher/__init__.py
"""
ContentGuard Publisher Module

플랫폼별 직접 발행기
- Telegram: Bot API sendMessage / sendPhoto
- VK: wall.post (텍스트 전용)
- Discord: Webhook 또는 Bot API

사용법:
    from contentguard.publisher import create_publisher

    async with create_publisher("telegram") as publisher:
        result = await publisher.publish(credentials, text, image)
"""

from contentguard.core.errors import ConfigurationError
from contentguard.publisher.base import BasePublisher, truncate_text, utf16_length
from contentguard.publisher.discord_publisher import DiscordPublisher
from contentguard.publisher.telegram_publisher import TelegramPublisher
from contentguard.publisher.vk_publisher import VKPublisher
from contentguard.schemas import PlatformId

PUBLISHERS: dict[PlatformId, type[BasePublisher]] = {
    PlatformId.TELEGRAM: TelegramPublisher,
    PlatformId.VK: VKPublisher,
    PlatformId.DISCORD: DiscordPublisher,
}


def create_publisher(platform_id: PlatformId | str, **kwargs) -> BasePublisher:
    """
    플랫폼 ID로 발행기 생성

    Args:
        platform_id: telegram | vk | discord
        **kwargs: 발행기 생성 인자 (timeout, client)

    Raises:
        ConfigurationError: 알 수 없는 플랫폼
    """
    try:
        publisher_cls = PUBLISHERS[PlatformId(platform_id)]
    except (KeyError, ValueError):
        raise ConfigurationError(f"Unknown platform: {platform_id}") from None
    return publisher_cls(**kwargs)


__all__ = [
    "BasePublisher",
    "TelegramPublisher",
    "VKPublisher",
    "DiscordPublisher",
    "PUBLISHERS",
    "create_publisher",
    "truncate_text",
    "utf16_length",
]
