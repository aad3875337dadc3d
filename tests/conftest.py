"""pytest 공통 설정
src/contentguard/ 패키지를 pytest가 인식할 수 있도록 경로 설정
"""
import sys
from pathlib import Path

import pytest

# src/ 디렉토리를 Python path에 추가
# 이렇게 해야 from contentguard.xxx import yyy 가 동작
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from contentguard.config.settings import Settings, clear_settings_cache  # noqa: E402
from contentguard.schemas import ImageAttachment, PlatformCredentials  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """테스트 간 설정 캐시 격리"""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def settings(tmp_path):
    """테스트용 설정 (메모리 저장소, 임시 다운로드 디렉토리)"""
    return Settings(
        _env_file=None,
        ai_api_key="test-api-key",
        credentials_backend="memory",
        credentials_dir=str(tmp_path / "data"),
        downloads_dir=str(tmp_path / "downloads"),
        log_dir=str(tmp_path / "logs"),
    )


@pytest.fixture
def sample_image():
    """1x1 PNG 이미지"""
    return ImageAttachment(
        data=(
            b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
            b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\rIDATx\x9cc\xf8\x0f"
            b"\x00\x00\x01\x01\x00\x05\x18\xd8N\x00\x00\x00\x00IEND\xaeB`\x82"
        ),
        filename="photo.png",
        mime_type="image/png",
    )


@pytest.fixture
def full_credentials():
    """모든 플랫폼 자격증명"""
    return PlatformCredentials(
        telegram_token="123456:ABC-telegram-token",
        telegram_chat_id="@contentguard_channel",
        vk_token="vk1.a.token",
        vk_owner_id="-123456",
        discord_webhook_url="https://discord.com/api/webhooks/111/abc",
        discord_bot_token="discord-bot-token",
        discord_channel_id="999",
    )
