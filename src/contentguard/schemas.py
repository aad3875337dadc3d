# src/contentguard/schemas.py
"""
ContentGuard 통합 스키마 모듈

구조:
1. Analysis - AI 위험 분석 결과 (RiskLevel, ModerationIssue, AnalysisResult)
2. Content - 작성 중인 콘텐츠 (ImageAttachment, ComposedContent)
3. Platform - 플랫폼 정적 설정 (PlatformId, PlatformDescriptor, PLATFORMS)
4. Credentials - 플랫폼 자격증명 (PlatformCredentials)
5. Publisher - 발행 결과 (PublishResult)

외부 JSON(모델 출력, 저장된 자격증명)은 camelCase 키를 사용하므로
alias 로 매핑하고, 코드에서는 snake_case 속성으로 접근한다.
"""

from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator

from contentguard.core.errors import ErrorKind

# =============================================================================
# 1. Analysis Schemas
# =============================================================================


class RiskLevel(str, Enum):
    """위험 수준"""

    SAFE = "SAFE"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class ModerationIssue(BaseModel):
    """분석 결과에 포함되는 개별 컴플라이언스 이슈"""

    category: str = Field(default="", description="이슈 분류 (예: 'Иноагент', 'Мат')")
    snippet: str = Field(default="", description="문제가 된 원문 일부")
    reason: str = Field(default="", description="문제 사유")
    suggestion: str = Field(default="", description="수정 제안")
    severity: RiskLevel = Field(default=RiskLevel.WARNING, description="심각도")

    @field_validator("severity", mode="before")
    @classmethod
    def normalize_severity(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class AnalysisResult(BaseModel):
    """
    위험 분석 결과

    하나의 콘텐츠 스냅샷에 대해서만 유효하며, 콘텐츠가 바뀌면 폐기된다.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    is_safe: bool = Field(..., alias="isSafe", description="발행 가능 여부")
    overall_risk: RiskLevel = Field(..., alias="overallRisk", description="전체 위험 수준")
    issues: list[ModerationIssue] = Field(default_factory=list, description="탐지된 이슈 (순서 유지)")
    revised_text: str = Field(default="", alias="revisedText", description="모든 수정이 반영된 전체 텍스트")
    image_analysis: str | None = Field(
        default=None, alias="imageAnalysis", description="이미지 분석 의견 (참고용)"
    )

    @field_validator("overall_risk", mode="before")
    @classmethod
    def normalize_risk(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().upper()
        return v

    @property
    def issue_summary(self) -> str:
        """이슈 요약"""
        if not self.issues:
            return "No issues found"
        categories = [issue.category for issue in self.issues]
        return f"{len(self.issues)} issues: {', '.join(categories)}"

    def with_image_analysis(self, image_analysis: str | None) -> AnalysisResult:
        """이미지 분석 필드를 덮어쓴 사본"""
        return self.model_copy(update={"image_analysis": image_analysis})

    def with_rewrite_applied(self) -> AnalysisResult:
        """수정안 적용 후 결과: 무조건 안전, 이슈 없음"""
        return self.model_copy(
            update={
                "is_safe": True,
                "overall_risk": RiskLevel.SAFE,
                "issues": [],
            }
        )

    def to_log_dict(self) -> dict[str, object]:
        """로깅용 딕셔너리"""
        return {
            "is_safe": self.is_safe,
            "overall_risk": self.overall_risk.value,
            "issue_count": len(self.issues),
            "has_image_analysis": self.image_analysis is not None,
        }


# =============================================================================
# 2. Content Schemas
# =============================================================================


@dataclass(frozen=True)
class ImageAttachment:
    """첨부 이미지 (바이너리 + 파일명 + MIME)"""

    data: bytes
    filename: str = "image.png"
    mime_type: str = "image/png"

    @property
    def suffix(self) -> str:
        """파일 확장자 (없으면 .png)"""
        return Path(self.filename).suffix or ".png"

    def to_data_url(self) -> str:
        """vision 요청용 base64 data URL"""
        encoded = base64.b64encode(self.data).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"

    def as_upload(self) -> tuple[str, bytes, str]:
        """httpx multipart files 튜플"""
        return (self.filename, self.data, self.mime_type)


@dataclass(frozen=True)
class ComposedContent:
    """작성 중인 콘텐츠 스냅샷"""

    text: str = ""
    image: ImageAttachment | None = None

    @property
    def is_empty(self) -> bool:
        return not self.text and self.image is None


# =============================================================================
# 3. Platform Schemas
# =============================================================================


class PlatformId(str, Enum):
    """지원 플랫폼"""

    TELEGRAM = "telegram"
    VK = "vk"
    DISCORD = "discord"


def encode_uri_component(value: str) -> str:
    """JavaScript encodeURIComponent 와 동일한 인코딩"""
    return quote(value, safe="!~*'()")


VK_SHARE_TITLE = "Публикация через ContentGuard"


@dataclass(frozen=True)
class PlatformDescriptor:
    """플랫폼 정적 설정 (빌드 시 고정)"""

    id: PlatformId
    name: str
    supports_api: bool = True
    share_url: Callable[[str], str] | None = None
    home_url: str | None = None

    def manual_share_url(self, text: str) -> str | None:
        """수동 공유 URL: share_url 우선, 없으면 home_url"""
        if self.share_url is not None:
            return self.share_url(text)
        return self.home_url


PLATFORMS: tuple[PlatformDescriptor, ...] = (
    PlatformDescriptor(
        id=PlatformId.TELEGRAM,
        name="Telegram",
        share_url=lambda text: (
            f"https://t.me/share/url?url={encode_uri_component(' ')}"
            f"&text={encode_uri_component(text)}"
        ),
        home_url="https://web.telegram.org/",
    ),
    PlatformDescriptor(
        id=PlatformId.VK,
        name="VKontakte",
        share_url=lambda text: (
            f"https://vk.com/share.php?title={encode_uri_component(VK_SHARE_TITLE)}"
            f"&comment={encode_uri_component(text)}"
        ),
        home_url="https://vk.com/",
    ),
    PlatformDescriptor(
        id=PlatformId.DISCORD,
        name="Discord",
        home_url="https://discord.com/app",
    ),
)


def get_platform(platform_id: PlatformId | str) -> PlatformDescriptor:
    """ID로 플랫폼 설정 조회"""
    platform_id = PlatformId(platform_id)
    for platform in PLATFORMS:
        if platform.id == platform_id:
            return platform
    raise KeyError(platform_id)


# =============================================================================
# 4. Credentials Schemas
# =============================================================================


class PlatformCredentials(BaseModel):
    """
    플랫폼별 자격증명

    저장 형식은 camelCase JSON 하나 (telegramToken, vkOwnerId, ...)
    """

    model_config = ConfigDict(populate_by_name=True)

    telegram_token: str = Field(default="", alias="telegramToken")
    telegram_chat_id: str = Field(default="", alias="telegramChatId")
    vk_token: str = Field(default="", alias="vkToken")
    vk_owner_id: str = Field(default="", alias="vkOwnerId")
    discord_webhook_url: str = Field(default="", alias="discordWebhookUrl")
    discord_bot_token: str = Field(default="", alias="discordBotToken")
    discord_channel_id: str = Field(default="", alias="discordChannelId")

    @field_validator("*", mode="before")
    @classmethod
    def none_to_empty(cls, v: object) -> object:
        if v is None:
            return ""
        if isinstance(v, str):
            return v.strip()
        return v

    def has_credentials_for(self, platform_id: PlatformId | str) -> bool:
        """해당 플랫폼으로 직접 발행 가능한 자격증명이 있는지"""
        try:
            platform_id = PlatformId(platform_id)
        except ValueError:
            return False

        if platform_id == PlatformId.TELEGRAM:
            return bool(self.telegram_token and self.telegram_chat_id)
        if platform_id == PlatformId.VK:
            return bool(self.vk_token and self.vk_owner_id)
        if platform_id == PlatformId.DISCORD:
            return bool(
                self.discord_webhook_url
                or (self.discord_bot_token and self.discord_channel_id)
            )
        return False

    def to_storage_json(self) -> str:
        """저장용 JSON (camelCase)"""
        return self.model_dump_json(by_alias=True)


# =============================================================================
# 5. Publisher Schemas
# =============================================================================


@dataclass
class PublishResult:
    """발행 결과 (예상된 실패도 예외 대신 이 객체로 반환)"""

    success: bool
    message: str
    platform: str = ""
    error_kind: ErrorKind | None = None
    published_at: datetime = field(default_factory=datetime.now)

    @classmethod
    def ok(cls, platform: str, message: str) -> PublishResult:
        return cls(success=True, message=message, platform=platform)

    @classmethod
    def fail(
        cls,
        platform: str,
        message: str,
        error_kind: ErrorKind = ErrorKind.UNKNOWN,
    ) -> PublishResult:
        return cls(success=False, message=message, platform=platform, error_kind=error_kind)


__all__ = [
    "RiskLevel",
    "ModerationIssue",
    "AnalysisResult",
    "ImageAttachment",
    "ComposedContent",
    "PlatformId",
    "PlatformDescriptor",
    "PLATFORMS",
    "get_platform",
    "encode_uri_component",
    "PlatformCredentials",
    "PublishResult",
]
