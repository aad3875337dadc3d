# src/contentguard/__init__.py
"""
ContentGuard: 콘텐츠 위험 분석 + 멀티 플랫폼 발행 도우미

모듈 구성:
- schemas: 분석 결과, 자격증명, 플랫폼 설정
- ai: 위험 분석(텍스트 + 이미지) / 포스트 생성
- publisher: Telegram, VK, Discord 직접 발행
- store: 자격증명 저장소
- orchestrator: 작성 세션 상태 머신 + 수동 공유 폴백

사용법:
    from contentguard import ComposeSession

    async with ComposeSession() as session:
        await session.load_credentials()
        session.set_text("Привет!")
        await session.analyze()
        outcome = await session.publish()
"""

from contentguard.ai.generation import GenerationClient
from contentguard.ai.moderation import ModerationClient
from contentguard.core.errors import (
    AnalysisError,
    ApiError,
    ConfigurationError,
    ContentGuardError,
    ErrorClassifier,
    ErrorKind,
    GenerationError,
    ParseError,
    TransportError,
)
from contentguard.orchestrator import (
    ComposeSession,
    ComposeState,
    FallbackReport,
    LocalFallbackHandler,
    PublishOutcome,
    RewritePolicy,
)
from contentguard.publisher import create_publisher
from contentguard.schemas import (
    PLATFORMS,
    AnalysisResult,
    ComposedContent,
    ImageAttachment,
    ModerationIssue,
    PlatformCredentials,
    PlatformDescriptor,
    PlatformId,
    PublishResult,
    RiskLevel,
)
from contentguard.store import create_credential_store

__version__ = "1.0.0"
__all__ = [
    # Schemas
    "RiskLevel",
    "ModerationIssue",
    "AnalysisResult",
    "ImageAttachment",
    "ComposedContent",
    "PlatformId",
    "PlatformDescriptor",
    "PLATFORMS",
    "PlatformCredentials",
    "PublishResult",
    # AI
    "ModerationClient",
    "GenerationClient",
    # Publisher / Store
    "create_publisher",
    "create_credential_store",
    # Orchestrator
    "ComposeSession",
    "ComposeState",
    "RewritePolicy",
    "PublishOutcome",
    "FallbackReport",
    "LocalFallbackHandler",
    # Errors
    "ErrorKind",
    "ErrorClassifier",
    "ContentGuardError",
    "ConfigurationError",
    "TransportError",
    "ApiError",
    "ParseError",
    "AnalysisError",
    "GenerationError",
]
