# src/contentguard/orchestrator/session.py
"""
작성 세션 오케스트레이터

UI 와 무관한 상태 관리 계층:
- 콘텐츠(텍스트/이미지) 편집 → 이전 분석 결과 폐기
- 위험 분석 → 발행 게이트 (안전 + 자격증명 + 발행 중 아님)
- AI 수정안 적용 (RewritePolicy: trust / revalidate)
- 직접 발행 → 실패 시 수동 공유 폴백

Supersession:
    편집할 때마다 revision 이 증가한다. 진행 중인 분석 태스크는 취소되고,
    늦게 도착한 결과는 revision 이 다르면 버려진다 (상태 변경 없음).

Usage:
    session = ComposeSession()
    await session.load_credentials()
    session.set_text("Привет!")
    await session.analyze()
    if session.can_publish:
        outcome = await session.publish()
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from functools import partial

from contentguard.ai.client import CompletionClient
from contentguard.ai.generation import GenerationClient
from contentguard.ai.moderation import ModerationClient
from contentguard.config.settings import Settings, get_settings
from contentguard.core.errors import AnalysisError, ConfigurationError, GenerationError
from contentguard.orchestrator.fallback import FallbackHandler, FallbackReport, LocalFallbackHandler
from contentguard.orchestrator.state import PUBLISHABLE_STATES, ComposeState, ComposeStateMachine
from contentguard.publisher import BasePublisher, create_publisher
from contentguard.schemas import (
    AnalysisResult,
    ComposedContent,
    ImageAttachment,
    PlatformCredentials,
    PlatformDescriptor,
    PlatformId,
    PublishResult,
    get_platform,
)
from contentguard.store.credential_store import CredentialStore, create_credential_store
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)

ANALYSIS_FAILED_MESSAGE = "Ошибка анализа. Пожалуйста, попробуйте снова."
GENERATION_DONE_MESSAGE = "Контент сгенерирован"
FIX_APPLIED_MESSAGE = "Исправления применены. Публикация разрешена."
SETTINGS_SAVED_MESSAGE = "Настройки сохранены."

SUCCESS_ACTIONS: dict[PlatformId, str] = {
    PlatformId.TELEGRAM: "Отправлено в канал Telegram",
    PlatformId.VK: "Опубликовано в VK",
    PlatformId.DISCORD: "Опубликовано в Discord",
}

FAILURE_PREFIXES: dict[PlatformId, str] = {
    PlatformId.TELEGRAM: "Ошибка API",
    PlatformId.VK: "Ошибка API VK",
    PlatformId.DISCORD: "Ошибка Discord",
}

ACTION_SEPARATOR = " & "


class RewritePolicy(str, Enum):
    """AI 수정안 적용 정책"""

    TRUST = "trust"  # 수정안은 안전하다고 간주 (재검사 없음)
    REVALIDATE = "revalidate"  # 수정안으로 분석 재실행


class NotificationLevel(str, Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """사용자 알림 (토스트)"""

    level: NotificationLevel
    message: str
    created_at: datetime = field(default_factory=datetime.now)


@dataclass
class PublishOutcome:
    """발행 시도 결과 (직접 발행 + 폴백)"""

    result: PublishResult
    message: str
    fallback: FallbackReport | None = None

    @property
    def success(self) -> bool:
        return self.result.success


PublisherFactory = Callable[[PlatformId], BasePublisher]


class ComposeSession:
    """
    콘텐츠 작성 → 분석 → 발행 세션

    모든 외부 의존성(분석/생성 클라이언트, 자격증명 저장소, 폴백, 발행기 생성)은
    주입 가능하며, 생략하면 설정에서 기본 구현을 만든다.
    """

    def __init__(
        self,
        moderation: ModerationClient | None = None,
        generation: GenerationClient | None = None,
        store: CredentialStore | None = None,
        fallback: FallbackHandler | None = None,
        publisher_factory: PublisherFactory | None = None,
        rewrite_policy: RewritePolicy | str | None = None,
        settings: Settings | None = None,
    ):
        self._settings = settings or get_settings()

        if moderation is None or generation is None:
            completion = CompletionClient(settings=self._settings)
            moderation = moderation or ModerationClient(completion, settings=self._settings)
            generation = generation or GenerationClient(completion, settings=self._settings)

        self._moderation = moderation
        self._generation = generation
        self._store = store or create_credential_store(self._settings)
        self._fallback = fallback or LocalFallbackHandler(self._settings.downloads_path)
        self._publisher_factory = publisher_factory or partial(
            create_publisher, timeout=self._settings.http_timeout_seconds
        )
        self.rewrite_policy = RewritePolicy(rewrite_policy or self._settings.rewrite_policy)

        self._machine = ComposeStateMachine()
        self._revision = 0
        self._analysis_task: asyncio.Task[AnalysisResult] | None = None

        self.content = ComposedContent()
        self.analysis: AnalysisResult | None = None
        self.credentials = PlatformCredentials()
        self.platform_id = PlatformId.TELEGRAM
        self.notifications: list[Notification] = []

        self.is_analyzing = False
        self.is_generating = False
        self.is_publishing = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def state(self) -> ComposeState:
        return self._machine.state

    @property
    def machine(self) -> ComposeStateMachine:
        return self._machine

    @property
    def revision(self) -> int:
        return self._revision

    @property
    def platform(self) -> PlatformDescriptor:
        return get_platform(self.platform_id)

    @property
    def last_notification(self) -> Notification | None:
        return self.notifications[-1] if self.notifications else None

    def _notify(self, level: NotificationLevel, message: str) -> None:
        self.notifications.append(Notification(level=level, message=message))

    def _discard_stale(self, operation: str) -> None:
        """편집 이전 revision 의 결과 폐기 (상태 변경 없음)"""
        self._machine.supersede(operation)
        logger.info(
            "Stale result discarded",
            extra={
                "operation": operation,
                "revision": self._revision,
                "superseded_total": self._machine.superseded_count,
            },
        )

    # =========================================================================
    # Editing
    # =========================================================================

    def set_text(self, text: str) -> None:
        """텍스트 변경 (동일하면 무시)"""
        if text == self.content.text:
            return
        self._apply_edit(ComposedContent(text=text, image=self.content.image))

    def set_image(self, image: ImageAttachment | None) -> None:
        self._apply_edit(ComposedContent(text=self.content.text, image=image))

    def clear_image(self) -> None:
        if self.content.image is None:
            return
        self.set_image(None)

    def _apply_edit(self, content: ComposedContent) -> None:
        """편집 반영: 분석 결과 폐기, 진행 중인 분석 취소"""
        self._revision += 1
        self.content = content
        self.analysis = None

        if self._analysis_task is not None and not self._analysis_task.done():
            self._analysis_task.cancel()
        self._analysis_task = None
        self.is_analyzing = False

        self._machine.transition(
            ComposeState.EMPTY if content.is_empty else ComposeState.EDITED
        )

    def select_platform(self, platform_id: PlatformId | str) -> None:
        self.platform_id = PlatformId(platform_id)

    # =========================================================================
    # Credentials
    # =========================================================================

    async def load_credentials(self) -> PlatformCredentials:
        self.credentials = await self._store.load()
        return self.credentials

    async def save_credentials(self, credentials: PlatformCredentials) -> None:
        await self._store.save(credentials)
        self.credentials = credentials
        self._notify(NotificationLevel.SUCCESS, SETTINGS_SAVED_MESSAGE)

    # =========================================================================
    # Analysis
    # =========================================================================

    async def analyze(self) -> AnalysisResult | None:
        """
        위험 분석 실행

        EDITED 상태에서 내용이 있고 분석 중이 아닐 때만 실행된다 (그 외 None).
        분석 도중 편집되면 결과를 버리고 None 을 반환한다.

        Raises:
            AnalysisError: 분석 실패 (다른 예외와 마찬가지로 상태는 EDITED 로 복귀)
        """
        if (
            self.state != ComposeState.EDITED
            or self.content.is_empty
            or self.is_analyzing
        ):
            return None

        revision = self._revision
        content = self.content

        self.is_analyzing = True
        self._machine.transition(ComposeState.ANALYZING)
        task = asyncio.create_task(self._moderation.analyze(content.text, content.image))
        self._analysis_task = task

        try:
            result = await task
        except asyncio.CancelledError:
            if revision == self._revision:
                self._machine.transition(ComposeState.EDITED)
                raise
            self._discard_stale("analysis")
            return None
        except Exception as e:
            if revision != self._revision:
                self._discard_stale("analysis")
                return None
            if isinstance(e, AnalysisError):
                logger.error("Analysis failed", extra={"kind": e.kind.value})
            else:
                logger.exception("Analysis crashed", extra={"error": type(e).__name__})
            self._machine.transition(ComposeState.EDITED)
            self._notify(NotificationLevel.ERROR, ANALYSIS_FAILED_MESSAGE)
            raise
        finally:
            if self._analysis_task is task:
                self._analysis_task = None
                self.is_analyzing = False

        if revision != self._revision:
            self._discard_stale("analysis")
            return None

        self.analysis = result
        logger.info("Analysis completed", extra={"summary": result.issue_summary})
        self._machine.transition(
            ComposeState.ANALYZED_SAFE if result.is_safe else ComposeState.ANALYZED_UNSAFE
        )
        return result

    # =========================================================================
    # Generation
    # =========================================================================

    async def generate(self, topic: str) -> str | None:
        """
        주제로 포스트 생성 후 텍스트 교체 (편집으로 취급)

        Raises:
            GenerationError: 생성 실패
        """
        if self.is_generating:
            return None

        self.is_generating = True
        try:
            text = await self._generation.generate(topic)
        except GenerationError as e:
            self._notify(NotificationLevel.ERROR, e.message)
            raise
        finally:
            self.is_generating = False

        self._apply_edit(ComposedContent(text=text, image=self.content.image))
        self._notify(NotificationLevel.SUCCESS, GENERATION_DONE_MESSAGE)
        return text

    # =========================================================================
    # Apply Fix
    # =========================================================================

    async def apply_fix(self) -> AnalysisResult | None:
        """
        AI 수정안 적용

        - TRUST: 텍스트 교체 후 분석 결과를 안전으로 확정 (재검사 없음)
        - REVALIDATE: 텍스트 교체 후 분석 재실행

        Raises:
            AnalysisError: REVALIDATE 재분석 실패
        """
        analysis = self.analysis
        if (
            analysis is None
            or not analysis.revised_text
            or self.state not in (ComposeState.ANALYZED_SAFE, ComposeState.ANALYZED_UNSAFE)
        ):
            return None

        if self.rewrite_policy == RewritePolicy.REVALIDATE:
            self._apply_edit(ComposedContent(text=analysis.revised_text, image=self.content.image))
            return await self.analyze()

        self._revision += 1
        self.content = ComposedContent(text=analysis.revised_text, image=self.content.image)
        self.analysis = analysis.with_rewrite_applied()
        self._machine.transition(ComposeState.ANALYZED_SAFE)
        self._notify(NotificationLevel.SUCCESS, FIX_APPLIED_MESSAGE)
        logger.info("Rewrite applied without revalidation")
        return self.analysis

    # =========================================================================
    # Publish
    # =========================================================================

    @property
    def can_publish(self) -> bool:
        """안전한 분석 결과 + 선택 플랫폼 자격증명 + 발행 중 아님"""
        return (
            self.analysis is not None
            and self.analysis.is_safe
            and self.credentials.has_credentials_for(self.platform_id)
            and not self.is_publishing
            and self.state in PUBLISHABLE_STATES
        )

    async def publish(self) -> PublishOutcome | None:
        """
        선택 플랫폼으로 발행 (can_publish 가 아니면 None)

        성공 → PUBLISHED, 실패 → 폴백 실행 후 FALLBACK
        """
        if not self.can_publish:
            return None

        platform = self.platform
        content = self.content
        credentials = self.credentials.model_copy()
        revision = self._revision

        self.is_publishing = True
        self._machine.transition(ComposeState.PUBLISHING)

        fallback: FallbackReport | None = None
        try:
            result = await self._publish_direct(platform, credentials, content)
            if not result.success:
                logger.warning(
                    "Direct publish failed, running fallback",
                    extra={"platform": platform.id.value, "error_kind": _kind_value(result)},
                )
                fallback = await self._fallback.run(platform, content)
        except BaseException:
            if self.state == ComposeState.PUBLISHING:
                self._machine.transition(ComposeState.ANALYZED_SAFE)
            raise
        finally:
            self.is_publishing = False

        actions = [
            SUCCESS_ACTIONS[platform.id]
            if result.success
            else f"{FAILURE_PREFIXES[platform.id]}: {result.message}"
        ]
        if fallback is not None:
            actions.extend(fallback.actions)

        outcome = PublishOutcome(
            result=result,
            message=ACTION_SEPARATOR.join(actions),
            fallback=fallback,
        )
        self._notify(
            NotificationLevel.SUCCESS if result.success else NotificationLevel.WARNING,
            outcome.message,
        )

        if revision != self._revision:
            self._discard_stale("publish")
        else:
            self._machine.transition(
                ComposeState.PUBLISHED if result.success else ComposeState.FALLBACK
            )
        return outcome

    async def _publish_direct(
        self,
        platform: PlatformDescriptor,
        credentials: PlatformCredentials,
        content: ComposedContent,
    ) -> PublishResult:
        try:
            publisher = self._publisher_factory(platform.id)
        except ConfigurationError as e:
            return PublishResult.fail(platform.id.value, e.message, error_kind=e.kind)

        async with publisher:
            return await publisher.publish(credentials, content.text, content.image)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def aclose(self) -> None:
        """클라이언트/저장소 리소스 정리"""
        if self._analysis_task is not None and not self._analysis_task.done():
            self._analysis_task.cancel()
        await self._moderation.close()
        await self._generation.close()
        await self._store.close()

    async def __aenter__(self) -> ComposeSession:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


def _kind_value(result: PublishResult) -> str | None:
    return result.error_kind.value if result.error_kind else None
