# src/contentguard/orchestrator/__init__.py
"""
ContentGuard Orchestrator Module

- state: 작성 세션 상태 머신
- fallback: 수동 공유 폴백 (클립보드, 이미지 저장, 공유 링크)
- session: ComposeSession (편집 → 분석 → 발행)
"""

from contentguard.orchestrator.fallback import (
    ClipboardError,
    FallbackHandler,
    FallbackReport,
    LocalFallbackHandler,
)
from contentguard.orchestrator.session import (
    ComposeSession,
    Notification,
    NotificationLevel,
    PublishOutcome,
    RewritePolicy,
)
from contentguard.orchestrator.state import (
    ComposeState,
    ComposeStateMachine,
    InvalidTransitionError,
)

__all__ = [
    "ClipboardError",
    "FallbackHandler",
    "FallbackReport",
    "LocalFallbackHandler",
    "ComposeSession",
    "Notification",
    "NotificationLevel",
    "PublishOutcome",
    "RewritePolicy",
    "ComposeState",
    "ComposeStateMachine",
    "InvalidTransitionError",
]
