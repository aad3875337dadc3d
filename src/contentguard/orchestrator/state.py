# src/contentguard/orchestrator/state.py
"""
작성 세션 상태 머신

States:
    EMPTY → EDITED → ANALYZING → ANALYZED_SAFE | ANALYZED_UNSAFE
          → PUBLISHING → PUBLISHED | FALLBACK

- 텍스트/이미지 편집은 어느 상태에서든 EDITED (내용이 비면 EMPTY) 로 되돌린다
- 진행 중이던 분석/발행 결과가 그 사이의 편집으로 무효화되면
  상태를 바꾸지 않고 superseded 이벤트만 기록한다
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from contentguard.core.errors import ContentGuardError


class ComposeState(str, Enum):
    """작성 세션 상태"""

    EMPTY = "empty"
    EDITED = "edited"
    ANALYZING = "analyzing"
    ANALYZED_SAFE = "analyzed_safe"
    ANALYZED_UNSAFE = "analyzed_unsafe"
    PUBLISHING = "publishing"
    PUBLISHED = "published"
    FALLBACK = "fallback"


_EDIT_TARGETS = frozenset({ComposeState.EMPTY, ComposeState.EDITED})

TRANSITIONS: dict[ComposeState, frozenset[ComposeState]] = {
    ComposeState.EMPTY: _EDIT_TARGETS,
    ComposeState.EDITED: _EDIT_TARGETS | {ComposeState.ANALYZING},
    ComposeState.ANALYZING: _EDIT_TARGETS
    | {ComposeState.ANALYZED_SAFE, ComposeState.ANALYZED_UNSAFE},
    # 수정안 적용(trust)은 SAFE 로 직행
    ComposeState.ANALYZED_SAFE: _EDIT_TARGETS
    | {ComposeState.ANALYZED_SAFE, ComposeState.PUBLISHING},
    ComposeState.ANALYZED_UNSAFE: _EDIT_TARGETS | {ComposeState.ANALYZED_SAFE},
    ComposeState.PUBLISHING: _EDIT_TARGETS
    | {ComposeState.PUBLISHED, ComposeState.FALLBACK, ComposeState.ANALYZED_SAFE},
    ComposeState.PUBLISHED: _EDIT_TARGETS
    | {ComposeState.ANALYZED_SAFE, ComposeState.PUBLISHING},
    ComposeState.FALLBACK: _EDIT_TARGETS
    | {ComposeState.ANALYZED_SAFE, ComposeState.PUBLISHING},
}

# 안전한 분석 결과가 유효한 상태 (발행 가능 후보)
PUBLISHABLE_STATES = frozenset(
    {ComposeState.ANALYZED_SAFE, ComposeState.PUBLISHED, ComposeState.FALLBACK}
)


class InvalidTransitionError(ContentGuardError):
    """허용되지 않은 상태 전이"""

    def __init__(self, source: ComposeState, target: ComposeState):
        super().__init__(f"Invalid transition: {source.value} -> {target.value}")
        self.source = source
        self.target = target


@dataclass
class StateTransition:
    """상태 전이 기록"""

    source: ComposeState
    target: ComposeState | None
    event: str = "transition"
    at: datetime = field(default_factory=datetime.now)


class ComposeStateMachine:
    """전이 규칙을 강제하는 상태 머신"""

    def __init__(self, initial: ComposeState = ComposeState.EMPTY):
        self._state = initial
        self.history: list[StateTransition] = []

    @property
    def state(self) -> ComposeState:
        return self._state

    def can_transition(self, target: ComposeState) -> bool:
        return target in TRANSITIONS[self._state]

    def transition(self, target: ComposeState) -> ComposeState:
        """
        상태 전이

        Raises:
            InvalidTransitionError: 허용되지 않은 전이
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._state, target)
        self.history.append(StateTransition(source=self._state, target=target))
        self._state = target
        return target

    def supersede(self, operation: str) -> None:
        """오래된 결과 폐기 기록 (상태는 그대로)"""
        self.history.append(
            StateTransition(source=self._state, target=None, event=f"superseded:{operation}")
        )

    @property
    def superseded_count(self) -> int:
        return sum(1 for t in self.history if t.event.startswith("superseded"))
