# src/contentguard/core/errors.py
"""
ContentGuard 에러 분류 체계

구조:
1. ErrorKind - 에러 종류 (설정/전송/API/파싱)
2. ContentGuardError 계층 - 종류별 예외
3. AnalysisError / GenerationError - 작업 단위 예외 (원인 종류 보존)
4. ErrorClassifier - 외부 라이브러리 예외 → ErrorKind 매핑

재시도 없음: 모든 에러는 호출자에게 그대로 전달되거나
(발행의 경우) 실패 결과 객체로 변환된다.
"""

from __future__ import annotations

import json
from enum import Enum

import httpx


# =============================================================================
# Error Kind
# =============================================================================


class ErrorKind(str, Enum):
    """에러 종류"""

    CONFIGURATION = "configuration"  # 자격증명/설정 누락 (네트워크 호출 전)
    TRANSPORT = "transport"  # 네트워크/HTTP 전송 실패
    API = "api"  # 원격 서비스가 구조화된 에러 반환
    PARSE = "parse"  # 모델 출력 파싱 실패
    UNKNOWN = "unknown"


# =============================================================================
# Exceptions
# =============================================================================


class ContentGuardError(Exception):
    """ContentGuard 기본 예외"""

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: ErrorKind | None = None):
        self.message = message
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class ConfigurationError(ContentGuardError):
    """자격증명 또는 설정 누락"""

    kind = ErrorKind.CONFIGURATION


class TransportError(ContentGuardError):
    """네트워크/HTTP 전송 실패"""

    kind = ErrorKind.TRANSPORT


class ApiError(ContentGuardError):
    """원격 서비스 에러 응답"""

    kind = ErrorKind.API

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(ContentGuardError):
    """모델 출력에서 JSON을 찾거나 파싱할 수 없음"""

    kind = ErrorKind.PARSE


class AnalysisError(ContentGuardError):
    """위험 분석 실패 (원인 종류는 kind 로 보존)"""


class GenerationError(ContentGuardError):
    """포스트 생성 실패 (원인 종류는 kind 로 보존)"""


# =============================================================================
# Error Classification
# =============================================================================


class ErrorClassifier:
    """
    예외 분류기

    외부 라이브러리(httpx, json) 예외를 ErrorKind 로 분류
    발행 결과의 error_kind 와 로그 필드에 사용
    """

    # 순서 중요: 하위 클래스가 먼저 와야 한다
    EXCEPTION_KIND_MAP: list[tuple[type[BaseException], ErrorKind]] = [
        (httpx.TransportError, ErrorKind.TRANSPORT),
        (httpx.HTTPStatusError, ErrorKind.API),
        (json.JSONDecodeError, ErrorKind.PARSE),
        (ConnectionError, ErrorKind.TRANSPORT),
        (TimeoutError, ErrorKind.TRANSPORT),
    ]

    @classmethod
    def classify(cls, error: BaseException) -> ErrorKind:
        """예외의 ErrorKind 판정"""
        if isinstance(error, ContentGuardError):
            return error.kind

        for exc_type, kind in cls.EXCEPTION_KIND_MAP:
            if isinstance(error, exc_type):
                return kind

        return ErrorKind.UNKNOWN
