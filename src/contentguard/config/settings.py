# src/contentguard/config/settings.py
"""
ContentGuard 설정 관리

Pydantic Settings를 사용한 타입 안전한 설정 로드
- .env 파일 또는 환경 변수에서 로드
- AI 엔드포인트, 모델, 자격증명 저장소, 로깅 설정
"""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    ContentGuard 전역 설정

    모든 설정은 .env 파일에서 로드되며, 환경 변수로 오버라이드 가능
    (접두사 CONTENTGUARD_)
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CONTENTGUARD_",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # AI ENDPOINT SETTINGS
    # =========================================================================

    ai_base_url: str = Field(
        default="https://api.a4f.co/v1",
        description="OpenAI 호환 Chat Completions 엔드포인트",
    )
    ai_api_key: str = Field(
        default="",
        description="AI 엔드포인트 Bearer 토큰",
    )
    text_model: str = Field(
        default="provider-1/deepseek-r1-0528",
        description="텍스트 분석/생성 모델",
    )
    vision_model: str = Field(
        default="provider-5/gpt-4.1-mini",
        description="이미지 분석 모델 (멀티모달)",
    )

    analysis_temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="위험 분석 샘플링 온도 (낮을수록 결정적)",
    )
    analysis_max_tokens: int = Field(
        default=2000,
        ge=128,
        le=8192,
        description="위험 분석 응답 최대 토큰 수",
    )
    generation_temperature: float = Field(
        default=0.7,
        ge=0.0,
        le=2.0,
        description="포스트 생성 샘플링 온도",
    )
    generation_max_tokens: int = Field(
        default=1000,
        ge=128,
        le=8192,
        description="포스트 생성 응답 최대 토큰 수",
    )
    vision_max_tokens: int = Field(
        default=300,
        ge=32,
        le=4096,
        description="이미지 분석 응답 최대 토큰 수",
    )

    # None이면 전송 계층 기본값을 따른다 (타임아웃 미설정)
    http_timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="외부 API 요청 타임아웃 (초)",
    )

    # =========================================================================
    # CREDENTIAL STORE SETTINGS
    # =========================================================================

    credentials_backend: str = Field(
        default="file",
        description="플랫폼 자격증명 저장소 (file | redis | memory)",
    )
    credentials_dir: str = Field(
        default="./data",
        description="file 백엔드 사용 시 JSON 저장 디렉토리",
    )
    redis_url: str = Field(
        default="redis://localhost:6379",
        description="redis 백엔드 사용 시 연결 URL",
    )

    # =========================================================================
    # PUBLISHING SETTINGS
    # =========================================================================

    downloads_dir: str = Field(
        default="./downloads",
        description="수동 공유 시 이미지 저장 디렉토리",
    )
    rewrite_policy: str = Field(
        default="trust",
        description="AI 수정안 적용 정책 (trust | revalidate)",
    )

    # =========================================================================
    # ENVIRONMENT SETTINGS
    # =========================================================================

    env: str = Field(
        default="development",
        description="실행 환경 (development | staging | production)",
    )
    log_level: str = Field(
        default="INFO",
        description="로깅 레벨 (DEBUG | INFO | WARNING | ERROR)",
    )
    log_dir: str = Field(
        default="./logs",
        description="로그 파일 디렉토리",
    )

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @field_validator("credentials_backend")
    @classmethod
    def validate_credentials_backend(cls, v: str) -> str:
        """자격증명 저장소 검증"""
        allowed = {"file", "redis", "memory"}
        if v.lower() not in allowed:
            raise ValueError(f"credentials_backend must be one of {allowed}")
        return v.lower()

    @field_validator("rewrite_policy")
    @classmethod
    def validate_rewrite_policy(cls, v: str) -> str:
        """수정안 정책 검증"""
        allowed = {"trust", "revalidate"}
        if v.lower() not in allowed:
            raise ValueError(f"rewrite_policy must be one of {allowed}")
        return v.lower()

    @field_validator("env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """환경 값 검증"""
        allowed = {"development", "staging", "production"}
        if v.lower() not in allowed:
            raise ValueError(f"env must be one of {allowed}")
        return v.lower()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """로그 레벨 검증"""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    # =========================================================================
    # COMPUTED PROPERTIES
    # =========================================================================

    @property
    def is_production(self) -> bool:
        """프로덕션 환경 여부"""
        return self.env == "production"

    @property
    def credentials_path(self) -> Path:
        """file 백엔드의 자격증명 디렉토리"""
        return Path(self.credentials_dir)

    @property
    def downloads_path(self) -> Path:
        """수동 공유용 이미지 저장 디렉토리"""
        return Path(self.downloads_dir)


@lru_cache()
def get_settings() -> Settings:
    """
    싱글톤 패턴으로 설정 로드

    최초 호출 시 .env 파일을 파싱하고 캐시
    이후 호출에서는 캐시된 인스턴스 반환

    Usage:
        from contentguard.config.settings import get_settings
        settings = get_settings()
        print(settings.text_model)
    """
    return Settings()


def clear_settings_cache() -> None:
    """설정 캐시 초기화 (테스트용)"""
    get_settings.cache_clear()
