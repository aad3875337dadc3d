# src/contentguard/utils/logger.py
"""
ContentGuard 로깅 유틸리티

- 콘솔: 컬러 한 줄 포맷
- 파일: JSON Lines (<log_dir>/contentguard.jsonl)
- extra 필드 지원 (logger.info("msg", extra={"platform": "vk"}))
- 자격증명 마스킹: token, webhook_url 같은 키의 값은 포맷 단계에서 가린다

로그에는 토큰 원문이 남지 않아야 한다.
"""
import json
import logging
import sys
from collections.abc import Mapping
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

LOG_FILE_NAME = "contentguard.jsonl"

SECRET_KEYS = frozenset({
    "token",
    "access_token",
    "bot_token",
    "api_key",
    "authorization",
    "webhook_url",
    "discord_webhook_url",
})

# 요청 URL 경로에 Telegram Bot 토큰이 들어가므로 요청 단위 INFO 로그를 끈다
QUIET_LOGGERS = ("httpx", "httpcore", "openai")


def mask_secret(value: str, visible: int = 4) -> str:
    """
    토큰/웹훅 URL 마스킹 (로그 출력용)

    >>> mask_secret("1234567890:ABCDEF")
    '****CDEF'
    """
    if not value:
        return ""
    if len(value) <= visible:
        return "*" * len(value)
    return "****" + value[-visible:]


def is_secret_key(key: str) -> bool:
    key = key.lower()
    return key in SECRET_KEYS or key.endswith("_token")


def redact(extra: Mapping[str, Any]) -> dict[str, Any]:
    """민감 키의 값을 mask_secret 으로 교체한 사본"""
    return {
        key: mask_secret(str(value)) if value and is_secret_key(key) else value
        for key, value in extra.items()
    }


def _record_extra(record: logging.LogRecord) -> dict[str, Any]:
    extra = getattr(record, "extra", None)
    if not isinstance(extra, Mapping) or not extra:
        return {}
    return redact(extra)


class JSONFormatter(logging.Formatter):
    """JSON Lines 포맷터 (파일 핸들러용)"""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra = _record_extra(record)
        if extra:
            log_data["extra"] = extra

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)


class ColorFormatter(logging.Formatter):
    """콘솔 출력용 컬러 포매터: 시각, 레벨, 로거, 메시지 | extra"""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    DIM = "\033[90m"
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, self.RESET)
        line = (
            f"{self.formatTime(record, '%H:%M:%S')} "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{self.DIM}{record.name}{self.RESET} {record.getMessage()}"
        )

        extra = _record_extra(record)
        if extra:
            fields = " ".join(f"{key}={value}" for key, value in extra.items())
            line += f" {self.DIM}| {fields}{self.RESET}"

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class ExtraAdapter(logging.LoggerAdapter):
    """
    extra 를 record.extra 한 곳에 묶어 전달

    포맷터가 record.extra 만 보고 마스킹하므로 표준 LogRecord 속성과 섞이지 않는다.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        extra = kwargs.pop("extra", None)
        if extra:
            kwargs["extra"] = {"extra": extra}
        return msg, kwargs


def setup_logging(
    level: str = "INFO",
    log_dir: str | Path | None = "logs",
    enable_console: bool = True,
) -> None:
    """
    전역 로깅 설정

    Args:
        level: 로그 레벨
        log_dir: JSON Lines 파일 디렉토리 (None 이면 파일 로깅 안 함)
        enable_console: 콘솔 로깅 활성화
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(level.upper())
    root_logger.handlers.clear()

    if enable_console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(ColorFormatter())
        root_logger.addHandler(console_handler)

    if log_dir is not None:
        log_path = Path(log_dir)
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path / LOG_FILE_NAME, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        root_logger.addHandler(file_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> ExtraAdapter:
    """모듈별 로거 (보통 __name__)"""
    return ExtraAdapter(logging.getLogger(name), {})
