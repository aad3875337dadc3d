# src/contentguard/orchestrator/fallback.py
"""
수동 공유 폴백

직접 발행이 불가능하거나 실패했을 때 실행:
1. 텍스트 클립보드 복사
2. 첨부 이미지 로컬 저장
3. 플랫폼 공유 URL (없으면 홈 URL) 열기

각 단계는 이전 단계가 끝난 뒤에 순서대로 실행되며,
실패는 로그로만 남고 발행 흐름으로 전파되지 않는다.
"""

from __future__ import annotations

import asyncio
import time
import webbrowser
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from contentguard.core.errors import ContentGuardError, ErrorKind
from contentguard.schemas import ComposedContent, ImageAttachment, PlatformDescriptor
from contentguard.utils.logger import get_logger

logger = get_logger(__name__)

TEXT_COPIED_ACTION = "Текст скопирован"
IMAGE_SAVED_ACTION = "Фото сохранено"
IMAGE_FILE_PREFIX = "contentguard_safe_"


class ClipboardError(ContentGuardError):
    """클립보드 접근 실패"""

    kind = ErrorKind.TRANSPORT


@dataclass
class FallbackReport:
    """폴백 실행 결과"""

    text_copied: bool = False
    image_path: Path | None = None
    opened_url: str | None = None
    browser_opened: bool = False
    actions: list[str] = field(default_factory=list)


class FallbackHandler(ABC):
    """
    폴백 동작 인터페이스

    구현체는 copy_text / save_image / open_url 만 제공하고,
    순서와 실패 처리는 run() 이 담당한다.
    """

    @abstractmethod
    async def copy_text(self, text: str) -> None:
        """
        Raises:
            ClipboardError: 클립보드 사용 불가
        """
        ...

    @abstractmethod
    async def save_image(self, image: ImageAttachment) -> Path:
        ...

    @abstractmethod
    async def open_url(self, url: str) -> bool:
        """URL 열기 (브라우저가 열렸으면 True)"""
        ...

    async def run(
        self,
        platform: PlatformDescriptor,
        content: ComposedContent,
    ) -> FallbackReport:
        """
        폴백 순차 실행

        공유 URL 은 브라우저를 열지 못해도 opened_url 에 담아 UI 가 링크로 보여준다.
        """
        report = FallbackReport()

        if content.text:
            try:
                await self.copy_text(content.text)
            except Exception as e:
                logger.error("Clipboard copy failed", extra={"error": f"{type(e).__name__}: {e}"})
            else:
                report.text_copied = True
                report.actions.append(TEXT_COPIED_ACTION)

        if content.image is not None:
            try:
                report.image_path = await self.save_image(content.image)
            except Exception as e:
                logger.error("Image save failed", extra={"error": f"{type(e).__name__}: {e}"})
            else:
                report.actions.append(IMAGE_SAVED_ACTION)

        url = platform.manual_share_url(content.text)
        if url:
            report.opened_url = url
            try:
                report.browser_opened = bool(await self.open_url(url))
            except Exception as e:
                logger.error("Opening share URL failed", extra={"error": f"{type(e).__name__}: {e}"})

        logger.info(
            "Fallback completed",
            extra={
                "platform": platform.id.value,
                "text_copied": report.text_copied,
                "image_saved": report.image_path is not None,
                "browser_opened": report.browser_opened,
            },
        )
        return report


def _copy_with_tk(text: str) -> None:
    """tkinter 클립보드에 텍스트 복사"""
    try:
        import tkinter
    except ImportError as e:
        raise ClipboardError(f"tkinter unavailable: {e}") from e

    try:
        root = tkinter.Tk()
    except tkinter.TclError as e:
        raise ClipboardError(f"no display for clipboard: {e}") from e

    try:
        root.withdraw()
        root.clipboard_clear()
        root.clipboard_append(text)
        # 창을 닫은 뒤에도 내용이 남도록 이벤트 루프를 한 번 돌린다
        root.update()
    except tkinter.TclError as e:
        raise ClipboardError(str(e)) from e
    finally:
        root.destroy()


class LocalFallbackHandler(FallbackHandler):
    """로컬 데스크톱 폴백 (tkinter 클립보드, 파일 저장, 기본 브라우저)"""

    def __init__(self, downloads_dir: Path | str):
        self.downloads_dir = Path(downloads_dir)

    async def copy_text(self, text: str) -> None:
        await asyncio.to_thread(_copy_with_tk, text)

    async def save_image(self, image: ImageAttachment) -> Path:
        path = self.downloads_dir / f"{IMAGE_FILE_PREFIX}{int(time.time() * 1000)}{image.suffix}"
        await asyncio.to_thread(self._write, path, image.data)
        logger.info("Image saved", extra={"path": str(path)})
        return path

    @staticmethod
    def _write(path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)

    async def open_url(self, url: str) -> bool:
        opened = await asyncio.to_thread(webbrowser.open_new_tab, url)
        if not opened:
            logger.warning("No browser available to open share URL")
        return bool(opened)
