import asyncio
import html
import json

import streamlit as st
import streamlit.components.v1 as components

# ContentGuard 모듈 임포트
from contentguard.config.settings import get_settings
from contentguard.core.errors import AnalysisError, GenerationError
from contentguard.orchestrator import ComposeSession, ComposeState, NotificationLevel
from contentguard.schemas import PLATFORMS, ImageAttachment, PlatformCredentials, RiskLevel
from contentguard.utils.logger import setup_logging

#streamlit run dashboard.py

# -----------------------------------------------------------------------------
# 페이지 설정
# -----------------------------------------------------------------------------
st.set_page_config(
    page_title="ContentGuard",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded"
)

RISK_BADGES = {
    RiskLevel.SAFE: "🟢 SAFE",
    RiskLevel.WARNING: "🟡 WARNING",
    RiskLevel.CRITICAL: "🔴 CRITICAL",
}

TOAST_ICONS = {
    NotificationLevel.INFO: "ℹ️",
    NotificationLevel.SUCCESS: "✅",
    NotificationLevel.WARNING: "⚠️",
    NotificationLevel.ERROR: "❌",
}

# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------
def run_async(coro_factory):
    """
    비동기 실행 래퍼

    실행마다 새 이벤트 루프를 쓰므로 HTTP 클라이언트는 같은 루프에서 닫는다
    (다음 호출 때 lazy 재생성)
    """
    session = st.session_state.session

    async def runner():
        try:
            return await coro_factory(session)
        finally:
            await session.aclose()

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(runner())
    finally:
        loop.close()


def replace_editor_text(text):
    """다음 렌더링 전에 편집기 내용을 교체"""
    st.session_state.pending_text = text


def on_text_change():
    st.session_state.session.set_text(st.session_state.post_text)
    st.session_state.last_publish = None


def copy_button(text, label="📋 Скопировать текст", key="copy_post"):
    """
    브라우저 클립보드 복사 버튼 (navigator.clipboard)

    tkinter 클립보드는 서버 쪽 클립보드다.
    """
    components.html(
        f"""
        <button id="{key}" style="width:100%;padding:0.5rem;border-radius:8px;
            border:1px solid #ccc;background:#f6f6f9;cursor:pointer;">{html.escape(label)}</button>
        <script>
            const btn = document.getElementById({json.dumps(key)});
            btn.addEventListener("click", () => {{
                navigator.clipboard.writeText({json.dumps(text)}).then(() => {{
                    btn.innerText = "✅ Скопировано";
                    setTimeout(() => {{ btn.innerText = {json.dumps(label)}; }}, 2000);
                }});
            }});
        </script>
        """,
        height=50,
    )


def render_manual_share(outcome, platform, content):
    """직접 발행 결과 + 수동 공유 패널 (폴백 시 링크, 복사, 사진 다운로드)"""
    if outcome.success:
        st.success(outcome.message)
        return

    report = outcome.fallback
    with st.container(border=True):
        st.subheader("📤 Ручная публикация")
        st.warning(outcome.message)
        if report is None:
            return

        if report.opened_url:
            st.link_button(
                f"Открыть {platform.name}",
                report.opened_url,
                type="primary",
                use_container_width=True,
            )
            if not report.browser_opened:
                st.caption("Браузер не открылся автоматически: используйте кнопку выше.")

        if content.text:
            copy_button(content.text)

        if content.image is not None:
            st.download_button(
                "🖼️ Скачать фото",
                data=content.image.data,
                file_name=report.image_path.name if report.image_path else content.image.filename,
                mime=content.image.mime_type,
                use_container_width=True,
            )
            if report.image_path:
                st.caption(f"Фото сохранено: {report.image_path}")


def show_new_notifications():
    """아직 표시하지 않은 알림을 토스트로 출력"""
    session = st.session_state.session
    for notification in session.notifications[st.session_state.shown_notifications:]:
        st.toast(notification.message, icon=TOAST_ICONS[notification.level])
    st.session_state.shown_notifications = len(session.notifications)


# -----------------------------------------------------------------------------
# 세션 상태 초기화
# -----------------------------------------------------------------------------
if 'session' not in st.session_state:
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        log_dir=settings.log_dir,
        enable_console=not settings.is_production,
    )
    st.session_state.session = ComposeSession()
    run_async(lambda s: s.load_credentials())
if 'shown_notifications' not in st.session_state:
    st.session_state.shown_notifications = 0
if 'pending_text' not in st.session_state:
    st.session_state.pending_text = None
if 'last_publish' not in st.session_state:
    st.session_state.last_publish = None

session: ComposeSession = st.session_state.session

if st.session_state.pending_text is not None:
    st.session_state.post_text = st.session_state.pending_text
    st.session_state.pending_text = None
elif 'post_text' not in st.session_state:
    st.session_state.post_text = session.content.text

# -----------------------------------------------------------------------------
# 사이드바: 플랫폼 + 자격증명
# -----------------------------------------------------------------------------
with st.sidebar:
    st.title("🛡️ ContentGuard")
    st.markdown("---")

    platform_names = [p.name for p in PLATFORMS]
    selected_index = [p.id for p in PLATFORMS].index(session.platform_id)
    platform_name = st.selectbox("Платформа", platform_names, index=selected_index)
    session.select_platform(PLATFORMS[platform_names.index(platform_name)].id)

    if session.credentials.has_credentials_for(session.platform_id):
        st.success("API подключен")
    else:
        st.warning("Нет данных API: будет ручная публикация")

    with st.expander("⚙️ Настройки API"):
        creds = session.credentials
        with st.form("credentials_form"):
            st.caption("Telegram")
            telegram_token = st.text_input("Bot Token", value=creds.telegram_token, type="password")
            telegram_chat_id = st.text_input("Chat ID", value=creds.telegram_chat_id)
            st.caption("VK")
            vk_token = st.text_input("Access Token", value=creds.vk_token, type="password")
            vk_owner_id = st.text_input("Owner ID", value=creds.vk_owner_id)
            st.caption("Discord")
            discord_webhook_url = st.text_input(
                "Webhook URL", value=creds.discord_webhook_url, type="password"
            )
            discord_bot_token = st.text_input(
                "Bot Token ", value=creds.discord_bot_token, type="password"
            )
            discord_channel_id = st.text_input("Channel / Thread ID", value=creds.discord_channel_id)

            if st.form_submit_button("💾 Сохранить", use_container_width=True):
                new_credentials = PlatformCredentials(
                    telegram_token=telegram_token,
                    telegram_chat_id=telegram_chat_id,
                    vk_token=vk_token,
                    vk_owner_id=vk_owner_id,
                    discord_webhook_url=discord_webhook_url,
                    discord_bot_token=discord_bot_token,
                    discord_channel_id=discord_channel_id,
                )
                run_async(lambda s: s.save_credentials(new_credentials))
                st.rerun()

    st.markdown("---")
    st.caption(f"State: `{session.state.value}`")

# -----------------------------------------------------------------------------
# 메인 화면
# -----------------------------------------------------------------------------
col_editor, col_analysis = st.columns([3, 2])

with col_editor:
    st.header("✍️ Публикация")

    with st.expander("✨ AI генерация"):
        topic = st.text_input("Тема поста")
        if st.button("Сгенерировать", disabled=session.is_generating):
            with st.spinner("Генерация..."):
                try:
                    generated = run_async(lambda s: s.generate(topic))
                except GenerationError as e:
                    st.error(f"Ошибка генерации: {e.message}")
                else:
                    if generated is not None:
                        replace_editor_text(generated)
                        st.rerun()

    st.text_area("Текст", key="post_text", height=280, on_change=on_text_change)

    uploaded = st.file_uploader("Фото", type=["png", "jpg", "jpeg", "gif", "webp"])
    if uploaded is not None:
        data = uploaded.getvalue()
        current = session.content.image
        if current is None or current.data != data:
            session.set_image(
                ImageAttachment(
                    data=data,
                    filename=uploaded.name,
                    mime_type=uploaded.type or "application/octet-stream",
                )
            )
        st.image(data, width=320)
    elif session.content.image is not None:
        session.clear_image()

    col_check, col_publish = st.columns(2)
    with col_check:
        check_btn = st.button(
            "🔍 Проверить",
            use_container_width=True,
            disabled=session.state != ComposeState.EDITED or session.is_analyzing,
        )
    with col_publish:
        publish_btn = st.button(
            f"🚀 Опубликовать в {session.platform.name}",
            use_container_width=True,
            type="primary",
            disabled=not session.can_publish,
        )

    if check_btn:
        with st.spinner("Анализ..."):
            try:
                run_async(lambda s: s.analyze())
            except AnalysisError as e:
                st.error(f"{e.message}")
        st.rerun()

    if publish_btn:
        with st.spinner("Публикация..."):
            outcome = run_async(lambda s: s.publish())
        if outcome is not None:
            st.session_state.last_publish = (outcome, session.platform, session.content)
        st.rerun()

    if st.session_state.last_publish is not None:
        render_manual_share(*st.session_state.last_publish)

with col_analysis:
    st.header("🧾 Анализ")
    result = session.analysis

    if session.is_analyzing:
        st.info("Анализ выполняется...")
    elif result is None:
        st.caption("Нажмите «Проверить», чтобы проверить текст и фото.")
    else:
        st.subheader(RISK_BADGES[result.overall_risk])

        if result.is_safe:
            st.success("Контент безопасен для публикации")

        for issue in result.issues:
            with st.container(border=True):
                st.markdown(f"**{issue.category}** · {RISK_BADGES[issue.severity]}")
                if issue.snippet:
                    st.markdown(f"> {issue.snippet}")
                st.write(issue.reason)
                if issue.suggestion:
                    st.caption(f"💡 {issue.suggestion}")

        if result.image_analysis:
            with st.expander("🖼️ Анализ изображения"):
                st.write(result.image_analysis)

        if not result.is_safe and result.revised_text:
            with st.expander("✅ Исправленный вариант", expanded=True):
                st.write(result.revised_text)
                if st.button("Применить исправления", use_container_width=True):
                    try:
                        run_async(lambda s: s.apply_fix())
                    except AnalysisError as e:
                        st.error(f"{e.message}")
                    replace_editor_text(session.content.text)
                    st.rerun()

show_new_notifications()
