# tests/test_ai_clients.py
"""
AI 클라이언트 테스트

테스트 범위:
1. CompletionClient - 요청 형식, 에러 매핑 (httpx.MockTransport)
2. ModerationClient - 텍스트/이미지 동시 분석, 병합, 부분 실패 처리
3. GenerationClient - 추론 블록 제거, 에러 전달

실행:
    pytest tests/test_ai_clients.py -v
"""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from contentguard.ai.client import NO_CONTENT_MESSAGE, CompletionClient
from contentguard.ai.generation import GenerationClient
from contentguard.ai.moderation import ModerationClient
from contentguard.ai.parsing import PARSE_FAILURE_MESSAGE
from contentguard.core.errors import (
    AnalysisError,
    ApiError,
    ConfigurationError,
    ErrorKind,
    GenerationError,
    TransportError,
)
from contentguard.schemas import RiskLevel


# =============================================================================
# Helpers
# =============================================================================


def completion_body(content: str) -> dict:
    """Chat Completions 응답 본문"""
    return {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "created": 1700000000,
        "model": "provider-1/deepseek-r1-0528",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
    }


SAFE_JSON = json.dumps(
    {"isSafe": True, "overallRisk": "SAFE", "issues": [], "revisedText": "Привет"},
    ensure_ascii=False,
)

UNSAFE_JSON = json.dumps(
    {
        "isSafe": False,
        "overallRisk": "WARNING",
        "issues": [{"category": "Иноагент", "snippet": "x", "reason": "y", "severity": "WARNING"}],
        "revisedText": "Исправленный текст",
        "imageAnalysis": "placeholder",
    },
    ensure_ascii=False,
)


class FakeCompletion:
    """모델별 응답을 지정하는 가짜 CompletionClient"""

    def __init__(self, responses: dict[str, object]):
        self.responses = responses
        self.calls: list[dict] = []
        self.closed = False

    async def complete(self, model, messages, temperature=None, max_tokens=None):
        self.calls.append(
            {"model": model, "messages": messages, "temperature": temperature, "max_tokens": max_tokens}
        )
        response = self.responses[model]
        if callable(response):
            response = await response()
        if isinstance(response, BaseException):
            raise response
        return response

    async def close(self):
        self.closed = True


def make_completion_client(settings, handler) -> CompletionClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CompletionClient(settings=settings, http_client=http_client)


# =============================================================================
# CompletionClient
# =============================================================================


class TestCompletionClient:
    """OpenAI 호환 엔드포인트 호출"""

    @pytest.mark.asyncio
    async def test_request_format(self, settings):
        """Bearer 인증 + {model, messages, temperature, max_tokens}"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["auth"] = request.headers.get("Authorization")
            captured["body"] = json.loads(request.content)
            return httpx.Response(200, json=completion_body("ответ"))

        async with make_completion_client(settings, handler) as client:
            content = await client.complete(
                model="m",
                messages=[{"role": "user", "content": "hi"}],
                temperature=0.1,
                max_tokens=2000,
            )

        assert content == "ответ"
        assert captured["url"] == "https://api.a4f.co/v1/chat/completions"
        assert captured["auth"] == "Bearer test-api-key"
        assert captured["body"]["model"] == "m"
        assert captured["body"]["temperature"] == 0.1
        assert captured["body"]["max_tokens"] == 2000

    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings):
        calls = []
        client = make_completion_client(
            settings.model_copy(update={"ai_api_key": ""}),
            lambda request: calls.append(request) or httpx.Response(200),
        )

        with pytest.raises(ConfigurationError):
            await client.complete(model="m", messages=[])
        assert calls == []

    @pytest.mark.asyncio
    async def test_status_error_uses_remote_message(self, settings):
        def handler(request):
            return httpx.Response(401, json={"error": {"message": "Invalid API key"}})

        client = make_completion_client(settings, handler)
        with pytest.raises(ApiError) as exc_info:
            await client.complete(model="m", messages=[])

        assert exc_info.value.message == "Invalid API key"
        assert exc_info.value.status_code == 401
        assert exc_info.value.kind == ErrorKind.API

    @pytest.mark.asyncio
    async def test_error_in_success_body(self, settings):
        def handler(request):
            return httpx.Response(200, json={"error": {"message": "Model overloaded"}})

        client = make_completion_client(settings, handler)
        with pytest.raises(ApiError, match="Model overloaded"):
            await client.complete(model="m", messages=[])

    @pytest.mark.asyncio
    async def test_empty_choices(self, settings):
        def handler(request):
            body = completion_body("")
            body["choices"] = []
            return httpx.Response(200, json=body)

        client = make_completion_client(settings, handler)
        with pytest.raises(ApiError, match=NO_CONTENT_MESSAGE):
            await client.complete(model="m", messages=[])

    @pytest.mark.asyncio
    async def test_transport_error_not_retried(self, settings):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        client = make_completion_client(settings, handler)
        with pytest.raises(TransportError):
            await client.complete(model="m", messages=[])
        assert len(calls) == 1


# =============================================================================
# ModerationClient
# =============================================================================


class TestModerationClient:
    """텍스트 + 이미지 위험 분석"""

    @pytest.mark.asyncio
    async def test_text_only(self, settings):
        completion = FakeCompletion({settings.text_model: UNSAFE_JSON})
        moderation = ModerationClient(completion=completion, settings=settings)

        result = await moderation.analyze("Текст")

        assert result.is_safe is False
        assert result.overall_risk == RiskLevel.WARNING
        # 이미지가 없으면 모델이 채운 값도 None 으로 덮어쓴다
        assert result.image_analysis is None
        assert len(completion.calls) == 1
        call = completion.calls[0]
        assert call["temperature"] == 0.1
        assert call["max_tokens"] == 2000
        assert call["messages"][0]["role"] == "system"
        assert "Текст" in call["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_reasoning_and_narrative_discarded(self, settings):
        content = f"<think>рассуждаю {{\"isSafe\": false}}</think>Вот ответ: {SAFE_JSON} Всё."
        moderation = ModerationClient(
            completion=FakeCompletion({settings.text_model: content}), settings=settings
        )

        result = await moderation.analyze("Привет")
        assert result.is_safe is True
        assert result.revised_text == "Привет"

    @pytest.mark.asyncio
    async def test_image_analysis_merged(self, settings, sample_image):
        completion = FakeCompletion(
            {
                settings.text_model: SAFE_JSON,
                settings.vision_model: "Обнаружен логотип Instagram",
            }
        )
        moderation = ModerationClient(completion=completion, settings=settings)

        result = await moderation.analyze("Привет", sample_image)

        assert result.image_analysis == "Обнаружен логотип Instagram"
        # vision 의견은 참고용: 안전 판정을 바꾸지 않는다
        assert result.is_safe is True
        assert result.overall_risk == RiskLevel.SAFE

        vision_call = next(c for c in completion.calls if c["model"] == settings.vision_model)
        assert vision_call["max_tokens"] == 300
        parts = vision_call["messages"][0]["content"]
        assert parts[1]["image_url"]["url"].startswith("data:image/png;base64,")

    @pytest.mark.asyncio
    async def test_text_and_vision_run_concurrently(self, settings, sample_image):
        vision_started = asyncio.Event()

        async def slow_text():
            # vision 요청이 시작되어야만 텍스트 응답이 끝난다
            await vision_started.wait()
            return SAFE_JSON

        async def vision():
            vision_started.set()
            return "Нарушений не выявлено"

        moderation = ModerationClient(
            completion=FakeCompletion(
                {settings.text_model: slow_text, settings.vision_model: vision}
            ),
            settings=settings,
        )

        result = await asyncio.wait_for(moderation.analyze("Привет", sample_image), timeout=2)
        assert result.image_analysis == "Нарушений не выявлено"

    @pytest.mark.asyncio
    async def test_vision_failure_fails_whole_analysis(self, settings, sample_image):
        """vision 전송 실패 + 텍스트 성공 → 전체 실패 (부분 결과 없음)"""
        moderation = ModerationClient(
            completion=FakeCompletion(
                {
                    settings.text_model: SAFE_JSON,
                    settings.vision_model: TransportError("connection reset"),
                }
            ),
            settings=settings,
        )

        with pytest.raises(AnalysisError) as exc_info:
            await moderation.analyze("Привет", sample_image)
        assert exc_info.value.kind == ErrorKind.TRANSPORT

    @pytest.mark.asyncio
    async def test_vision_failure_cancels_pending_text(self, settings, sample_image):
        text_cancelled = asyncio.Event()

        async def hanging_text():
            try:
                await asyncio.Event().wait()
            except asyncio.CancelledError:
                text_cancelled.set()
                raise

        moderation = ModerationClient(
            completion=FakeCompletion(
                {
                    settings.text_model: hanging_text,
                    settings.vision_model: ApiError("vision model unavailable"),
                }
            ),
            settings=settings,
        )

        with pytest.raises(AnalysisError, match="vision model unavailable"):
            await moderation.analyze("Привет", sample_image)
        await asyncio.wait_for(text_cancelled.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_unparseable_output(self, settings):
        moderation = ModerationClient(
            completion=FakeCompletion({settings.text_model: "Не могу ответить"}),
            settings=settings,
        )

        with pytest.raises(AnalysisError) as exc_info:
            await moderation.analyze("Привет")
        assert exc_info.value.kind == ErrorKind.PARSE
        assert PARSE_FAILURE_MESSAGE in exc_info.value.message

    @pytest.mark.asyncio
    async def test_schema_mismatch_is_parse_error(self, settings):
        moderation = ModerationClient(
            completion=FakeCompletion({settings.text_model: '{"overallRisk": "UNKNOWN"}'}),
            settings=settings,
        )

        with pytest.raises(AnalysisError) as exc_info:
            await moderation.analyze("Привет")
        assert exc_info.value.kind == ErrorKind.PARSE


# =============================================================================
# GenerationClient
# =============================================================================


class TestGenerationClient:
    """포스트 생성"""

    @pytest.mark.asyncio
    async def test_generate_strips_reasoning(self, settings):
        completion = FakeCompletion(
            {settings.text_model: "<think>план поста</think>\n\n🌿 Весна пришла!"}
        )
        generation = GenerationClient(completion=completion, settings=settings)

        text = await generation.generate("весна")

        assert text == "🌿 Весна пришла!"
        call = completion.calls[0]
        assert call["temperature"] == 0.7
        assert call["max_tokens"] == 1000
        assert "весна" in call["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_empty_topic(self, settings):
        completion = FakeCompletion({})
        generation = GenerationClient(completion=completion, settings=settings)

        with pytest.raises(GenerationError) as exc_info:
            await generation.generate("   ")
        assert exc_info.value.kind == ErrorKind.CONFIGURATION
        assert completion.calls == []

    @pytest.mark.asyncio
    async def test_api_error_message_verbatim(self, settings):
        generation = GenerationClient(
            completion=FakeCompletion({settings.text_model: ApiError("Quota exceeded")}),
            settings=settings,
        )

        with pytest.raises(GenerationError) as exc_info:
            await generation.generate("тема")
        assert exc_info.value.message == "Quota exceeded"
        assert exc_info.value.kind == ErrorKind.API

    @pytest.mark.asyncio
    async def test_only_reasoning_is_empty(self, settings):
        generation = GenerationClient(
            completion=FakeCompletion({settings.text_model: "<think>...</think>"}),
            settings=settings,
        )

        with pytest.raises(GenerationError, match=NO_CONTENT_MESSAGE):
            await generation.generate("тема")

    @pytest.mark.asyncio
    async def test_close_closes_completion(self, settings):
        completion = FakeCompletion({})
        async with GenerationClient(completion=completion, settings=settings):
            pass
        assert completion.closed
