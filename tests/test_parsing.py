# tests/test_parsing.py
"""
모델 출력 파싱 테스트

테스트 범위:
1. <think> 추론 블록 제거
2. 서술형 응답에서 첫 번째 균형 잡힌 JSON 추출
3. 파싱 실패 → ParseError

실행:
    pytest tests/test_parsing.py -v
"""

from __future__ import annotations

import pytest

from contentguard.ai.parsing import (
    PARSE_FAILURE_MESSAGE,
    extract_json_object,
    parse_json_object,
    strip_reasoning,
)
from contentguard.core.errors import ErrorKind, ParseError


# =============================================================================
# strip_reasoning
# =============================================================================


class TestStripReasoning:
    """추론 블록 제거"""

    def test_removes_think_block(self):
        content = "<think>\nпроверяю текст...\n</think>\nГотовый ответ"
        assert strip_reasoning(content) == "Готовый ответ"

    def test_removes_unclosed_think_block(self):
        """닫히지 않은 블록은 끝까지 제거"""
        assert strip_reasoning("Ответ <think>незаконченное рассуждение") == "Ответ"

    def test_removes_multiple_blocks(self):
        content = "<think>a</think>Первый <THINK>b</THINK>второй"
        assert strip_reasoning(content) == "Первый второй"

    def test_plain_text_untouched(self):
        assert strip_reasoning("  просто текст  ") == "просто текст"

    def test_none_safe(self):
        assert strip_reasoning("") == ""


# =============================================================================
# extract_json_object
# =============================================================================


class TestExtractJsonObject:
    """균형 잡힌 {...} 추출"""

    def test_json_embedded_in_narrative(self):
        content = 'Вот результат анализа: {"isSafe": true} Надеюсь, это поможет.'
        assert extract_json_object(content) == '{"isSafe": true}'

    def test_nested_objects(self):
        content = 'prefix {"a": {"b": {"c": 1}}, "d": 2} suffix {"e": 3}'
        assert extract_json_object(content) == '{"a": {"b": {"c": 1}}, "d": 2}'

    def test_braces_inside_strings_ignored(self):
        content = '{"snippet": "текст с } скобкой и \\" кавычкой {", "ok": 1}'
        assert extract_json_object(content) == content

    def test_unbalanced_prefix_retries_from_next_brace(self):
        content = 'пример { без закрытия ... {"isSafe": false}'
        assert extract_json_object(content) == '{"isSafe": false}'

    def test_no_object(self):
        assert extract_json_object("нет JSON вообще") is None


# =============================================================================
# parse_json_object
# =============================================================================


class TestParseJsonObject:
    """전체 파싱 흐름"""

    def test_reasoning_block_discarded(self):
        """추론 블록 안의 JSON 은 무시하고 본문 JSON 만 반환"""
        content = (
            '<think>Может быть {"isSafe": false}? Нет, проверю ещё раз.</think>\n'
            'Итог анализа:\n{"isSafe": true, "overallRisk": "SAFE", "issues": []}\n'
            "Конец."
        )
        data = parse_json_object(content)
        assert data == {"isSafe": True, "overallRisk": "SAFE", "issues": []}

    def test_markdown_fenced_json(self):
        content = '```json\n{"isSafe": true, "overallRisk": "SAFE"}\n```'
        assert parse_json_object(content)["overallRisk"] == "SAFE"

    def test_missing_object_raises_parse_error(self):
        with pytest.raises(ParseError) as exc_info:
            parse_json_object("Извините, не могу помочь.")
        assert exc_info.value.message == PARSE_FAILURE_MESSAGE
        assert exc_info.value.kind == ErrorKind.PARSE

    def test_invalid_json_raises_parse_error(self):
        with pytest.raises(ParseError):
            parse_json_object("{'isSafe': True}")
