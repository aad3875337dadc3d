# src/contentguard/ai/parsing.py
"""
모델 출력 후처리

- <think>...</think> 추론 블록 제거 (DeepSeek R1 계열)
- 서술형 응답에서 첫 번째 균형 잡힌 {...} 구간 추출
- JSON 파싱 (실패 시 ParseError, 재시도 없음)
"""

from __future__ import annotations

import json
import re
from typing import Any

from contentguard.core.errors import ParseError

# 닫히지 않은 <think> 는 응답 끝까지 추론으로 간주
_REASONING_PATTERN = re.compile(r"<think>.*?(?:</think>|\Z)", re.DOTALL | re.IGNORECASE)

PARSE_FAILURE_MESSAGE = "could not parse model output"


def strip_reasoning(content: str) -> str:
    """추론 마크업 제거 후 앞뒤 공백 정리"""
    return _REASONING_PATTERN.sub("", content or "").strip()


def extract_json_object(content: str) -> str | None:
    """
    첫 번째 균형 잡힌 {...} 구간 반환

    JSON 문자열 리터럴 내부의 중괄호와 이스케이프는 무시한다.
    균형이 맞는 구간이 없으면 None.
    """
    start = content.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False

        for index in range(start, len(content)):
            char = content[index]

            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue

            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return content[start : index + 1]

        # 이 위치에서 시작한 구간은 닫히지 않음 → 다음 여는 괄호부터 재시도
        start = content.find("{", start + 1)

    return None


def parse_json_object(content: str) -> dict[str, Any]:
    """
    모델 응답에서 JSON 객체 파싱

    Raises:
        ParseError: JSON 구간이 없거나 파싱 불가
    """
    cleaned = strip_reasoning(content)
    json_str = extract_json_object(cleaned)
    if json_str is None:
        raise ParseError(PARSE_FAILURE_MESSAGE)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise ParseError(f"{PARSE_FAILURE_MESSAGE}: {e}") from e

    if not isinstance(data, dict):
        raise ParseError(PARSE_FAILURE_MESSAGE)

    return data
