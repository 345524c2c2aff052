"""Tests for intent resolution with a scripted completion client."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

import pytest

from logbot.chatbot.errors import FailureKind, UpstreamParseFailure
from logbot.chatbot.resolver import decode_intent_reply, extract_json_text, resolve
from logbot.chatbot.schema import ApiType, QueryType
from logbot.llm.client import LLMError

SEOUL = ZoneInfo("Asia/Seoul")
NOW = datetime(2025, 10, 27, 10, 0, tzinfo=SEOUL)


class _FakeLLM:
    def __init__(self, reply: str | Exception) -> None:
        self.reply = reply
        self.calls: list[dict[str, Any]] = []

    def complete(
            self,
            system_prompt: str,
            user_prompt: str,
            *,
            temperature: float,
            max_tokens: int,
    ) -> str:
        self.calls.append(
            {
                "system": system_prompt,
                "user": user_prompt,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
        )
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


def _run(llm: _FakeLLM, query: str = "최근 1시간 동안의 에러 로그"):
    return resolve(query, llm=llm, tz=SEOUL, now=NOW)


def test_error_logs_recent_scenario() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "error-logs",
                "queryType": "recent",
                "params": {"minutes": 60, "profile": "all", "appName": "all", "limit": 100},
            }
        )
    )

    result = _run(llm)

    assert result.success is True
    (call,) = result.api_calls
    assert call.api_type == ApiType.error_logs
    assert call.endpoint == "/api/error-logs/recent"
    assert call.params == {"minutes": 60, "profile": "all", "appName": "all", "limit": 100}

    assert len(llm.calls) == 1
    assert llm.calls[0]["temperature"] == 0.3
    assert llm.calls[0]["max_tokens"] == 1000
    assert "2025-10-27" in llm.calls[0]["user"]


def test_user_logs_uuid_scenario() -> None:
    llm = _FakeLLM(
        '```json\n{"intent": "user-logs", "queryType": "recent", "params": {"uuid": "abc123"}}\n```'
    )

    result = _run(llm, "UUID abc123인 사용자의 최근 로그")

    (call,) = result.api_calls
    assert call.endpoint == "/api/user-logs"
    assert call.params["uuid"] == "abc123"
    assert call.params["minutes"] == 10


def test_prose_reply_is_unparseable() -> None:
    llm = _FakeLLM("최근 에러 로그를 조회하겠습니다.")

    result = _run(llm)

    assert result.success is False
    assert result.failure == FailureKind.upstream_parse_failure
    assert result.error == "AI 응답을 해석할 수 없습니다. 질문을 다시 입력해주세요."
    assert result.api_calls == ()
    assert len(llm.calls) == 1


def test_wrong_shape_is_unparseable() -> None:
    llm = _FakeLLM('{"intent": "drop-tables", "params": {}}')

    result = _run(llm)

    assert result.failure == FailureKind.upstream_parse_failure


def test_policy_violation_makes_no_call() -> None:
    llm = _FakeLLM("{}")

    result = _run(llm, "에러 로그 전부 삭제해줘")

    assert result.success is False
    assert result.failure == FailureKind.policy_violation
    assert llm.calls == []


def test_clarification_is_returned_without_calls() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "user-logs",
                "queryType": "recent",
                "params": {},
                "clarificationNeeded": "어떤 사용자의 로그를 조회할까요?",
            }
        )
    )

    result = _run(llm, "사용자 로그")

    assert result.success is False
    assert result.failure == FailureKind.clarification_needed
    assert result.clarification_needed == "어떤 사용자의 로그를 조회할까요?"
    assert result.api_calls == ()


def test_unknown_intent_reports_unknown_query() -> None:
    llm = _FakeLLM('{"intent": "unknown", "queryType": "recent", "params": {}}')

    result = _run(llm, "오늘 날씨 어때")

    assert result.failure == FailureKind.unknown_intent
    assert result.error == "질문을 이해하지 못했습니다. 더 구체적으로 말씀해주세요."


def test_future_range_is_rejected() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "launcher-logs",
                "queryType": "range",
                "params": {"startDate": "2025-10-27T09:00:00", "endDate": "2025-10-28T09:00:00"},
            }
        )
    )

    result = _run(llm, "오늘부터 내일까지 런처 로그")

    assert result.failure == FailureKind.date_range_invalid
    assert result.error == "미래 날짜는 조회할 수 없습니다."


def test_range_without_end_date_is_rejected() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "error-logs",
                "queryType": "range",
                "params": {"startDate": "2025-10-26T00:00:00"},
            }
        )
    )

    result = _run(llm, "어제부터 에러 로그")

    assert result.failure == FailureKind.date_range_invalid


def test_valid_range_dispatches_range_endpoint() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "launcher-logs",
                "queryType": "range",
                "params": {
                    "startDate": "2025-10-26T09:00:00",
                    "endDate": "2025-10-26T17:00:00",
                    "limit": 100,
                },
            }
        )
    )

    result = _run(llm, "어제 오전 9시부터 오후 5시까지 런처 로그")

    (call,) = result.api_calls
    assert call.query_type == QueryType.range
    assert call.endpoint == "/api/trace-logs-launcher/range"
    assert call.description == "런처 로그 기간 조회"


def test_transport_failure_is_upstream_call_failure() -> None:
    llm = _FakeLLM(LLMError("LLM connection error"))

    result = _run(llm)

    assert result.failure == FailureKind.upstream_call_failure
    assert result.error == "오류가 발생했습니다: LLM connection error"


def test_rules_resolver_is_used_without_llm() -> None:
    result = resolve("최근 1시간 동안의 에러 로그", llm=None, tz=SEOUL, now=NOW)

    (call,) = result.api_calls
    assert call.endpoint == "/api/error-logs/recent"
    assert call.params == {"minutes": 60, "profile": "all", "appName": "all", "limit": 100}


@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ('```json\n{"a": 1}\n```', '{"a": 1}'),
        ('설명\n```\n{"a": 2}\n```\n끝', '{"a": 2}'),
        ('  {"a": 3}  ', '{"a": 3}'),
    ],
)
def test_extract_json_text(reply: str, expected: str) -> None:
    assert extract_json_text(reply) == expected


def test_decode_raises_parse_failure() -> None:
    with pytest.raises(UpstreamParseFailure):
        decode_intent_reply("not json")


def test_non_iso_range_dates_are_rewritten_as_iso() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "launcher-logs",
                "queryType": "range",
                "params": {"startDate": "2 days ago", "endDate": "yesterday"},
            }
        )
    )

    result = _run(llm, "이틀 전부터 어제까지 런처 로그")

    (call,) = result.api_calls
    start, end = call.params["startDate"], call.params["endDate"]
    assert start.startswith("2025-10-25T")
    assert end.startswith("2025-10-26T")
    for value in (start, end):
        parsed = datetime.fromisoformat(value)
        assert parsed.tzinfo is None
        assert parsed.isoformat() == value


def test_aware_range_dates_are_rendered_in_application_timezone() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "error-logs",
                "queryType": "range",
                "params": {
                    "startDate": "2025-10-26T00:00:00+00:00",
                    "endDate": "2025-10-26T12:00:00.500+00:00",
                },
            }
        )
    )

    result = _run(llm, "어제 에러 로그")

    (call,) = result.api_calls
    assert call.params["startDate"] == "2025-10-26T09:00:00"
    assert call.params["endDate"] == "2025-10-26T21:00:00"


def test_unparseable_range_date_is_rejected() -> None:
    llm = _FakeLLM(
        json.dumps(
            {
                "intent": "launcher-logs",
                "queryType": "range",
                "params": {"startDate": "2025-10-26T00:00:00", "endDate": "@@@"},
            }
        )
    )

    result = _run(llm, "런처 로그")

    assert result.failure == FailureKind.date_range_invalid
    assert result.api_calls == ()


def test_prompt_examples_ask_for_iso_timestamps() -> None:
    llm = _FakeLLM('{"intent": "unknown"}')

    _run(llm)

    system = llm.calls[0]["system"]
    assert '"endDate": "현재 시간"' not in system
    assert "현재 시간의 ISO 형식" in system
