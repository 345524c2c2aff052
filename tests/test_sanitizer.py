"""Tests for the parameter sanitizer and API call construction."""

from __future__ import annotations

import pytest

from logbot.chatbot.errors import UnknownIntent
from logbot.chatbot.sanitizer import build_api_call, sanitize
from logbot.chatbot.schema import ApiType, IntentReply, QueryType


def test_error_recent_defaults() -> None:
    params = sanitize(ApiType.error_logs, {}, QueryType.recent)

    assert params == {"minutes": 10, "limit": 100, "profile": "all", "appName": "all"}


def test_limit_above_max_is_clamped() -> None:
    params = sanitize(ApiType.error_logs, {"limit": 5000}, QueryType.recent)

    assert params["limit"] == 1000


def test_user_limit_above_max_is_clamped() -> None:
    params = sanitize(ApiType.user_logs, {"limit": "999999"}, QueryType.recent)

    assert params["limit"] == 10000


@pytest.mark.parametrize("limit", [150, 0, -5, "many", True, 2.5, None])
def test_launcher_limit_outside_enumeration_becomes_default(limit: object) -> None:
    params = sanitize(ApiType.launcher_logs, {"limit": limit}, QueryType.recent)

    assert params["limit"] == 100


def test_minutes_outside_enumeration_becomes_default() -> None:
    params = sanitize(ApiType.error_logs, {"minutes": 45}, QueryType.recent)

    assert params["minutes"] == 10


def test_categorical_values_outside_allowed_set() -> None:
    launcher = sanitize(
        ApiType.launcher_logs, {"logType": "trace", "profile": "prod"}, QueryType.recent
    )
    error = sanitize(ApiType.error_logs, {"appName": "unknown-app"}, QueryType.recent)

    assert "logType" not in launcher
    assert "profile" not in launcher
    assert error["appName"] == "all"


def test_free_text_is_trimmed_or_omitted() -> None:
    kept = sanitize(ApiType.user_logs, {"uuid": "  abc123 "}, QueryType.recent)
    dropped = sanitize(ApiType.user_logs, {"uuid": "   "}, QueryType.recent)

    assert kept["uuid"] == "abc123"
    assert "uuid" not in dropped


def test_range_mode_passes_dates_and_drops_minutes() -> None:
    params = sanitize(
        ApiType.error_logs,
        {"minutes": 60, "startDate": "2025-10-26T00:00:00", "endDate": "2025-10-26T23:59:59"},
        QueryType.range,
    )

    assert "minutes" not in params
    assert params["startDate"] == "2025-10-26T00:00:00"
    assert params["endDate"] == "2025-10-26T23:59:59"


def test_recent_mode_ignores_dates() -> None:
    params = sanitize(ApiType.error_logs, {"startDate": "2025-10-26T00:00:00"}, QueryType.recent)

    assert "startDate" not in params


def test_unknown_parameters_are_dropped() -> None:
    params = sanitize(ApiType.user_logs, {"sql": "select 1", "minutes": 30}, QueryType.recent)

    assert "sql" not in params
    assert params["minutes"] == 30


@pytest.mark.parametrize(
    ("api_type", "query_type", "raw"),
    [
        (ApiType.error_logs, QueryType.recent, {"minutes": 60, "limit": 200, "profile": "dev"}),
        (ApiType.user_logs, QueryType.recent, {"uuid": "abc", "logType": "event", "limit": 50}),
        (
            ApiType.launcher_logs,
            QueryType.range,
            {
                "limit": 1000,
                "logType": "debug",
                "appName": "tool",
                "startDate": "2025-10-26T00:00:00",
                "endDate": "2025-10-26T12:00:00",
            },
        ),
    ],
)
def test_sanitize_is_idempotent(api_type: ApiType, query_type: QueryType, raw: dict) -> None:
    once = sanitize(api_type, raw, query_type)
    twice = sanitize(api_type, once, query_type)

    assert once == twice


def test_build_api_call_for_error_recent() -> None:
    reply = IntentReply.model_validate(
        {"intent": "error-logs", "queryType": "recent", "params": {"minutes": 60}}
    )

    call = build_api_call(reply)

    assert call.endpoint == "/api/error-logs/recent"
    assert call.params == {"minutes": 60, "limit": 100, "profile": "all", "appName": "all"}
    assert call.description == "에러 로그 최근 조회"


def test_build_api_call_describes_user_uuid() -> None:
    reply = IntentReply.model_validate(
        {"intent": "user-logs", "queryType": "recent", "params": {"uuid": "abc123"}}
    )

    call = build_api_call(reply)

    assert call.endpoint == "/api/user-logs"
    assert call.description == "사용자 로그 조회 (UUID: abc123)"


def test_build_api_call_rejects_unknown_intent() -> None:
    with pytest.raises(UnknownIntent):
        build_api_call(IntentReply(intent="unknown"))
