"""Read-only constraint table for the natural-language log chatbot.

This module is the single source of truth for which endpoints may be called, which parameter
values are allowed, and which words or character sequences are rejected before anything reaches
the network. Both the LLM prompt and the parameter sanitizer read from these tables so the two
cannot drift apart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from types import MappingProxyType
from typing import Any, Mapping


class ApiGroup(StrEnum):
    """Endpoint groups that have their own parameter constraints."""

    launcher_logs = "launcherLogs"
    user_logs = "userLogs"
    error_logs = "errorLogs"


@dataclass(frozen=True)
class ParamConstraint:
    """Constraint for a single query-string parameter.

    Exactly one of the shapes applies:
        - `allowed` set (numeric or categorical): value must be a member.
        - `max` only (numeric): value is clamped to the maximum.
        - neither (free text): value is trimmed and kept when non-empty.

    A `default` of `None` means the parameter is omitted and the backend applies its own default.
    """

    allowed: tuple[Any, ...] | None = None
    default: Any = None
    max: int | None = None
    numeric: bool = False
    description: str | None = None


@dataclass(frozen=True)
class TimeRangeConstraints:
    max_days_range: int = 30
    allow_future_dates: bool = False
    date_format: str = "ISO 8601 (YYYY-MM-DDTHH:mm:ss)"


@dataclass(frozen=True)
class ErrorMessages:
    """Fixed user-facing messages (Korean)."""

    forbidden_operation: str = (
        "죄송합니다. 데이터 조회만 가능합니다. 수정, 삭제, 추가 작업은 허용되지 않습니다."
    )
    forbidden_characters: str = "유효하지 않은 문자가 포함되어 있습니다."
    invalid_time_range: str = "조회 기간은 최대 30일까지만 가능합니다."
    future_date_not_allowed: str = "미래 날짜는 조회할 수 없습니다."
    inverted_range: str = "시작 날짜가 종료 날짜보다 늦을 수 없습니다."
    invalid_parameter: str = "유효하지 않은 파라미터입니다. 허용된 값을 확인해주세요."
    api_not_found: str = "요청하신 데이터를 찾을 수 없습니다. 다시 한 번 확인해주세요."
    unknown_query: str = "질문을 이해하지 못했습니다. 더 구체적으로 말씀해주세요."
    unparseable_reply: str = "AI 응답을 해석할 수 없습니다. 질문을 다시 입력해주세요."


@dataclass(frozen=True)
class NaturalLanguageMapping:
    """Korean phrase hints used by the prompt and the rules resolver."""

    recent_words: tuple[str, ...] = ("최근", "지난", "최신")
    log_types: Mapping[str, str] = field(default_factory=dict)
    profiles: Mapping[str, str] = field(default_factory=dict)
    apps: Mapping[str, str] = field(default_factory=dict)
    counts: Mapping[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ConstraintTable:
    allowed_operations: frozenset[str]
    forbidden_keywords: tuple[str, ...]
    forbidden_chars: tuple[str, ...]
    allowed_endpoints: frozenset[str]
    api_constraints: Mapping[ApiGroup, Mapping[str, ParamConstraint]]
    time_range: TimeRangeConstraints
    messages: ErrorMessages
    language: NaturalLanguageMapping

    def group(self, group: ApiGroup) -> Mapping[str, ParamConstraint]:
        return self.api_constraints[group]


def _frozen(mapping: dict) -> Mapping:
    return MappingProxyType(mapping)


CONSTRAINTS = ConstraintTable(
    allowed_operations=frozenset({"READ"}),
    forbidden_keywords=(
        "삭제", "delete", "remove", "지워",
        "수정", "update", "modify", "change", "변경", "바꿔",
        "추가", "insert", "add", "create", "생성",
        "업데이트", "갱신",
        "drop", "truncate", "alter",
    ),
    forbidden_chars=(";", "--", "/*", "*/", "xp_", "sp_"),
    allowed_endpoints=frozenset(
        {
            "/api/trace-logs-launcher/recent",
            "/api/trace-logs-launcher/range",
            "/api/user-logs",
            "/api/error-logs/recent",
            "/api/error-logs/range",
        }
    ),
    api_constraints=_frozen(
        {
            ApiGroup.launcher_logs: _frozen(
                {
                    "limit": ParamConstraint(
                        allowed=(100, 200, 300, 1000, 10000, 100000),
                        default=100,
                        max=100000,
                        numeric=True,
                    ),
                    "logType": ParamConstraint(allowed=("debug", "ack", "stats", "error", "event")),
                    "appName": ParamConstraint(description="앱 이름 (자유 입력)"),
                    "profile": ParamConstraint(allowed=("stg", "dev", "stg1", "r-math", "r-engl")),
                }
            ),
            ApiGroup.user_logs: _frozen(
                {
                    "minutes": ParamConstraint(
                        allowed=(10, 20, 30, 60, 480, 720), default=10, numeric=True
                    ),
                    "limit": ParamConstraint(default=100, max=10000, numeric=True),
                    "logType": ParamConstraint(
                        allowed=("all", "debug", "ack", "stats", "error", "event"), default="all"
                    ),
                    "uuid": ParamConstraint(
                        description="UUID 검색 (like 검색, 앞부분 와일드카드 불가)"
                    ),
                }
            ),
            ApiGroup.error_logs: _frozen(
                {
                    "minutes": ParamConstraint(
                        allowed=(10, 30, 60, 360, 720, 1440), default=10, numeric=True
                    ),
                    "limit": ParamConstraint(default=100, max=1000, numeric=True),
                    "profile": ParamConstraint(
                        allowed=("all", "dev", "stg", "access", "r-engl", "r-math"), default="all"
                    ),
                    "appName": ParamConstraint(
                        allowed=("all", "vlmsapi", "launcher", "socket", "tool", "VIEWER"),
                        default="all",
                    ),
                }
            ),
        }
    ),
    time_range=TimeRangeConstraints(),
    messages=ErrorMessages(),
    language=NaturalLanguageMapping(
        log_types=_frozen(
            {
                "디버그": "debug",
                "디버깅": "debug",
                "에러": "error",
                "오류": "error",
                "이벤트": "event",
                "통계": "stats",
                "확인": "ack",
            }
        ),
        profiles=_frozen(
            {
                "스테이징": "stg",
                "스테이지": "stg",
                "개발": "dev",
                "수학": "r-math",
                "영어": "r-engl",
            }
        ),
        apps=_frozen(
            {
                "API": "vlmsapi",
                "런처": "launcher",
                "소켓": "socket",
                "도구": "tool",
                "뷰어": "VIEWER",
            }
        ),
        counts=_frozen({"조금": 100, "적당히": 200, "많이": 1000, "전체": 10000}),
    ),
)


@dataclass(frozen=True)
class ValidationResult:
    """Outcome of a pure validation check."""

    valid: bool
    reason: str | None = None


VALID = ValidationResult(valid=True)


def validate_query(query: str, *, table: ConstraintTable = CONSTRAINTS) -> ValidationResult:
    """Check raw user text against the forbidden-keyword and forbidden-character lists.

    Keywords are matched case-insensitively as substrings; character sequences are matched on the
    raw text. The keyword check runs first, so a query violating both reports the keyword reason.
    """

    lowered = (query or "").lower()
    for keyword in table.forbidden_keywords:
        if keyword.lower() in lowered:
            return ValidationResult(valid=False, reason=table.messages.forbidden_operation)

    for chars in table.forbidden_chars:
        if chars in (query or ""):
            return ValidationResult(valid=False, reason=table.messages.forbidden_characters)

    return VALID


def is_endpoint_allowed(endpoint: str, *, table: ConstraintTable = CONSTRAINTS) -> bool:
    return endpoint in table.allowed_endpoints
