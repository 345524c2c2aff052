"""Parameter sanitizer.

Forces LLM- or rules-proposed parameters to conform to the constraint table before they can reach
a real API call. The sanitizer never raises on out-of-range input; it substitutes defaults, clamps,
or omits instead.
"""

from __future__ import annotations

from typing import Any, Mapping

from logbot.chatbot.constraints import (
    CONSTRAINTS,
    ApiGroup,
    ConstraintTable,
    ParamConstraint,
    is_endpoint_allowed,
)
from logbot.chatbot.errors import UnknownIntent
from logbot.chatbot.schema import ApiCallParams, ApiType, IntentReply, QueryType

_GROUPS: dict[ApiType, ApiGroup] = {
    ApiType.launcher_logs: ApiGroup.launcher_logs,
    ApiType.user_logs: ApiGroup.user_logs,
    ApiType.error_logs: ApiGroup.error_logs,
}

_ENDPOINTS: dict[tuple[ApiType, QueryType], str] = {
    (ApiType.launcher_logs, QueryType.recent): "/api/trace-logs-launcher/recent",
    (ApiType.launcher_logs, QueryType.range): "/api/trace-logs-launcher/range",
    (ApiType.user_logs, QueryType.recent): "/api/user-logs",
    (ApiType.user_logs, QueryType.range): "/api/user-logs",
    (ApiType.error_logs, QueryType.recent): "/api/error-logs/recent",
    (ApiType.error_logs, QueryType.range): "/api/error-logs/range",
}

_DATE_FIELDS = ("startDate", "endDate")
_WINDOW_FIELD = "minutes"


def _as_int(value: Any) -> int | None:
    # bool is an int subclass; `true` is never a valid count.
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _resolve_field(value: Any, constraint: ParamConstraint) -> Any:
    """Apply a single field rule. Returns `None` when the field should be omitted."""

    if constraint.numeric:
        number = _as_int(value)
        if constraint.allowed is not None:
            return number if number in constraint.allowed else constraint.default
        if number is None or number <= 0:
            return constraint.default
        if constraint.max is not None and number > constraint.max:
            return constraint.max
        return number

    if constraint.allowed is not None:
        return value if value in constraint.allowed else constraint.default

    if isinstance(value, str) and value.strip():
        return value.strip()
    return constraint.default


def sanitize(
        api_type: ApiType,
        raw_params: Mapping[str, Any] | None,
        query_type: QueryType,
        *,
        table: ConstraintTable = CONSTRAINTS,
) -> dict[str, Any]:
    """Return a clean parameter mapping for `api_type` in the given query mode.

    Rules:
        - enumerated numeric fields keep members only, else the default;
        - max-only numeric fields keep positive integers clamped to the max, else the default;
        - categorical fields keep members only, else the default (omitted when it is `None`);
        - free-text fields keep trimmed non-empty strings, else they are omitted;
        - range mode passes `startDate`/`endDate` through unmodified and drops `minutes`;
        - recent mode resolves `minutes` for groups that define it.
    """

    raw = dict(raw_params or {})
    constraints = table.group(_GROUPS[api_type])
    clean: dict[str, Any] = {}

    for name, constraint in constraints.items():
        if name == _WINDOW_FIELD and query_type == QueryType.range:
            continue
        value = _resolve_field(raw.get(name), constraint)
        if value is not None:
            clean[name] = value

    if query_type == QueryType.range:
        for name in _DATE_FIELDS:
            if raw.get(name):
                clean[name] = raw[name]

    return clean


def _describe(api_type: ApiType, query_type: QueryType, params: Mapping[str, Any]) -> str:
    mode = "최근 조회" if query_type == QueryType.recent else "기간 조회"
    if api_type == ApiType.launcher_logs:
        return f"런처 로그 {mode}"
    if api_type == ApiType.error_logs:
        return f"에러 로그 {mode}"
    uuid = params.get("uuid")
    return f"사용자 로그 조회 (UUID: {uuid})" if uuid else "사용자 로그 조회"


def build_api_call(reply: IntentReply, *, table: ConstraintTable = CONSTRAINTS) -> ApiCallParams:
    """Turn a decoded intent reply into an allow-listed, sanitized API call.

    Raises:
        UnknownIntent: If the reply has no dispatchable intent.
    """

    api_type = reply.api_type
    if api_type is None:
        raise UnknownIntent(table.messages.unknown_query)

    endpoint = _ENDPOINTS[(api_type, reply.query_type)]
    if not is_endpoint_allowed(endpoint, table=table):
        raise UnknownIntent(table.messages.api_not_found)

    params = sanitize(api_type, reply.params, reply.query_type, table=table)
    return ApiCallParams(
        api_type=api_type,
        query_type=reply.query_type,
        endpoint=endpoint,
        params=params,
        description=_describe(api_type, reply.query_type, params),
    )
