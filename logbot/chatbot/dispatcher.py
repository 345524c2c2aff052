"""API dispatcher: maps a sanitized `ApiCallParams` to exactly one REST call."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable

from logbot.chatbot.constraints import CONSTRAINTS, is_endpoint_allowed
from logbot.chatbot.errors import UnknownIntent, UpstreamCallFailure
from logbot.chatbot.schema import ApiCallParams, ApiType, QueryType
from logbot.logs_api.client import LogApiClient, LogApiError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchResult:
    """Rows returned by the backend, plus the total when the backend reports one."""

    rows: list[dict[str, Any]]
    total: int | None = None


def _launcher_recent(client: LogApiClient, p: dict[str, Any]) -> Any:
    return client.get_recent_launcher_logs(
        limit=p.get("limit", 100),
        app_name=p.get("appName"),
        log_type=p.get("logType"),
        profile=p.get("profile"),
    )


def _launcher_range(client: LogApiClient, p: dict[str, Any]) -> Any:
    return client.get_launcher_logs_by_range(
        start_date=p["startDate"],
        end_date=p["endDate"],
        limit=p.get("limit", 100),
        app_name=p.get("appName"),
        log_type=p.get("logType"),
        profile=p.get("profile"),
    )


def _user_logs(client: LogApiClient, p: dict[str, Any]) -> Any:
    return client.get_user_logs(
        minutes=p.get("minutes"),
        start_date=p.get("startDate"),
        end_date=p.get("endDate"),
        uuid=p.get("uuid"),
        log_type=p.get("logType"),
        limit=p.get("limit", 100),
    )


def _error_recent(client: LogApiClient, p: dict[str, Any]) -> Any:
    return client.get_recent_error_logs(
        minutes=p.get("minutes", 10),
        profile=p.get("profile", "all"),
        app_name=p.get("appName", "all"),
        limit=p.get("limit", 100),
    )


def _error_range(client: LogApiClient, p: dict[str, Any]) -> Any:
    return client.get_error_logs_by_range(
        start_date=p["startDate"],
        end_date=p["endDate"],
        profile=p.get("profile", "all"),
        app_name=p.get("appName", "all"),
        limit=p.get("limit", 100),
    )


_CALLS: dict[tuple[ApiType, QueryType], Callable[[LogApiClient, dict[str, Any]], Any]] = {
    (ApiType.launcher_logs, QueryType.recent): _launcher_recent,
    (ApiType.launcher_logs, QueryType.range): _launcher_range,
    (ApiType.user_logs, QueryType.recent): _user_logs,
    (ApiType.user_logs, QueryType.range): _user_logs,
    (ApiType.error_logs, QueryType.recent): _error_recent,
    (ApiType.error_logs, QueryType.range): _error_range,
}


def _unwrap(payload: Any) -> DispatchResult:
    """Accept both a bare list and a `{"logs": [...], "total": N}` envelope."""

    if isinstance(payload, list):
        return DispatchResult(rows=[r for r in payload if isinstance(r, dict)])
    if isinstance(payload, dict):
        logs = payload.get("logs") or []
        total = payload.get("total")
        return DispatchResult(
            rows=[r for r in logs if isinstance(r, dict)],
            total=total if isinstance(total, int) and not isinstance(total, bool) else None,
        )
    return DispatchResult(rows=[])


def dispatch(api_call: ApiCallParams, client: LogApiClient) -> DispatchResult:
    """Invoke the single REST call described by `api_call`.

    Raises:
        UnknownIntent: If the API type or endpoint is outside the allow-list.
        UpstreamCallFailure: If the HTTP call fails.
    """

    call = _CALLS.get((api_call.api_type, api_call.query_type))
    if call is None or not is_endpoint_allowed(api_call.endpoint):
        logger.error(
            "refusing dispatch api_type=%s endpoint=%s", api_call.api_type, api_call.endpoint
        )
        raise UnknownIntent(f"알 수 없는 API 타입: {api_call.api_type}")

    try:
        payload = call(client, dict(api_call.params))
    except LogApiError as exc:
        raise UpstreamCallFailure(f"API 호출 중 오류가 발생했습니다: {exc}") from exc
    except KeyError as exc:
        # Range calls without both dates never pass the resolver; treat as a parameter defect.
        raise UnknownIntent(CONSTRAINTS.messages.invalid_parameter) from exc

    result = _unwrap(payload)
    logger.info(
        "dispatched endpoint=%s rows=%d total=%s", api_call.endpoint, len(result.rows), result.total
    )
    return result
