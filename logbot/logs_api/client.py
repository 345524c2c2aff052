"""Read-only client for the log-query REST backend.

One method per allow-listed endpoint. All calls are GET with query-string parameters; `None`
values are left out so the backend applies its own defaults.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen

logger = logging.getLogger(__name__)


class LogApiError(RuntimeError):
    """Raised when a log API call fails."""


@dataclass(frozen=True)
class LogApiConfig:
    base_url: str = "http://localhost:8080"
    timeout_s: float = 30.0


def _query_string(params: Mapping[str, Any]) -> str:
    return urlencode({k: v for k, v in params.items() if v is not None})


class LogApiClient:
    """Blocking HTTP client for trace, user and error log endpoints."""

    def __init__(self, config: LogApiConfig) -> None:
        self.config = config

    def _get(self, path: str, params: Mapping[str, Any]) -> Any:
        query = _query_string(params)
        url = self.config.base_url.rstrip("/") + path + (f"?{query}" if query else "")
        req = Request(url, method="GET", headers={"Accept": "application/json"})

        try:
            with urlopen(req, timeout=self.config.timeout_s) as resp:  # noqa: S310 (configured base URL)
                body = resp.read()
        except HTTPError as exc:
            raise LogApiError(f"HTTP {exc.code} {exc.reason}") from exc
        except URLError as exc:
            raise LogApiError(f"connection error ({exc.reason})") from exc
        except TimeoutError as exc:
            raise LogApiError("request timed out") from exc

        try:
            return json.loads(body) if body else []
        except json.JSONDecodeError as exc:
            raise LogApiError("invalid JSON response") from exc

    def get_recent_launcher_logs(
            self,
            *,
            limit: int = 100,
            app_name: str | None = None,
            log_type: str | None = None,
            profile: str | None = None,
    ) -> Any:
        return self._get(
            "/api/trace-logs-launcher/recent",
            {"limit": limit, "appName": app_name, "logType": log_type, "profile": profile},
        )

    def get_launcher_logs_by_range(
            self,
            *,
            start_date: str,
            end_date: str,
            limit: int = 100,
            app_name: str | None = None,
            log_type: str | None = None,
            profile: str | None = None,
    ) -> Any:
        return self._get(
            "/api/trace-logs-launcher/range",
            {
                "startDate": start_date,
                "endDate": end_date,
                "limit": limit,
                "appName": app_name,
                "logType": log_type,
                "profile": profile,
            },
        )

    def get_user_logs(
            self,
            *,
            minutes: int | None = None,
            start_date: str | None = None,
            end_date: str | None = None,
            uuid: str | None = None,
            log_type: str | None = None,
            limit: int = 100,
    ) -> Any:
        """Fetch user logs by either a trailing window or an explicit range.

        A complete `start_date`/`end_date` pair takes precedence over `minutes`.
        """

        params: dict[str, Any] = {"limit": limit}
        if start_date and end_date:
            params["startDate"] = start_date
            params["endDate"] = end_date
        elif minutes is not None:
            params["minutes"] = minutes

        if uuid and uuid.strip():
            params["uuid"] = uuid.strip()
        if log_type and log_type.strip():
            params["logType"] = log_type.strip()

        return self._get("/api/user-logs", params)

    def get_recent_error_logs(
            self,
            *,
            minutes: int = 10,
            profile: str = "all",
            app_name: str = "all",
            limit: int = 100,
    ) -> Any:
        return self._get(
            "/api/error-logs/recent",
            {"minutes": minutes, "profile": profile, "appName": app_name, "limit": limit},
        )

    def get_error_logs_by_range(
            self,
            *,
            start_date: str,
            end_date: str,
            profile: str = "all",
            app_name: str = "all",
            limit: int = 100,
    ) -> Any:
        return self._get(
            "/api/error-logs/range",
            {
                "startDate": start_date,
                "endDate": end_date,
                "profile": profile,
                "appName": app_name,
                "limit": limit,
            },
        )
