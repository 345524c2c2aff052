"""Rules-based Korean intent resolver (used when the LLM is disabled).

The resolver is deliberately small and deterministic:
    - it only recognizes the keyword hints listed in the constraint table,
    - it produces the same `IntentReply` shape as the LLM,
    - its output goes through the same sanitizer and date validation.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta

from logbot.chatbot.constraints import CONSTRAINTS, ApiGroup, ConstraintTable
from logbot.chatbot.dates import day_bounds, format_local_iso
from logbot.chatbot.schema import ApiType, IntentReply, QueryType

_MINUTES_RE = re.compile(r"(\d+)\s*분")
_HOURS_RE = re.compile(r"(\d+)\s*시간")
_COUNT_RE = re.compile(r"(\d+)\s*개")
_UUID_RE = re.compile(r"\buuid\s*[:=]?\s*([0-9a-z][0-9a-z_\-]*)", flags=re.IGNORECASE)
_ISO_DAY_RE = re.compile(r"(?<!\d)(\d{4})-(\d{1,2})-(\d{1,2})(?!\d)")
_KO_DAY_RE = re.compile(r"(\d{4})\s*년\s*(\d{1,2})\s*월\s*(\d{1,2})\s*일")
_ASCII_TOKEN_RE = re.compile(r"[a-z0-9][a-z0-9\-]*", flags=re.IGNORECASE)

_USER_WORDS = ("사용자", "유저", "user")
_LAUNCHER_WORDS = ("런처", "launcher", "트레이스", "trace")
_ERROR_WORDS = ("에러", "오류", "error")
_LOG_WORDS = ("로그", "log")

_GROUPS: dict[ApiType, ApiGroup] = {
    ApiType.launcher_logs: ApiGroup.launcher_logs,
    ApiType.user_logs: ApiGroup.user_logs,
    ApiType.error_logs: ApiGroup.error_logs,
}


def _contains_any(text: str, words: tuple[str, ...]) -> bool:
    return any(w in text for w in words)


def _detect_api_type(text: str, uuid: str | None) -> ApiType | None:
    if uuid or _contains_any(text, _USER_WORDS):
        return ApiType.user_logs
    if _contains_any(text, _LAUNCHER_WORDS):
        return ApiType.launcher_logs
    if _contains_any(text, _ERROR_WORDS):
        return ApiType.error_logs
    if _contains_any(text, _LOG_WORDS):
        return ApiType.launcher_logs
    return None


def _window_minutes(text: str) -> int | None:
    total = 0
    for match in _HOURS_RE.finditer(text):
        total += int(match.group(1)) * 60
    for match in _MINUTES_RE.finditer(text):
        total += int(match.group(1))
    return total or None


def _explicit_day(text: str) -> date | None:
    for pattern in (_ISO_DAY_RE, _KO_DAY_RE):
        match = pattern.search(text)
        if not match:
            continue
        try:
            return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
        except ValueError:
            return None
    return None


def _time_range(text: str, now: datetime) -> tuple[datetime, datetime] | None:
    """Map relative/explicit day phrases to a `[start, end]` range; a range covering `now` ends there."""

    tz = now.tzinfo
    explicit = _explicit_day(text)
    if explicit is not None:
        start, end = day_bounds(explicit, tz=tz)
        # A future day keeps its full bounds.
        if start <= now:
            end = min(end, now)
        return start, end
    if "오늘" in text:
        return day_bounds(now.date(), tz=tz)[0], now
    if "어제" in text:
        return day_bounds(now.date() - timedelta(days=1), tz=tz)
    if "이번 주" in text or "이번주" in text:
        return now - timedelta(days=7), now
    if "이번 달" in text or "이번달" in text:
        return now - timedelta(days=30), now
    return None


def _lookup(text: str, mapping) -> str | None:
    lowered = text.lower()
    for phrase, value in mapping.items():
        if phrase.lower() in lowered:
            return value
    return None


def _literal_choice(text: str, allowed: tuple | None) -> str | None:
    if not allowed:
        return None
    tokens = {t.lower() for t in _ASCII_TOKEN_RE.findall(text)}
    for value in allowed:
        if isinstance(value, str) and value.lower() in tokens and value != "all":
            return value
    return None


def _limit(text: str, table: ConstraintTable) -> int | None:
    match = _COUNT_RE.search(text)
    if match:
        return int(match.group(1))
    for word, count in table.language.counts.items():
        if word in text:
            return count
    return None


def resolve_reply_by_rules(
        query: str,
        *,
        now: datetime,
        table: ConstraintTable = CONSTRAINTS,
) -> IntentReply:
    """Parse a Korean query into an `IntentReply` without calling an LLM.

    Unrecognized input yields `intent="unknown"`, which the caller reports as an unknown query.
    """

    text = (query or "").strip()
    uuid_match = _UUID_RE.search(text)
    uuid = uuid_match.group(1) if uuid_match else None

    api_type = _detect_api_type(text.lower(), uuid)
    if api_type is None:
        return IntentReply(intent="unknown")

    constraints = table.group(_GROUPS[api_type])
    params: dict[str, object] = {}

    if uuid:
        params["uuid"] = uuid

    log_type = _lookup(text, table.language.log_types)
    if log_type and api_type != ApiType.error_logs:
        params["logType"] = log_type

    profile_field = constraints.get("profile")
    profile = _lookup(text, table.language.profiles) or _literal_choice(
        text, profile_field.allowed if profile_field else None
    )
    if profile:
        params["profile"] = profile

    app = _lookup(text, table.language.apps)
    # "런처" names the launcher intent itself, not an app filter on launcher logs.
    if app and "appName" in constraints and not (
            api_type == ApiType.launcher_logs and app == "launcher"
    ):
        params["appName"] = app

    limit = _limit(text, table)
    if limit is not None:
        params["limit"] = limit

    query_type = QueryType.recent
    window = _window_minutes(text)
    minutes_field = constraints.get("minutes")
    explicit_range = _time_range(text, now)

    if explicit_range is not None:
        query_type = QueryType.range
        start, end = explicit_range
    elif window is not None and minutes_field and window in (minutes_field.allowed or ()):
        params["minutes"] = window
    elif window is not None:
        # No matching trailing window (launcher logs have none): ask for an explicit range.
        query_type = QueryType.range
        start, end = now - timedelta(minutes=window), now

    if query_type == QueryType.range:
        params["startDate"] = format_local_iso(start)
        params["endDate"] = format_local_iso(end)

    return IntentReply(intent=api_type.value, query_type=query_type, params=params)
