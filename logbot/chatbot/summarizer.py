"""LLM summarization of fetched log rows.

Summarization is a two-phase operation so the caller can gate on cost:
    1) `prepare(rows, kind)` projects rows to compact text lines, truncates the payload and
       estimates the token count locally (no network access);
    2) `execute(request, llm)` performs exactly one completion call.

`summarize` runs both phases back to back for callers that do not gate.
"""

from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, tzinfo
from enum import StrEnum
from typing import Any, Iterable, Mapping

from logbot.chatbot.codes import ERROR_CODE_TABLE, CodeTable
from logbot.llm.client import CompletionClient, LLMError

logger = logging.getLogger(__name__)

MAX_PAYLOAD_CHARS = 100_000
SUMMARY_TEMPERATURE = 0.7
SUMMARY_MAX_TOKENS = 2000

_HANGUL_RE = re.compile(r"[\uAC00-\uD7AF\u1100-\u11FF\u3130-\u318F]")

_USER_TYPES = {"S": "학생", "T": "선생님"}


class SummaryKind(StrEnum):
    """Which row shape and instruction template to use."""

    trace = "trace"
    error = "error"


_SYSTEM_PROMPTS: dict[SummaryKind, str] = {
    SummaryKind.trace: """You are a log analysis assistant. Analyze the provided log data and provide a comprehensive summary in Korean.

The log format is: [yyyy-MM-dd HH:mm] name userType - event description
Note: The event description is already translated from event codes to Korean descriptions.

Your summary should include:
1. 전체 로그 개수와 시간 범위 (한 줄로 표시. 예: "2025년 10월 27일 09:45부터 09:55까지 (총 58개)")
2. 주요 이벤트 패턴과 빈도 (이벤트 설명 기준)
3. 사용자 활동 분석 (사용자 별 행동 비율)
4. 발견된 주요 이벤트 TOP 10 (각 이벤트의 분포율을 100% 기준으로 표기. 예: "이벤트명 - XX건 (YY%)")
5. 특이사항이나 주목할 만한 패턴
6. 시간대별 활동 분석
7. 이상 행동 분석(한 사용자가 잦은 로그인 시도)

Be concise but informative. Use bullet points and clear structure.""",
    SummaryKind.error: """You are an error log analysis assistant. Analyze the provided error log data and provide a comprehensive summary in Korean.

The log format is: [yyyy-MM-dd HH:mm] appName - error description - error message (User: userId)

Your summary should include:
1. 전체 에러 로그 개수와 시간 범위
2. 주요 에러 유형과 빈도 (에러 설명 기준)
3. 앱별 에러 분포
4. 발견된 주요 에러 TOP 10 (각 에러의 분포율을 100% 기준으로 표기. 예: "에러명 - XX건 (YY%)")
5. 특이사항이나 주목할 만한 패턴
6. 시간대별 에러 발생 분석

Be concise but informative. Use bullet points and clear structure.""",
}

_USER_PROMPT_PREFIX: dict[SummaryKind, str] = {
    SummaryKind.trace: "다음 런처 로그 데이터를 분석하고 요약해주세요:\n\n",
    SummaryKind.error: "다음 에러 로그 데이터를 분석하고 요약해주세요:\n\n",
}


@dataclass(frozen=True)
class SummaryRequest:
    """A prepared, not yet executed summarization call."""

    kind: SummaryKind
    system_prompt: str
    user_prompt: str
    token_count: int
    line_count: int


@dataclass(frozen=True)
class SummaryResult:
    summary: str | None = None
    error: str | None = None
    token_count: int | None = None


def estimate_token_count(text: str) -> int:
    """Rough token estimate: Hangul at 1.5 chars/token, everything else at 4 chars/token."""

    hangul = len(_HANGUL_RE.findall(text or ""))
    other = len(text or "") - hangul
    return math.ceil(hangul / 1.5) + math.ceil(other / 4)


def format_minute(value: Any, *, tz: tzinfo | None = None) -> str:
    """Render a timestamp as `yyyy-MM-dd HH:mm`; unparseable values are returned unchanged."""

    if not isinstance(value, str):
        return "" if value is None else str(value)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return value
    if tz is not None and parsed.tzinfo is not None:
        parsed = parsed.astimezone(tz)
    return parsed.strftime("%Y-%m-%d %H:%M")


def _trace_line(row: Mapping[str, Any], *, events: CodeTable, tz: tzinfo | None) -> str | None:
    try:
        payload = json.loads(row["logPayload"])
    except (KeyError, TypeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict):
        return None

    time = format_minute(row.get("createdAt"), tz=tz)
    name = payload.get("uName") or ""
    u_type = payload.get("uType")
    user_type = _USER_TYPES.get(u_type, "") if isinstance(u_type, str) else ""
    evt_cd = payload.get("evtCd") or ""
    description = events.describe(evt_cd) if evt_cd else ""

    if description:
        return f"[{time}] {name} {user_type} - {description}"
    return f"[{time}] {name} {user_type}"


def _error_line(row: Mapping[str, Any], *, tz: tzinfo | None) -> str | None:
    time = format_minute(row.get("createdAt"), tz=tz)
    err_cd = row.get("errCd") or ""
    description = ERROR_CODE_TABLE.describe(err_cd) if err_cd else ""
    line = f"[{time}] {row.get('appName') or ''} - {description} - {row.get('errMsg') or ''}"
    user_id = row.get("userId")
    if user_id:
        line += f" (User: {user_id})"
    return line


def project_rows(
        rows: Iterable[Any],
        kind: SummaryKind,
        *,
        events: CodeTable | None = None,
        tz: tzinfo | None = None,
) -> list[str]:
    """Project rows to one text line each, silently dropping rows that fail to parse."""

    event_table = events or CodeTable()
    lines: list[str] = []
    for row in rows:
        if not isinstance(row, Mapping):
            continue
        if kind == SummaryKind.trace:
            line = _trace_line(row, events=event_table, tz=tz)
        else:
            line = _error_line(row, tz=tz)
        if line:
            lines.append(line)
    return lines


def prepare(
        rows: list[Any],
        kind: SummaryKind,
        *,
        events: CodeTable | None = None,
        tz: tzinfo | None = None,
) -> SummaryRequest | None:
    """Build the summarization request, or `None` when there is nothing to summarize."""

    lines = project_rows(rows, kind, events=events, tz=tz)
    if not lines:
        return None

    logs_text = "\n".join(lines)[:MAX_PAYLOAD_CHARS]
    system_prompt = _SYSTEM_PROMPTS[kind]
    user_prompt = _USER_PROMPT_PREFIX[kind] + logs_text
    return SummaryRequest(
        kind=kind,
        system_prompt=system_prompt,
        user_prompt=user_prompt,
        token_count=estimate_token_count(system_prompt) + estimate_token_count(user_prompt),
        line_count=len(lines),
    )


def execute(request: SummaryRequest, llm: CompletionClient) -> SummaryResult:
    """Run the single completion call for a prepared request. Failures become `error`."""

    try:
        summary = llm.complete(
            request.system_prompt,
            request.user_prompt,
            temperature=SUMMARY_TEMPERATURE,
            max_tokens=SUMMARY_MAX_TOKENS,
        )
    except LLMError as exc:
        logger.warning("summary failed kind=%s error=%s", request.kind, exc)
        return SummaryResult(error=str(exc) or "요약 생성 중 오류가 발생했습니다.")

    logger.info(
        "summarized kind=%s lines=%d tokens_est=%d",
        request.kind,
        request.line_count,
        request.token_count,
    )
    return SummaryResult(summary=summary, token_count=request.token_count)


def summarize(
        rows: list[Any],
        kind: SummaryKind,
        llm: CompletionClient,
        *,
        events: CodeTable | None = None,
        tz: tzinfo | None = None,
) -> SummaryResult:
    """Prepare and execute in one step. Zero rows make no LLM call and return no summary."""

    request = prepare(rows, kind, events=events, tz=tz)
    if request is None:
        return SummaryResult()
    return execute(request, llm)
