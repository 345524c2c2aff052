"""Intent resolution: Korean free text -> validated, sanitized API calls.

Strategy:
    1) Reject forbidden keywords/characters before any network access.
    2) Ask the LLM (or, when disabled, the rules resolver) for a structured intent reply.
    3) Decode the reply strictly; anything else is an unparseable reply (no retry).
    4) Sanitize parameters and re-validate range-mode dates.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import replace
from datetime import UTC, datetime, tzinfo
from typing import Any

from pydantic import ValidationError

from logbot.chatbot.constraints import CONSTRAINTS, ConstraintTable, validate_query
from logbot.chatbot.dates import format_local_iso, parse_datetime, validate_date_range
from logbot.chatbot.errors import (
    ChatbotError,
    DateRangeInvalid,
    FailureKind,
    UpstreamCallFailure,
    UpstreamParseFailure,
)
from logbot.chatbot.prompt import build_system_prompt, build_user_prompt
from logbot.chatbot.rules_resolver import resolve_reply_by_rules
from logbot.chatbot.sanitizer import build_api_call
from logbot.chatbot.schema import ApiCallParams, IntentReply, NlpResult, QueryType
from logbot.llm.client import CompletionClient, LLMError

logger = logging.getLogger(__name__)

INTENT_TEMPERATURE = 0.3
INTENT_MAX_TOKENS = 1000

_JSON_FENCE_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
_ANY_FENCE_RE = re.compile(r"```\s*([\s\S]*?)\s*```")


def extract_json_text(reply: str) -> str:
    """Return the contents of the first ```json fence, else any fence, else the whole reply."""

    for pattern in (_JSON_FENCE_RE, _ANY_FENCE_RE):
        match = pattern.search(reply or "")
        if match:
            return match.group(1).strip()
    return (reply or "").strip()


def decode_intent_reply(reply: str, *, table: ConstraintTable = CONSTRAINTS) -> IntentReply:
    """Decode model text into an `IntentReply`.

    Raises:
        UpstreamParseFailure: If the text is not JSON or does not match the intent shape.
    """

    try:
        obj: Any = json.loads(extract_json_text(reply))
        return IntentReply.model_validate(obj)
    except (json.JSONDecodeError, ValidationError) as exc:
        logger.info("unparseable intent reply error=%s", type(exc).__name__)
        raise UpstreamParseFailure(table.messages.unparseable_reply) from exc


def _validated_range(
        api_call: ApiCallParams,
        *,
        now: datetime,
        tz: tzinfo,
        table: ConstraintTable,
) -> ApiCallParams:
    """Validate range-mode dates and rewrite them as `YYYY-MM-DDTHH:mm:ss` in `tz`."""

    start_raw = api_call.params.get("startDate")
    end_raw = api_call.params.get("endDate")
    if not start_raw or not end_raw:
        raise DateRangeInvalid(table.messages.invalid_parameter)

    start = parse_datetime(start_raw, tz=tz, now=now)
    end = parse_datetime(end_raw, tz=tz, now=now)
    result = validate_date_range(start, end, now=now, table=table)
    if not result.valid:
        raise DateRangeInvalid(result.reason or table.messages.invalid_parameter)

    params = dict(api_call.params)
    params["startDate"] = format_local_iso(start.astimezone(tz))
    params["endDate"] = format_local_iso(end.astimezone(tz))
    return replace(api_call, params=params)


def result_from_reply(
        reply: IntentReply,
        *,
        now: datetime,
        tz: tzinfo,
        table: ConstraintTable = CONSTRAINTS,
) -> NlpResult:
    """Convert a decoded reply into an `NlpResult` (clarification, failure or API calls)."""

    if reply.api_type is None:
        return NlpResult.fail(
            FailureKind.clarification_needed
            if reply.clarification_needed
            else FailureKind.unknown_intent,
            error=table.messages.unknown_query,
            clarification_needed=reply.clarification_needed,
        )

    if reply.clarification_needed:
        return NlpResult.fail(
            FailureKind.clarification_needed,
            clarification_needed=reply.clarification_needed,
        )

    try:
        api_call = build_api_call(reply, table=table)
        if api_call.query_type == QueryType.range:
            api_call = _validated_range(api_call, now=now, tz=tz, table=table)
    except ChatbotError as exc:
        return NlpResult.fail(exc.kind, error=exc.user_message)

    return NlpResult.ok(api_call)


def resolve(
        query: str,
        *,
        llm: CompletionClient | None,
        tz: tzinfo = UTC,
        now: datetime | None = None,
        table: ConstraintTable = CONSTRAINTS,
) -> NlpResult:
    """Resolve a natural-language query into API calls.

    When `llm` is `None` the deterministic rules resolver is used instead of a completion call.
    Transport failures are returned as `upstream_call_failure` results rather than raised.
    """

    validation = validate_query(query, table=table)
    if not validation.valid:
        return NlpResult.fail(FailureKind.policy_violation, error=validation.reason)

    current = (now or datetime.now(UTC)).astimezone(tz)

    try:
        if llm is None:
            reply = resolve_reply_by_rules(query, now=current, table=table)
        else:
            try:
                text = llm.complete(
                    build_system_prompt(table),
                    build_user_prompt(query, now=current),
                    temperature=INTENT_TEMPERATURE,
                    max_tokens=INTENT_MAX_TOKENS,
                )
            except LLMError as exc:
                raise UpstreamCallFailure(f"오류가 발생했습니다: {exc}") from exc
            reply = decode_intent_reply(text, table=table)
    except ChatbotError as exc:
        return NlpResult.fail(exc.kind, error=exc.user_message)

    logger.info(
        "resolved source=%s intent=%s query_type=%s",
        "rules" if llm is None else "llm",
        reply.intent,
        reply.query_type,
    )
    return result_from_reply(reply, now=current, tz=tz, table=table)
