"""One chat turn: validate -> resolve -> dispatch -> optional summary.

`ChatPipeline` is the error boundary of the chatbot core. Every failure is turned into exactly one
assistant-role `Message` carrying the user-facing text; nothing raised below reaches the chat
front-end.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, tzinfo
from time import monotonic

from logbot.chatbot.codes import CodeTable
from logbot.chatbot.constraints import CONSTRAINTS, ConstraintTable
from logbot.chatbot.dispatcher import DispatchResult, dispatch
from logbot.chatbot.errors import ChatbotError
from logbot.chatbot.resolver import resolve
from logbot.chatbot.schema import ApiCallParams, ApiType, Message, NlpResult
from logbot.chatbot.summarizer import (
    SummaryKind,
    SummaryRequest,
    SummaryResult,
    execute,
    prepare,
)
from logbot.llm.client import CompletionClient
from logbot.logs_api.client import LogApiClient

logger = logging.getLogger(__name__)

FALLBACK_FAILURE_TEXT = "처리할 수 없는 질문입니다."
NO_ROWS_TEXT = "조회된 로그가 없습니다."


@dataclass(frozen=True)
class PendingRequest:
    """A prepared summary waiting for the user's `/confirm`."""

    request: SummaryRequest
    description: str


@dataclass(frozen=True)
class TurnResult:
    """Assistant messages produced by one turn, plus a summary awaiting confirmation."""

    messages: tuple[Message, ...]
    pending: PendingRequest | None = None


def summary_kind(api_type: ApiType) -> SummaryKind:
    return SummaryKind.error if api_type == ApiType.error_logs else SummaryKind.trace


def failure_text(result: NlpResult) -> str:
    return result.clarification_needed or result.error or FALLBACK_FAILURE_TEXT


def format_summary(result: SummaryResult) -> str:
    if result.error:
        return f"⚠️ 요약 생성 실패: {result.error}"
    if result.summary:
        return f"📝 **AI 요약**\n{result.summary}"
    return ""


def format_confirmation(request: SummaryRequest, threshold: int) -> str:
    return (
        f"💰 예상 토큰 수: {request.token_count:,}개 (기준: {threshold:,}개)\n"
        "요약을 생성하려면 /confirm 을 입력하세요."
    )


def format_result(api_call: ApiCallParams, result: DispatchResult, tail: str) -> str:
    """Render the result message shown after a successful call."""

    content = f"✅ **{api_call.description}** 완료\n\n"
    content += f"📊 조회된 로그: {len(result.rows)}개"
    if result.total is not None:
        content += f" / 전체: {result.total}개"
    content += "\n\n"

    if not result.rows:
        content += NO_ROWS_TEXT
    else:
        content += tail
    return content.rstrip()


class ChatPipeline:
    """Runs chat turns against the log API and (optionally) the LLM."""

    def __init__(
            self,
            *,
            log_api: LogApiClient,
            llm: CompletionClient | None = None,
            tz: tzinfo = UTC,
            events: CodeTable | None = None,
            summary_token_threshold: int = 10_000,
            table: ConstraintTable = CONSTRAINTS,
    ) -> None:
        self.log_api = log_api
        self.llm = llm
        self.tz = tz
        self.events = events or CodeTable()
        self.summary_token_threshold = summary_token_threshold
        self.table = table

    def run(
            self,
            query: str,
            *,
            summary_enabled: bool = True,
            now: datetime | None = None,
    ) -> TurnResult:
        """Execute one turn. Never raises `ChatbotError`."""

        started = monotonic()
        nlp = resolve(query, llm=self.llm, tz=self.tz, now=now, table=self.table)
        if not nlp.success:
            logger.info(
                "unresolved failure=%s latency_ms=%d",
                nlp.failure,
                int((monotonic() - started) * 1000),
            )
            text = failure_text(nlp)
            return TurnResult(messages=(Message(role="assistant", content=text, error=nlp.error),))

        messages: list[Message] = []
        pending: PendingRequest | None = None
        for api_call in nlp.api_calls:
            try:
                result = dispatch(api_call, self.log_api)
            except ChatbotError as exc:
                logger.info("dispatch failed kind=%s endpoint=%s", exc.kind, api_call.endpoint)
                messages.append(
                    Message(
                        role="assistant",
                        content=exc.user_message,
                        api_call=api_call,
                        error=exc.user_message,
                    )
                )
                continue

            tail, call_pending = self._summary_tail(api_call, result, summary_enabled)
            pending = call_pending or pending
            messages.append(
                Message(
                    role="assistant",
                    content=format_result(api_call, result, tail),
                    api_call=api_call,
                    data=result.rows,
                )
            )

            logger.info(
                "handled source=%s api_type=%s query_type=%s rows=%d latency_ms=%d",
                "rules" if self.llm is None else "llm",
                api_call.api_type,
                api_call.query_type,
                len(result.rows),
                int((monotonic() - started) * 1000),
            )

        return TurnResult(messages=tuple(messages), pending=pending)

    def _summary_tail(
            self,
            api_call: ApiCallParams,
            result: DispatchResult,
            summary_enabled: bool,
    ) -> tuple[str, PendingRequest | None]:
        if not summary_enabled or self.llm is None or not result.rows:
            return "", None

        request = prepare(
            result.rows,
            summary_kind(api_call.api_type),
            events=self.events,
            tz=self.tz,
        )
        if request is None:
            return "", None

        if request.token_count > self.summary_token_threshold:
            logger.info(
                "summary deferred tokens_est=%d threshold=%d",
                request.token_count,
                self.summary_token_threshold,
            )
            pending = PendingRequest(request=request, description=api_call.description)
            return format_confirmation(request, self.summary_token_threshold), pending

        return format_summary(execute(request, self.llm)), None

    def confirm_summary(self, pending: PendingRequest) -> Message:
        """Run a summary the user confirmed despite its token estimate."""

        if self.llm is None:
            return Message(role="assistant", content=FALLBACK_FAILURE_TEXT, error="llm disabled")

        result = execute(pending.request, self.llm)
        content = f"✅ **{pending.description}** 요약\n\n{format_summary(result)}".rstrip()
        return Message(role="assistant", content=content, error=result.error)
