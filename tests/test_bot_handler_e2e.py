"""Tests for the aiogram handlers with fake messages and a fake pipeline."""

from __future__ import annotations

from datetime import UTC
from types import SimpleNamespace
from typing import Any

import pytest

from logbot.bot.handlers import (
    GENERIC_ERROR_TEXT,
    TELEGRAM_CHUNK_CHARS,
    handle_confirm,
    handle_history,
    handle_message,
    handle_reset,
    handle_start,
    handle_summary_toggle,
    split_text,
)
from logbot.chatbot.pipeline import PendingRequest, TurnResult
from logbot.chatbot.schema import Message
from logbot.chatbot.session import SessionStore


class _FakeMessage:
    def __init__(self, text: str | None, chat_id: int = 1) -> None:
        self.text = text
        self.caption = None
        self.chat = SimpleNamespace(id=chat_id)
        self.answers: list[str] = []

    async def answer(self, text: str) -> None:
        """Record the outgoing bot reply (aiogram's `Message.answer` substitute)."""
        self.answers.append(text)


class _FakePipeline:
    def __init__(self, result: TurnResult | Exception | None = None, llm: Any = object()) -> None:
        self.result = result or TurnResult(messages=(Message(role="assistant", content="결과"),))
        self.llm = llm
        self.tz = UTC
        self.queries: list[tuple[str, bool]] = []
        self.confirmed: list[PendingRequest] = []

    def run(self, query: str, *, summary_enabled: bool = True) -> TurnResult:
        self.queries.append((query, summary_enabled))
        if isinstance(self.result, Exception):
            raise self.result
        return self.result

    def confirm_summary(self, pending: PendingRequest) -> Message:
        self.confirmed.append(pending)
        return Message(role="assistant", content="요약 완료")


def _make_app(pipeline: _FakePipeline | None = None) -> Any:
    return SimpleNamespace(pipeline=pipeline or _FakePipeline(), sessions=SessionStore())


@pytest.mark.asyncio
async def test_start_replies_with_examples() -> None:
    app = _make_app()
    message = _FakeMessage("/start")

    await handle_start(message, app)  # type: ignore[arg-type]

    assert len(message.answers) == 1
    assert "최근 1시간 동안의 에러 로그" in message.answers[0]


@pytest.mark.asyncio
async def test_question_is_answered_and_recorded() -> None:
    app = _make_app()
    message = _FakeMessage("최근 1시간 동안의 에러 로그")

    await handle_message(message, app)  # type: ignore[arg-type]

    assert message.answers == ["결과"]
    session = app.sessions.get(1)
    assert [e.query for e in session.history] == ["최근 1시간 동안의 에러 로그"]
    assert [m.role for m in session.messages] == ["system", "user", "assistant"]


@pytest.mark.asyncio
async def test_empty_text_and_unknown_command() -> None:
    app = _make_app()
    empty = _FakeMessage(None)
    command = _FakeMessage("/unknown")

    await handle_message(empty, app)  # type: ignore[arg-type]
    await handle_message(command, app)  # type: ignore[arg-type]

    assert empty.answers == ["질문을 입력해주세요."]
    assert "알 수 없는 명령" in command.answers[0]
    assert app.pipeline.queries == []


@pytest.mark.asyncio
async def test_internal_error_gets_generic_reply() -> None:
    app = _make_app(_FakePipeline(result=RuntimeError("boom")))
    message = _FakeMessage("최근 에러 로그")

    await handle_message(message, app)  # type: ignore[arg-type]

    assert message.answers == [GENERIC_ERROR_TEXT]


@pytest.mark.asyncio
async def test_stale_turn_is_discarded(monkeypatch: pytest.MonkeyPatch) -> None:
    app = _make_app()
    message = _FakeMessage("최근 에러 로그")

    async def _superseding_to_thread(func: Any, *args: Any, **kwargs: Any) -> Any:
        # A newer message arrives while the first one is still running.
        app.sessions.get(1).begin_turn("더 새로운 질문")
        return func(*args, **kwargs)

    monkeypatch.setattr("logbot.bot.handlers.asyncio.to_thread", _superseding_to_thread)

    await handle_message(message, app)  # type: ignore[arg-type]

    assert message.answers == []


@pytest.mark.asyncio
async def test_history_and_reset() -> None:
    app = _make_app()
    await handle_message(_FakeMessage("질문 A"), app)  # type: ignore[arg-type]
    await handle_message(_FakeMessage("질문 B"), app)  # type: ignore[arg-type]

    history = _FakeMessage("/history")
    await handle_history(history, app)  # type: ignore[arg-type]

    assert history.answers[0].index("질문 B") < history.answers[0].index("질문 A")

    await handle_reset(_FakeMessage("/reset"), app)  # type: ignore[arg-type]
    after = _FakeMessage("/history")
    await handle_history(after, app)  # type: ignore[arg-type]

    assert after.answers == ["질문 기록이 없습니다."]


@pytest.mark.asyncio
async def test_summary_toggle() -> None:
    app = _make_app()
    message = _FakeMessage("/summary")

    await handle_summary_toggle(message, app)  # type: ignore[arg-type]
    await handle_message(_FakeMessage("질문"), app)  # type: ignore[arg-type]

    assert message.answers == ["AI 요약: 꺼짐"]
    assert app.pipeline.queries == [("질문", False)]


@pytest.mark.asyncio
async def test_summary_toggle_without_llm() -> None:
    app = _make_app(_FakePipeline(llm=None))
    message = _FakeMessage("/summary")

    await handle_summary_toggle(message, app)  # type: ignore[arg-type]

    assert "사용할 수 없습니다" in message.answers[0]


@pytest.mark.asyncio
async def test_confirm_runs_pending_summary_once() -> None:
    pending = PendingRequest(request=object(), description="에러 로그 최근 조회")  # type: ignore[arg-type]
    turn = TurnResult(
        messages=(Message(role="assistant", content="/confirm 을 입력하세요."),),
        pending=pending,
    )
    app = _make_app(_FakePipeline(result=turn))

    await handle_message(_FakeMessage("에러 로그"), app)  # type: ignore[arg-type]
    first = _FakeMessage("/confirm")
    second = _FakeMessage("/confirm")
    await handle_confirm(first, app)  # type: ignore[arg-type]
    await handle_confirm(second, app)  # type: ignore[arg-type]

    assert first.answers == ["요약 완료"]
    assert second.answers == ["확인할 요약 요청이 없습니다."]
    assert app.pipeline.confirmed == [pending]


def test_split_text_respects_limit() -> None:
    text = "\n".join("가" * 100 for _ in range(100))

    chunks = split_text(text)

    assert len(chunks) > 1
    assert all(len(c) <= TELEGRAM_CHUNK_CHARS for c in chunks)
    assert "".join(chunks).replace("\n", "") == text.replace("\n", "")


def test_split_text_never_yields_blank_chunks() -> None:
    text = "가" * TELEGRAM_CHUNK_CHARS + "\n"

    chunks = split_text(text)

    assert chunks == ["가" * TELEGRAM_CHUNK_CHARS]


def test_split_text_short_reply_is_single_chunk() -> None:
    assert split_text("결과") == ["결과"]
