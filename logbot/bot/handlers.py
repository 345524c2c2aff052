"""aiogram message handlers.

Every text message is one chat turn. Blocking HTTP work runs in a worker thread; a newer message
from the same chat supersedes an in-flight turn, whose result is then discarded. Internal errors
are logged and answered with a generic message.
"""

from __future__ import annotations

import asyncio
import logging

from aiogram.types import Message

from logbot.app import App
from logbot.chatbot.session import EXAMPLE_QUERIES, WELCOME_TEXT, ChatSession

logger = logging.getLogger(__name__)

TELEGRAM_CHUNK_CHARS = 4000

GENERIC_ERROR_TEXT = "오류가 발생했습니다. 잠시 후 다시 시도해주세요."
EMPTY_QUERY_TEXT = "질문을 입력해주세요."
UNKNOWN_COMMAND_TEXT = "알 수 없는 명령입니다. /start 로 사용법을 확인하세요."


def split_text(text: str, limit: int = TELEGRAM_CHUNK_CHARS) -> list[str]:
    """Split a reply into Telegram-sized chunks, preferring line boundaries."""

    chunks: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            chunks.append(current)
            current = ""
        current += line
    chunks.append(current)
    # Telegram rejects whitespace-only messages.
    return [c.rstrip("\n") for c in chunks if c.strip()]


async def _answer(message: Message, text: str) -> None:
    for chunk in split_text(text):
        await message.answer(chunk)


def _is_live(app: App, chat_id: int, session: ChatSession, token: int) -> bool:
    # /reset replaces the session object, which also invalidates in-flight turns.
    return app.sessions.get(chat_id) is session and session.is_current(token)


def _welcome_text() -> str:
    examples = "\n".join(f"• {q}" for q in EXAMPLE_QUERIES)
    return (
        f"{WELCOME_TEXT}\n\n💡 예시 질문\n{examples}\n\n"
        "명령: /history 최근 질문, /summary 요약 켜기/끄기, /confirm 요약 실행, /reset 초기화"
    )


async def handle_start(message: Message, app: App) -> None:
    app.sessions.reset(message.chat.id)
    await _answer(message, _welcome_text())


async def handle_reset(message: Message, app: App) -> None:
    app.sessions.reset(message.chat.id)
    await _answer(message, "대화가 초기화되었습니다.")


async def handle_history(message: Message, app: App) -> None:
    session = app.sessions.get(message.chat.id)
    if not session.history:
        await _answer(message, "질문 기록이 없습니다.")
        return

    lines = [
        f"{i}. {entry.query} ({entry.timestamp.astimezone(app.pipeline.tz):%H:%M})"
        for i, entry in enumerate(session.history, start=1)
    ]
    await _answer(message, "🕘 최근 질문\n" + "\n".join(lines))


async def handle_summary_toggle(message: Message, app: App) -> None:
    if app.pipeline.llm is None:
        await _answer(message, "AI 요약을 사용할 수 없습니다. (LLM 비활성화)")
        return

    session = app.sessions.get(message.chat.id)
    session.summary_enabled = not session.summary_enabled
    state = "켜짐" if session.summary_enabled else "꺼짐"
    await _answer(message, f"AI 요약: {state}")


async def handle_confirm(message: Message, app: App) -> None:
    """Run the summary that was deferred because of its token estimate."""

    chat_id = message.chat.id
    session = app.sessions.get(chat_id)
    pending = session.take_pending_summary()
    if pending is None:
        await _answer(message, "확인할 요약 요청이 없습니다.")
        return

    token = session.generation
    # noinspection PyBroadException
    try:
        reply = await asyncio.to_thread(app.pipeline.confirm_summary, pending)
    except Exception:
        logger.exception("summary confirmation failed")
        await _answer(message, GENERIC_ERROR_TEXT)
        return

    if not _is_live(app, chat_id, session, token):
        logger.info("discarding stale summary chat_id=%s", chat_id)
        return

    session.append((reply,))
    await _answer(message, reply.content)


async def handle_message(message: Message, app: App) -> None:
    """Handle a free-text question and reply with the turn's assistant messages."""

    raw_text = (message.text or message.caption or "").strip()
    if not raw_text:
        await _answer(message, EMPTY_QUERY_TEXT)
        return
    if raw_text.startswith("/"):
        await _answer(message, UNKNOWN_COMMAND_TEXT)
        return

    chat_id = message.chat.id
    session = app.sessions.get(chat_id)
    token = session.begin_turn(raw_text)

    # noinspection PyBroadException
    try:
        result = await asyncio.to_thread(
            app.pipeline.run,
            raw_text,
            summary_enabled=session.summary_enabled,
        )
    except Exception:
        # Handler boundary: nothing internal leaks to the user.
        logger.exception("handler failed")
        if _is_live(app, chat_id, session, token):
            await _answer(message, GENERIC_ERROR_TEXT)
        return

    if not _is_live(app, chat_id, session, token):
        logger.info("discarding stale turn chat_id=%s token=%d", chat_id, token)
        return

    session.append(result.messages)
    session.pending_summary = result.pending
    for reply in result.messages:
        await _answer(message, reply.content)
