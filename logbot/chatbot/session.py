"""Per-chat session state: transcript, query history, summary toggle and turn cancellation.

State values are immutable tuples replaced wholesale on every update, so a reader holding an old
snapshot never sees a partial change. Everything lives in process memory and is lost on restart.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from logbot.chatbot.pipeline import PendingRequest
from logbot.chatbot.schema import HistoryEntry, Message

HISTORY_LIMIT = 20

WELCOME_TEXT = (
    "안녕하세요! 로그 분석 챗봇입니다. 자연어로 로그 데이터를 조회할 수 있습니다.\n\n"
    "아래 예시 질문을 참고하거나 직접 질문을 입력해주세요."
)

EXAMPLE_QUERIES: tuple[str, ...] = (
    "최근 1시간 동안의 에러 로그",
    "최근 10분 런처 로그",
    "최근 1시간 동안의 런처 로그 중 이벤트 로그만 요약",
    "최근 30분 에러 로그",
    "개발 환경 런처 로그",
)


def push_history(
        history: tuple[HistoryEntry, ...],
        query: str,
        *,
        limit: int = HISTORY_LIMIT,
) -> tuple[HistoryEntry, ...]:
    """Return a new history with `query` first.

    A query whose exact text is already recorded leaves the history unchanged; otherwise the
    oldest entries beyond `limit` are dropped.
    """

    if any(e.query == query for e in history):
        return history
    return ((HistoryEntry(query=query),) + history)[:limit]


@dataclass
class ChatSession:
    """State for a single chat."""

    summary_enabled: bool = True
    messages: tuple[Message, ...] = field(
        default_factory=lambda: (Message(role="system", content=WELCOME_TEXT),)
    )
    history: tuple[HistoryEntry, ...] = ()
    pending_summary: PendingRequest | None = None
    _generation: int = 0

    def begin_turn(self, query: str) -> int:
        """Start a new turn and return its cancellation token.

        Any in-flight turn becomes stale and any pending summary is dropped.
        """

        self._generation += 1
        self.pending_summary = None
        self.history = push_history(self.history, query)
        self.messages = self.messages + (Message(role="user", content=query),)
        return self._generation

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def append(self, messages: Iterable[Message]) -> None:
        self.messages = self.messages + tuple(messages)

    def take_pending_summary(self) -> PendingRequest | None:
        pending, self.pending_summary = self.pending_summary, None
        return pending


class SessionStore:
    """In-memory mapping of chat id to session."""

    def __init__(self, *, summary_enabled: bool = True) -> None:
        self._summary_enabled = summary_enabled
        self._sessions: dict[int, ChatSession] = {}

    def get(self, chat_id: int) -> ChatSession:
        session = self._sessions.get(chat_id)
        if session is None:
            session = self.reset(chat_id)
        return session

    def reset(self, chat_id: int) -> ChatSession:
        """Replace the chat's session with a fresh one."""

        session = ChatSession(summary_enabled=self._summary_enabled)
        self._sessions[chat_id] = session
        return session

    def __len__(self) -> int:
        return len(self._sessions)
