"""Tests for per-chat session state."""

from __future__ import annotations

from logbot.chatbot.session import HISTORY_LIMIT, ChatSession, SessionStore, push_history


def test_same_query_twice_keeps_one_entry() -> None:
    history = push_history((), "최근 에러 로그")
    history = push_history(history, "최근 에러 로그")

    assert [e.query for e in history] == ["최근 에러 로그"]


def test_repeated_query_keeps_original_position() -> None:
    history = ()
    for query in ("a", "b", "c"):
        history = push_history(history, query)
    first_a = history[-1]

    again = push_history(history, "a")

    assert again == history
    assert again[-1] is first_a


def test_resubmitted_oldest_query_is_evicted_first() -> None:
    history = ()
    for i in range(HISTORY_LIMIT):
        history = push_history(history, f"q{i}")

    history = push_history(history, "q0")
    history = push_history(history, f"q{HISTORY_LIMIT}")

    assert len(history) == HISTORY_LIMIT
    assert history[0].query == f"q{HISTORY_LIMIT}"
    assert history[-1].query == "q1"
    assert "q0" not in [e.query for e in history]


def test_history_is_capped() -> None:
    history = ()
    for i in range(21):
        history = push_history(history, f"질문 {i}")

    assert len(history) == HISTORY_LIMIT == 20
    assert history[0].query == "질문 20"
    assert history[-1].query == "질문 1"


def test_newer_turn_supersedes_older_one() -> None:
    session = ChatSession()

    first = session.begin_turn("최근 에러 로그")
    second = session.begin_turn("최근 런처 로그")

    assert not session.is_current(first)
    assert session.is_current(second)


def test_begin_turn_records_user_message_and_drops_pending() -> None:
    session = ChatSession()
    session.pending_summary = object()  # type: ignore[assignment]
    before = session.messages

    session.begin_turn("최근 에러 로그")

    assert session.pending_summary is None
    assert session.messages[:-1] == before
    assert session.messages[-1].role == "user"
    assert session.messages[0].role == "system"


def test_store_reset_replaces_session() -> None:
    store = SessionStore(summary_enabled=False)
    original = store.get(1)
    original.begin_turn("질문")

    fresh = store.reset(1)

    assert fresh is not original
    assert store.get(1) is fresh
    assert fresh.history == ()
    assert fresh.summary_enabled is False
    assert len(store) == 1
