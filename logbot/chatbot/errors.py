"""Chatbot failure taxonomy.

Every failure carries a user-facing Korean message in `user_message`. The turn pipeline catches
these at the turn boundary and turns them into a single assistant reply.
"""

from __future__ import annotations

from enum import StrEnum


class FailureKind(StrEnum):
    policy_violation = "policy_violation"
    clarification_needed = "clarification_needed"
    upstream_parse_failure = "upstream_parse_failure"
    date_range_invalid = "date_range_invalid"
    unknown_intent = "unknown_intent"
    upstream_call_failure = "upstream_call_failure"


class ChatbotError(RuntimeError):
    """Base class for failures that end a chatbot turn."""

    kind: FailureKind

    def __init__(self, user_message: str) -> None:
        super().__init__(user_message)
        self.user_message = user_message


class PolicyViolation(ChatbotError):
    """Forbidden keyword or character sequence in the raw query."""

    kind = FailureKind.policy_violation


class UpstreamParseFailure(ChatbotError):
    """The intent-resolution reply was not the expected JSON."""

    kind = FailureKind.upstream_parse_failure


class DateRangeInvalid(ChatbotError):
    """Future dates, a span over the maximum, an inverted range or an unparseable timestamp."""

    kind = FailureKind.date_range_invalid


class UnknownIntent(ChatbotError):
    """An API type or endpoint outside the allow-list reached the dispatcher.

    Only the sanitizer produces `ApiCallParams`, so this signals a defect rather than bad input.
    """

    kind = FailureKind.unknown_intent


class UpstreamCallFailure(ChatbotError):
    """The REST or LLM call itself failed."""

    kind = FailureKind.upstream_call_failure
