"""Typed models shared by the resolver, sanitizer, dispatcher and chat layer.

`IntentReply` is the contract between the LLM (or the rules resolver) and the sanitizer. Any reply
that does not decode into it is treated as unparseable; unstructured data never flows past the
sanitizer.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from logbot.chatbot.errors import FailureKind


class ApiType(StrEnum):
    """The three fixed intents."""

    launcher_logs = "launcher-logs"
    user_logs = "user-logs"
    error_logs = "error-logs"


class QueryType(StrEnum):
    """Recent mode (trailing window) or range mode (explicit start/end)."""

    recent = "recent"
    range = "range"


class IntentReply(BaseModel):
    """Structured intent as produced by the intent-resolution step."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    intent: Literal["launcher-logs", "user-logs", "error-logs", "unknown"] | None = None
    query_type: QueryType = Field(default=QueryType.recent, alias="queryType")
    params: dict[str, Any] = Field(default_factory=dict)
    clarification_needed: str | None = Field(default=None, alias="clarificationNeeded")

    @field_validator("params", mode="before")
    @classmethod
    def null_params_are_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @field_validator("clarification_needed")
    @classmethod
    def blank_clarification_is_absent(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @property
    def api_type(self) -> ApiType | None:
        if self.intent is None or self.intent == "unknown":
            return None
        return ApiType(self.intent)


@dataclass(frozen=True)
class ApiCallParams:
    """A sanitized, allow-listed REST call. Produced once per query, dispatched once."""

    api_type: ApiType
    query_type: QueryType
    endpoint: str
    params: dict[str, Any]
    description: str


@dataclass(frozen=True)
class NlpResult:
    """Outcome of intent resolution: either API calls to dispatch or a failure to show."""

    success: bool
    api_calls: tuple[ApiCallParams, ...] = ()
    error: str | None = None
    clarification_needed: str | None = None
    failure: FailureKind | None = None

    @classmethod
    def ok(cls, *api_calls: ApiCallParams) -> NlpResult:
        return cls(success=True, api_calls=api_calls)

    @classmethod
    def fail(
            cls,
            failure: FailureKind,
            *,
            error: str | None = None,
            clarification_needed: str | None = None,
    ) -> NlpResult:
        return cls(
            success=False,
            error=error,
            clarification_needed=clarification_needed,
            failure=failure,
        )


Role = Literal["user", "assistant", "system"]


def _new_id() -> str:
    return uuid.uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class Message:
    """A chat transcript entry. Never mutated after creation."""

    role: Role
    content: str
    api_call: ApiCallParams | None = None
    data: Any = None
    error: str | None = None
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class HistoryEntry:
    query: str
    id: str = field(default_factory=_new_id)
    timestamp: datetime = field(default_factory=_utcnow)
