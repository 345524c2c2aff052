"""Application composition root.

This module wires together configuration, the log API client, the optional LLM client and the
chat pipeline for the bot runtime.
"""

from __future__ import annotations

from dataclasses import dataclass

from logbot.chatbot.codes import load_event_codes
from logbot.chatbot.pipeline import ChatPipeline
from logbot.chatbot.session import SessionStore
from logbot.config.settings import Settings
from logbot.llm.client import ChatCompletionClient, LLMConfig
from logbot.logs_api.client import LogApiClient, LogApiConfig


@dataclass(frozen=True)
class App:
    """Shared application dependencies for handlers."""

    settings: Settings
    pipeline: ChatPipeline
    sessions: SessionStore


def create_app(settings: Settings) -> App:
    """Create the application container.

    Raises:
        RuntimeError: If the event-code file is configured but cannot be loaded.
    """

    log_api = LogApiClient(
        LogApiConfig(base_url=settings.log_api_base_url, timeout_s=settings.log_api_timeout_s)
    )

    llm = None
    if settings.llm_enabled and settings.llm_api_key:
        llm = ChatCompletionClient(
            LLMConfig(
                api_key=settings.llm_api_key,
                model=settings.llm_model,
                api_base=settings.llm_api_base,
                timeout_s=settings.llm_timeout_s,
            )
        )

    pipeline = ChatPipeline(
        log_api=log_api,
        llm=llm,
        tz=settings.tz,
        events=load_event_codes(settings.event_codes_path),
        summary_token_threshold=settings.summary_token_threshold,
    )
    sessions = SessionStore(summary_enabled=settings.summary_enabled and llm is not None)
    return App(settings=settings, pipeline=pipeline, sessions=sessions)
