"""Bot router composition."""

from __future__ import annotations

from aiogram import Router
from aiogram.filters import Command, CommandStart

from logbot.bot.handlers import (
    handle_confirm,
    handle_history,
    handle_message,
    handle_reset,
    handle_start,
    handle_summary_toggle,
)

router = Router(name="root")
router.message.register(handle_start, CommandStart())
router.message.register(handle_reset, Command("reset"))
router.message.register(handle_history, Command("history"))
router.message.register(handle_summary_toggle, Command("summary"))
router.message.register(handle_confirm, Command("confirm"))
router.message.register(handle_message)
