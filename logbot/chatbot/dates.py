"""Date range validation and timestamp parsing.

Timestamps proposed by the LLM are usually ISO 8601 without an offset (`YYYY-MM-DDTHH:mm:ss`).
Naive values are interpreted in the application timezone; everything is compared as aware
datetimes.
"""

from __future__ import annotations

import math
from datetime import UTC, date, datetime, time, timedelta, tzinfo

import dateparser

from logbot.chatbot.constraints import CONSTRAINTS, VALID, ConstraintTable, ValidationResult
from logbot.chatbot.errors import DateRangeInvalid

_SECONDS_PER_DAY = 24 * 60 * 60

_DATEPARSER_SETTINGS = {
    "DATE_ORDER": "YMD",
    "PREFER_DAY_OF_MONTH": "first",
    "RETURN_AS_TIMEZONE_AWARE": False,
}


def validate_date_range(
        start: datetime,
        end: datetime,
        *,
        now: datetime | None = None,
        table: ConstraintTable = CONSTRAINTS,
) -> ValidationResult:
    """Validate a resolved `[start, end]` range.

    The checks are independent, but only one reason is surfaced. Order:
        1) `end` in the future,
        2) span longer than the maximum (days rounded up),
        3) `start` after `end`.
    """

    current = now or datetime.now(UTC)
    limits = table.time_range

    if not limits.allow_future_dates and end > current:
        return ValidationResult(valid=False, reason=table.messages.future_date_not_allowed)

    days = math.ceil((end - start).total_seconds() / _SECONDS_PER_DAY)
    if days > limits.max_days_range:
        return ValidationResult(valid=False, reason=table.messages.invalid_time_range)

    if start > end:
        return ValidationResult(valid=False, reason=table.messages.inverted_range)

    return VALID


def parse_datetime(value: object, *, tz: tzinfo, now: datetime | None = None) -> datetime:
    """Parse a timestamp string into an aware datetime.

    Non-ISO text goes through `dateparser`; relative phrases ("yesterday", "2일 전") are resolved
    against `now` in `tz`.

    Raises:
        DateRangeInvalid: If the value is not a string or cannot be parsed.
    """

    if not isinstance(value, str) or not value.strip():
        raise DateRangeInvalid(CONSTRAINTS.messages.invalid_parameter)

    text = value.strip()
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        settings = dict(_DATEPARSER_SETTINGS)
        if now is not None:
            settings["RELATIVE_BASE"] = now.astimezone(tz).replace(tzinfo=None)
        parsed = dateparser.parse(text, languages=["ko", "en"], settings=settings)

    if parsed is None:
        raise DateRangeInvalid(CONSTRAINTS.messages.invalid_parameter)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def format_local_iso(value: datetime) -> str:
    """Render a datetime as `YYYY-MM-DDTHH:mm:ss` (seconds precision, no offset)."""

    return value.replace(microsecond=0, tzinfo=None).isoformat()


def day_bounds(day: date, *, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return `[day 00:00:00, day 23:59:59]` in the given timezone."""

    start = datetime.combine(day, time.min, tzinfo=tz)
    end = start + timedelta(days=1) - timedelta(seconds=1)
    return start, end
