"""Month token helpers.

Ledger periods are identified by ``YYYY-MM`` tokens. The format is fixed width
and zero padded, so plain string comparison orders tokens chronologically; the
calendar conversions below are used whenever a date range is needed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, timedelta

from .exceptions import DateRangeError, InvalidMonthFormat

_TOKEN_RE = re.compile(r"^([0-9]{4})-(0[1-9]|1[0-2])$")


@dataclass(frozen=True)
class MonthRange:
    token: str
    start: date
    next_start: date

    @property
    def end(self) -> date:
        """Last day of the month (inclusive)."""

        return self.next_start - timedelta(days=1)

    @property
    def day_before(self) -> date:
        try:
            return self.start - timedelta(days=1)
        except OverflowError as exc:
            raise DateRangeError(self.token) from exc

    def contains(self, value: date) -> bool:
        return self.start <= value < self.next_start


def normalize_month_token(token: object) -> str:
    """Validate ``token`` and return it stripped of surrounding whitespace."""

    if not isinstance(token, str):
        raise InvalidMonthFormat(token)
    cleaned = token.strip()
    match = _TOKEN_RE.match(cleaned)
    if not match or int(match.group(1)) < 1:
        raise InvalidMonthFormat(token)
    return cleaned


def month_range(token: str) -> MonthRange:
    cleaned = normalize_month_token(token)
    year, month = (int(part) for part in cleaned.split("-"))
    start = date(year, month, 1)
    try:
        next_start = date(year + 1, 1, 1) if month == 12 else date(year, month + 1, 1)
    except ValueError as exc:
        raise DateRangeError(cleaned) from exc
    return MonthRange(token=cleaned, start=start, next_start=next_start)


def month_token_for(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def previous_month_token(token: str) -> str:
    period = month_range(token)
    return month_token_for(period.day_before)


__all__ = [
    "MonthRange",
    "month_range",
    "month_token_for",
    "normalize_month_token",
    "previous_month_token",
]
