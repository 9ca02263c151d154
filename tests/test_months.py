import os
import sys
from datetime import date
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATA_DIR", str(ROOT / "data"))

from bondstore.core.exceptions import DateRangeError, InvalidMonthFormat
from bondstore.core.months import (
    month_range,
    month_token_for,
    normalize_month_token,
    previous_month_token,
)


def test_month_range_bounds():
    period = month_range("2025-06")
    assert period.start == date(2025, 6, 1)
    assert period.next_start == date(2025, 7, 1)
    assert period.end == date(2025, 6, 30)
    assert period.day_before == date(2025, 5, 31)
    assert period.contains(date(2025, 6, 30))
    assert not period.contains(date(2025, 7, 1))


def test_december_rolls_into_next_year():
    period = month_range("2024-12")
    assert period.next_start == date(2025, 1, 1)
    assert period.end == date(2024, 12, 31)


def test_leap_february():
    assert month_range("2024-02").end == date(2024, 2, 29)
    assert month_range("2025-02").end == date(2025, 2, 28)


def test_token_string_order_matches_calendar_order():
    tokens = ["2026-01", "2025-12", "2025-06", "2025-07"]
    by_string = sorted(tokens)
    by_date = sorted(tokens, key=lambda token: month_range(token).start)
    assert by_string == by_date == ["2025-06", "2025-07", "2025-12", "2026-01"]


@pytest.mark.parametrize("token", ["2025-6", "2025-13", "2025-00", "25-06", "June 2025", "", "0000-01", "２０２５-07", "2025-０7", None, 202506])
def test_invalid_tokens_rejected(token):
    with pytest.raises(InvalidMonthFormat):
        normalize_month_token(token)


def test_whitespace_is_trimmed():
    assert normalize_month_token(" 2025-06 ") == "2025-06"


def test_range_past_calendar_end_is_a_date_range_error():
    with pytest.raises(DateRangeError):
        month_range("9999-12")


def test_day_before_first_month_is_a_date_range_error():
    with pytest.raises(DateRangeError):
        month_range("0001-01").day_before


def test_previous_month_token():
    assert previous_month_token("2025-01") == "2024-12"
    assert previous_month_token("2025-07") == "2025-06"
    assert month_token_for(date(2025, 3, 9)) == "2025-03"
