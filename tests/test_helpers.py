from datetime import date, datetime, timezone

import pytest

from common.exceptions import ValidationError
from common.helpers import to_datetime


def test_to_datetime_accepts_zulu_suffix():
    assert to_datetime("2025-01-03T10:00:00Z") == datetime(2025, 1, 3, 10, tzinfo=timezone.utc)
    assert to_datetime("2025-01-03T10:00:00+07:00") == datetime(2025, 1, 3, 3, tzinfo=timezone.utc)


def test_to_datetime_dates_start_at_midnight_utc():
    assert to_datetime("2025-01-03") == datetime(2025, 1, 3, tzinfo=timezone.utc)
    assert to_datetime(date(2025, 1, 3)) == datetime(2025, 1, 3, tzinfo=timezone.utc)


@pytest.mark.parametrize("value", [None, "", "besok", "Z"])
def test_to_datetime_rejects_garbage(value):
    with pytest.raises(ValidationError):
        to_datetime(value)
