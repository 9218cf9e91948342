"""
UMC Media Hub - Shared Helpers
===============================
Pure utility functions with NO database or module dependencies.
"""

from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from common.exceptions import ValidationError


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_datetime(value: Union[date, datetime, str, None], field: str = "tanggal") -> datetime:
    """Normalize a date / datetime / ISO string into an aware UTC datetime."""
    if value is None or value == "":
        raise ValidationError(f"{field} wajib diisi")
    if isinstance(value, str):
        text = value.strip()
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            value = datetime.fromisoformat(text)
        except ValueError:
            raise ValidationError(f"{field} tidak valid: {value}")
    if isinstance(value, datetime):
        return as_utc(value)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)


def parse_amount(value) -> Decimal:
    """
    Parse a monetary amount (decimal string, int or Decimal) into Decimal.
    Amounts travel as decimal strings; comparing them as strings is wrong.
    """
    if isinstance(value, bool) or value is None:
        raise ValidationError("Jumlah harus berupa angka")
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Jumlah harus berupa angka: {value!r}")
    if not amount.is_finite():
        raise ValidationError(f"Jumlah harus berupa angka: {value!r}")
    return amount


def format_rupiah(value) -> str:
    """Format an amount as Rupiah with dot thousands separators."""
    if value is None:
        return "Rp 0"
    try:
        v = int(parse_amount(value))
        return "Rp " + "{:,}".format(v).replace(",", ".")
    except ValidationError:
        return str(value)


def money(value) -> str:
    """Serialize an amount as a two-decimal string for API responses."""
    return f"{parse_amount(value):.2f}"


def iso(value: Optional[datetime]) -> Optional[str]:
    return as_utc(value).isoformat() if value is not None else None
