from __future__ import annotations

import logging
import re
from datetime import datetime, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from .schemas import TransactionStatus

logger = logging.getLogger("reconciler.parsers")

_CURRENCY_TOKENS = re.compile(r"birr|etb", flags=re.IGNORECASE)
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")

# Telebirr receipts: 15-01-2026 16:24:00
_DAY_FIRST = re.compile(r"(\d{2})-(\d{2})-(\d{4})\s+(\d{2}):(\d{2}):(\d{2})")

# Layouts seen on bank receipt pages, tried after ISO-8601.
_FALLBACK_FORMATS = (
    "%m/%d/%Y, %I:%M:%S %p",
    "%m/%d/%Y %I:%M:%S %p",
    "%d-%b-%Y",
    "%Y-%m-%d %H:%M:%S",
    "%d/%m/%Y %H:%M:%S",
    "%d-%m-%Y",
)

_SUCCESS_WORDS = ("success", "completed", "paid")
_FAILED_WORDS = ("fail", "reject", "cancel")


def parse_amount(value: Any) -> Decimal:
    """Turn a receipt amount ("1,250.50 Birr", "ETB 600", 480) into a Decimal.

    Anything that cannot be read as a non-negative finite number becomes 0;
    the amount check downstream reports the shortfall.
    """
    if value is None or isinstance(value, bool):
        return Decimal(0)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, (int, float)):
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            return Decimal(0)
    elif isinstance(value, str):
        cleaned = _CURRENCY_TOKENS.sub("", value.replace(",", "")).strip()
        m = _LEADING_NUMBER.match(cleaned)
        if not m:
            return Decimal(0)
        try:
            amount = Decimal(m.group(0))
        except InvalidOperation:
            return Decimal(0)
    else:
        return Decimal(0)

    if not amount.is_finite() or amount < 0:
        return Decimal(0)
    return amount


def _aware(value: datetime, assume_tz: tzinfo) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=assume_tz)
    return value


def _parse_date_text(text: str) -> Optional[datetime]:
    m = _DAY_FIRST.search(text)
    if m:
        day, month, year, hour, minute, second = (int(g) for g in m.groups())
        try:
            return datetime(year, month, day, hour, minute, second)
        except ValueError:
            pass

    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(iso)
    except ValueError:
        pass

    for fmt in _FALLBACK_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def parse_date(
    value: Any,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
) -> datetime:
    """Read a receipt timestamp, falling back to the current time.

    Naive timestamps are taken to be in ``assume_tz``. The fallback keeps the
    pipeline going but means an unreadable date will land inside any time
    window, so it is logged.
    """
    if isinstance(value, datetime):
        return _aware(value, assume_tz)

    text = value.strip() if isinstance(value, str) else ""
    parsed = _parse_date_text(text) if text else None
    if parsed is not None:
        return _aware(parsed, assume_tz)

    if value not in (None, ""):
        logger.warning("unparsable_date value=%r falling_back_to=now", value)
    return now or datetime.now(timezone.utc)


def parse_status(text: Optional[str]) -> TransactionStatus:
    if not text:
        return TransactionStatus.pending
    lower = text.lower()
    if any(w in lower for w in _SUCCESS_WORDS):
        return TransactionStatus.success
    if any(w in lower for w in _FAILED_WORDS):
        return TransactionStatus.failed
    return TransactionStatus.pending
