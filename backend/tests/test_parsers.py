from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from reconciler.parsers import parse_amount, parse_date, parse_status
from reconciler.schemas import TransactionStatus

EAT = timezone(timedelta(hours=3))


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("600.00 Birr", Decimal("600.00")),
        ("1,250.50 ETB", Decimal("1250.50")),
        ("ETB 75", Decimal("75")),
        ("  42.5 birr ", Decimal("42.5")),
        (480, Decimal("480")),
        (99.5, Decimal("99.5")),
        (Decimal("10.01"), Decimal("10.01")),
    ],
)
def test_parse_amount_reads_receipt_amounts(raw, expected) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", [None, "", "Birr", "not an amount", "-20", float("nan"), True, object()])
def test_parse_amount_falls_back_to_zero(raw) -> None:
    assert parse_amount(raw) == Decimal(0)


def test_parse_date_day_first_receipt_format() -> None:
    out = parse_date("15-01-2026 16:24:00", assume_tz=EAT)
    assert out == datetime(2026, 1, 15, 16, 24, 0, tzinfo=EAT)


def test_parse_date_iso_with_offset_keeps_offset() -> None:
    out = parse_date("2026-01-15T13:24:00Z")
    assert out == datetime(2026, 1, 15, 13, 24, 0, tzinfo=timezone.utc)


def test_parse_date_cbe_invoice_format() -> None:
    out = parse_date("1/15/2026, 4:24:00 PM")
    assert out == datetime(2026, 1, 15, 16, 24, 0, tzinfo=timezone.utc)


def test_parse_date_passes_typed_timestamp_through() -> None:
    ts = datetime(2026, 1, 15, 10, 0, tzinfo=EAT)
    assert parse_date(ts) is ts


def test_parse_date_naive_timestamp_gets_assumed_zone() -> None:
    out = parse_date(datetime(2026, 1, 15, 10, 0), assume_tz=EAT)
    assert out.tzinfo is EAT


def test_parse_date_falls_back_to_now_and_warns(caplog) -> None:
    now = datetime(2026, 1, 15, 13, 24, tzinfo=timezone.utc)
    with caplog.at_level(logging.WARNING, logger="reconciler.parsers"):
        out = parse_date("sometime last week", now=now)
    assert out == now
    assert "unparsable_date" in caplog.text


def test_parse_date_missing_value_is_now() -> None:
    now = datetime(2026, 1, 15, 13, 24, tzinfo=timezone.utc)
    assert parse_date(None, now=now) == now
    assert parse_date("", now=now) == now


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Completed", TransactionStatus.success),
        ("SUCCESSFUL", TransactionStatus.success),
        ("Paid", TransactionStatus.success),
        ("Failed", TransactionStatus.failed),
        ("Rejected by bank", TransactionStatus.failed),
        ("Cancelled", TransactionStatus.failed),
        ("Processing", TransactionStatus.pending),
        ("", TransactionStatus.pending),
        (None, TransactionStatus.pending),
    ],
)
def test_parse_status_keywords(text, expected) -> None:
    assert parse_status(text) is expected


def test_parse_status_first_category_wins() -> None:
    # "success" is checked before "fail"
    assert parse_status("success after failed attempt") is TransactionStatus.success
