"""Reconciliation of a normalized transaction against an expected payment.

Four checks always run, in this order, and each failure adds one reason:

1. amount: at least ``expected - tolerance`` (overpayment is fine)
2. receiver account: trailing digits match the profile, masks allowed
3. receiver name: case/whitespace-insensitive, substring either way
4. date: within ``time_window_hours`` of now

Account and name checks are ``not_applicable`` when the method's profile
does not name an account or a name. Everything here is pure apart from the
outcome log line, so one call never affects another.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional, Union

from .profiles import ReceiverProfileStore, ValidationConfig
from .schemas import CanonicalTransaction, CheckState, PaymentMethod, ValidationChecks, ValidationVerdict

logger = logging.getLogger("reconciler.validator")

_ACCOUNT_NOISE = re.compile(r"[\s\-.]")
_WILDCARDS = frozenset("*xX")

Number = Union[Decimal, int, float, str]


def _state(ok: bool) -> CheckState:
    return CheckState.passed if ok else CheckState.failed


def _fmt(value: Decimal) -> str:
    return format(value, "f")


def amounts_match(actual: Decimal, expected: Decimal, tolerance: Decimal) -> bool:
    return actual >= expected - tolerance


def _normalize_account(value: str) -> str:
    return _ACCOUNT_NOISE.sub("", value)


def accounts_match(actual: Optional[str], expected: Optional[str], suffix_digits: int) -> CheckState:
    if not expected:
        return CheckState.not_applicable
    if not actual:
        return CheckState.failed

    actual_norm = _normalize_account(actual)
    expected_norm = _normalize_account(expected)
    if not expected_norm:
        # Nothing left to compare against once formatting is stripped.
        return CheckState.failed

    k = min(suffix_digits, len(expected_norm))
    if len(actual_norm) < k:
        return CheckState.failed

    actual_suffix = actual_norm[len(actual_norm) - k :]
    expected_suffix = expected_norm[len(expected_norm) - k :]
    for got, want in zip(actual_suffix, expected_suffix):
        if got in _WILDCARDS:
            continue
        if got != want:
            return CheckState.failed
    return CheckState.passed


def _normalize_name(value: str) -> str:
    return " ".join(value.lower().split())


def names_match(actual: Optional[str], expected: Optional[str], *, strict: bool = False) -> CheckState:
    if not expected:
        return CheckState.not_applicable
    if not actual:
        return CheckState.failed

    a = _normalize_name(actual)
    e = _normalize_name(expected)
    if strict:
        return _state(a == e)
    # Receipts often add "PLC", branch names or titles around the account holder.
    return _state(a == e or e in a or a in e)


def date_within_window(when: Optional[datetime], window_hours: float, now: datetime) -> bool:
    if when is None:
        logger.warning("invalid_transaction_date value=None")
        return False
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return abs(now - when) <= timedelta(hours=window_hours)


def validate(
    transaction: CanonicalTransaction,
    expected_amount: Number,
    payment_method: Union[PaymentMethod, str],
    *,
    profiles: ReceiverProfileStore,
    config: ValidationConfig,
    now: Optional[datetime] = None,
) -> ValidationVerdict:
    method = PaymentMethod(payment_method)
    profile = profiles.get(method)
    now = now or datetime.now(timezone.utc)
    expected = Decimal(str(expected_amount))
    digits = config.receiver_account_suffix_digits

    failed_reasons: list[str] = []

    amount_match = amounts_match(transaction.amount, expected, config.amount_tolerance)
    if not amount_match:
        minimum = expected - config.amount_tolerance
        failed_reasons.append(
            f"Amount too low: expected min {_fmt(minimum)} ETB, but found {_fmt(transaction.amount)} ETB"
        )

    account_match = accounts_match(transaction.receiver_account, profile.receiver_account, digits)
    if account_match.blocks:
        expected_suffix = _normalize_account(profile.receiver_account or "")[-digits:]
        if transaction.receiver_account:
            found = "..." + _normalize_account(transaction.receiver_account)[-digits:]
        else:
            found = "not found"
        failed_reasons.append(f"Wrong account: expected suffix {expected_suffix}, but found {found}")

    name_match = names_match(
        transaction.receiver_name, profile.receiver_name, strict=config.strict_name_match
    )
    if name_match.blocks:
        failed_reasons.append(
            f'Wrong receiver name: expected "{profile.receiver_name}", '
            f'but found "{transaction.receiver_name or "none"}"'
        )

    in_window = date_within_window(transaction.date, config.time_window_hours, now)
    if not in_window:
        found_date = transaction.date.isoformat() if transaction.date else "none"
        failed_reasons.append(
            f"Transaction date outside allowed window (±{config.time_window_hours:g}h): {found_date}"
        )

    passed = (
        amount_match
        and in_window
        and not account_match.blocks
        and not name_match.blocks
    )

    checks = ValidationChecks(
        amount_match=amount_match,
        receiver_account_match=account_match,
        receiver_name_match=name_match,
        date_within_window=in_window,
    )

    if passed:
        logger.info(
            "validation_passed payment_method=%s reference=%s",
            method.value,
            transaction.receipt_reference,
        )
    else:
        logger.warning(
            "validation_failed payment_method=%s reference=%s reasons=%s",
            method.value,
            transaction.receipt_reference,
            failed_reasons,
        )

    return ValidationVerdict(passed=passed, checks=checks, failed_reasons=failed_reasons)
