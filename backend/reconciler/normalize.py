from __future__ import annotations

import copy
from datetime import datetime, timezone, tzinfo
from decimal import Decimal
from typing import Any, Callable, Optional

from pydantic import ValidationError

from .parsers import parse_amount, parse_date, parse_status
from .schemas import CanonicalTransaction, PaymentMethod, TransactionStatus
from .sources import (
    AbyssiniaResult,
    CbeBirrResult,
    CbeResult,
    DashenResult,
    RawResultBase,
    RawSourceResult,
    TelebirrResult,
    parse_raw_result,
)


class DataContractViolation(ValueError):
    """A collector handed over something that is not a raw result at all."""


Mapper = Callable[..., CanonicalTransaction]

_DEFAULT_ERRORS: dict[PaymentMethod, str] = {
    PaymentMethod.telebirr: "Failed to fetch Telebirr receipt",
    PaymentMethod.cbe: "CBE verification failed",
    PaymentMethod.dashen: "Dashen verification failed",
    PaymentMethod.abyssinia: "Abyssinia verification failed",
    PaymentMethod.cbebirr: "CBE Birr verification failed",
}


def _as_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def _raw_data(raw: RawSourceResult, original: Any) -> Any:
    # Keep what the collector sent; only prebuilt models need dumping.
    if original is not None:
        return original
    return raw.model_dump(by_alias=True, exclude_unset=True)


def _failed(
    method: PaymentMethod,
    raw: RawSourceResult,
    own_reference: Any,
    reference: str,
    raw_data: Any,
) -> CanonicalTransaction:
    return CanonicalTransaction(
        success=False,
        payment_method=method,
        amount=Decimal(0),
        date=None,
        receipt_reference=_as_str(own_reference) or reference,
        status=TransactionStatus.failed,
        raw_data=_raw_data(raw, raw_data),
        error=raw.error or _DEFAULT_ERRORS[method],
    )


def normalize_telebirr(
    raw: TelebirrResult,
    reference: str,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    raw_data: Any = None,
) -> CanonicalTransaction:
    if not raw.success:
        return _failed(PaymentMethod.telebirr, raw, raw.receipt_no, reference, raw_data)

    return CanonicalTransaction(
        success=True,
        payment_method=PaymentMethod.telebirr,
        amount=parse_amount(raw.settled_amount),
        receiver_name=_as_str(raw.credited_party_name),
        receiver_account=_as_str(raw.credited_party_account_no),
        payer_name=_as_str(raw.payer_name),
        payer_account=_as_str(raw.payer_telebirr_no),
        date=parse_date(raw.payment_date, assume_tz=assume_tz, now=now),
        receipt_reference=_as_str(raw.receipt_no) or reference,
        status=parse_status(raw.transaction_status),
        raw_data=_raw_data(raw, raw_data),
    )


def normalize_cbe(
    raw: CbeResult,
    reference: str,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    raw_data: Any = None,
) -> CanonicalTransaction:
    if not raw.success:
        return _failed(PaymentMethod.cbe, raw, raw.reference, reference, raw_data)

    # The CBE receipt has no status line; a parsed receipt means it went through.
    return CanonicalTransaction(
        success=True,
        payment_method=PaymentMethod.cbe,
        amount=parse_amount(raw.amount),
        receiver_name=_as_str(raw.receiver),
        receiver_account=_as_str(raw.receiver_account),
        payer_name=_as_str(raw.payer),
        payer_account=_as_str(raw.payer_account),
        date=parse_date(raw.date, assume_tz=assume_tz, now=now),
        receipt_reference=_as_str(raw.reference) or reference,
        status=TransactionStatus.success,
        raw_data=_raw_data(raw, raw_data),
    )


def normalize_dashen(
    raw: DashenResult,
    reference: str,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    raw_data: Any = None,
) -> CanonicalTransaction:
    if not raw.success:
        return _failed(PaymentMethod.dashen, raw, raw.transaction_reference, reference, raw_data)

    return CanonicalTransaction(
        success=True,
        payment_method=PaymentMethod.dashen,
        amount=parse_amount(raw.transaction_amount),
        receiver_name=_as_str(raw.receiver_name),
        receiver_account=_as_str(raw.receiver_account_number),
        payer_name=_as_str(raw.sender_name),
        payer_account=_as_str(raw.sender_account_number),
        date=parse_date(raw.transaction_date, assume_tz=assume_tz, now=now),
        receipt_reference=_as_str(raw.transaction_reference) or reference,
        status=TransactionStatus.success,
        raw_data=_raw_data(raw, raw_data),
    )


def normalize_abyssinia(
    raw: AbyssiniaResult,
    reference: str,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    raw_data: Any = None,
) -> CanonicalTransaction:
    if not raw.success:
        return _failed(PaymentMethod.abyssinia, raw, raw.transaction_reference, reference, raw_data)

    return CanonicalTransaction(
        success=True,
        payment_method=PaymentMethod.abyssinia,
        amount=parse_amount(raw.amount),
        receiver_name=_as_str(raw.receiver),
        receiver_account=_as_str(raw.receiver_account),
        payer_name=_as_str(raw.payer),
        payer_account=_as_str(raw.payer_account),
        date=parse_date(raw.date, assume_tz=assume_tz, now=now),
        receipt_reference=_as_str(raw.transaction_reference) or reference,
        status=parse_status(raw.status),
        raw_data=_raw_data(raw, raw_data),
    )


def normalize_cbebirr(
    raw: CbeBirrResult,
    reference: str,
    *,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
    raw_data: Any = None,
) -> CanonicalTransaction:
    if not raw.success:
        return _failed(PaymentMethod.cbebirr, raw, raw.receipt_number, reference, raw_data)

    # CBE Birr receipts do not show the payer's wallet number.
    return CanonicalTransaction(
        success=True,
        payment_method=PaymentMethod.cbebirr,
        amount=parse_amount(raw.amount),
        receiver_name=_as_str(raw.receiver),
        receiver_account=_as_str(raw.receiver_account),
        payer_name=_as_str(raw.payer),
        date=parse_date(raw.timestamp, assume_tz=assume_tz, now=now),
        receipt_reference=_as_str(raw.receipt_number) or reference,
        status=parse_status(raw.status),
        raw_data=_raw_data(raw, raw_data),
    )


NORMALIZERS: dict[PaymentMethod, Mapper] = {
    PaymentMethod.telebirr: normalize_telebirr,
    PaymentMethod.cbe: normalize_cbe,
    PaymentMethod.dashen: normalize_dashen,
    PaymentMethod.abyssinia: normalize_abyssinia,
    PaymentMethod.cbebirr: normalize_cbebirr,
}


def coerce_raw_result(payload: Any, method: Optional[PaymentMethod] = None) -> RawSourceResult:
    """Accept either an already-built raw model or a collector dict.

    Collectors do not tag their results, so an untagged dict is read with
    the shape for ``method``. A tag that disagrees with ``method`` is a
    contract violation.
    """
    if payload is None:
        raise DataContractViolation("collector returned no result object")
    if isinstance(payload, RawResultBase):
        result = payload
    elif not isinstance(payload, dict):
        raise DataContractViolation(f"collector result must be an object, got {type(payload).__name__}")
    elif "source" not in payload and method is None:
        raise DataContractViolation("collector result has no source tag and no payment method was given")
    else:
        try:
            result = parse_raw_result(payload, method)
        except ValidationError as e:
            raise DataContractViolation(f"collector result does not match the source shape: {e}") from e

    if method is not None:
        expected = PaymentMethod(method).value
        if result.source != expected:
            raise DataContractViolation(f"result is from {result.source}, but payment_method is {expected}")
    return result


def normalize(
    raw: Any,
    reference: str,
    *,
    method: Optional[PaymentMethod] = None,
    assume_tz: tzinfo = timezone.utc,
    now: Optional[datetime] = None,
) -> CanonicalTransaction:
    """Map one collector result onto the canonical transaction record.

    ``reference`` is the reference the caller asked about; it is used when
    the source does not report its own. ``method`` picks the source shape
    for untagged results. Collector failures come back as a failed record,
    never as an exception. Only a result that is not shaped like its source
    raises :class:`DataContractViolation`.
    """
    result = coerce_raw_result(raw, method)
    original = copy.deepcopy(raw) if isinstance(raw, dict) else None
    mapper = NORMALIZERS[PaymentMethod(result.source)]
    return mapper(result, reference, assume_tz=assume_tz, now=now, raw_data=original)
