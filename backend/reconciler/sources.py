"""Raw result shapes produced by the upstream receipt collectors.

Each collector scrapes a different page layout and reports its own field
names, so every source gets its own model. Collectors do not tag their
results; the caller knows which payment method it asked about and
:func:`parse_raw_result` picks the model from that. A ``source`` tag, when
present, selects the model on its own.

All identity/amount/date fields are optional: collectors leave out what a
given receipt does not show. Unknown keys are kept so the record can be
passed through untouched for debugging.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictBool, TypeAdapter

from .schemas import PaymentMethod

Amount = Union[str, int, float]


class RawResultBase(BaseModel):
    # Scraped account numbers and receipt ids sometimes arrive as JSON numbers.
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)

    success: StrictBool
    error: Optional[str] = None


class TelebirrResult(RawResultBase):
    source: Literal["telebirr"] = "telebirr"

    payer_name: Optional[str] = Field(default=None, alias="payerName")
    payer_telebirr_no: Optional[str] = Field(default=None, alias="payerTelebirrNo")
    credited_party_name: Optional[str] = Field(default=None, alias="creditedPartyName")
    credited_party_account_no: Optional[str] = Field(default=None, alias="creditedPartyAccountNo")
    transaction_status: Optional[str] = Field(default=None, alias="transactionStatus")
    receipt_no: Optional[str] = Field(default=None, alias="receiptNo")
    payment_date: Optional[str] = Field(default=None, alias="paymentDate")
    settled_amount: Optional[Amount] = Field(default=None, alias="settledAmount")
    service_fee: Optional[str] = Field(default=None, alias="serviceFee")
    service_fee_vat: Optional[str] = Field(default=None, alias="serviceFeeVAT")
    total_paid_amount: Optional[str] = Field(default=None, alias="totalPaidAmount")
    bank_name: Optional[str] = Field(default=None, alias="bankName")


class CbeResult(RawResultBase):
    source: Literal["cbe"] = "cbe"

    payer: Optional[str] = None
    payer_account: Optional[str] = Field(default=None, alias="payerAccount")
    receiver: Optional[str] = None
    receiver_account: Optional[str] = Field(default=None, alias="receiverAccount")
    amount: Optional[Amount] = None
    # The PDF collector hands over a parsed timestamp; JSON callers send text.
    date: Optional[Union[datetime, str]] = None
    reference: Optional[str] = None


class DashenResult(RawResultBase):
    source: Literal["dashen"] = "dashen"

    sender_name: Optional[str] = Field(default=None, alias="senderName")
    sender_account_number: Optional[str] = Field(default=None, alias="senderAccountNumber")
    receiver_name: Optional[str] = Field(default=None, alias="receiverName")
    receiver_account_number: Optional[str] = Field(default=None, alias="receiverAccountNumber")
    transaction_amount: Optional[Amount] = Field(default=None, alias="transactionAmount")
    service_charge: Optional[str] = Field(default=None, alias="serviceCharge")
    total: Optional[str] = None
    transaction_date: Optional[str] = Field(default=None, alias="transactionDate")
    transaction_reference: Optional[str] = Field(default=None, alias="transactionReference")
    narrative: Optional[str] = None


class AbyssiniaResult(RawResultBase):
    source: Literal["abyssinia"] = "abyssinia"

    transaction_reference: Optional[str] = Field(default=None, alias="transactionReference")
    payer: Optional[str] = None
    payer_account: Optional[str] = Field(default=None, alias="payerAccount")
    receiver: Optional[str] = None
    receiver_account: Optional[str] = Field(default=None, alias="receiverAccount")
    amount: Optional[Amount] = None
    date: Optional[str] = None
    status: Optional[str] = None
    reason: Optional[str] = None


class CbeBirrResult(RawResultBase):
    source: Literal["cbebirr"] = "cbebirr"

    receipt_number: Optional[str] = Field(default=None, alias="receiptNumber")
    payer: Optional[str] = None
    receiver: Optional[str] = None
    receiver_account: Optional[str] = Field(default=None, alias="receiverAccount")
    amount: Optional[Amount] = None
    fees: Optional[str] = None
    status: Optional[str] = None
    timestamp: Optional[str] = None


RawSourceResult = Annotated[
    Union[TelebirrResult, CbeResult, DashenResult, AbyssiniaResult, CbeBirrResult],
    Field(discriminator="source"),
]

_raw_adapter: TypeAdapter[Any] = TypeAdapter(RawSourceResult)

SOURCE_MODELS: dict[PaymentMethod, type[RawResultBase]] = {
    PaymentMethod.telebirr: TelebirrResult,
    PaymentMethod.cbe: CbeResult,
    PaymentMethod.dashen: DashenResult,
    PaymentMethod.abyssinia: AbyssiniaResult,
    PaymentMethod.cbebirr: CbeBirrResult,
}


def parse_raw_result(payload: Any, method: Optional[PaymentMethod] = None) -> RawSourceResult:
    """Validate a collector payload into its source-specific model.

    Tagged payloads pick their own model; untagged ones use ``method``.
    Raises ``pydantic.ValidationError`` when the payload does not fit;
    callers turn that into a contract violation.
    """
    if isinstance(payload, dict) and "source" not in payload and method is not None:
        return SOURCE_MODELS[PaymentMethod(method)].model_validate(payload)
    return _raw_adapter.validate_python(payload)
