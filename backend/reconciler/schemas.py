from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class PaymentMethod(str, Enum):
    telebirr = "telebirr"
    cbe = "cbe"
    dashen = "dashen"
    abyssinia = "abyssinia"
    cbebirr = "cbebirr"


class TransactionStatus(str, Enum):
    success = "success"
    failed = "failed"
    pending = "pending"


class CanonicalTransaction(BaseModel):
    """One payment as reported by a source, independent of that source's layout.

    Built once per verification attempt by the normalizer and never mutated.
    Identity fields are ``None`` when the source does not expose them, which
    downstream checks read as "unknown" rather than "empty".
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    payment_method: PaymentMethod
    amount: Decimal = Field(default=Decimal(0), ge=0)

    payer_name: Optional[str] = None
    payer_account: Optional[str] = None
    receiver_name: Optional[str] = None
    receiver_account: Optional[str] = None

    # None only on failed records; the date check treats it as invalid.
    date: Optional[datetime] = None
    receipt_reference: str = ""
    status: TransactionStatus

    raw_data: Any = None
    error: Optional[str] = None

    @model_validator(mode="after")
    def _failed_records_are_empty(self) -> "CanonicalTransaction":
        if not self.success:
            if self.amount != 0:
                raise ValueError("failed transaction must carry amount 0")
            if self.status != TransactionStatus.failed:
                raise ValueError("failed transaction must carry status 'failed'")
            if not self.error:
                raise ValueError("failed transaction must carry an error message")
        elif self.error is not None:
            raise ValueError("successful transaction cannot carry an error")
        return self


class CheckState(str, Enum):
    passed = "passed"
    failed = "failed"
    not_applicable = "not_applicable"

    @property
    def blocks(self) -> bool:
        return self is CheckState.failed


class ValidationChecks(BaseModel):
    model_config = ConfigDict(frozen=True)

    amount_match: bool = False
    receiver_account_match: CheckState = CheckState.not_applicable
    receiver_name_match: CheckState = CheckState.not_applicable
    date_within_window: bool = False


class ValidationVerdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    passed: bool
    checks: ValidationChecks
    failed_reasons: list[str] = Field(default_factory=list)


class NormalizeRequest(BaseModel):
    reference: str = Field(min_length=3)
    # Needed when the collector result carries no source tag.
    payment_method: Optional[PaymentMethod] = None
    result: Optional[dict[str, Any]] = None


class VerifyPaymentRequest(BaseModel):
    payment_method: PaymentMethod
    reference: str = Field(min_length=3)
    expected_amount: Decimal = Field(ge=0)

    # Raw collector output; validated against the per-source shapes.
    result: Optional[dict[str, Any]] = None


class VerifyPaymentResponse(BaseModel):
    success: bool
    validated: bool
    amount: Optional[Decimal] = None
    receipt_reference: Optional[str] = None
    validation: Optional[ValidationVerdict] = None
    error: Optional[str] = None
    transaction: Optional[CanonicalTransaction] = None
