from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .schemas import PaymentMethod


class ReceiverProfile(BaseModel):
    """Who a payment made with one method is expected to reach.

    A field left as ``None`` switches the matching check off for that method.
    """

    model_config = ConfigDict(frozen=True)

    receiver_name: Optional[str] = None
    receiver_account: Optional[str] = None


class ValidationConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    time_window_hours: float = Field(default=24, gt=0)
    # Underpayment allowed, in birr. Overpayment always passes.
    amount_tolerance: Decimal = Field(default=Decimal(1), ge=0)
    receiver_account_suffix_digits: int = Field(default=6, ge=1)
    # When set, receiver names must be equal after normalization.
    strict_name_match: bool = False


DEFAULT_RECEIVER_PROFILES: dict[PaymentMethod, ReceiverProfile] = {
    PaymentMethod.telebirr: ReceiverProfile(receiver_name="Zinet Selman Wabela", receiver_account="0962071522"),
    PaymentMethod.cbe: ReceiverProfile(receiver_account="1000356042704"),
    PaymentMethod.dashen: ReceiverProfile(receiver_name="SOSHA OS PLC"),
    PaymentMethod.abyssinia: ReceiverProfile(receiver_account="138816408"),
    PaymentMethod.cbebirr: ReceiverProfile(receiver_name="SOSHA OS PLC"),
}

_EMPTY_PROFILE = ReceiverProfile()


class ReceiverProfileStore:
    def __init__(self, profiles: Mapping[Union[PaymentMethod, str], ReceiverProfile]):
        self._profiles = MappingProxyType({PaymentMethod(k): v for k, v in profiles.items()})

    @classmethod
    def defaults(cls) -> "ReceiverProfileStore":
        return cls(DEFAULT_RECEIVER_PROFILES)

    def get(self, method: Union[PaymentMethod, str]) -> ReceiverProfile:
        return self._profiles.get(PaymentMethod(method), _EMPTY_PROFILE)

    def __contains__(self, method: object) -> bool:
        try:
            return PaymentMethod(method) in self._profiles  # type: ignore[arg-type]
        except ValueError:
            return False

    def __len__(self) -> int:
        return len(self._profiles)
