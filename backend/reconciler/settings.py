from __future__ import annotations

from decimal import Decimal
from zoneinfo import ZoneInfo

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .profiles import DEFAULT_RECEIVER_PROFILES, ReceiverProfile, ReceiverProfileStore, ValidationConfig
from .schemas import PaymentMethod


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    port: int = 8080
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    # Secondary validation
    time_window_hours: float = Field(default=24, gt=0, validation_alias="TIME_WINDOW_HOURS")
    amount_tolerance: Decimal = Field(default=Decimal(1), ge=0, validation_alias="AMOUNT_TOLERANCE")
    receiver_account_suffix_digits: int = Field(
        default=6,
        ge=1,
        validation_alias="RECEIVER_ACCOUNT_SUFFIX_DIGITS",
    )
    strict_name_match: bool = Field(default=False, validation_alias="STRICT_NAME_MATCH")

    # JSON object keyed by payment method, e.g.
    # RECEIVER_PROFILES='{"cbe": {"receiver_account": "1000..."}}'
    receiver_profiles: dict[PaymentMethod, ReceiverProfile] = Field(
        default_factory=lambda: dict(DEFAULT_RECEIVER_PROFILES),
        validation_alias="RECEIVER_PROFILES",
    )

    # Receipts print local wall-clock time without an offset.
    source_timezone: str = Field(default="Africa/Addis_Ababa", validation_alias="SOURCE_TIMEZONE")

    def validation_config(self) -> ValidationConfig:
        return ValidationConfig(
            time_window_hours=self.time_window_hours,
            amount_tolerance=self.amount_tolerance,
            receiver_account_suffix_digits=self.receiver_account_suffix_digits,
            strict_name_match=self.strict_name_match,
        )

    def profile_store(self) -> ReceiverProfileStore:
        return ReceiverProfileStore(self.receiver_profiles)

    def source_tz(self) -> ZoneInfo:
        return ZoneInfo(self.source_timezone)


settings = Settings()  # type: ignore[call-arg]
