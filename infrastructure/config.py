"""Application settings, read from the environment and ``.env``"""
from decimal import Decimal
from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings

from domain.enums import DepositType
from domain.value_objects import DepositPolicy


class Settings(BaseSettings):
    app_name: str = "Chalet Booking API"
    log_level: str = "INFO"

    # Auth
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 30

    # Real-time events
    event_channel: str = "chalets"

    # Deposit: "percentage", "fixed" or "none"
    deposit_type: str = "percentage"
    deposit_percentage: Decimal = Decimal("30")
    deposit_fixed: Decimal = Decimal("100")

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}

    def deposit_policy(self) -> Optional[DepositPolicy]:
        kind = self.deposit_type.strip().lower()
        if kind == "none":
            return None
        if kind == DepositType.FIXED.value:
            return DepositPolicy.fixed(self.deposit_fixed)
        if kind == DepositType.PERCENTAGE.value:
            return DepositPolicy.percent(self.deposit_percentage)
        raise ValueError(f"Unknown deposit type: {self.deposit_type}")


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
