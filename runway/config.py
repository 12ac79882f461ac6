"""Engine settings read from environment variables.

Every knob has a default so the engine runs without any environment set.
"""

import os
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Optional

from runway.logging_config import get_logger

logger = get_logger(__name__)

DAILY_FREQUENCY = "daily"


def _int_env(name: str, default: Optional[int]) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"Invalid integer for {name}: '{raw}', using {default}")
        return default


def _decimal_env(name: str, default: Decimal) -> Decimal:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return Decimal(raw)
    except InvalidOperation:
        logger.warning(f"Invalid decimal for {name}: '{raw}', using {default}")
        return default


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./runway.db"
    metrics_port: int = 8000

    # settlement cycle length used to project the close of an open settlement
    settlement_cycle_days: int = 14
    # None means daily-payout accounts use settlement_cycle_days as well
    daily_settlement_cycle_days: Optional[int] = None

    projection_horizon_months: int = 3
    opportunity_horizon_months: int = 3
    max_horizon_days: int = 365

    reserve_amount: Decimal = Decimal("0")
    refresh_interval_seconds: int = 300
    use_available_balance: bool = True

    def cycle_days_for(self, payout_frequency: Optional[str]) -> int:
        """Settlement cycle length for an account's payout frequency."""
        if payout_frequency == DAILY_FREQUENCY and self.daily_settlement_cycle_days is not None:
            return self.daily_settlement_cycle_days
        return self.settlement_cycle_days


def get_settings() -> Settings:
    """Build Settings from the current environment.

    Returns:
        Settings: Frozen settings instance.
    """
    defaults = Settings()
    return Settings(
        database_url=os.getenv("DATABASE_URL", defaults.database_url),
        metrics_port=_int_env("METRICS_PORT", defaults.metrics_port),
        settlement_cycle_days=_int_env("SETTLEMENT_CYCLE_DAYS", defaults.settlement_cycle_days),
        daily_settlement_cycle_days=_int_env("DAILY_SETTLEMENT_CYCLE_DAYS", None),
        projection_horizon_months=_int_env(
            "PROJECTION_HORIZON_MONTHS", defaults.projection_horizon_months
        ),
        opportunity_horizon_months=_int_env(
            "OPPORTUNITY_HORIZON_MONTHS", defaults.opportunity_horizon_months
        ),
        max_horizon_days=_int_env("MAX_HORIZON_DAYS", defaults.max_horizon_days),
        reserve_amount=_decimal_env("RESERVE_AMOUNT", defaults.reserve_amount),
        refresh_interval_seconds=_int_env(
            "REFRESH_INTERVAL_SECONDS", defaults.refresh_interval_seconds
        ),
        use_available_balance=_bool_env("USE_AVAILABLE_BALANCE", defaults.use_available_balance),
    )
