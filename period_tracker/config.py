"""
Configuration for the cycle engine and its stores.

Engine thresholds default to the values in services.constants; storage is
read from the environment the same way the Lambda functions are configured.
"""
import os
from typing import Optional
from pydantic import BaseModel, Field, model_validator

from period_tracker.services.constants import (
    DEFAULT_CYCLE_LENGTH,
    LUTEAL_PHASE_DAYS,
    FERTILE_DAYS_BEFORE_OVULATION,
    FERTILE_DAYS_AFTER_OVULATION,
    OPEN_PERIOD_MAX_DAYS,
    REGULAR_CYCLE_MIN_DAYS,
    REGULAR_CYCLE_MAX_DAYS,
    STATUS_RECENT_PERIODS,
    STATS_HISTORY_PERIODS,
)


class EngineConfig(BaseModel):
    """
    Tunable constants used by CycleEngine.

    Example:
        >>> config = EngineConfig(open_period_max_days=10)
        >>> engine = CycleEngine(storage, config=config)
    """
    default_cycle_length: int = Field(DEFAULT_CYCLE_LENGTH, ge=1)
    luteal_phase_days: int = Field(LUTEAL_PHASE_DAYS, ge=0)
    fertile_days_before: int = Field(FERTILE_DAYS_BEFORE_OVULATION, ge=0)
    fertile_days_after: int = Field(FERTILE_DAYS_AFTER_OVULATION, ge=0)
    open_period_max_days: int = Field(OPEN_PERIOD_MAX_DAYS, ge=0)
    regular_cycle_min_days: int = Field(REGULAR_CYCLE_MIN_DAYS, ge=1)
    regular_cycle_max_days: int = Field(REGULAR_CYCLE_MAX_DAYS, ge=1)
    status_recent_periods: int = Field(STATUS_RECENT_PERIODS, ge=1)
    stats_history_periods: int = Field(STATS_HISTORY_PERIODS, ge=2)

    @model_validator(mode="after")
    def check_regular_bounds(self) -> "EngineConfig":
        if self.regular_cycle_min_days >= self.regular_cycle_max_days:
            raise ValueError("regular_cycle_min_days must be below regular_cycle_max_days")
        return self

    @classmethod
    def from_env(cls) -> "EngineConfig":
        """Build engine config, honouring DEFAULT_CYCLE_LENGTH if set."""
        cycle_length = os.environ.get("DEFAULT_CYCLE_LENGTH")
        if cycle_length:
            return cls(default_cycle_length=int(cycle_length))
        return cls()


class StorageConfig(BaseModel):
    """
    Store selection settings.

    A DynamoDB table name selects the remote store, otherwise the local
    key-value store is used, persisted to local_path when one is given.
    """
    table_name: Optional[str] = None
    local_path: Optional[str] = None

    @property
    def use_dynamo(self) -> bool:
        return bool(self.table_name)

    @classmethod
    def from_env(cls) -> "StorageConfig":
        """Read TRACKER_TABLE_NAME and PERIOD_TRACKER_LOCAL_PATH."""
        return cls(
            table_name=os.environ.get("TRACKER_TABLE_NAME") or None,
            local_path=os.environ.get("PERIOD_TRACKER_LOCAL_PATH") or None,
        )
