"""
Cycle record and settings model definitions.
"""
from datetime import date, datetime
from typing import Optional
from pydantic import BaseModel, Field


class CycleRecord(BaseModel):
    """
    Represents one menstrual cycle, from a logged period start onwards.

    cycle_number follows creation order, not start_date order: a period
    backfilled after a later one gets the higher number.
    """
    id: str
    start_date: date
    end_date: Optional[date] = None
    duration: Optional[int] = Field(None, ge=1)
    cycle_number: int = Field(..., ge=1)
    created_at: datetime

    @property
    def is_ongoing(self) -> bool:
        """Check if the period has not been ended yet."""
        return self.end_date is None


class UserCycleSettings(BaseModel):
    """
    Per-user cycle configuration.

    last_period is overwritten by every logged period start, it is not
    reconciled against the stored records.
    """
    last_period: Optional[date] = None
    cycle_length: Optional[int] = Field(None, ge=1)
