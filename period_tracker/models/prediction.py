"""
Prediction, status and statistics models returned by the cycle engine.
"""
from enum import Enum
from datetime import date
from typing import Optional
from pydantic import BaseModel


class CyclePhase(str, Enum):
    """
    Phase reported by the current cycle status.

    There is no luteal state: anything outside the period and the fertile
    window is reported as follicular.
    """
    PERIOD = "period"
    OVULATION = "ovulation"
    FOLLICULAR = "follicular"


class Regularity(str, Enum):
    """Classification of the average cycle length."""
    REGULAR = "regular"
    IRREGULAR = "irregular"


class FertileWindow(BaseModel):
    """Inclusive range of days around the predicted ovulation."""
    start: date
    end: date

    def contains(self, day: date) -> bool:
        """Check if a day falls inside the window."""
        return self.start <= day <= self.end


class PeriodPrediction(BaseModel):
    """Predicted start of the next period."""
    predicted_date: date
    days_until: int  # negative when the period is overdue
    cycle_length: int


class OvulationPrediction(BaseModel):
    """Predicted ovulation day and fertile window."""
    predicted_date: date
    fertile_window: FertileWindow
    days_until: int


class CycleStatus(BaseModel):
    """Snapshot of where the user is in the cycle today."""
    is_period: bool
    is_ovulating: bool
    days_until_period: Optional[int] = None
    days_until_ovulation: Optional[int] = None
    current_phase: CyclePhase


class CycleStats(BaseModel):
    """Regularity statistics over the most recent cycles."""
    average_cycle_length: int
    average_period_duration: Optional[int] = None
    cycle_variation: int
    regularity: Regularity
