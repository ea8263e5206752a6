"""
Service module for deriving the current cycle phase.

The phase is derived from the most recent period records and the predicted
fertile window, in this priority order: period, ovulation, follicular.
"""
from datetime import date, timedelta
from typing import List, Optional

from period_tracker.models.cycle import CycleRecord
from period_tracker.models.prediction import (
    CyclePhase,
    CycleStatus,
    OvulationPrediction,
    PeriodPrediction,
)
from period_tracker.services.constants import OPEN_PERIOD_MAX_DAYS

def get_period_end_for_status(record: CycleRecord, open_period_max_days: int = OPEN_PERIOD_MAX_DAYS) -> date:
    """
    Get the last day a record counts as an ongoing period.

    Ended periods use their end date. Open periods are assumed to last up to
    open_period_max_days after the start; this only affects the status, the
    stored duration is unrelated.
    """
    if record.end_date is not None:
        return record.end_date
    return record.start_date + timedelta(days=open_period_max_days)

def is_in_period(
    records: List[CycleRecord],
    today: date,
    open_period_max_days: int = OPEN_PERIOD_MAX_DAYS
) -> bool:
    """Check if today falls inside any of the given periods, bounds included."""
    return any(
        record.start_date <= today <= get_period_end_for_status(record, open_period_max_days)
        for record in records
    )

def determine_cycle_phase(is_period: bool, is_ovulating: bool) -> CyclePhase:
    """Map period/ovulation flags to a phase, period taking precedence."""
    if is_period:
        return CyclePhase.PERIOD
    if is_ovulating:
        return CyclePhase.OVULATION
    return CyclePhase.FOLLICULAR

def build_cycle_status(
    recent_records: List[CycleRecord],
    period_prediction: Optional[PeriodPrediction],
    ovulation_prediction: Optional[OvulationPrediction],
    today: date,
    open_period_max_days: int = OPEN_PERIOD_MAX_DAYS
) -> CycleStatus:
    """
    Combine recent records and predictions into a CycleStatus.

    Args:
        recent_records: Most recently created cycle records
        period_prediction: Next period prediction, if any
        ovulation_prediction: Ovulation prediction, if any
        today: Reference date
        open_period_max_days: Assumed maximum length of an open period

    Returns:
        CycleStatus with days-until fields set to None when there is no
        prediction
    """
    is_period = is_in_period(recent_records, today, open_period_max_days)
    is_ovulating = (
        ovulation_prediction is not None
        and ovulation_prediction.fertile_window.contains(today)
    )

    return CycleStatus(
        is_period=is_period,
        is_ovulating=is_ovulating,
        days_until_period=period_prediction.days_until if period_prediction else None,
        days_until_ovulation=ovulation_prediction.days_until if ovulation_prediction else None,
        current_phase=determine_cycle_phase(is_period, is_ovulating)
    )
