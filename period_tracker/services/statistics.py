"""
Statistics calculation service for cycle records.

This module provides functionality for calculating cycle lengths, average
period durations and a regularity classification from stored cycle records.

Typical usage:
    records = store.list_records(user_id, RecordOrder.START_DATE, limit=6)
    stats = calculate_cycle_statistics(records)
    if stats is None:
        print("Log at least two periods to see statistics")
"""
from typing import List, Optional
from aws_lambda_powertools import Logger

from period_tracker.models.cycle import CycleRecord
from period_tracker.models.prediction import CycleStats, Regularity
from period_tracker.services.constants import REGULAR_CYCLE_MIN_DAYS, REGULAR_CYCLE_MAX_DAYS
from period_tracker.services.utils import days_between, mean_or_none, round_half_up

logger = Logger()

def calculate_cycle_lengths(records: List[CycleRecord]) -> List[int]:
    """
    Calculate cycle lengths between consecutive period starts.

    Args:
        records: Cycle records ordered by start date, newest first

    Returns:
        One length per adjacent pair, newest cycle first (n - 1 values for
        n records)

    Example:
        >>> calculate_cycle_lengths([feb_25, jan_29, jan_01])
        [27, 28]
    """
    return [
        days_between(older.start_date, newer.start_date)
        for newer, older in zip(records, records[1:])
    ]

def classify_regularity(
    average_cycle_length: float,
    min_days: int = REGULAR_CYCLE_MIN_DAYS,
    max_days: int = REGULAR_CYCLE_MAX_DAYS
) -> Regularity:
    """
    Classify an average cycle length.

    Both bounds are exclusive: averages of exactly min_days or max_days are
    irregular.
    """
    if min_days < average_cycle_length < max_days:
        return Regularity.REGULAR
    return Regularity.IRREGULAR

def calculate_cycle_statistics(
    records: List[CycleRecord],
    min_days: int = REGULAR_CYCLE_MIN_DAYS,
    max_days: int = REGULAR_CYCLE_MAX_DAYS
) -> Optional[CycleStats]:
    """
    Calculate cycle statistics from recent records.

    Args:
        records: Cycle records ordered by start date, newest first
        min_days: Exclusive lower bound for a regular average
        max_days: Exclusive upper bound for a regular average

    Returns:
        CycleStats, or None when fewer than two records are available.
        Records without a duration (ongoing periods) are left out of the
        period duration average; it is None if no record has one.
    """
    if len(records) < 2:
        logger.debug("Not enough records for statistics", extra={
            "record_count": len(records)
        })
        return None

    cycle_lengths = calculate_cycle_lengths(records)
    average_cycle = mean_or_none(cycle_lengths)

    average_duration = mean_or_none(
        record.duration for record in records if record.duration is not None
    )

    stats = CycleStats(
        average_cycle_length=round_half_up(average_cycle),
        average_period_duration=(
            round_half_up(average_duration) if average_duration is not None else None
        ),
        cycle_variation=max(cycle_lengths) - min(cycle_lengths),
        regularity=classify_regularity(average_cycle, min_days, max_days)
    )

    logger.info("Calculated cycle statistics", extra={
        "record_count": len(records),
        "cycle_lengths": cycle_lengths,
        "regularity": stats.regularity.value
    })
    return stats
