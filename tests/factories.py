"""
Builders shared by the test modules.
"""
from datetime import date, datetime, timedelta
from typing import Optional

from period_tracker.models.cycle import CycleRecord


class FixedClock:
    """Clock returning a settable date, and increasing audit timestamps."""

    def __init__(self, today: date):
        self.current = today
        self._ticks = 0

    def today(self) -> date:
        return self.current

    def now(self) -> datetime:
        self._ticks += 1
        return datetime(2024, 1, 1) + timedelta(seconds=self._ticks)


def make_record(
    cycle_number: int,
    start_date: date,
    end_date: Optional[date] = None,
    created_offset: Optional[int] = None
) -> CycleRecord:
    """Build a cycle record; duration is derived from the end date."""
    return CycleRecord(
        id=f"record-{cycle_number}",
        start_date=start_date,
        end_date=end_date,
        duration=(end_date - start_date).days + 1 if end_date else None,
        cycle_number=cycle_number,
        created_at=datetime(2024, 1, 1) + timedelta(
            minutes=created_offset if created_offset is not None else cycle_number
        )
    )
