"""
Pytest configuration and shared fixtures.
"""
import pytest
from datetime import date
from typing import List

from period_tracker.models.cycle import CycleRecord
from period_tracker.services.cycle import CycleEngine
from period_tracker.storage.base import StorageBundle
from period_tracker.storage.local import (
    LocalCycleRecordStore,
    LocalKeyValueStorage,
    LocalSettingsStore,
    LocalSymptomLogStore,
)
from tests.factories import FixedClock, make_record

@pytest.fixture
def local_storage() -> LocalKeyValueStorage:
    """Create an in-memory local key-value storage."""
    return LocalKeyValueStorage()

@pytest.fixture
def storage(local_storage) -> StorageBundle:
    """Create local stores sharing one in-memory storage."""
    return StorageBundle(
        records=LocalCycleRecordStore(local_storage),
        settings=LocalSettingsStore(local_storage),
        symptoms=LocalSymptomLogStore(local_storage)
    )

@pytest.fixture
def clock() -> FixedClock:
    """Create a clock fixed on 2024-03-01."""
    return FixedClock(date(2024, 3, 1))

@pytest.fixture
def engine(storage, clock) -> CycleEngine:
    """Create a CycleEngine over local stores with a fixed clock."""
    return CycleEngine(storage, today=clock.today, now=clock.now)

@pytest.fixture
def regular_records() -> List[CycleRecord]:
    """Create three periods 28 and 27 days apart, newest first."""
    return [
        make_record(3, date(2024, 2, 25)),
        make_record(2, date(2024, 1, 29), date(2024, 2, 2)),
        make_record(1, date(2024, 1, 1), date(2024, 1, 5)),
    ]
