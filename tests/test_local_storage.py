"""
Tests for the local key-value stores.
"""
import json
from concurrent.futures import ThreadPoolExecutor
import pytest
from datetime import date, datetime

from period_tracker.models.symptom import SymptomLog
from period_tracker.services.exceptions import StorageError, ValidationError
from period_tracker.storage.base import RecordOrder, SortDirection
from period_tracker.storage.local import (
    LocalCycleRecordStore,
    LocalKeyValueStorage,
    LocalSettingsStore,
    LocalSymptomLogStore,
)
from tests.factories import make_record

USER = "123"

@pytest.fixture
def records(local_storage):
    return LocalCycleRecordStore(local_storage)

def test_list_records_orderings(records):
    """Test creation order and start date order are independent."""
    # Created in order 1, 2, 3 but started out of chronological order
    records.put_record(USER, make_record(1, date(2024, 2, 1)))
    records.put_record(USER, make_record(2, date(2024, 1, 1)))
    records.put_record(USER, make_record(3, date(2024, 3, 1)))

    by_created = records.list_records(USER, RecordOrder.CREATED_AT)
    by_start = records.list_records(USER, RecordOrder.START_DATE)

    assert [r.cycle_number for r in by_created] == [3, 2, 1]
    assert [r.cycle_number for r in by_start] == [3, 1, 2]
    assert [r.cycle_number for r in records.list_records(
        USER, RecordOrder.START_DATE, SortDirection.ASC
    )] == [2, 1, 3]

def test_list_records_limit(records):
    """Test limit keeps the first records of the requested order."""
    for number in range(1, 6):
        records.put_record(USER, make_record(number, date(2024, number, 1)))

    latest = records.list_records(USER, RecordOrder.CREATED_AT, limit=1)
    assert [r.cycle_number for r in latest] == [5]
    assert len(records.list_records(USER, RecordOrder.START_DATE, limit=3)) == 3

def test_list_records_created_at_ties(records):
    """Test records created at the same time list the later insert first."""
    records.put_record(USER, make_record(1, date(2024, 1, 1), created_offset=0))
    records.put_record(USER, make_record(2, date(2024, 2, 1), created_offset=0))

    latest = records.list_records(USER, RecordOrder.CREATED_AT, limit=1)
    assert latest[0].cycle_number == 2

def test_put_record_upserts(records):
    """Test putting an existing id replaces it in place."""
    records.put_record(USER, make_record(1, date(2024, 1, 1)))
    records.put_record(USER, make_record(2, date(2024, 1, 29)))
    records.put_record(USER, make_record(1, date(2024, 1, 1), date(2024, 1, 5)))

    stored = records.list_records(USER, RecordOrder.CREATED_AT, SortDirection.ASC)
    assert [r.cycle_number for r in stored] == [1, 2]
    assert stored[0].duration == 5
    assert records.get_record(USER, "record-1").end_date == date(2024, 1, 5)
    assert records.get_record(USER, "missing") is None

def test_records_are_per_user(records):
    """Test users do not see each other's records."""
    records.put_record(USER, make_record(1, date(2024, 1, 1)))
    assert records.list_records("other", RecordOrder.CREATED_AT) == []
    assert records.get_record("other", "record-1") is None

def test_settings_merge(local_storage):
    """Test settings are shallow-merged per field."""
    settings = LocalSettingsStore(local_storage)
    assert settings.get_settings(USER).last_period is None

    settings.merge_settings(USER, last_period=date(2024, 1, 1))
    settings.merge_settings(USER, cycle_length=30)
    settings.merge_settings(USER, last_period=date(2024, 1, 29), cycle_length=None)

    saved = settings.get_settings(USER)
    assert saved.last_period == date(2024, 1, 29)
    assert saved.cycle_length == 30

def test_settings_merge_rejects_invalid_fields(local_storage):
    """Test unknown fields and invalid values are rejected."""
    settings = LocalSettingsStore(local_storage)
    with pytest.raises(ValidationError):
        settings.merge_settings(USER, colour="red")
    with pytest.raises(ValidationError):
        settings.merge_settings(USER, cycle_length=0)

def test_symptom_logs(local_storage):
    """Test symptom logs are appended and listed newest date first."""
    symptoms = LocalSymptomLogStore(local_storage)
    for i, day in enumerate((date(2024, 1, 3), date(2024, 1, 5), date(2024, 1, 1))):
        symptoms.append_symptom_log(USER, SymptomLog(
            id=f"log-{i}",
            date=day,
            symptoms=["cramps"],
            created_at=datetime(2024, 1, 6, 12, i)
        ))

    logs = symptoms.list_symptom_logs(USER)
    assert [l.date for l in logs] == [date(2024, 1, 5), date(2024, 1, 3), date(2024, 1, 1)]
    assert len(symptoms.list_symptom_logs(USER, limit=2)) == 2

def test_file_persistence(tmp_path):
    """Test data written to a file is visible to a new storage instance."""
    path = tmp_path / "tracker.json"
    LocalCycleRecordStore(LocalKeyValueStorage(path)).put_record(
        USER, make_record(1, date(2024, 1, 1))
    )

    data = json.loads(path.read_text())
    assert "periods_123" in data

    reloaded = LocalCycleRecordStore(LocalKeyValueStorage(path))
    assert reloaded.get_record(USER, "record-1").start_date == date(2024, 1, 1)
    assert not list(tmp_path.glob("*.tmp"))

def test_corrupted_file_raises_storage_error(tmp_path):
    """Test an unreadable file raises StorageError, not empty data."""
    path = tmp_path / "tracker.json"
    path.write_text("{not json")

    with pytest.raises(StorageError):
        LocalKeyValueStorage(path)

def test_corrupted_value_raises_storage_error(local_storage, records):
    """Test a corrupted stored value raises StorageError."""
    local_storage.set("periods_123", "[{broken")

    with pytest.raises(StorageError):
        records.list_records(USER, RecordOrder.CREATED_AT)

def test_list_limit_below_one_rejected(records, local_storage):
    """Test a zero or negative limit is rejected instead of slicing."""
    for number in range(1, 4):
        records.put_record(USER, make_record(number, date(2024, number, 1)))

    for limit in (0, -1):
        with pytest.raises(ValidationError):
            records.list_records(USER, RecordOrder.START_DATE, limit=limit)
        with pytest.raises(ValidationError):
            LocalSymptomLogStore(local_storage).list_symptom_logs(USER, limit=limit)

def test_concurrent_puts_keep_every_record(records):
    """Test records written from many threads are all kept."""
    def put(number):
        records.put_record(USER, make_record(number, date(2024, 1, 1)))

    with ThreadPoolExecutor(max_workers=16) as pool:
        list(pool.map(put, range(1, 201)))

    stored = records.list_records(USER, RecordOrder.CREATED_AT)
    assert len(stored) == 200
    assert {r.cycle_number for r in stored} == set(range(1, 201))

def test_concurrent_puts_to_file_keep_every_record(tmp_path):
    """Test threads writing through separate storages on one file lose nothing."""
    path = tmp_path / "tracker.json"

    def put(number):
        store = LocalCycleRecordStore(LocalKeyValueStorage(path))
        store.put_record(USER, make_record(number, date(2024, 1, 1)))

    with ThreadPoolExecutor(max_workers=8) as pool:
        list(pool.map(put, range(1, 41)))

    stored = LocalCycleRecordStore(LocalKeyValueStorage(path)).list_records(USER, RecordOrder.CREATED_AT)
    assert len(stored) == 40

def test_storages_on_same_file_see_each_other(tmp_path):
    """Test a storage picks up writes made through another storage on the same file."""
    path = tmp_path / "tracker.json"
    first = LocalKeyValueStorage(path)
    second = LocalKeyValueStorage(path)

    LocalCycleRecordStore(first).put_record(USER, make_record(1, date(2024, 1, 1)))
    LocalCycleRecordStore(second).put_record(USER, make_record(2, date(2024, 1, 29)))
    LocalSettingsStore(first).merge_settings(USER, cycle_length=30)
    LocalSettingsStore(second).merge_settings(USER, last_period=date(2024, 1, 29))

    stored = LocalCycleRecordStore(first).list_records(USER, RecordOrder.CREATED_AT)
    assert [r.cycle_number for r in stored] == [2, 1]

    settings = LocalSettingsStore(first).get_settings(USER)
    assert settings.cycle_length == 30
    assert settings.last_period == date(2024, 1, 29)

def test_update_json(local_storage):
    """Test update_json applies the change to the current value."""
    assert local_storage.update_json("counter", lambda n: n + 1, 0) == 1
    assert local_storage.update_json("counter", lambda n: n + 1, 0) == 2
    assert local_storage.get_json("counter", 0) == 2
