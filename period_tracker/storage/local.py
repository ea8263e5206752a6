"""
Local key-value stores used when no DynamoDB table is configured.

Data is kept as JSON strings under browser-storage style keys
(periods_{user_id}, period_settings_{user_id}, period_symptoms_{user_id}),
in memory or persisted to a single JSON file.

Typical usage:
    storage = LocalKeyValueStorage("/tmp/period_tracker.json")
    records = LocalCycleRecordStore(storage)
    records.put_record(user_id, record)
"""
import json
import os
import tempfile
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Union
from aws_lambda_powertools import Logger
from filelock import FileLock, Timeout
import pydantic

from period_tracker.models.cycle import CycleRecord, UserCycleSettings
from period_tracker.models.symptom import SymptomLog
from period_tracker.services.exceptions import StorageError
from period_tracker.storage.base import (
    CycleRecordStore,
    RecordOrder,
    SettingsStore,
    SortDirection,
    SymptomLogStore,
    apply_limit,
    serialize_settings_fields,
    sort_records,
)

logger = Logger()

PERIODS_KEY_PREFIX = "periods_"
SETTINGS_KEY_PREFIX = "period_settings_"
SYMPTOMS_KEY_PREFIX = "period_symptoms_"

# Seconds to wait for another process holding the file lock
FILE_LOCK_TIMEOUT = 10


class LocalKeyValueStorage:
    """
    String key-value storage, optionally persisted to a JSON file.

    Reads and writes hold a thread lock and, when file-backed, a lock file
    next to the data file. The file is re-read under the lock before every
    access, so several storages (or processes) on the same path see each
    other's writes. Writes go through a temporary file and an atomic rename.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None):
        self.path = Path(path) if path else None
        self._data: Dict[str, str] = {}
        self._lock = threading.RLock()
        self._file_lock = None
        if self.path:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file_lock = FileLock(f"{self.path}.lock", timeout=FILE_LOCK_TIMEOUT)
            # Fail on an unreadable file when the storage is created
            with self._locked():
                pass

    @contextmanager
    def _locked(self) -> Iterator[None]:
        """Hold the locks and load the latest file contents."""
        with self._lock:
            if self._file_lock is None:
                yield
                return
            try:
                self._file_lock.acquire()
            except Timeout as e:
                logger.error("Timed out waiting for local storage lock", extra={
                    "path": str(self.path),
                    "timeout": FILE_LOCK_TIMEOUT
                })
                raise StorageError(f"Local storage {self.path} is locked") from e
            try:
                if self.path.exists():
                    self._data = self._read_file()
                yield
            finally:
                self._file_lock.release()

    def _read_file(self) -> Dict[str, str]:
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading local storage file", extra={
                "path": str(self.path),
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise StorageError(f"Failed to read local storage: {str(e)}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Local storage file {self.path} does not contain an object")
        return data

    def _write_file(self) -> None:
        try:
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._data, f)
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("Error writing local storage file", extra={
                "path": str(self.path),
                "error": str(e),
                "error_type": e.__class__.__name__
            })
            raise StorageError(f"Failed to write local storage: {str(e)}") from e

    def _store(self, key: str, value: str) -> None:
        self._data[key] = value
        if self.path:
            self._write_file()

    def _decode(self, key: str, raw: Optional[str], default: Any) -> Any:
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupted local storage value", extra={
                "key": key,
                "error": str(e)
            })
            raise StorageError(f"Failed to decode local storage key {key}: {str(e)}") from e

    def get(self, key: str) -> Optional[str]:
        with self._locked():
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._locked():
            self._store(key, value)

    def get_json(self, key: str, default: Any) -> Any:
        """Decode the JSON value stored under key, default if unset."""
        return self._decode(key, self.get(key), default)

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value))

    def update_json(self, key: str, update: Callable[[Any], Any], default: Any) -> Any:
        """
        Read, change and write back a JSON value as one locked step.

        Args:
            key: Storage key
            update: Function from the current value to the new value
            default: Current value to pass when the key is unset

        Returns:
            The value written
        """
        with self._locked():
            value = update(self._decode(key, self._data.get(key), default))
            self._store(key, json.dumps(value))
            return value


def _parse_records(items: List[Dict[str, Any]]) -> List[CycleRecord]:
    try:
        return [CycleRecord(**item) for item in items]
    except pydantic.ValidationError as e:
        raise StorageError(f"Invalid cycle record in local storage: {str(e)}") from e


class LocalCycleRecordStore(CycleRecordStore):
    """Cycle records kept as a JSON list in insertion order."""

    def __init__(self, storage: LocalKeyValueStorage):
        self.storage = storage

    def _load(self, user_id: str) -> List[CycleRecord]:
        return _parse_records(self.storage.get_json(f"{PERIODS_KEY_PREFIX}{user_id}", []))

    def list_records(
        self,
        user_id: str,
        order_by: RecordOrder,
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None
    ) -> List[CycleRecord]:
        return sort_records(self._load(user_id), order_by, direction, limit)

    def get_record(self, user_id: str, record_id: str) -> Optional[CycleRecord]:
        return next((r for r in self._load(user_id) if r.id == record_id), None)

    def put_record(self, user_id: str, record: CycleRecord) -> None:
        def upsert(items: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
            records = _parse_records(items)
            index = next((i for i, r in enumerate(records) if r.id == record.id), None)
            if index is None:
                records.append(record)
            else:
                records[index] = record
            return [r.model_dump(mode="json") for r in records]

        self.storage.update_json(f"{PERIODS_KEY_PREFIX}{user_id}", upsert, [])


class LocalSettingsStore(SettingsStore):
    """Cycle settings kept as a JSON object."""

    def __init__(self, storage: LocalKeyValueStorage):
        self.storage = storage

    def get_settings(self, user_id: str) -> UserCycleSettings:
        data = self.storage.get_json(f"{SETTINGS_KEY_PREFIX}{user_id}", {})
        try:
            return UserCycleSettings(**data)
        except pydantic.ValidationError as e:
            raise StorageError(f"Invalid cycle settings in local storage: {str(e)}") from e

    def merge_settings(self, user_id: str, **fields: Any) -> None:
        values = serialize_settings_fields(fields)
        self.storage.update_json(
            f"{SETTINGS_KEY_PREFIX}{user_id}",
            lambda current: {**current, **values},
            {}
        )


class LocalSymptomLogStore(SymptomLogStore):
    """Symptom logs kept as an append-only JSON list."""

    def __init__(self, storage: LocalKeyValueStorage):
        self.storage = storage

    def append_symptom_log(self, user_id: str, log: SymptomLog) -> None:
        self.storage.update_json(
            f"{SYMPTOMS_KEY_PREFIX}{user_id}",
            lambda logs: logs + [log.model_dump(mode="json")],
            []
        )

    def list_symptom_logs(self, user_id: str, limit: Optional[int] = None) -> List[SymptomLog]:
        items = self.storage.get_json(f"{SYMPTOMS_KEY_PREFIX}{user_id}", [])
        try:
            logs = [SymptomLog(**item) for item in items]
        except pydantic.ValidationError as e:
            raise StorageError(f"Invalid symptom log in local storage: {str(e)}") from e

        logs.sort(key=lambda log: (log.date, log.created_at), reverse=True)
        return apply_limit(logs, limit)
