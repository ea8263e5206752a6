"""
Store interfaces used by the cycle engine.

Implementations raise StorageError for I/O and serialization failures and
return None or empty results when data is simply missing.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional
import pydantic

from period_tracker.models.cycle import CycleRecord, UserCycleSettings
from period_tracker.models.symptom import SymptomLog
from period_tracker.services.exceptions import ValidationError


class RecordOrder(str, Enum):
    """Sort field for listing cycle records."""
    CREATED_AT = "createdAt"
    START_DATE = "startDate"


class SortDirection(str, Enum):
    DESC = "desc"
    ASC = "asc"


def apply_limit(items: List[Any], limit: Optional[int]) -> List[Any]:
    """
    Keep the first limit items, all of them when limit is None.

    Raises:
        ValidationError: If limit is below one
    """
    if limit is None:
        return items
    if limit < 1:
        raise ValidationError(f"Limit must be at least 1, got {limit}")
    return items[:limit]


def sort_records(
    records: List[CycleRecord],
    order_by: RecordOrder,
    direction: SortDirection = SortDirection.DESC,
    limit: Optional[int] = None
) -> List[CycleRecord]:
    """
    Sort and truncate records for a list query.

    Records must be passed in insertion order. Equal sort keys keep that
    order, with later inserts first when sorting descending.

    Raises:
        ValidationError: If limit is below one
    """
    descending = SortDirection(direction) == SortDirection.DESC
    if RecordOrder(order_by) == RecordOrder.CREATED_AT:
        key = lambda record: record.created_at
    else:
        key = lambda record: record.start_date

    candidates = list(reversed(records)) if descending else list(records)
    ordered = sorted(candidates, key=key, reverse=descending)
    return apply_limit(ordered, limit)


def serialize_settings_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Validate a partial settings update and convert it to JSON-safe values.

    Fields set to None are dropped, so a merge never clears a saved value.

    Raises:
        ValidationError: If a field is unknown or has an invalid value
    """
    unknown = set(fields) - set(UserCycleSettings.model_fields)
    if unknown:
        raise ValidationError(f"Unknown settings fields: {', '.join(sorted(unknown))}")
    try:
        settings = UserCycleSettings.model_validate(fields)
    except pydantic.ValidationError as e:
        raise ValidationError(f"Invalid settings: {e}") from e
    return settings.model_dump(mode="json", include=set(fields), exclude_none=True)


class CycleRecordStore(ABC):
    """Per-user storage of cycle records."""

    @abstractmethod
    def list_records(
        self,
        user_id: str,
        order_by: RecordOrder,
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None
    ) -> List[CycleRecord]:
        """List a user's records sorted by creation time or start date."""

    @abstractmethod
    def get_record(self, user_id: str, record_id: str) -> Optional[CycleRecord]:
        """Get a single record, None if it does not exist."""

    @abstractmethod
    def put_record(self, user_id: str, record: CycleRecord) -> None:
        """Insert or replace a record by id."""


class SettingsStore(ABC):
    """Per-user cycle settings."""

    @abstractmethod
    def get_settings(self, user_id: str) -> UserCycleSettings:
        """Get settings, empty settings if none were saved."""

    @abstractmethod
    def merge_settings(self, user_id: str, **fields: Any) -> None:
        """Shallow-merge fields into the saved settings."""


class SymptomLogStore(ABC):
    """Append-only per-user symptom logs."""

    @abstractmethod
    def append_symptom_log(self, user_id: str, log: SymptomLog) -> None:
        """Append a symptom log."""

    @abstractmethod
    def list_symptom_logs(self, user_id: str, limit: Optional[int] = None) -> List[SymptomLog]:
        """List symptom logs, most recent date first."""


@dataclass
class StorageBundle:
    """The three stores the engine needs, backed by the same storage."""
    records: CycleRecordStore
    settings: SettingsStore
    symptoms: SymptomLogStore
