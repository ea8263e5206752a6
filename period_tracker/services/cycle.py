"""
Service module for menstrual cycle tracking and predictions.

This module provides the CycleEngine, which records period starts and ends,
predicts the next period and the ovulation window, derives the current phase
and computes regularity statistics over the stored history.

Typical usage:
    engine = CycleEngine(get_storage())
    record = engine.log_period_start(user_id, date(2024, 1, 1))
    engine.log_period_end(user_id, record.id, date(2024, 1, 5))
    prediction = engine.predict_next_period(user_id)
    if prediction:
        print(f"Next period expected on {prediction.predicted_date}")
"""
import uuid
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional
from aws_lambda_powertools import Logger

from period_tracker.config import EngineConfig
from period_tracker.models.cycle import CycleRecord, UserCycleSettings
from period_tracker.models.prediction import (
    CycleStats,
    CycleStatus,
    FertileWindow,
    OvulationPrediction,
    PeriodPrediction,
)
from period_tracker.models.symptom import Severity, SymptomLog
from period_tracker.services.constants import DEFAULT_HISTORY_LIMIT, STATUS_RECENT_PERIODS
from period_tracker.services.exceptions import ValidationError
from period_tracker.services.phase import build_cycle_status
from period_tracker.services.statistics import calculate_cycle_statistics
from period_tracker.services.utils import days_between_inclusive, days_until
from period_tracker.storage.base import RecordOrder, SortDirection, StorageBundle

logger = Logger()


class CycleEngine:
    """
    Cycle tracking operations for a single user at a time.

    The engine keeps no state of its own between calls; everything is read
    from and written to the injected stores, so calls for the same user can
    run concurrently with last-write-wins semantics.
    """

    def __init__(
        self,
        storage: StorageBundle,
        config: Optional[EngineConfig] = None,
        today: Callable[[], date] = date.today,
        now: Callable[[], datetime] = datetime.now
    ):
        """
        Initialize the engine.

        Args:
            storage: Record, settings and symptom stores
            config: Engine constants, defaults used if omitted
            today: Clock returning the current date
            now: Clock returning the current time, used for audit timestamps
        """
        self.records = storage.records
        self.settings = storage.settings
        self.symptoms = storage.symptoms
        self.config = config or EngineConfig()
        self._today = today
        self._now = now

    def next_cycle_number(self, user_id: str) -> int:
        """
        Get the cycle number for a new record.

        Numbers follow creation order: the most recently created record's
        number plus one, whatever its start date.
        """
        latest = self.records.list_records(
            user_id, RecordOrder.CREATED_AT, SortDirection.DESC, limit=1
        )
        return latest[0].cycle_number + 1 if latest else 1

    def log_period_start(self, user_id: str, start_date: Optional[date] = None) -> CycleRecord:
        """
        Record the start of a period.

        The start date is not checked against existing records, and it
        becomes the user's last period even if it is older than another
        stored start.

        Args:
            user_id: User identifier
            start_date: First day of the period, defaults to today

        Returns:
            The created CycleRecord

        Raises:
            StorageError: If the record or settings cannot be saved
        """
        start_date = start_date or self._today()
        record = CycleRecord(
            id=str(uuid.uuid4()),
            start_date=start_date,
            cycle_number=self.next_cycle_number(user_id),
            created_at=self._now()
        )

        self.records.put_record(user_id, record)
        self.settings.merge_settings(user_id, last_period=start_date)

        logger.info("Logged period start", extra={
            "user_id": user_id,
            "record_id": record.id,
            "start_date": start_date.isoformat(),
            "cycle_number": record.cycle_number
        })
        return record

    def log_period_end(
        self,
        user_id: str,
        record_id: str,
        end_date: Optional[date] = None
    ) -> Optional[CycleRecord]:
        """
        Record the end of a period and store its duration.

        Args:
            user_id: User identifier
            record_id: Identifier of the record to close
            end_date: Last day of the period, defaults to today

        Returns:
            The updated record, or None if no record has that id. A missing
            record is not an error.

        Raises:
            ValidationError: If end_date is before the record's start date
            StorageError: If the record cannot be read or saved
        """
        end_date = end_date or self._today()
        record = self.records.get_record(user_id, record_id)
        if record is None:
            logger.warning("Period end logged for unknown record", extra={
                "user_id": user_id,
                "record_id": record_id
            })
            return None

        if end_date < record.start_date:
            raise ValidationError(
                f"Period end {end_date.isoformat()} is before its start {record.start_date.isoformat()}"
            )

        updated = record.model_copy(update={
            "end_date": end_date,
            "duration": days_between_inclusive(record.start_date, end_date)
        })
        self.records.put_record(user_id, updated)

        logger.info("Logged period end", extra={
            "user_id": user_id,
            "record_id": record_id,
            "duration": updated.duration
        })
        return updated

    def predict_next_period(self, user_id: str) -> Optional[PeriodPrediction]:
        """
        Predict the next period from the last logged start.

        Returns:
            PeriodPrediction, or None if no period has been logged. days_until
            is negative when the predicted date has already passed.
        """
        settings = self.settings.get_settings(user_id)
        return self._predict_next_period(settings)

    def _predict_next_period(self, settings: UserCycleSettings) -> Optional[PeriodPrediction]:
        if settings.last_period is None:
            return None

        cycle_length = settings.cycle_length or self.config.default_cycle_length
        predicted_date = settings.last_period + timedelta(days=cycle_length)
        return PeriodPrediction(
            predicted_date=predicted_date,
            days_until=days_until(predicted_date, self._today()),
            cycle_length=cycle_length
        )

    def predict_ovulation(self, user_id: str) -> Optional[OvulationPrediction]:
        """
        Predict ovulation a fixed luteal phase before the next period.

        Returns:
            OvulationPrediction with its fertile window, or None when the
            next period cannot be predicted
        """
        return self._predict_ovulation(self.predict_next_period(user_id))

    def _predict_ovulation(self, period: Optional[PeriodPrediction]) -> Optional[OvulationPrediction]:
        if period is None:
            return None

        ovulation_date = period.predicted_date - timedelta(days=self.config.luteal_phase_days)
        return OvulationPrediction(
            predicted_date=ovulation_date,
            fertile_window=FertileWindow(
                start=ovulation_date - timedelta(days=self.config.fertile_days_before),
                end=ovulation_date + timedelta(days=self.config.fertile_days_after)
            ),
            days_until=days_until(ovulation_date, self._today())
        )

    def get_current_cycle_status(self, user_id: str) -> CycleStatus:
        """
        Get the user's current phase and countdowns.

        Looks at the most recently created records to decide whether a
        period is ongoing; open periods count for a limited number of days.
        """
        recent = self.records.list_records(
            user_id,
            RecordOrder.CREATED_AT,
            SortDirection.DESC,
            limit=self.config.status_recent_periods
        )
        period = self.predict_next_period(user_id)
        ovulation = self._predict_ovulation(period)

        return build_cycle_status(
            recent,
            period,
            ovulation,
            self._today(),
            self.config.open_period_max_days
        )

    def get_cycle_stats(self, user_id: str) -> Optional[CycleStats]:
        """
        Calculate statistics over the latest periods by start date.

        Returns:
            CycleStats, or None with fewer than two recorded periods
        """
        records = self.records.list_records(
            user_id,
            RecordOrder.START_DATE,
            SortDirection.DESC,
            limit=self.config.stats_history_periods
        )
        return calculate_cycle_statistics(
            records,
            self.config.regular_cycle_min_days,
            self.config.regular_cycle_max_days
        )

    def get_period_history(self, user_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[CycleRecord]:
        """
        Get the latest periods, newest start date first.

        Raises:
            ValidationError: If limit is below one
        """
        if limit < 1:
            raise ValidationError(f"History limit must be at least 1, got {limit}")
        return self.records.list_records(
            user_id, RecordOrder.START_DATE, SortDirection.DESC, limit=limit
        )

    def get_recent_periods(self, user_id: str, count: int = STATUS_RECENT_PERIODS) -> List[CycleRecord]:
        return self.get_period_history(user_id, limit=count)

    def get_active_period(self, user_id: str) -> Optional[CycleRecord]:
        """
        Get the period that can still be ended.

        Only the latest period by start date is considered; it is returned
        if it has no end date yet.
        """
        latest = self.get_recent_periods(user_id, count=1)
        if latest and latest[0].is_ongoing:
            return latest[0]
        return None

    def update_cycle_length(self, user_id: str, cycle_length: int) -> UserCycleSettings:
        """
        Save a user-provided average cycle length.

        Raises:
            ValidationError: If cycle_length is below one day
        """
        if cycle_length < 1:
            raise ValidationError(f"Cycle length must be at least 1 day, got {cycle_length}")

        self.settings.merge_settings(user_id, cycle_length=cycle_length)
        logger.info("Updated cycle length", extra={
            "user_id": user_id,
            "cycle_length": cycle_length
        })
        return self.settings.get_settings(user_id)

    def log_symptoms(
        self,
        user_id: str,
        symptoms: List[str],
        log_date: Optional[date] = None,
        severity: Severity = Severity.MEDIUM
    ) -> SymptomLog:
        """
        Append a symptom log for a day.

        Args:
            user_id: User identifier
            symptoms: Symptom names, e.g. ['cramps', 'bloating']
            log_date: Day the symptoms apply to, defaults to today
            severity: Overall severity

        Raises:
            ValidationError: If no symptoms are given or severity is unknown
        """
        if isinstance(symptoms, str):
            symptoms = [symptoms]
        symptoms = [s.strip() for s in symptoms if s and s.strip()]
        if not symptoms:
            raise ValidationError("At least one symptom is required")
        try:
            severity = Severity(severity)
        except ValueError as e:
            raise ValidationError(f"Unknown severity: {severity}") from e

        log = SymptomLog(
            id=str(uuid.uuid4()),
            date=log_date or self._today(),
            symptoms=symptoms,
            severity=severity,
            created_at=self._now()
        )
        self.symptoms.append_symptom_log(user_id, log)

        logger.info("Logged symptoms", extra={
            "user_id": user_id,
            "date": log.date.isoformat(),
            "symptom_count": len(symptoms),
            "severity": log.severity.value
        })
        return log

    def get_symptom_logs(self, user_id: str, limit: Optional[int] = None) -> List[SymptomLog]:
        return self.symptoms.list_symptom_logs(user_id, limit=limit)
