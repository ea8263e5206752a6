"""
DynamoDB-backed stores for cycle records, settings and symptom logs.

Typical usage:
    client = DynamoDBClient(os.environ['TRACKER_TABLE_NAME'])
    records = DynamoCycleRecordStore(client)
    latest = records.list_records(user_id, RecordOrder.CREATED_AT, limit=1)
"""
from typing import Any, Dict, List, Optional
from aws_lambda_powertools import Logger
from boto3.dynamodb.conditions import Key
from botocore.exceptions import BotoCoreError, ClientError
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
from period_tracker.utils.dynamo import (
    DynamoDBClient,
    create_pk,
    create_period_sk,
    create_settings_sk,
    create_symptom_sk,
)

logger = Logger()

# Errors from the AWS SDK, plus items that no longer match the models
STORE_ERRORS = (BotoCoreError, ClientError, pydantic.ValidationError)

PERIOD_SK_PREFIX = "PERIOD#"
SYMPTOM_SK_PREFIX = "SYMPTOM#"


def _log_store_error(message: str, user_id: str, error: Exception) -> None:
    logger.error(message, extra={
        "user_id": user_id,
        "error": str(error),
        "error_type": error.__class__.__name__
    })


class DynamoCycleRecordStore(CycleRecordStore):
    """Cycle records stored as PERIOD# items under the user's partition."""

    def __init__(self, dynamo: DynamoDBClient):
        self.dynamo = dynamo

    def list_records(
        self,
        user_id: str,
        order_by: RecordOrder,
        direction: SortDirection = SortDirection.DESC,
        limit: Optional[int] = None
    ) -> List[CycleRecord]:
        """
        List a user's cycle records.

        DynamoDB returns items in sort key order, which follows record ids,
        so records are sorted here. Creation ties are broken by cycle number.

        Raises:
            StorageError: If the query fails
        """
        try:
            items = self.dynamo.query_items(
                partition_key="PK",
                partition_value=create_pk(user_id),
                sort_key_condition=Key("SK").begins_with(PERIOD_SK_PREFIX)
            )
            records = [CycleRecord(**item) for item in items]
        except STORE_ERRORS as e:
            _log_store_error("Error listing cycle records", user_id, e)
            raise StorageError(f"Failed to list cycle records: {str(e)}") from e

        records.sort(key=lambda record: record.cycle_number)
        return sort_records(records, order_by, direction, limit)

    def get_record(self, user_id: str, record_id: str) -> Optional[CycleRecord]:
        try:
            item = self.dynamo.get_item({
                "PK": create_pk(user_id),
                "SK": create_period_sk(record_id)
            })
            return CycleRecord(**item) if item else None
        except STORE_ERRORS as e:
            _log_store_error("Error retrieving cycle record", user_id, e)
            raise StorageError(f"Failed to retrieve cycle record: {str(e)}") from e

    def put_record(self, user_id: str, record: CycleRecord) -> None:
        try:
            self.dynamo.put_item({
                "PK": create_pk(user_id),
                "SK": create_period_sk(record.id),
                **record.model_dump(mode="json", exclude_none=True)
            })
        except STORE_ERRORS as e:
            _log_store_error("Error saving cycle record", user_id, e)
            raise StorageError(f"Failed to save cycle record: {str(e)}") from e


class DynamoSettingsStore(SettingsStore):
    """Cycle settings stored in a single SETTINGS#period item."""

    def __init__(self, dynamo: DynamoDBClient):
        self.dynamo = dynamo

    def get_settings(self, user_id: str) -> UserCycleSettings:
        try:
            item = self.dynamo.get_item({
                "PK": create_pk(user_id),
                "SK": create_settings_sk()
            })
            return UserCycleSettings(**item) if item else UserCycleSettings()
        except STORE_ERRORS as e:
            _log_store_error("Error retrieving cycle settings", user_id, e)
            raise StorageError(f"Failed to retrieve cycle settings: {str(e)}") from e

    def merge_settings(self, user_id: str, **fields: Any) -> None:
        """
        Merge fields into the settings item with a single update.

        Each field is SET individually, so concurrent merges of different
        fields do not overwrite each other.
        """
        values = serialize_settings_fields(fields)
        if not values:
            return

        names: Dict[str, str] = {}
        expression_values: Dict[str, Any] = {}
        assignments = []
        for index, (field_name, value) in enumerate(sorted(values.items())):
            names[f"#f{index}"] = field_name
            expression_values[f":v{index}"] = value
            assignments.append(f"#f{index} = :v{index}")

        try:
            self.dynamo.update_item(
                key={"PK": create_pk(user_id), "SK": create_settings_sk()},
                update_expression="SET " + ", ".join(assignments),
                expression_values=expression_values,
                expression_names=names
            )
        except STORE_ERRORS as e:
            _log_store_error("Error updating cycle settings", user_id, e)
            raise StorageError(f"Failed to update cycle settings: {str(e)}") from e


class DynamoSymptomLogStore(SymptomLogStore):
    """Symptom logs stored as SYMPTOM# items, one per log."""

    def __init__(self, dynamo: DynamoDBClient):
        self.dynamo = dynamo

    def append_symptom_log(self, user_id: str, log: SymptomLog) -> None:
        try:
            self.dynamo.put_item({
                "PK": create_pk(user_id),
                "SK": create_symptom_sk(log.date.isoformat(), log.id),
                **log.model_dump(mode="json")
            })
        except STORE_ERRORS as e:
            _log_store_error("Error saving symptom log", user_id, e)
            raise StorageError(f"Failed to save symptom log: {str(e)}") from e

    def list_symptom_logs(self, user_id: str, limit: Optional[int] = None) -> List[SymptomLog]:
        try:
            items = self.dynamo.query_items(
                partition_key="PK",
                partition_value=create_pk(user_id),
                sort_key_condition=Key("SK").begins_with(SYMPTOM_SK_PREFIX)
            )
            logs = [SymptomLog(**item) for item in items]
        except STORE_ERRORS as e:
            _log_store_error("Error listing symptom logs", user_id, e)
            raise StorageError(f"Failed to list symptom logs: {str(e)}") from e

        logs.sort(key=lambda log: (log.date, log.created_at), reverse=True)
        return apply_limit(logs, limit)
