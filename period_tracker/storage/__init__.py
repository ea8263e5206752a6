"""
Store implementations for the cycle engine.

get_storage picks the backend once, from configuration: DynamoDB when a
table name is set, the local key-value store otherwise.
"""
from typing import Optional
from aws_lambda_powertools import Logger

from period_tracker.config import StorageConfig
from period_tracker.storage.base import (
    CycleRecordStore,
    RecordOrder,
    SettingsStore,
    SortDirection,
    StorageBundle,
    SymptomLogStore,
)
from period_tracker.storage.dynamo import (
    DynamoCycleRecordStore,
    DynamoSettingsStore,
    DynamoSymptomLogStore,
)
from period_tracker.storage.local import (
    LocalCycleRecordStore,
    LocalKeyValueStorage,
    LocalSettingsStore,
    LocalSymptomLogStore,
)
from period_tracker.utils.dynamo import DynamoDBClient

logger = Logger()

def get_storage(config: Optional[StorageConfig] = None) -> StorageBundle:
    """
    Build the record, settings and symptom stores.

    Args:
        config: Storage configuration, read from the environment if omitted

    Returns:
        StorageBundle with all three stores on the same backend
    """
    config = config or StorageConfig.from_env()

    if config.use_dynamo:
        logger.info("Using DynamoDB storage", extra={"table_name": config.table_name})
        dynamo = DynamoDBClient(config.table_name)
        return StorageBundle(
            records=DynamoCycleRecordStore(dynamo),
            settings=DynamoSettingsStore(dynamo),
            symptoms=DynamoSymptomLogStore(dynamo)
        )

    logger.warning("No DynamoDB table configured, using local storage", extra={
        "local_path": config.local_path
    })
    storage = LocalKeyValueStorage(config.local_path)
    return StorageBundle(
        records=LocalCycleRecordStore(storage),
        settings=LocalSettingsStore(storage),
        symptoms=LocalSymptomLogStore(storage)
    )

__all__ = [
    "CycleRecordStore",
    "RecordOrder",
    "SettingsStore",
    "SortDirection",
    "StorageBundle",
    "SymptomLogStore",
    "get_storage",
]
