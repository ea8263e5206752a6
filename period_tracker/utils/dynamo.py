"""
DynamoDB utility functions for data access.

All period tracker data lives in a single table keyed by user:

    PK = USER#{user_id}
    SK = PERIOD#{record_id}            cycle records
         SETTINGS#period               cycle settings
         SYMPTOM#{date}#{log_id}       symptom logs
"""
from typing import Dict, List, Optional, Any
import boto3
from boto3.dynamodb.conditions import Key

class DynamoDBClient:
    """Client for interacting with DynamoDB table."""

    def __init__(self, table_name: str, resource: Optional[Any] = None):
        self.dynamodb = resource or boto3.resource('dynamodb')
        self.table = self.dynamodb.Table(table_name)

    def put_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """
        Put a single item into the table.

        Args:
            item: Dictionary containing item attributes

        Returns:
            Response from DynamoDB
        """
        return self.table.put_item(Item=item)

    def get_item(self, key: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """
        Get a single item from the table.

        Args:
            key: Dictionary containing partition key and sort key

        Returns:
            Item if found, None otherwise
        """
        response = self.table.get_item(Key=key)
        return response.get('Item')

    def query_items(
        self,
        partition_key: str,
        partition_value: str,
        sort_key_condition: Optional[Key] = None
    ) -> List[Dict[str, Any]]:
        """
        Query items using partition key and optional sort key condition.

        Follows LastEvaluatedKey until every page has been read.

        Args:
            partition_key: Name of partition key
            partition_value: Value of partition key
            sort_key_condition: Optional sort key condition

        Returns:
            List of matching items
        """
        key_condition = Key(partition_key).eq(partition_value)
        if sort_key_condition:
            key_condition = key_condition & sort_key_condition

        items = []
        kwargs = {'KeyConditionExpression': key_condition}
        while True:
            response = self.table.query(**kwargs)
            items.extend(response.get('Items', []))
            last_key = response.get('LastEvaluatedKey')
            if not last_key:
                return items
            kwargs['ExclusiveStartKey'] = last_key

    def update_item(
        self,
        key: Dict[str, str],
        update_expression: str,
        expression_values: Dict[str, Any],
        expression_names: Optional[Dict[str, str]] = None
    ) -> Dict[str, Any]:
        """
        Update an item in the table, creating it if it does not exist.

        Args:
            key: Dictionary containing partition key and sort key
            update_expression: Update expression
            expression_values: Expression attribute values
            expression_names: Optional expression attribute names

        Returns:
            Response from DynamoDB
        """
        kwargs = {
            'Key': key,
            'UpdateExpression': update_expression,
            'ExpressionAttributeValues': expression_values,
            'ReturnValues': "ALL_NEW"
        }
        if expression_names:
            kwargs['ExpressionAttributeNames'] = expression_names
        return self.table.update_item(**kwargs)

def create_pk(user_id: str) -> str:
    """Create partition key from user ID."""
    return f"USER#{user_id}"

def create_period_sk(record_id: str) -> str:
    """Create sort key for cycle records."""
    return f"PERIOD#{record_id}"

def create_settings_sk() -> str:
    """Create sort key for the user's cycle settings."""
    return "SETTINGS#period"

def create_symptom_sk(date_str: str, log_id: str) -> str:
    """
    Create sort key for symptom logs.

    Args:
        date_str: ISO format date the symptoms were logged for
        log_id: Symptom log identifier

    Returns:
        Sort key in format "SYMPTOM#{date_str}#{log_id}"
    """
    return f"SYMPTOM#{date_str}#{log_id}"
