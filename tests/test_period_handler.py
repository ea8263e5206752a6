"""
Tests for the period tracking Lambda handler.
"""
import json
import pytest
from dataclasses import dataclass
from unittest.mock import Mock, patch

from period_tracker.handlers.period import handler
from period_tracker.services.exceptions import StorageError

@dataclass
class LambdaContext:
    function_name: str = "period-tracker"
    memory_limit_in_mb: int = 128
    invoked_function_arn: str = "arn:aws:lambda:eu-west-1:123456789012:function:period-tracker"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"

@pytest.fixture
def lambda_context():
    return LambdaContext()

@pytest.fixture
def invoke(engine, lambda_context):
    """Invoke the handler against the local test engine."""
    def _invoke(body):
        event = {"body": json.dumps(body) if isinstance(body, dict) else body}
        with patch("period_tracker.handlers.period.get_engine", return_value=engine):
            response = handler(event, lambda_context)
        return response["statusCode"], json.loads(response["body"])
    return _invoke

def test_start_and_end_period(invoke):
    """Test a period can be started and ended through the handler."""
    status, body = invoke({"action": "start", "user_id": "123", "date": "2024-02-25"})
    assert status == 200
    record = body["data"]
    assert record["start_date"] == "2024-02-25"
    assert record["cycle_number"] == 1
    assert record["end_date"] is None

    status, body = invoke({
        "action": "end",
        "user_id": "123",
        "record_id": record["id"],
        "date": "2024-02-29T18:30:00.000Z"
    })
    assert status == 200
    assert body["data"]["duration"] == 5

def test_end_unknown_record_returns_null(invoke):
    """Test ending a missing record is not an error."""
    status, body = invoke({"action": "end", "user_id": "123", "record_id": "missing"})
    assert status == 200
    assert body["data"] is None

def test_predictions_without_data(invoke):
    """Test predictions are null before any period is logged."""
    for action in ("prediction", "ovulation", "stats", "active"):
        status, body = invoke({"action": action, "user_id": "123"})
        assert status == 200
        assert body["data"] is None

def test_status_and_prediction(invoke):
    """Test status and prediction payloads."""
    invoke({"action": "start", "user_id": "123", "date": "2024-02-20"})

    status, body = invoke({"action": "prediction", "user_id": "123"})
    assert body["data"] == {"predicted_date": "2024-03-19", "days_until": 18, "cycle_length": 28}

    status, body = invoke({"action": "ovulation", "user_id": "123"})
    assert body["data"]["fertile_window"] == {"start": "2024-03-02", "end": "2024-03-07"}

    status, body = invoke({"action": "status", "user_id": "123"})
    assert status == 200
    assert body["data"]["current_phase"] == "follicular"
    assert body["data"]["days_until_period"] == 18

def test_history_symptoms_and_cycle_length(invoke):
    """Test the supplementary actions."""
    invoke({"action": "start", "user_id": "123", "date": "2024-01-01"})
    invoke({"action": "start", "user_id": "123", "date": "2024-01-29"})

    status, body = invoke({"action": "history", "user_id": "123", "limit": 1})
    assert [r["start_date"] for r in body["data"]] == ["2024-01-29"]

    status, body = invoke({
        "action": "symptoms",
        "user_id": "123",
        "symptoms": ["cramps"],
        "severity": "high"
    })
    assert status == 200
    assert body["data"]["severity"] == "high"

    status, body = invoke({"action": "cycle_length", "user_id": "123", "cycle_length": 30})
    assert status == 200
    assert body["data"]["cycle_length"] == 30

@pytest.mark.parametrize("body", [
    "not json",
    {"user_id": "123"},
    {"action": "start"},
    {"action": "unknown", "user_id": "123"},
    {"action": "start", "user_id": "123", "date": "31/01/2024"},
    {"action": "end", "user_id": "123"},
    {"action": "cycle_length", "user_id": "123", "cycle_length": 0},
    {"action": "symptoms", "user_id": "123", "symptoms": []},
    {"action": "symptoms", "user_id": "123", "symptoms": 5},
    {"action": "history", "user_id": "123", "limit": -1},
    {"action": "history", "user_id": "123", "limit": 0},
    {"action": "history", "user_id": "123", "limit": "all"},
    {"action": "cycle_length", "user_id": "123", "cycle_length": "long"},
    {"action": "start", "user_id": "123", "date": 20240101},
    "[1, 2]",
])
def test_bad_requests(invoke, body):
    """Test invalid requests return 400."""
    status, response = invoke(body)
    assert status == 400
    assert "error" in response

def test_storage_error_returns_503(lambda_context):
    """Test storage failures are reported as unavailable."""
    engine = Mock()
    engine.get_cycle_stats.side_effect = StorageError("DynamoDB error")
    event = {"body": json.dumps({"action": "stats", "user_id": "123"})}

    with patch("period_tracker.handlers.period.get_engine", return_value=engine):
        response = handler(event, lambda_context)

    assert response["statusCode"] == 503
    assert "DynamoDB error" in json.loads(response["body"])["error"]

def test_internal_errors_return_500(lambda_context):
    """Test unexpected errors inside the engine are not reported as bad requests."""
    engine = Mock()
    engine.get_cycle_stats.side_effect = ValueError("bad state")
    event = {"body": json.dumps({"action": "stats", "user_id": "123"})}

    with patch("period_tracker.handlers.period.get_engine", return_value=engine):
        response = handler(event, lambda_context)

    assert response["statusCode"] == 500

def test_engine_configuration_error_returns_500(lambda_context):
    """Test a broken engine configuration is a server error."""
    event = {"body": json.dumps({"action": "stats", "user_id": "123"})}

    with patch(
        "period_tracker.handlers.period.get_engine",
        side_effect=TypeError("bad DEFAULT_CYCLE_LENGTH")
    ):
        response = handler(event, lambda_context)

    assert response["statusCode"] == 500
    assert "DEFAULT_CYCLE_LENGTH" in json.loads(response["body"])["error"]
