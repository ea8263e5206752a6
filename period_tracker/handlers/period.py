"""
Lambda handler for period tracking requests.

The request body names an action and carries its arguments:

    {"action": "start", "user_id": "123", "date": "2024-01-01"}
    {"action": "end", "user_id": "123", "record_id": "...", "date": "2024-01-05"}
    {"action": "prediction" | "ovulation" | "status" | "stats", "user_id": "123"}
    {"action": "history", "user_id": "123", "limit": 6}
    {"action": "symptoms", "user_id": "123", "symptoms": ["cramps"], "severity": "high"}
    {"action": "cycle_length", "user_id": "123", "cycle_length": 30}

Responses carry {"data": ...}; data is null when there is nothing to
predict or summarize yet.
"""
from typing import Any, Callable, Dict, List, Optional
from datetime import date
import json

from aws_lambda_powertools import Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import BaseModel

from period_tracker.config import EngineConfig, StorageConfig
from period_tracker.services.constants import DEFAULT_HISTORY_LIMIT
from period_tracker.services.cycle import CycleEngine
from period_tracker.services.exceptions import StorageError, ValidationError
from period_tracker.storage import get_storage
from period_tracker.utils.logging import logger, log_exception

tracer = Tracer()

# Engine shared across invocations of the same container (lazy loading)
_engine = None

def get_engine() -> CycleEngine:
    """Get or create the cycle engine."""
    global _engine
    if _engine is None:
        _engine = CycleEngine(
            get_storage(StorageConfig.from_env()),
            config=EngineConfig.from_env()
        )
    return _engine

def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status_code,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body)
    }

def _serialize(result: Any) -> Any:
    if isinstance(result, BaseModel):
        return result.model_dump(mode="json")
    if isinstance(result, list):
        return [_serialize(item) for item in result]
    return result

def _parse_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO date, ignoring any time part."""
    if not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid date: {value}") from e

def _parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field} must be an integer") from e

def _require(body: Dict[str, Any], field: str) -> Any:
    value = body.get(field)
    if value in (None, ""):
        raise ValidationError(f"{field} is required")
    return value

def _parse_symptoms(value: Any) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(s, str) for s in value):
        raise ValidationError("symptoms must be a list of names")
    return value

ACTIONS: Dict[str, Callable[[CycleEngine, str, Dict[str, Any]], Any]] = {
    "start": lambda engine, user_id, body: engine.log_period_start(
        user_id, _parse_date(body.get("date"))
    ),
    "end": lambda engine, user_id, body: engine.log_period_end(
        user_id, _require(body, "record_id"), _parse_date(body.get("date"))
    ),
    "prediction": lambda engine, user_id, body: engine.predict_next_period(user_id),
    "ovulation": lambda engine, user_id, body: engine.predict_ovulation(user_id),
    "status": lambda engine, user_id, body: engine.get_current_cycle_status(user_id),
    "stats": lambda engine, user_id, body: engine.get_cycle_stats(user_id),
    "history": lambda engine, user_id, body: engine.get_period_history(
        user_id,
        DEFAULT_HISTORY_LIMIT if body.get("limit") is None else _parse_int(body["limit"], "limit")
    ),
    "active": lambda engine, user_id, body: engine.get_active_period(user_id),
    "symptoms": lambda engine, user_id, body: engine.log_symptoms(
        user_id,
        _parse_symptoms(_require(body, "symptoms")),
        _parse_date(body.get("date")),
        body.get("severity") or "medium"
    ),
    "cycle_length": lambda engine, user_id, body: engine.update_cycle_length(
        user_id, _parse_int(_require(body, "cycle_length"), "cycle_length")
    ),
}

@logger.inject_lambda_context
@tracer.capture_lambda_handler
def handler(event: Dict, context: LambdaContext) -> Dict:
    """
    Handle a period tracking request.

    Args:
        event: API Gateway Lambda proxy event
        context: Lambda context

    Returns:
        API Gateway Lambda proxy response
    """
    try:
        body = event.get("body") or {}
        if isinstance(body, str):
            body = json.loads(body)
    except json.JSONDecodeError:
        return _response(400, {"error": "Request body must be JSON"})
    if not isinstance(body, dict):
        return _response(400, {"error": "Request body must be a JSON object"})

    action = body.get("action")
    user_id = body.get("user_id")
    if not action or not user_id:
        return _response(400, {"error": "Missing action or user_id"})

    operation = ACTIONS.get(action)
    if operation is None:
        return _response(400, {"error": f"Unknown action: {action}"})

    user_id = str(user_id)
    log_extra = {"user_id": user_id, "action": action}

    try:
        result = operation(get_engine(), user_id, body)
        return _response(200, {"data": _serialize(result)})

    except ValidationError as e:
        logger.warning("Invalid period tracking request", extra={
            **log_extra,
            "error": str(e),
            "error_type": e.__class__.__name__
        })
        return _response(400, {"error": str(e)})

    except StorageError as e:
        log_exception(logger, "Storage error handling period tracking request", extra=dict(log_extra))
        return _response(503, {"error": str(e)})

    except Exception as e:
        log_exception(logger, "Error handling period tracking request", extra=dict(log_extra))
        return _response(500, {"error": str(e)})
