"""
Symptom log model definition.
"""
from enum import Enum
from datetime import date, datetime
from typing import List
from pydantic import BaseModel


class Severity(str, Enum):
    """Self-reported symptom severity."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class SymptomLog(BaseModel):
    """
    Represents a set of symptoms logged for a single day.
    """
    id: str
    date: date
    symptoms: List[str]
    severity: Severity = Severity.MEDIUM
    created_at: datetime
