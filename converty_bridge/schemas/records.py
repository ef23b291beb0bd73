"""
Pydantic models for locally stored chatbot interaction records.
"""

from datetime import datetime
from typing import Any, Dict

from pydantic import BaseModel, Field

# Largest value SQLite can store in an INTEGER column.
SQLITE_MAX_INTEGER = 2**63 - 1


class InteractionRecord(BaseModel):
    """A row of the interactions table."""

    id: int
    user_id: int
    type: str
    details: Dict[str, Any] = Field(default_factory=dict)
    status: str = ""
    created_at: datetime


class RecordCreateRequest(BaseModel):
    """Incoming payload for inserting an interaction record."""

    user_id: int = Field(..., ge=0, le=SQLITE_MAX_INTEGER)
    type: str = Field(..., description="Record category such as address, order or issue.")
    details: Dict[str, Any] = Field(default_factory=dict)
    status: str = ""


__all__ = ["InteractionRecord", "RecordCreateRequest", "SQLITE_MAX_INTEGER"]
