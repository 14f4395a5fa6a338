"""
Base schema classes with common fields and configurations.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from schoolfees.utils.money import MAX_AMOUNT, to_money

__all__ = [
    "BaseSchema",
    "BaseDBSchema",
    "ErrorDetail",
    "ErrorResponse",
    "PaginatedResponse",
    "HealthResponse",
    "quantize_amount",
    "MAX_AMOUNT",
]

T = TypeVar("T")


def quantize_amount(v: Optional[Decimal]) -> Optional[Decimal]:
    """Shared field validator body: round money to cents."""
    if v is None:
        return v
    return to_money(v)


class BaseSchema(BaseModel):
    """
    Base schema with common Pydantic configuration.

    All application-facing schemas inherit from this to ensure
    consistent behaviour.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
        validate_assignment=True,
    )


class BaseDBSchema(BaseSchema):
    """Base schema for database entities with ID and timestamps."""

    id: str = Field(..., description="Unique identifier")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")


class ErrorDetail(BaseSchema):
    code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime


class ErrorResponse(BaseSchema):
    """Error envelope returned by every failing endpoint."""

    error: ErrorDetail
    request_id: Optional[str] = None


class PaginatedResponse(BaseSchema, Generic[T]):
    items: List[T]
    total: int = Field(..., ge=0)
    skip: int = Field(0, ge=0)
    limit: int = Field(100, ge=1)


class HealthResponse(BaseSchema):
    status: str
    app: str
    version: str
    environment: str
    database: str
