"""
Waiver request schemas.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from schoolfees.models.base.enums import WaiverDecision
from schoolfees.schemas.common.base import MAX_AMOUNT, BaseDBSchema, BaseSchema, quantize_amount

__all__ = [
    "WaiverCreate",
    "WaiverDecisionRequest",
    "WaiverResponse",
    "WaiverQueueItem",
]


class WaiverCreate(BaseSchema):
    """Request a concession on a fee."""

    student_id: str = Field(..., description="Student ID")
    fee_type: str = Field(..., min_length=1, max_length=100, description="Fee the waiver targets")
    amount: Decimal = Field(..., le=MAX_AMOUNT, description="Requested amount")
    reason: Optional[str] = Field(None, max_length=1000)

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        return quantize_amount(v)


class WaiverDecisionRequest(BaseSchema):
    decision: WaiverDecision
    amount: Optional[Decimal] = Field(
        None,
        le=MAX_AMOUNT,
        description="Approved amount; defaults to the requested amount",
    )

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return quantize_amount(v)


class WaiverResponse(BaseDBSchema):
    student_id: str
    fee_type: str
    requested_amount: Decimal
    approved_amount: Optional[Decimal] = None
    reason: Optional[str] = None
    status: str
    request_date: datetime
    requested_by: Optional[str] = None
    processed_by: Optional[str] = None
    processed_date: Optional[datetime] = None
    applied_invoice_id: Optional[str] = None
    applied_amount: Optional[Decimal] = None


class WaiverQueueItem(WaiverResponse):
    student_name: str
    roll_number: Optional[str] = None
    course_id: Optional[str] = None
    batch_id: Optional[str] = None
