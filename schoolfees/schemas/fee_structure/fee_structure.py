"""
Fee structure schemas.
"""

from decimal import Decimal
from typing import List, Optional

from pydantic import ConfigDict, Field, field_validator

from schoolfees.schemas.common.base import MAX_AMOUNT, BaseDBSchema, BaseSchema, quantize_amount

__all__ = [
    "FeeComponents",
    "FeeStructureCreate",
    "FeeStructureResponse",
    "FeeBreakdownLine",
]

_MONEY_FIELDS = (
    "admission_fee",
    "registration_fee",
    "tuition_fee",
    "examination_fee",
    "miscellaneous_fee",
    "transport_fee",
    "hostel_fee",
)


class FeeComponents(BaseSchema):
    """
    Resolved, immutable view of a fee structure.

    Every amount is a cent-quantized Decimal; missing amounts are zero.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    fee_structure_id: str
    structure_name: str
    course_id: str
    batch_id: str
    session_id: str
    admission_fee: Decimal = Decimal("0.00")
    registration_fee: Decimal = Decimal("0.00")
    tuition_fee: Decimal = Decimal("0.00")
    examination_fee: Decimal = Decimal("0.00")
    miscellaneous_fee: Decimal = Decimal("0.00")
    has_transport: bool = False
    transport_fee: Decimal = Decimal("0.00")
    has_hostel: bool = False
    hostel_fee: Decimal = Decimal("0.00")
    duration_months: int = 1


class FeeBreakdownLine(BaseSchema):
    label: str
    amount: Decimal


class FeeStructureCreate(BaseSchema):
    """Payload for creating a fee structure."""

    structure_name: str = Field(..., min_length=1, max_length=200)
    course_id: str = Field(..., description="Course ID")
    batch_id: str = Field(..., description="Batch ID")
    session_id: str = Field(..., description="Academic session ID")

    admission_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT)
    registration_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT)
    tuition_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT, description="Monthly tuition")
    examination_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT)
    miscellaneous_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT)
    has_transport: bool = False
    transport_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT, description="Monthly transport fee")
    has_hostel: bool = False
    hostel_fee: Decimal = Field(Decimal("0.00"), ge=0, le=MAX_AMOUNT, description="Monthly hostel fee")
    duration_months: int = Field(12, ge=1, le=120)

    @field_validator(*_MONEY_FIELDS)
    @classmethod
    def round_amounts(cls, v: Decimal) -> Decimal:
        return quantize_amount(v)


class FeeStructureResponse(BaseDBSchema):
    structure_name: str
    course_id: str
    batch_id: str
    session_id: str
    admission_fee: Optional[Decimal] = None
    registration_fee: Optional[Decimal] = None
    tuition_fee: Optional[Decimal] = None
    examination_fee: Optional[Decimal] = None
    miscellaneous_fee: Optional[Decimal] = None
    has_transport: bool
    transport_fee: Optional[Decimal] = None
    has_hostel: bool
    hostel_fee: Optional[Decimal] = None
    duration_months: int
    is_active: bool


class FeeStructureList(BaseSchema):
    items: List[FeeStructureResponse]
    total: int
