"""
Payment schemas.

Collection requests, allocation results, receipts and payment history.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_validator

from schoolfees.models.base.enums import PaymentMode
from schoolfees.schemas.common.base import MAX_AMOUNT, BaseSchema, quantize_amount

__all__ = [
    "CollectPaymentRequest",
    "AllocationLine",
    "CollectionResult",
    "ReceiptLine",
    "ReceiptResponse",
    "PaymentHistoryItem",
    "PaymentHistoryResponse",
]


class CollectPaymentRequest(BaseSchema):
    """
    Manual collection at the fee counter.

    The amount is spread over the student's open invoices, oldest due first.
    """

    student_id: str = Field(..., description="Student ID")
    amount: Decimal = Field(..., le=MAX_AMOUNT, description="Amount received")
    payment_mode: PaymentMode = Field(PaymentMode.CASH, description="Mode of payment")
    notes: Optional[str] = Field(None, max_length=500, description="Remarks printed on receipt")
    reference: Optional[str] = Field(
        None,
        min_length=4,
        max_length=50,
        description="Client reference; reusing one is rejected",
    )

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v: Decimal) -> Decimal:
        """Amounts are rounded to cents; the sign is checked by the allocator."""
        return quantize_amount(v)


class AllocationLine(BaseSchema):
    invoice_id: str
    invoice_number: str
    transaction_id: str
    applied_amount: Decimal
    remaining_balance: Decimal
    new_status: str


class CollectionResult(BaseSchema):
    receipt_number: str
    student_id: str
    payment_mode: str
    amount_received: Decimal
    amount_applied: Decimal
    remaining_unapplied: Decimal
    transaction_refs: List[str]
    allocations: List[AllocationLine]


class ReceiptLine(BaseSchema):
    transaction_id: str
    invoice_id: str
    invoice_number: str
    billing_period: str
    amount: Decimal
    invoice_balance: Decimal


class ReceiptResponse(BaseSchema):
    reference: str
    receipt_number: str
    student_id: str
    student_name: str
    roll_number: Optional[str] = None
    payment_mode: str
    payment_date: datetime
    collected_by: Optional[str] = None
    remarks: Optional[str] = None
    total_amount: Decimal
    lines: List[ReceiptLine]


class PaymentHistoryItem(BaseSchema):
    transaction_id: str
    receipt_number: str
    invoice_id: str
    invoice_number: str
    student_id: str
    student_name: str
    amount: Decimal
    payment_mode: str
    payment_date: datetime
    collected_by: Optional[str] = None


class PaymentHistoryResponse(BaseSchema):
    start_date: Date
    end_date: Date
    total_collected: Decimal
    count: int
    payments: List[PaymentHistoryItem]
