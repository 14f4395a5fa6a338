"""
Invoice schemas for generation requests and invoice read models.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from schoolfees.schemas.common.base import BaseDBSchema, BaseSchema

__all__ = [
    "InvoiceGenerateRequest",
    "BulkGenerateRequest",
    "BulkGenerateResult",
    "InvoiceItemResponse",
    "InvoiceResponse",
    "InvoiceDetailResponse",
    "PendingInvoiceFilter",
    "PendingInvoiceResponse",
]


class InvoiceGenerateRequest(BaseSchema):
    """Generate one invoice for one student."""

    student_id: str = Field(..., description="Student ID")
    billing_period: Optional[str] = Field(
        None,
        max_length=50,
        description="Billing period label; defaults to the academic session name",
    )
    due_date: Optional[Date] = Field(None, description="Explicit due date")


class BulkGenerateRequest(BaseSchema):
    """Generate invoices for every active student of a cohort."""

    course_id: str = Field(..., description="Course ID")
    batch_id: Optional[str] = Field(None, description="Restrict to one batch")
    due_date: Optional[Date] = Field(None, description="Due date for every generated invoice")
    billing_period: Optional[str] = Field(None, max_length=50)


class BulkGenerateResult(BaseSchema):
    created: int
    skipped: int
    invoice_ids: List[str] = Field(default_factory=list)


class InvoiceItemResponse(BaseSchema):
    id: str
    description: str
    amount: Decimal


class InvoiceResponse(BaseDBSchema):
    invoice_number: str
    student_id: str
    fee_structure_id: Optional[str] = None
    billing_period: str
    issue_date: Date
    due_date: Date
    total_amount: Decimal
    paid_amount: Decimal
    discount_amount: Decimal
    balance: Decimal
    status: str
    created_by: Optional[str] = None


class InvoicePaymentLine(BaseSchema):
    transaction_id: str
    receipt_number: str
    amount: Decimal
    payment_mode: str
    payment_date: datetime
    collected_by: Optional[str] = None


class InvoiceDetailResponse(InvoiceResponse):
    student_name: Optional[str] = None
    roll_number: Optional[str] = None
    items: List[InvoiceItemResponse] = Field(default_factory=list)
    payments: List[InvoicePaymentLine] = Field(default_factory=list)


class PendingInvoiceFilter(BaseSchema):
    """The enumerated filters accepted by the pending-invoice listing."""

    course_id: Optional[str] = None
    batch_id: Optional[str] = None
    session_id: Optional[str] = None
    student_id: Optional[str] = None
    search: Optional[str] = Field(None, max_length=100, description="Name, roll number or invoice number")
    overdue_only: bool = False


class PendingInvoiceResponse(BaseSchema):
    id: str
    invoice_number: str
    student_id: str
    student_name: str
    roll_number: Optional[str] = None
    billing_period: str
    issue_date: Date
    due_date: Date
    total_amount: Decimal
    paid_amount: Decimal
    balance: Decimal
    status: str
    is_overdue: bool
