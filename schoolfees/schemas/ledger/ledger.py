"""
Ledger read models: consolidated status, statements and dashboards.
"""

from datetime import date as Date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import Field

from schoolfees.schemas.common.base import BaseSchema
from schoolfees.schemas.fee_structure.fee_structure import FeeBreakdownLine
from schoolfees.schemas.invoice.invoice import InvoiceResponse

__all__ = [
    "StudentHeader",
    "StudentPaymentLine",
    "StudentFeeStatus",
    "RefundableBalance",
    "StatementEntry",
    "StudentStatement",
    "DefaulterItem",
    "DashboardStats",
    "ForecastBucket",
    "RevenueForecast",
]


class StudentHeader(BaseSchema):
    id: str
    full_name: str
    roll_number: Optional[str] = None
    course_id: Optional[str] = None
    batch_id: Optional[str] = None
    session_id: Optional[str] = None
    is_active: bool = True


class StudentPaymentLine(BaseSchema):
    transaction_id: str
    receipt_number: str
    invoice_id: str
    invoice_number: str
    amount: Decimal
    payment_mode: str
    payment_date: datetime
    remarks: Optional[str] = None


class StudentFeeStatus(BaseSchema):
    """Everything the fee counter needs for one student."""

    student: StudentHeader
    total_fees: Decimal
    total_paid: Decimal
    total_discount: Decimal
    balance: Decimal
    fee_structure_id: Optional[str] = None
    breakdown: List[FeeBreakdownLine] = Field(default_factory=list)
    invoices: List[InvoiceResponse] = Field(default_factory=list)
    payments: List[StudentPaymentLine] = Field(default_factory=list)


class RefundableBalance(BaseSchema):
    student_id: str
    total_paid: Decimal
    total_invoiced: Decimal
    refundable_amount: Decimal = Field(
        ...,
        description="Payments minus invoice totals; negative means money is still owed",
    )


class StatementEntry(BaseSchema):
    entry_date: Date
    entry_type: str
    reference: str
    description: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


class StudentStatement(BaseSchema):
    student: StudentHeader
    entries: List[StatementEntry]
    total_debit: Decimal
    total_credit: Decimal
    closing_balance: Decimal


class DefaulterItem(BaseSchema):
    student_id: str
    full_name: str
    roll_number: Optional[str] = None
    course_id: Optional[str] = None
    batch_id: Optional[str] = None
    total_due: Decimal
    open_invoices: int
    oldest_due_date: Optional[Date] = None


class DashboardStats(BaseSchema):
    total_invoiced: Decimal
    total_collected: Decimal
    total_discount: Decimal
    total_outstanding: Decimal
    invoice_count: int
    unpaid_count: int
    overdue_count: int
    overdue_amount: Decimal
    collected_this_month: Decimal
    pending_waivers: int
    currency: str


class ForecastBucket(BaseSchema):
    month: str
    expected_amount: Decimal
    invoice_count: int


class RevenueForecast(BaseSchema):
    months: int
    buckets: List[ForecastBucket]
    total_expected: Decimal
    currency: str
