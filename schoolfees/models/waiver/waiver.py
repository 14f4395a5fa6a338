"""
Waiver Request Model

Pending -> Approved | Rejected. ``applied_invoice_id`` and ``applied_amount``
record the monetary effect of an approval; both stay empty on rejection.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.academic.academic import Student
from schoolfees.models.base.base_model import TimestampModel
from schoolfees.models.base.enums import WaiverStatus


class WaiverRequest(TimestampModel):
    """Fee waiver / concession request"""

    __tablename__ = "waiver_requests"

    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    fee_type: Mapped[str] = mapped_column(String(100), nullable=False)
    requested_amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    approved_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=True,
    )
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WaiverStatus.PENDING.value,
        index=True,
    )
    request_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    requested_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    processed_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    processed_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    applied_invoice_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("invoices.id", ondelete="SET NULL"),
        nullable=True,
    )
    applied_amount: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=True,
    )

    student: Mapped["Student"] = relationship()

    __table_args__ = (
        CheckConstraint("requested_amount > 0", name="ck_waiver_requests_amount_positive"),
        CheckConstraint(
            "status IN ('Pending', 'Approved', 'Rejected')",
            name="ck_waiver_requests_status",
        ),
    )
