"""
Payment Model

One row per (collection, invoice) allocation. Rows are never updated after
insert; all rows of a single collection share ``receipt_number``.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.base.base_model import TimestampModel
from schoolfees.models.invoice.invoice import Invoice


class Payment(TimestampModel):
    """Payment allocation against a single invoice"""

    __tablename__ = "payments"

    invoice_id: Mapped[str] = mapped_column(
        ForeignKey("invoices.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    transaction_id: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    receipt_number: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    payment_mode: Mapped[str] = mapped_column(String(30), nullable=False)
    payment_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )
    collected_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    remarks: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    invoice: Mapped["Invoice"] = relationship()

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
    )
