"""
Invoice Models

An invoice bills one student for one fee structure and billing period. Its
line items are fixed at generation time; later waivers lower ``total_amount``
and raise ``discount_amount`` so that items always sum to total + discount.
"""

from datetime import date as Date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date as SQLDate,
    ForeignKey,
    Index,
    Numeric,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.academic.academic import Student
from schoolfees.models.base.base_model import TimestampModel
from schoolfees.models.base.enums import InvoiceStatus


class Invoice(TimestampModel):
    """Student invoice"""

    __tablename__ = "invoices"

    invoice_number: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    fee_structure_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("fee_structures.id", ondelete="RESTRICT"),
        nullable=True,
    )
    billing_period: Mapped[str] = mapped_column(String(50), nullable=False)

    issue_date: Mapped[Date] = mapped_column(SQLDate, nullable=False)
    due_date: Mapped[Date] = mapped_column(SQLDate, nullable=False, index=True)

    total_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
    )
    paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    discount_amount: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvoiceStatus.PENDING.value,
        index=True,
    )
    created_by: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    student: Mapped["Student"] = relationship()
    items: Mapped[List["InvoiceItem"]] = relationship(
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
    )

    __table_args__ = (
        UniqueConstraint(
            "student_id", "fee_structure_id", "billing_period",
            name="uq_invoices_student_structure_period",
        ),
        CheckConstraint("total_amount >= 0", name="ck_invoices_total_non_negative"),
        CheckConstraint("discount_amount >= 0", name="ck_invoices_discount_non_negative"),
        CheckConstraint(
            "paid_amount >= 0 AND paid_amount <= total_amount",
            name="ck_invoices_paid_within_total",
        ),
        CheckConstraint(
            "status IN ('Pending', 'Partial', 'Paid', 'Waived')",
            name="ck_invoices_status",
        ),
        Index("ix_invoices_student_open", "student_id", "status", "due_date"),
    )

    @property
    def balance(self) -> Decimal:
        return (self.total_amount or Decimal("0")) - (self.paid_amount or Decimal("0"))


class InvoiceItem(TimestampModel):
    """Invoice line item"""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[str] = mapped_column(
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    description: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=10, scale=2), nullable=False)
    position: Mapped[int] = mapped_column(nullable=False, default=0)

    invoice: Mapped["Invoice"] = relationship(back_populates="items")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoice_items_amount_positive"),
    )
