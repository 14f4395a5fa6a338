"""
Payment Repository.
"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session

from schoolfees.models.academic.academic import Student
from schoolfees.models.invoice.invoice import Invoice
from schoolfees.models.payment.payment import Payment
from schoolfees.repositories.base.base_repository import BaseRepository
from schoolfees.utils.money import to_money


class PaymentRepository(BaseRepository[Payment]):
    """Repository for immutable payment rows."""

    def __init__(self, db: Session):
        super().__init__(Payment, db)

    def receipt_exists(self, receipt_number: str) -> bool:
        stmt = select(Payment.id).where(Payment.receipt_number == receipt_number).limit(1)
        return self.db.execute(stmt).first() is not None

    def find_by_reference(self, reference: str) -> List[Tuple[Payment, Invoice, Student]]:
        """Rows matching a transaction id or a receipt number."""
        stmt = (
            select(Payment, Invoice, Student)
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .join(Student, Student.id == Invoice.student_id)
            .where(
                or_(
                    Payment.transaction_id == reference,
                    Payment.receipt_number == reference,
                )
            )
            .order_by(Payment.transaction_id)
        )
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt).all()]

    def list_for_student(self, student_id: str) -> List[Tuple[Payment, Invoice]]:
        stmt = (
            select(Payment, Invoice)
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .where(Invoice.student_id == student_id)
            .order_by(Payment.payment_date.desc(), Payment.transaction_id.desc())
        )
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def total_for_student(self, student_id: str) -> Decimal:
        stmt = (
            select(func.coalesce(func.sum(Payment.amount), 0))
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .where(Invoice.student_id == student_id)
        )
        return to_money(self.db.execute(stmt).scalar_one())

    def list_for_invoice(self, invoice_id: str) -> List[Payment]:
        stmt = (
            select(Payment)
            .where(Payment.invoice_id == invoice_id)
            .order_by(Payment.payment_date.desc(), Payment.transaction_id.desc())
        )
        return list(self.db.execute(stmt).scalars().all())

    def history(
        self,
        start: datetime,
        end: datetime,
        payment_mode: Optional[str] = None,
    ) -> List[Tuple[Payment, Invoice, Student]]:
        """Payments in [start, end), newest first."""
        stmt = (
            select(Payment, Invoice, Student)
            .join(Invoice, Invoice.id == Payment.invoice_id)
            .join(Student, Student.id == Invoice.student_id)
            .where(Payment.payment_date >= start, Payment.payment_date < end)
        )
        if payment_mode:
            stmt = stmt.where(Payment.payment_mode == payment_mode)
        stmt = stmt.order_by(Payment.payment_date.desc(), Payment.transaction_id.desc())
        return [(row[0], row[1], row[2]) for row in self.db.execute(stmt).all()]
