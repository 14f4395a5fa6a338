"""
Invoice Repository.

Holds the row-locking reads used by payment allocation and waiver
application, and the aggregate queries behind ledger reports. Open invoices
are always visited in (due_date, issue_date, id) order so that concurrent
lockers acquire rows in the same sequence.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from schoolfees.core.exceptions import InvoiceNotFoundError
from schoolfees.models.academic.academic import Student
from schoolfees.models.base.enums import InvoiceStatus
from schoolfees.models.invoice.invoice import Invoice, InvoiceItem
from schoolfees.repositories.base.base_repository import BaseRepository
from schoolfees.utils.money import to_money

OPEN_STATUSES = tuple(s.value for s in InvoiceStatus.open_states())

# Oldest due first; ties broken by issue date then id.
ALLOCATION_ORDER = (Invoice.due_date, Invoice.issue_date, Invoice.id)


class InvoiceRepository(BaseRepository[Invoice]):
    """Repository for invoices and their line items."""

    not_found_error = InvoiceNotFoundError

    def __init__(self, db: Session):
        super().__init__(Invoice, db)

    # ==================== Generation ====================

    def exists_for_period(self, student_id: str, fee_structure_id: str, billing_period: str) -> bool:
        stmt = select(Invoice.id).where(
            Invoice.student_id == student_id,
            Invoice.fee_structure_id == fee_structure_id,
            Invoice.billing_period == billing_period,
        )
        return self.db.execute(stmt.limit(1)).first() is not None

    # ==================== Locking reads ====================

    def open_invoices_stmt(self, student_id: str):
        return (
            select(Invoice)
            .where(
                Invoice.student_id == student_id,
                Invoice.status.in_(OPEN_STATUSES),
            )
            .order_by(*ALLOCATION_ORDER)
        )

    def lock_open_invoices(self, student_id: str) -> List[Invoice]:
        """Lock every open invoice of the student, oldest due first."""
        stmt = (
            self.open_invoices_stmt(student_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return list(self.db.execute(stmt).scalars().all())

    def lock_oldest_open_invoice(self, student_id: str) -> Optional[Invoice]:
        stmt = (
            self.open_invoices_stmt(student_id)
            .limit(1)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalars().first()

    # ==================== Reads ====================

    def get_with_items(self, invoice_id: str) -> Invoice:
        stmt = (
            select(Invoice)
            .options(selectinload(Invoice.items), selectinload(Invoice.student))
            .where(Invoice.id == invoice_id)
        )
        invoice = self.db.execute(stmt).scalar_one_or_none()
        if invoice is None:
            raise InvoiceNotFoundError(invoice_id)
        return invoice

    def list_items(self, invoice_id: str) -> List[InvoiceItem]:
        stmt = (
            select(InvoiceItem)
            .where(InvoiceItem.invoice_id == invoice_id)
            .order_by(InvoiceItem.position, InvoiceItem.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_for_student(self, student_id: str) -> List[Invoice]:
        stmt = (
            select(Invoice)
            .where(Invoice.student_id == student_id)
            .order_by(Invoice.due_date.desc(), Invoice.issue_date.desc(), Invoice.id)
        )
        return list(self.db.execute(stmt).scalars().all())

    def list_open(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        session_id: Optional[str] = None,
        student_id: Optional[str] = None,
        search: Optional[str] = None,
        overdue_only: bool = False,
        today: Optional[date] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> Tuple[List[Tuple[Invoice, Student]], int]:
        """
        Open invoices joined with their student.

        Filters are limited to the keyword arguments; values are always bound
        as parameters.
        """
        stmt = (
            select(Invoice, Student)
            .join(Student, Student.id == Invoice.student_id)
            .where(Invoice.status.in_(OPEN_STATUSES))
        )
        if course_id:
            stmt = stmt.where(Student.course_id == course_id)
        if batch_id:
            stmt = stmt.where(Student.batch_id == batch_id)
        if session_id:
            stmt = stmt.where(Student.session_id == session_id)
        if student_id:
            stmt = stmt.where(Invoice.student_id == student_id)
        if search:
            pattern = f"%{search.strip().lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(Student.full_name).like(pattern),
                    func.lower(Student.roll_number).like(pattern),
                    func.lower(Invoice.invoice_number).like(pattern),
                )
            )
        if overdue_only:
            stmt = stmt.where(Invoice.due_date < (today or date.today()))

        total = self.db.execute(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ).scalar_one()

        stmt = stmt.order_by(*ALLOCATION_ORDER).offset(skip).limit(limit)
        rows = [(row[0], row[1]) for row in self.db.execute(stmt).all()]
        return rows, total

    # ==================== Aggregates ====================

    def student_totals(self, student_id: str) -> Dict[str, Decimal]:
        stmt = select(
            func.coalesce(func.sum(Invoice.total_amount), 0).label("total"),
            func.coalesce(func.sum(Invoice.paid_amount), 0).label("paid"),
            func.coalesce(func.sum(Invoice.discount_amount), 0).label("discount"),
            func.count(Invoice.id).label("invoice_count"),
        ).where(Invoice.student_id == student_id)
        row = self.db.execute(stmt).one()
        return {
            "total": to_money(row.total),
            "paid": to_money(row.paid),
            "discount": to_money(row.discount),
            "invoice_count": row.invoice_count,
        }

    def defaulters(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        overdue_only: bool = False,
        today: Optional[date] = None,
    ) -> List[Any]:
        """Students with a positive outstanding balance, largest first."""
        due = func.sum(Invoice.total_amount - Invoice.paid_amount)
        stmt = (
            select(
                Student.id.label("student_id"),
                Student.full_name,
                Student.roll_number,
                Student.course_id,
                Student.batch_id,
                due.label("total_due"),
                func.count(Invoice.id).label("open_invoices"),
                func.min(Invoice.due_date).label("oldest_due_date"),
            )
            .join(Invoice, Invoice.student_id == Student.id)
            .where(Invoice.status.in_(OPEN_STATUSES))
        )
        if course_id:
            stmt = stmt.where(Student.course_id == course_id)
        if batch_id:
            stmt = stmt.where(Student.batch_id == batch_id)
        if overdue_only:
            stmt = stmt.where(Invoice.due_date < (today or date.today()))
        stmt = (
            stmt.group_by(
                Student.id,
                Student.full_name,
                Student.roll_number,
                Student.course_id,
                Student.batch_id,
            )
            .having(due > 0)
            .order_by(due.desc(), Student.full_name)
        )
        return list(self.db.execute(stmt).all())

    def dashboard_totals(self, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        outstanding = Invoice.total_amount - Invoice.paid_amount

        billed = self.db.execute(
            select(
                func.coalesce(func.sum(Invoice.total_amount), 0),
                func.coalesce(func.sum(Invoice.paid_amount), 0),
                func.coalesce(func.sum(Invoice.discount_amount), 0),
                func.count(Invoice.id),
            ).where(Invoice.status != InvoiceStatus.WAIVED.value)
        ).one()

        open_row = self.db.execute(
            select(
                func.count(Invoice.id),
                func.coalesce(func.sum(outstanding), 0),
            ).where(Invoice.status.in_(OPEN_STATUSES))
        ).one()

        overdue_row = self.db.execute(
            select(
                func.count(Invoice.id),
                func.coalesce(func.sum(outstanding), 0),
            ).where(
                Invoice.status.in_(OPEN_STATUSES),
                Invoice.due_date < today,
            )
        ).one()

        return {
            "total_invoiced": to_money(billed[0]),
            "total_collected": to_money(billed[1]),
            "total_discount": to_money(billed[2]),
            "invoice_count": billed[3],
            "unpaid_count": open_row[0],
            "total_outstanding": to_money(open_row[1]),
            "overdue_count": overdue_row[0],
            "overdue_amount": to_money(overdue_row[1]),
        }

    def open_dues_between(self, start: date, end: date) -> List[Tuple[date, Decimal]]:
        """(due_date, outstanding) for open invoices due in [start, end]."""
        stmt = (
            select(Invoice.due_date, Invoice.total_amount - Invoice.paid_amount)
            .where(
                Invoice.status.in_(OPEN_STATUSES),
                Invoice.due_date >= start,
                Invoice.due_date <= end,
            )
            .order_by(Invoice.due_date)
        )
        return [(row[0], to_money(row[1])) for row in self.db.execute(stmt).all()]
