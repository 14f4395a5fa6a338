"""
Invoice generation service.

Builds invoices with their line items from the student's resolved fee
structure, one student at a time or for a whole cohort in one transaction.
"""

from datetime import date, timedelta
from typing import List, Optional

from schoolfees.core.exceptions import ConflictError, InvalidInputError
from schoolfees.models.academic.academic import Student
from schoolfees.models.fee_structure.fee_structure import FeeStructure
from schoolfees.models.invoice.invoice import Invoice, InvoiceItem
from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.invoice.invoice_repository import InvoiceRepository
from schoolfees.schemas.invoice.invoice import BulkGenerateResult
from schoolfees.services.base.base_service import BaseService
from schoolfees.services.fee_structure.fee_structure_service import (
    FeeStructureService,
    to_components,
)
from schoolfees.services.invoice.line_items import build_line_items
from schoolfees.services.invoice.status import refresh_status
from schoolfees.utils.money import MAX_AMOUNT, ZERO, money_sum
from schoolfees.utils.references import generate_invoice_number


class InvoiceService(BaseService[Invoice, InvoiceRepository]):
    """Invoice generator."""

    def __init__(self, db_session, config=None):
        super().__init__(InvoiceRepository(db_session), db_session, config)
        self.invoices = self.repository
        self.students = StudentRepository(db_session)
        self.fee_structures = FeeStructureService(db_session, config)

    def _today(self) -> date:
        return date.today()

    def _resolve_due_date(self, issue_date: date, due_date: Optional[date]) -> date:
        if due_date is None:
            return issue_date + timedelta(days=self.settings.INVOICE_GRACE_PERIOD_DAYS)
        if due_date < issue_date:
            raise InvalidInputError(
                "Due date cannot be earlier than the issue date",
                field="due_date",
                details={"issue_date": issue_date.isoformat(), "due_date": due_date.isoformat()},
            )
        return due_date

    @staticmethod
    def _period_for(structure: FeeStructure, period: Optional[str]) -> str:
        if period:
            return period
        if structure.session is not None:
            return structure.session.name
        return structure.session_id

    def _build_invoice(
        self,
        student: Student,
        structure: FeeStructure,
        billing_period: str,
        issue_date: date,
        due_date: date,
        created_by: Optional[str],
    ) -> Invoice:
        assignment = self.students.get_active_transport_assignment(student.id)
        items = build_line_items(to_components(structure), assignment)
        total = money_sum(amount for _, amount in items)
        if total <= ZERO:
            raise InvalidInputError(
                "Fee structure yields no billable amount",
                details={"student_id": student.id, "fee_structure_id": structure.id},
            )
        if total > MAX_AMOUNT:
            raise InvalidInputError(
                f"Invoice total cannot exceed {MAX_AMOUNT}",
                details={"student_id": student.id, "total_amount": str(total)},
            )

        invoice = Invoice(
            invoice_number=generate_invoice_number(issue_date),
            student_id=student.id,
            fee_structure_id=structure.id,
            billing_period=billing_period,
            issue_date=issue_date,
            due_date=due_date,
            total_amount=total,
            paid_amount=ZERO,
            discount_amount=ZERO,
            created_by=created_by,
            items=[
                InvoiceItem(description=description, amount=amount, position=position)
                for position, (description, amount) in enumerate(items)
            ],
        )
        refresh_status(invoice)
        return invoice

    # -------------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------------

    def generate(
        self,
        student_id: str,
        period: Optional[str] = None,
        due_date: Optional[date] = None,
        created_by: Optional[str] = None,
    ) -> Invoice:
        """
        Generate one invoice for one student.

        Raises:
            StudentNotFoundError: unknown student
            InvalidInputError: inactive student, bad due date, zero total
            FeeStructureNotFoundError: no active structure for the cohort
            ConflictError: already invoiced for this structure and period
        """
        issue_date = self._today()
        due = self._resolve_due_date(issue_date, due_date)

        student = self.students.get_by_id(student_id)
        if not student.is_active:
            raise InvalidInputError("Student is not active", details={"student_id": student_id})

        structure = self.fee_structures.resolve_structure_for_student(student)
        billing_period = self._period_for(structure, period)

        if self.invoices.exists_for_period(student.id, structure.id, billing_period):
            raise ConflictError(
                "Invoice already exists for this student and billing period",
                {"student_id": student.id, "billing_period": billing_period},
            )

        with self.transaction():
            invoice = self.invoices.create(
                self._build_invoice(student, structure, billing_period, issue_date, due, created_by)
            )

        self._logger.info(
            "Invoice generated",
            extra={
                "invoice_id": invoice.id,
                "invoice_number": invoice.invoice_number,
                "student_id": student.id,
                "total_amount": str(invoice.total_amount),
            },
        )
        return invoice

    def bulk_generate(
        self,
        course_id: str,
        batch_id: Optional[str] = None,
        due_date: Optional[date] = None,
        period: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> BulkGenerateResult:
        """
        Invoice every active student of a course (optionally one batch).

        Runs as a single transaction: any resolution failure aborts the run
        and nothing is persisted. Students already invoiced for the period
        are skipped.
        """
        issue_date = self._today()
        due = self._resolve_due_date(issue_date, due_date)

        students = self.students.list_active_in_cohort(course_id, batch_id)
        created_ids: List[str] = []
        skipped = 0

        with self.transaction():
            for student in students:
                structure = self.fee_structures.resolve_structure_for_student(student)
                billing_period = self._period_for(structure, period)

                if self.invoices.exists_for_period(student.id, structure.id, billing_period):
                    skipped += 1
                    continue

                invoice = self.invoices.create(
                    self._build_invoice(student, structure, billing_period, issue_date, due, created_by)
                )
                created_ids.append(invoice.id)

        self._logger.info(
            "Bulk invoice generation completed",
            extra={
                "course_id": course_id,
                "batch_id": batch_id,
                "created": len(created_ids),
                "skipped": skipped,
            },
        )
        return BulkGenerateResult(created=len(created_ids), skipped=skipped, invoice_ids=created_ids)
