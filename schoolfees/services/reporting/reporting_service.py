"""
Balance and reporting queries.

Read-only views over invoices, payments and waivers. Nothing here writes.
"""

import calendar
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from schoolfees.core.exceptions import (
    FeeStructureNotFoundError,
    InvalidInputError,
    PaymentNotFoundError,
)
from schoolfees.models.academic.academic import Student
from schoolfees.models.base.enums import WaiverStatus
from schoolfees.models.invoice.invoice import Invoice
from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.invoice.invoice_repository import InvoiceRepository
from schoolfees.repositories.payment.payment_repository import PaymentRepository
from schoolfees.repositories.waiver.waiver_repository import WaiverRepository
from schoolfees.schemas.common.base import PaginatedResponse
from schoolfees.schemas.fee_structure.fee_structure import FeeBreakdownLine
from schoolfees.schemas.invoice.invoice import (
    InvoiceDetailResponse,
    InvoiceItemResponse,
    InvoicePaymentLine,
    InvoiceResponse,
    PendingInvoiceFilter,
    PendingInvoiceResponse,
)
from schoolfees.schemas.ledger.ledger import (
    DashboardStats,
    DefaulterItem,
    ForecastBucket,
    RefundableBalance,
    RevenueForecast,
    StatementEntry,
    StudentFeeStatus,
    StudentHeader,
    StudentPaymentLine,
    StudentStatement,
)
from schoolfees.schemas.payment.payment import (
    PaymentHistoryItem,
    PaymentHistoryResponse,
    ReceiptLine,
    ReceiptResponse,
)
from schoolfees.services.base.base_service import BaseService
from schoolfees.services.fee_structure.fee_structure_service import (
    FeeStructureService,
    to_components,
)
from schoolfees.services.invoice.line_items import build_line_items
from schoolfees.utils.money import ZERO, money_sum, to_money


def _month_bounds(day: date) -> Tuple[date, date]:
    last = calendar.monthrange(day.year, day.month)[1]
    return day.replace(day=1), day.replace(day=last)


def _add_months(day: date, months: int) -> date:
    index = day.month - 1 + months
    year = day.year + index // 12
    month = index % 12 + 1
    return date(year, month, 1)


def _utc_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


class ReportingService(BaseService[Invoice, InvoiceRepository]):
    """Ledger read models."""

    def __init__(self, db_session, config=None):
        super().__init__(InvoiceRepository(db_session), db_session, config)
        self.invoices = self.repository
        self.payments = PaymentRepository(db_session)
        self.students = StudentRepository(db_session)
        self.waivers = WaiverRepository(db_session)
        self.fee_structures = FeeStructureService(db_session, config)

    def _today(self) -> date:
        return date.today()

    @staticmethod
    def _header(student: Student) -> StudentHeader:
        return StudentHeader.model_validate(student)

    # -------------------------------------------------------------------------
    # Student views
    # -------------------------------------------------------------------------

    def fee_breakdown(self, student: Student) -> Tuple[Optional[str], List[FeeBreakdownLine]]:
        """Itemized fee structure for the student; empty when none resolves."""
        try:
            structure = self.fee_structures.resolve_structure_for_student(student)
        except FeeStructureNotFoundError:
            return None, []
        components = to_components(structure)
        assignment = self.students.get_active_transport_assignment(student.id)
        lines = [
            FeeBreakdownLine(label=label, amount=amount)
            for label, amount in build_line_items(components, assignment)
        ]
        return structure.id, lines

    def student_fee_status(self, student_id: str) -> StudentFeeStatus:
        student = self.students.get_by_id(student_id)
        totals = self.invoices.student_totals(student.id)
        structure_id, breakdown = self.fee_breakdown(student)

        invoices = [InvoiceResponse.model_validate(inv) for inv in self.invoices.list_for_student(student.id)]
        payments = [
            StudentPaymentLine(
                transaction_id=payment.transaction_id,
                receipt_number=payment.receipt_number,
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                amount=payment.amount,
                payment_mode=payment.payment_mode,
                payment_date=payment.payment_date,
                remarks=payment.remarks,
            )
            for payment, invoice in self.payments.list_for_student(student.id)
        ]

        return StudentFeeStatus(
            student=self._header(student),
            total_fees=totals["total"],
            total_paid=totals["paid"],
            total_discount=totals["discount"],
            balance=totals["total"] - totals["paid"],
            fee_structure_id=structure_id,
            breakdown=breakdown,
            invoices=invoices,
            payments=payments,
        )

    def refundable_balance(self, student_id: str) -> RefundableBalance:
        """Payments minus invoice totals. Negative values are returned as-is."""
        student = self.students.get_by_id(student_id)
        paid = self.payments.total_for_student(student.id)
        invoiced = self.invoices.student_totals(student.id)["total"]
        return RefundableBalance(
            student_id=student.id,
            total_paid=paid,
            total_invoiced=invoiced,
            refundable_amount=paid - invoiced,
        )

    def statement(self, student_id: str) -> StudentStatement:
        """
        Chronological account statement.

        Invoices are debited at their gross amount; waivers and payments are
        credits. The closing balance equals the outstanding invoice balance.
        """
        student = self.students.get_by_id(student_id)
        raw: List[Tuple[date, int, StatementEntry]] = []

        for invoice in self.invoices.list_for_student(student.id):
            gross = to_money(invoice.total_amount) + to_money(invoice.discount_amount)
            raw.append((invoice.issue_date, 0, StatementEntry(
                entry_date=invoice.issue_date,
                entry_type="invoice",
                reference=invoice.invoice_number,
                description=f"Invoice for {invoice.billing_period}",
                debit=gross,
                credit=ZERO,
                running_balance=ZERO,
            )))

        for waiver in self.waivers.applied_for_student(student.id):
            entry_date = (waiver.processed_date or waiver.request_date).date()
            raw.append((entry_date, 1, StatementEntry(
                entry_date=entry_date,
                entry_type="waiver",
                reference=waiver.id,
                description=f"Waiver: {waiver.fee_type}",
                debit=ZERO,
                credit=to_money(waiver.applied_amount),
                running_balance=ZERO,
            )))

        for payment, invoice in self.payments.list_for_student(student.id):
            entry_date = payment.payment_date.date()
            raw.append((entry_date, 2, StatementEntry(
                entry_date=entry_date,
                entry_type="payment",
                reference=payment.transaction_id,
                description=f"Payment ({payment.payment_mode}) against {invoice.invoice_number}",
                debit=ZERO,
                credit=to_money(payment.amount),
                running_balance=ZERO,
            )))

        raw.sort(key=lambda r: (r[0], r[1], r[2].reference))

        balance = ZERO
        entries = []
        for _, _, entry in raw:
            balance = balance + entry.debit - entry.credit
            entries.append(entry.model_copy(update={"running_balance": balance}))

        return StudentStatement(
            student=self._header(student),
            entries=entries,
            total_debit=money_sum(e.debit for e in entries),
            total_credit=money_sum(e.credit for e in entries),
            closing_balance=balance,
        )

    # -------------------------------------------------------------------------
    # Invoice views
    # -------------------------------------------------------------------------

    def pending_invoices(
        self,
        filters: Optional[PendingInvoiceFilter] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> PaginatedResponse[PendingInvoiceResponse]:
        filters = filters or PendingInvoiceFilter()
        today = self._today()
        rows, total = self.invoices.list_open(
            course_id=filters.course_id,
            batch_id=filters.batch_id,
            session_id=filters.session_id,
            student_id=filters.student_id,
            search=filters.search,
            overdue_only=filters.overdue_only,
            today=today,
            skip=skip,
            limit=limit,
        )
        items = [
            PendingInvoiceResponse(
                id=invoice.id,
                invoice_number=invoice.invoice_number,
                student_id=student.id,
                student_name=student.full_name,
                roll_number=student.roll_number,
                billing_period=invoice.billing_period,
                issue_date=invoice.issue_date,
                due_date=invoice.due_date,
                total_amount=invoice.total_amount,
                paid_amount=invoice.paid_amount,
                balance=invoice.balance,
                status=invoice.status,
                is_overdue=invoice.due_date < today,
            )
            for invoice, student in rows
        ]
        return PaginatedResponse[PendingInvoiceResponse](items=items, total=total, skip=skip, limit=limit)

    def invoice_details(self, invoice_id: str) -> InvoiceDetailResponse:
        invoice = self.invoices.get_with_items(invoice_id)
        base = InvoiceResponse.model_validate(invoice).model_dump()
        return InvoiceDetailResponse(
            **base,
            student_name=invoice.student.full_name if invoice.student else None,
            roll_number=invoice.student.roll_number if invoice.student else None,
            items=[InvoiceItemResponse.model_validate(item) for item in invoice.items],
            payments=[
                InvoicePaymentLine.model_validate(payment)
                for payment in self.payments.list_for_invoice(invoice.id)
            ],
        )

    def invoice_items(self, invoice_id: str) -> List[InvoiceItemResponse]:
        self.invoices.get_by_id(invoice_id)
        return [InvoiceItemResponse.model_validate(item) for item in self.invoices.list_items(invoice_id)]

    # -------------------------------------------------------------------------
    # Payment views
    # -------------------------------------------------------------------------

    def receipt(self, reference: str) -> ReceiptResponse:
        """Receipt by transaction id (one line) or receipt number (all lines)."""
        rows = self.payments.find_by_reference(reference)
        if not rows:
            raise PaymentNotFoundError(reference)

        first_payment, _, student = rows[0]
        lines = [
            ReceiptLine(
                transaction_id=payment.transaction_id,
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                billing_period=invoice.billing_period,
                amount=payment.amount,
                invoice_balance=invoice.balance,
            )
            for payment, invoice, _ in rows
        ]
        return ReceiptResponse(
            reference=reference,
            receipt_number=first_payment.receipt_number,
            student_id=student.id,
            student_name=student.full_name,
            roll_number=student.roll_number,
            payment_mode=first_payment.payment_mode,
            payment_date=first_payment.payment_date,
            collected_by=first_payment.collected_by,
            remarks=first_payment.remarks,
            total_amount=money_sum(line.amount for line in lines),
            lines=lines,
        )

    def payment_history(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        payment_mode: Optional[str] = None,
    ) -> PaymentHistoryResponse:
        """Payments between two dates inclusive; defaults to the current month."""
        month_start, month_end = _month_bounds(self._today())
        start_date = start_date or month_start
        end_date = end_date or month_end
        if end_date < start_date:
            raise InvalidInputError("end_date must not precede start_date", field="end_date")

        rows = self.payments.history(
            _utc_start(start_date),
            _utc_start(end_date + timedelta(days=1)),
            payment_mode,
        )
        payments = [
            PaymentHistoryItem(
                transaction_id=payment.transaction_id,
                receipt_number=payment.receipt_number,
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                student_id=student.id,
                student_name=student.full_name,
                amount=payment.amount,
                payment_mode=payment.payment_mode,
                payment_date=payment.payment_date,
                collected_by=payment.collected_by,
            )
            for payment, invoice, student in rows
        ]
        return PaymentHistoryResponse(
            start_date=start_date,
            end_date=end_date,
            total_collected=money_sum(p.amount for p in payments),
            count=len(payments),
            payments=payments,
        )

    # -------------------------------------------------------------------------
    # Dashboards
    # -------------------------------------------------------------------------

    def defaulters(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        overdue_only: bool = False,
    ) -> List[DefaulterItem]:
        rows = self.invoices.defaulters(course_id, batch_id, overdue_only, self._today())
        return [
            DefaulterItem(
                student_id=row.student_id,
                full_name=row.full_name,
                roll_number=row.roll_number,
                course_id=row.course_id,
                batch_id=row.batch_id,
                total_due=to_money(row.total_due),
                open_invoices=row.open_invoices,
                oldest_due_date=row.oldest_due_date,
            )
            for row in rows
        ]

    def dashboard_stats(self) -> DashboardStats:
        today = self._today()
        totals = self.invoices.dashboard_totals(today)
        month_start, month_end = _month_bounds(today)
        collected = money_sum(
            payment.amount
            for payment, _, _ in self.payments.history(
                _utc_start(month_start), _utc_start(month_end + timedelta(days=1))
            )
        )
        return DashboardStats(
            **totals,
            collected_this_month=collected,
            pending_waivers=self.waivers.count_by_status(WaiverStatus.PENDING.value),
            currency=self.settings.CURRENCY,
        )

    def revenue_forecast(self, months: Optional[int] = None) -> RevenueForecast:
        """Outstanding dues grouped by due month, current month first."""
        months = months or self.settings.REVENUE_FORECAST_MONTHS
        if months < 1 or months > 24:
            raise InvalidInputError("months must be between 1 and 24", field="months")

        first = self._today().replace(day=1)
        last = _add_months(first, months) - timedelta(days=1)

        buckets: Dict[str, List[Decimal]] = {}
        for offset in range(months):
            buckets[_add_months(first, offset).strftime("%Y-%m")] = []
        for due_date, amount in self.invoices.open_dues_between(first, last):
            buckets[due_date.strftime("%Y-%m")].append(amount)

        result = [
            ForecastBucket(month=month, expected_amount=money_sum(amounts), invoice_count=len(amounts))
            for month, amounts in buckets.items()
        ]
        return RevenueForecast(
            months=months,
            buckets=result,
            total_expected=money_sum(b.expected_amount for b in result),
            currency=self.settings.CURRENCY,
        )
