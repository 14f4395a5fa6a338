"""
Payment collection service.

A single collection is spread over the student's open invoices, oldest due
first, with every touched invoice row locked for the life of the
transaction. Each allocation becomes one immutable payment row; all rows of
the collection share the receipt number.
"""

from decimal import Decimal
from typing import Any, List, Optional, Union

from schoolfees.core.exceptions import (
    DuplicateTransactionError,
    InvalidInputError,
    NoOutstandingBalanceError,
)
from schoolfees.models.base.enums import PaymentMode
from schoolfees.models.payment.payment import Payment
from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.invoice.invoice_repository import InvoiceRepository
from schoolfees.repositories.payment.payment_repository import PaymentRepository
from schoolfees.schemas.payment.payment import AllocationLine, CollectionResult
from schoolfees.services.base.base_service import BaseService
from schoolfees.services.invoice.status import outstanding, refresh_status
from schoolfees.utils.money import MAX_AMOUNT, ZERO, to_money
from schoolfees.utils.references import generate_receipt_number, transaction_reference


class PaymentService(BaseService[Payment, PaymentRepository]):
    """Payment allocator."""

    def __init__(self, db_session, config=None):
        super().__init__(PaymentRepository(db_session), db_session, config)
        self.payments = self.repository
        self.invoices = InvoiceRepository(db_session)
        self.students = StudentRepository(db_session)

    @staticmethod
    def _validate_amount(amount: Any) -> Decimal:
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidInputError(str(e), field="amount") from e
        if value <= ZERO:
            raise InvalidInputError("Payment amount must be greater than zero", field="amount")
        if value > MAX_AMOUNT:
            raise InvalidInputError(f"Payment amount cannot exceed {MAX_AMOUNT}", field="amount")
        return value

    @staticmethod
    def _validate_mode(mode: Union[PaymentMode, str]) -> str:
        try:
            return PaymentMode(mode).value
        except ValueError as e:
            raise InvalidInputError(
                f"Unsupported payment mode: {mode}",
                field="payment_mode",
                details={"allowed": [m.value for m in PaymentMode]},
            ) from e

    def collect(
        self,
        student_id: str,
        amount: Any,
        mode: Union[PaymentMode, str] = PaymentMode.CASH,
        notes: Optional[str] = None,
        collected_by: Optional[str] = None,
        reference: Optional[str] = None,
    ) -> CollectionResult:
        """
        Collect a payment and allocate it across open invoices.

        Any amount left once every open invoice is settled is reported as
        ``remaining_unapplied``; it is not stored.

        Raises:
            InvalidInputError: non-positive amount or unknown payment mode
            StudentNotFoundError: unknown student
            DuplicateTransactionError: client reference already used
            NoOutstandingBalanceError: nothing open to apply the payment to
        """
        received = self._validate_amount(amount)
        payment_mode = self._validate_mode(mode)

        student = self.students.get_by_id(student_id)

        if reference:
            receipt_number = reference.strip()
            if self.payments.receipt_exists(receipt_number):
                raise DuplicateTransactionError(receipt_number)
        else:
            receipt_number = generate_receipt_number()

        allocations: List[AllocationLine] = []
        remaining = received

        with self.transaction():
            for invoice in self.invoices.lock_open_invoices(student.id):
                if remaining <= ZERO:
                    break
                due = outstanding(invoice)
                if due <= ZERO:
                    continue

                applied = min(remaining, due)
                txn_id = transaction_reference(receipt_number, len(allocations) + 1)
                self.payments.create(
                    Payment(
                        invoice_id=invoice.id,
                        transaction_id=txn_id,
                        receipt_number=receipt_number,
                        amount=applied,
                        payment_mode=payment_mode,
                        collected_by=collected_by,
                        remarks=notes,
                    )
                )
                invoice.paid_amount = to_money(invoice.paid_amount) + applied
                status = refresh_status(invoice)
                remaining -= applied

                allocations.append(
                    AllocationLine(
                        invoice_id=invoice.id,
                        invoice_number=invoice.invoice_number,
                        transaction_id=txn_id,
                        applied_amount=applied,
                        remaining_balance=outstanding(invoice),
                        new_status=status.value,
                    )
                )

            if not allocations:
                self._logger.warning(
                    "Payment rejected: no outstanding balance",
                    extra={"student_id": student.id, "amount": str(received)},
                )
                raise NoOutstandingBalanceError(student.id)

        applied_total = received - remaining
        self._logger.info(
            "Payment collected",
            extra={
                "student_id": student.id,
                "receipt_number": receipt_number,
                "amount_received": str(received),
                "amount_applied": str(applied_total),
                "invoice_ids": [a.invoice_id for a in allocations],
            },
        )
        return CollectionResult(
            receipt_number=receipt_number,
            student_id=student.id,
            payment_mode=payment_mode,
            amount_received=received,
            amount_applied=applied_total,
            remaining_unapplied=remaining,
            transaction_refs=[a.transaction_id for a in allocations],
            allocations=allocations,
        )
