"""
Fee waiver workflow.

Requests start Pending and move exactly once to Approved or Rejected. An
approval discounts the student's oldest open invoice, locked in the same
order the payment allocator uses.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, List, Optional, Union

from schoolfees.core.exceptions import InvalidInputError, WaiverAlreadyProcessedError
from schoolfees.models.base.enums import WaiverDecision, WaiverStatus
from schoolfees.models.waiver.waiver import WaiverRequest
from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.invoice.invoice_repository import InvoiceRepository
from schoolfees.repositories.waiver.waiver_repository import WaiverRepository
from schoolfees.schemas.waiver.waiver import WaiverQueueItem, WaiverResponse
from schoolfees.services.base.base_service import BaseService
from schoolfees.services.invoice.status import outstanding, refresh_status
from schoolfees.utils.money import MAX_AMOUNT, ZERO, to_money


class WaiverService(BaseService[WaiverRequest, WaiverRepository]):
    """Waiver request and approval workflow."""

    def __init__(self, db_session, config=None):
        super().__init__(WaiverRepository(db_session), db_session, config)
        self.waivers = self.repository
        self.invoices = InvoiceRepository(db_session)
        self.students = StudentRepository(db_session)

    @staticmethod
    def _positive_amount(amount: Any, field: str) -> Decimal:
        try:
            value = to_money(amount)
        except ValueError as e:
            raise InvalidInputError(str(e), field=field) from e
        if value <= ZERO:
            raise InvalidInputError("Waiver amount must be greater than zero", field=field)
        if value > MAX_AMOUNT:
            raise InvalidInputError(f"Waiver amount cannot exceed {MAX_AMOUNT}", field=field)
        return value

    def request_waiver(
        self,
        student_id: str,
        fee_type: str,
        amount: Any,
        reason: Optional[str] = None,
        requested_by: Optional[str] = None,
    ) -> WaiverRequest:
        requested = self._positive_amount(amount, "amount")
        if not fee_type or not fee_type.strip():
            raise InvalidInputError("Fee type is required", field="fee_type")

        student = self.students.get_by_id(student_id)

        with self.transaction():
            request = self.waivers.create(
                WaiverRequest(
                    student_id=student.id,
                    fee_type=fee_type.strip(),
                    requested_amount=requested,
                    reason=reason,
                    status=WaiverStatus.PENDING.value,
                    requested_by=requested_by,
                )
            )

        self._logger.info(
            "Waiver requested",
            extra={"waiver_id": request.id, "student_id": student.id, "amount": str(requested)},
        )
        return request

    def process_waiver(
        self,
        request_id: str,
        decision: Union[WaiverDecision, str],
        amount: Any = None,
        processed_by: Optional[str] = None,
    ) -> WaiverRequest:
        """
        Approve or reject a pending request.

        Approval applies ``min(approved, total - paid)`` to the oldest open
        invoice: its total drops and its discount grows by the same amount.
        With no open invoice the request is still approved, with nothing
        applied.

        Raises:
            InvalidInputError: unknown decision or non-positive amount
            WaiverRequestNotFoundError: unknown request
            WaiverAlreadyProcessedError: request is no longer Pending
        """
        try:
            decision = WaiverDecision(decision)
        except ValueError as e:
            raise InvalidInputError(
                f"Decision must be one of: {', '.join(d.value for d in WaiverDecision)}",
                field="decision",
            ) from e

        override = None
        if decision is WaiverDecision.APPROVED and amount is not None:
            override = self._positive_amount(amount, "amount")

        with self.transaction():
            request = self.waivers.get_for_update(request_id)
            if request.status != WaiverStatus.PENDING.value:
                raise WaiverAlreadyProcessedError(request.id, request.status)

            request.processed_by = processed_by
            request.processed_date = datetime.now(timezone.utc)

            if decision is WaiverDecision.REJECTED:
                request.status = WaiverStatus.REJECTED.value
            else:
                approved = override if override is not None else to_money(request.requested_amount)
                request.status = WaiverStatus.APPROVED.value
                request.approved_amount = approved
                request.applied_amount = ZERO
                request.applied_invoice_id = None

                invoice = self.invoices.lock_oldest_open_invoice(request.student_id)
                if invoice is not None:
                    applied = min(approved, outstanding(invoice))
                    if applied > ZERO:
                        invoice.total_amount = to_money(invoice.total_amount) - applied
                        invoice.discount_amount = to_money(invoice.discount_amount) + applied
                        refresh_status(invoice)
                        request.applied_invoice_id = invoice.id
                        request.applied_amount = applied

        self._logger.info(
            "Waiver processed",
            extra={
                "waiver_id": request.id,
                "decision": request.status,
                "student_id": request.student_id,
                "applied_invoice_id": request.applied_invoice_id,
                "applied_amount": str(request.applied_amount) if request.applied_amount is not None else None,
            },
        )
        return request

    def get_request(self, request_id: str) -> WaiverRequest:
        return self.get_by_id(request_id)

    def list_requests(
        self,
        status: Optional[str] = None,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> List[WaiverQueueItem]:
        """The waiver queue, newest request first."""
        if status is not None:
            try:
                status = WaiverStatus(status).value
            except ValueError as e:
                raise InvalidInputError(f"Unknown waiver status: {status}", field="status") from e

        rows = self.waivers.list_requests(status, course_id, batch_id, student_id)
        return [
            WaiverQueueItem(
                **WaiverResponse.model_validate(request).model_dump(),
                student_name=student.full_name,
                roll_number=student.roll_number,
                course_id=student.course_id,
                batch_id=student.batch_id,
            )
            for request, student in rows
        ]
