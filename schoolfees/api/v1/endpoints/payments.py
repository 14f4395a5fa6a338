"""
Payment endpoints: counter collection, receipts and history.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends

from schoolfees.api import deps
from schoolfees.core.security import CurrentUser
from schoolfees.models.base.enums import PaymentMode
from schoolfees.schemas.payment.payment import (
    CollectionResult,
    CollectPaymentRequest,
    PaymentHistoryResponse,
    ReceiptResponse,
)
from schoolfees.services import PaymentService, ReportingService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/collect", response_model=CollectionResult)
def collect_payment(
    payload: CollectPaymentRequest,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: PaymentService = Depends(deps.get_payment_service),
):
    """
    Collect a payment and allocate it across the student's open invoices,
    oldest due first.
    """
    return service.collect(
        student_id=payload.student_id,
        amount=payload.amount,
        mode=payload.payment_mode,
        notes=payload.notes,
        collected_by=current_user.user_id,
        reference=payload.reference,
    )


@router.get("/receipts/{reference}", response_model=ReceiptResponse)
def get_receipt(
    reference: str,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.receipt(reference)


@router.get("/history", response_model=PaymentHistoryResponse)
def payment_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    payment_mode: Optional[PaymentMode] = None,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.payment_history(
        start_date,
        end_date,
        payment_mode.value if payment_mode else None,
    )
