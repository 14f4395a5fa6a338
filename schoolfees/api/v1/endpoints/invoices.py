"""
Invoice endpoints: generation and invoice views.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from schoolfees.api import deps
from schoolfees.core.security import CurrentUser
from schoolfees.schemas.common.base import PaginatedResponse
from schoolfees.schemas.invoice.invoice import (
    BulkGenerateRequest,
    BulkGenerateResult,
    InvoiceDetailResponse,
    InvoiceGenerateRequest,
    InvoiceItemResponse,
    InvoiceResponse,
    PendingInvoiceFilter,
    PendingInvoiceResponse,
)
from schoolfees.services import InvoiceService, ReportingService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("/bulk-generate", response_model=BulkGenerateResult)
def bulk_generate_invoices(
    payload: BulkGenerateRequest,
    current_user: CurrentUser = Depends(deps.require_admin),
    service: InvoiceService = Depends(deps.get_invoice_service),
):
    """Invoice every active student of a course, optionally one batch."""
    return service.bulk_generate(
        course_id=payload.course_id,
        batch_id=payload.batch_id,
        due_date=payload.due_date,
        period=payload.billing_period,
        created_by=current_user.user_id,
    )


@router.post("/generate", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def generate_invoice(
    payload: InvoiceGenerateRequest,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: InvoiceService = Depends(deps.get_invoice_service),
):
    invoice = service.generate(
        student_id=payload.student_id,
        period=payload.billing_period,
        due_date=payload.due_date,
        created_by=current_user.user_id,
    )
    return InvoiceResponse.model_validate(invoice)


@router.get("/pending", response_model=PaginatedResponse[PendingInvoiceResponse])
def list_pending_invoices(
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    session_id: Optional[str] = None,
    student_id: Optional[str] = None,
    search: Optional[str] = Query(None, max_length=100),
    overdue_only: bool = False,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    current_user: CurrentUser = Depends(deps.require_staff),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    filters = PendingInvoiceFilter(
        course_id=course_id,
        batch_id=batch_id,
        session_id=session_id,
        student_id=student_id,
        search=search,
        overdue_only=overdue_only,
    )
    return service.pending_invoices(filters, skip=skip, limit=limit)


@router.get("/{invoice_id}", response_model=InvoiceDetailResponse)
def get_invoice(
    invoice_id: str,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.invoice_details(invoice_id)


@router.get("/{invoice_id}/items", response_model=List[InvoiceItemResponse])
def get_invoice_items(
    invoice_id: str,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.invoice_items(invoice_id)
