"""
Ledger endpoints: per-student balances and finance dashboards.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from schoolfees.api import deps
from schoolfees.core.security import CurrentUser, ensure_student_access
from schoolfees.schemas.ledger.ledger import (
    DashboardStats,
    DefaulterItem,
    RefundableBalance,
    RevenueForecast,
    StudentFeeStatus,
    StudentStatement,
)
from schoolfees.services import ReportingService

router = APIRouter(prefix="/ledger", tags=["Ledger"])


@router.get("/students/{student_id}", response_model=StudentFeeStatus)
def student_fee_status(
    student_id: str,
    current_user: CurrentUser = Depends(deps.get_current_user),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    """Consolidated fee status: totals, fee breakdown, invoices and payments."""
    ensure_student_access(current_user, student_id)
    return service.student_fee_status(student_id)


@router.get("/students/{student_id}/refundable-balance", response_model=RefundableBalance)
def refundable_balance(
    student_id: str,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.refundable_balance(student_id)


@router.get("/students/{student_id}/statement", response_model=StudentStatement)
def student_statement(
    student_id: str,
    current_user: CurrentUser = Depends(deps.get_current_user),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    ensure_student_access(current_user, student_id)
    return service.statement(student_id)


@router.get("/defaulters", response_model=List[DefaulterItem])
def defaulters(
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    overdue_only: bool = False,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.defaulters(course_id, batch_id, overdue_only)


@router.get("/dashboard-stats", response_model=DashboardStats)
def dashboard_stats(
    current_user: CurrentUser = Depends(deps.require_finance),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.dashboard_stats()


@router.get("/revenue-forecast", response_model=RevenueForecast)
def revenue_forecast(
    months: Optional[int] = Query(None, ge=1, le=24),
    current_user: CurrentUser = Depends(deps.require_finance),
    service: ReportingService = Depends(deps.get_reporting_service),
):
    return service.revenue_forecast(months)
