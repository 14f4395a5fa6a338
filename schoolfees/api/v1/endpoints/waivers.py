"""
Waiver endpoints: requests, the approval queue and decisions.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from schoolfees.api import deps
from schoolfees.core.security import CurrentUser, ensure_student_access
from schoolfees.models.base.enums import WaiverStatus
from schoolfees.schemas.waiver.waiver import (
    WaiverCreate,
    WaiverDecisionRequest,
    WaiverQueueItem,
    WaiverResponse,
)
from schoolfees.services import WaiverService

router = APIRouter(prefix="/waivers", tags=["Waivers"])


@router.post("", response_model=WaiverResponse, status_code=status.HTTP_201_CREATED)
def request_waiver(
    payload: WaiverCreate,
    current_user: CurrentUser = Depends(deps.get_current_user),
    service: WaiverService = Depends(deps.get_waiver_service),
):
    """Students may request for themselves; staff for any student."""
    ensure_student_access(current_user, payload.student_id)
    request = service.request_waiver(
        student_id=payload.student_id,
        fee_type=payload.fee_type,
        amount=payload.amount,
        reason=payload.reason,
        requested_by=current_user.user_id,
    )
    return WaiverResponse.model_validate(request)


@router.get("", response_model=List[WaiverQueueItem])
def list_waivers(
    status_filter: Optional[WaiverStatus] = Query(None, alias="status"),
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    student_id: Optional[str] = None,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: WaiverService = Depends(deps.get_waiver_service),
):
    return service.list_requests(
        status=status_filter.value if status_filter else None,
        course_id=course_id,
        batch_id=batch_id,
        student_id=student_id,
    )


@router.put("/{request_id}/decision", response_model=WaiverResponse)
def decide_waiver(
    request_id: str,
    payload: WaiverDecisionRequest,
    current_user: CurrentUser = Depends(deps.require_admin),
    service: WaiverService = Depends(deps.get_waiver_service),
):
    request = service.process_waiver(
        request_id,
        payload.decision,
        amount=payload.amount,
        processed_by=current_user.user_id,
    )
    return WaiverResponse.model_validate(request)


@router.get("/{request_id}", response_model=WaiverResponse)
def get_waiver(
    request_id: str,
    current_user: CurrentUser = Depends(deps.get_current_user),
    service: WaiverService = Depends(deps.get_waiver_service),
):
    request = service.get_request(request_id)
    ensure_student_access(current_user, request.student_id)
    return WaiverResponse.model_validate(request)
