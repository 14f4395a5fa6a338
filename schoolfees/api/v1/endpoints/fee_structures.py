"""
Fee structure endpoints.
"""

from typing import Optional

from fastapi import APIRouter, Depends, status

from schoolfees.api import deps
from schoolfees.core.security import CurrentUser
from schoolfees.schemas.fee_structure.fee_structure import (
    FeeComponents,
    FeeStructureCreate,
    FeeStructureList,
    FeeStructureResponse,
)
from schoolfees.services import FeeStructureService

router = APIRouter(prefix="/fee-structures", tags=["Fee Structures"])


@router.post("", response_model=FeeStructureResponse, status_code=status.HTTP_201_CREATED)
def create_fee_structure(
    payload: FeeStructureCreate,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: FeeStructureService = Depends(deps.get_fee_structure_service),
):
    return FeeStructureResponse.model_validate(service.create_structure(payload))


@router.get("", response_model=FeeStructureList)
def list_fee_structures(
    course_id: Optional[str] = None,
    batch_id: Optional[str] = None,
    session_id: Optional[str] = None,
    active_only: bool = True,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: FeeStructureService = Depends(deps.get_fee_structure_service),
):
    structures = service.list_structures(course_id, batch_id, session_id, active_only)
    return FeeStructureList(
        items=[FeeStructureResponse.model_validate(s) for s in structures],
        total=len(structures),
    )


@router.get("/resolve", response_model=FeeComponents)
def resolve_fee_structure(
    course_id: str,
    batch_id: str,
    session_id: str,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: FeeStructureService = Depends(deps.get_fee_structure_service),
):
    """Active fee structure for a cohort, with every component filled in."""
    return service.resolve(course_id, batch_id, session_id)


@router.get("/{structure_id}", response_model=FeeStructureResponse)
def get_fee_structure(
    structure_id: str,
    current_user: CurrentUser = Depends(deps.require_staff),
    service: FeeStructureService = Depends(deps.get_fee_structure_service),
):
    return FeeStructureResponse.model_validate(service.get_structure(structure_id))


@router.post("/{structure_id}/deactivate", response_model=FeeStructureResponse)
def deactivate_fee_structure(
    structure_id: str,
    current_user: CurrentUser = Depends(deps.require_finance),
    service: FeeStructureService = Depends(deps.get_fee_structure_service),
):
    return FeeStructureResponse.model_validate(service.deactivate_structure(structure_id))
