"""
API v1 Router - Main Entry Point
Aggregates all v1 API endpoints for the fee ledger
"""
from fastapi import APIRouter

from schoolfees.api.v1.endpoints import (
    fee_structures,
    invoices,
    ledger,
    payments,
    waivers,
)
from schoolfees.schemas.common.base import ErrorResponse

router = APIRouter(
    responses={
        401: {"model": ErrorResponse, "description": "Unauthorized"},
        403: {"model": ErrorResponse, "description": "Forbidden"},
        404: {"model": ErrorResponse, "description": "Not Found"},
        409: {"model": ErrorResponse, "description": "Conflict"},
        422: {"model": ErrorResponse, "description": "Validation Error"},
        500: {"model": ErrorResponse, "description": "Internal Server Error"},
    }
)

router.include_router(fee_structures.router)
router.include_router(invoices.router)
router.include_router(payments.router)
router.include_router(waivers.router)
router.include_router(ledger.router)
