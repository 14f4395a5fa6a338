"""
FastAPI dependencies shared by the v1 endpoints.

Example usage in a router:
    from fastapi import Depends, APIRouter
    from schoolfees.api import deps

    @router.get("/me")
    def read_me(current_user = Depends(deps.get_current_user)):
        return current_user
"""

from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from schoolfees.config.settings import Settings
from schoolfees.core.exceptions import AuthenticationError
from schoolfees.core.security import CurrentUser, decode_access_token, ensure_roles
from schoolfees.db.session import get_db
from schoolfees.models.base.enums import UserRole
from schoolfees.services import (
    FeeStructureService,
    InvoiceService,
    PaymentService,
    ReportingService,
    WaiverService,
)

security = HTTPBearer(auto_error=False)

STAFF_ROLES = UserRole.staff_roles()
ADMIN_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN)
FINANCE_ROLES = (UserRole.ADMIN, UserRole.SUPER_ADMIN, UserRole.FINANCE)


# --- Settings & database ------------------------------------------------------

def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


# --- Authentication & Authorization -------------------------------------------

def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Missing bearer token")
    return decode_access_token(credentials.credentials, request.app.state.settings)


def require_roles(*roles: UserRole) -> Callable[..., CurrentUser]:
    """Dependency factory: the caller must hold one of ``roles``."""

    def dependency(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        return ensure_roles(current_user, roles)

    return dependency


require_staff = require_roles(*STAFF_ROLES)
require_admin = require_roles(*ADMIN_ROLES)
require_finance = require_roles(*FINANCE_ROLES)


# --- Services -----------------------------------------------------------------

def get_fee_structure_service(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_app_settings),
) -> FeeStructureService:
    return FeeStructureService(db, config)


def get_invoice_service(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_app_settings),
) -> InvoiceService:
    return InvoiceService(db, config)


def get_payment_service(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_app_settings),
) -> PaymentService:
    return PaymentService(db, config)


def get_waiver_service(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_app_settings),
) -> WaiverService:
    return WaiverService(db, config)


def get_reporting_service(
    db: Session = Depends(get_db),
    config: Settings = Depends(get_app_settings),
) -> ReportingService:
    return ReportingService(db, config)
