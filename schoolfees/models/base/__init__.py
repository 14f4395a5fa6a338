from schoolfees.models.base.base_model import Base, BaseModel, TimestampModel
from schoolfees.models.base.enums import (
    InvoiceStatus,
    PaymentMode,
    UserRole,
    WaiverDecision,
    WaiverStatus,
)

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "InvoiceStatus",
    "PaymentMode",
    "UserRole",
    "WaiverDecision",
    "WaiverStatus",
]
