"""
Database models.

Importing this package registers every table on ``Base.metadata``.
"""

from schoolfees.models.base import Base, BaseModel, TimestampModel
from schoolfees.models.base.enums import (
    InvoiceStatus,
    PaymentMode,
    UserRole,
    WaiverDecision,
    WaiverStatus,
)
from schoolfees.models.academic.academic import AcademicSession, Batch, Course, Student
from schoolfees.models.transport.transport import StudentTransportAssignment, TransportRoute
from schoolfees.models.fee_structure.fee_structure import FeeStructure
from schoolfees.models.invoice.invoice import Invoice, InvoiceItem
from schoolfees.models.payment.payment import Payment
from schoolfees.models.waiver.waiver import WaiverRequest

__all__ = [
    "Base",
    "BaseModel",
    "TimestampModel",
    "InvoiceStatus",
    "PaymentMode",
    "UserRole",
    "WaiverDecision",
    "WaiverStatus",
    "AcademicSession",
    "Batch",
    "Course",
    "Student",
    "StudentTransportAssignment",
    "TransportRoute",
    "FeeStructure",
    "Invoice",
    "InvoiceItem",
    "Payment",
    "WaiverRequest",
]
