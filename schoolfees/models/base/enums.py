"""
Enumerations shared by ledger models and schemas.
"""

from enum import Enum


class InvoiceStatus(str, Enum):
    """Invoice lifecycle states"""
    PENDING = "Pending"
    PARTIAL = "Partial"
    PAID = "Paid"
    WAIVED = "Waived"

    @classmethod
    def open_states(cls) -> tuple:
        """States that still accept payments and waivers"""
        return (cls.PENDING, cls.PARTIAL)


class WaiverStatus(str, Enum):
    """Waiver request workflow states"""
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class WaiverDecision(str, Enum):
    """Terminal decisions an approver may take"""
    APPROVED = "Approved"
    REJECTED = "Rejected"


class PaymentMode(str, Enum):
    """Accepted collection modes"""
    CASH = "Cash"
    CARD = "Card"
    UPI = "UPI"
    BANK_TRANSFER = "Bank Transfer"
    CHEQUE = "Cheque"
    ONLINE = "Online"


class UserRole(str, Enum):
    """Roles carried in access tokens"""
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    FINANCE = "finance"
    STAFF = "staff"
    TEACHER = "teacher"
    STUDENT = "student"

    @classmethod
    def staff_roles(cls) -> tuple:
        return (cls.SUPER_ADMIN, cls.ADMIN, cls.FINANCE, cls.STAFF)
