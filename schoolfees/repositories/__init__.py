from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.fee_structure.fee_structure_repository import FeeStructureRepository
from schoolfees.repositories.invoice.invoice_repository import InvoiceRepository
from schoolfees.repositories.payment.payment_repository import PaymentRepository
from schoolfees.repositories.waiver.waiver_repository import WaiverRepository

__all__ = [
    "StudentRepository",
    "FeeStructureRepository",
    "InvoiceRepository",
    "PaymentRepository",
    "WaiverRepository",
]
