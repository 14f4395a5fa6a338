from schoolfees.services.fee_structure.fee_structure_service import FeeStructureService
from schoolfees.services.invoice.invoice_service import InvoiceService
from schoolfees.services.invoice.status import compute_invoice_status
from schoolfees.services.payment.payment_service import PaymentService
from schoolfees.services.reporting.reporting_service import ReportingService
from schoolfees.services.waiver.waiver_service import WaiverService

__all__ = [
    "FeeStructureService",
    "InvoiceService",
    "PaymentService",
    "ReportingService",
    "WaiverService",
    "compute_invoice_status",
]
