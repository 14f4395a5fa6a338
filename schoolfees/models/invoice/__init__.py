from schoolfees.models.invoice.invoice import Invoice, InvoiceItem

__all__ = ["Invoice", "InvoiceItem"]
