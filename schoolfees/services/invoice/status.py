"""
Invoice status derivation.

Every code path that changes an invoice's money columns recomputes the
status through ``compute_invoice_status``; nothing sets it inline.
"""

from decimal import Decimal
from typing import Any

from schoolfees.models.base.enums import InvoiceStatus
from schoolfees.utils.money import ZERO, to_money


def compute_invoice_status(paid: Any, total: Any, discount: Any = ZERO) -> InvoiceStatus:
    """
    Derive invoice status from its amounts.

    - total <= 0: Waived when a discount brought it there, otherwise Paid
    - paid <= 0: Pending
    - paid < total: Partial
    - otherwise: Paid
    """
    paid = to_money(paid)
    total = to_money(total)
    discount = to_money(discount)

    if total <= ZERO:
        return InvoiceStatus.WAIVED if discount > ZERO else InvoiceStatus.PAID
    if paid <= ZERO:
        return InvoiceStatus.PENDING
    if paid < total:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.PAID


def refresh_status(invoice) -> InvoiceStatus:
    """Recompute and store ``invoice.status``; returns the new status."""
    status = compute_invoice_status(
        invoice.paid_amount,
        invoice.total_amount,
        invoice.discount_amount,
    )
    invoice.status = status.value
    return status


def outstanding(invoice) -> Decimal:
    return to_money(invoice.total_amount) - to_money(invoice.paid_amount)
