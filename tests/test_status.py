from decimal import Decimal
from types import SimpleNamespace

import pytest

from schoolfees.models.base.enums import InvoiceStatus
from schoolfees.services.invoice.status import compute_invoice_status, outstanding, refresh_status


@pytest.mark.parametrize(
    "paid, total, discount, expected",
    [
        ("0", "1000", "0", InvoiceStatus.PENDING),
        ("0.01", "1000", "0", InvoiceStatus.PARTIAL),
        ("999.99", "1000", "0", InvoiceStatus.PARTIAL),
        ("1000", "1000", "0", InvoiceStatus.PAID),
        ("0", "0", "250", InvoiceStatus.WAIVED),
        ("0", "0", "0", InvoiceStatus.PAID),
        ("400", "400", "600", InvoiceStatus.PAID),
    ],
)
def test_compute_invoice_status(paid, total, discount, expected):
    assert compute_invoice_status(Decimal(paid), Decimal(total), Decimal(discount)) is expected


def test_compute_invoice_status_accepts_plain_numbers():
    assert compute_invoice_status(50, "100.004") is InvoiceStatus.PARTIAL
    assert compute_invoice_status(None, 100) is InvoiceStatus.PENDING


def test_refresh_status_stores_enum_value():
    invoice = SimpleNamespace(
        paid_amount=Decimal("300.00"),
        total_amount=Decimal("500.00"),
        discount_amount=Decimal("0.00"),
        status="Pending",
    )

    assert refresh_status(invoice) is InvoiceStatus.PARTIAL
    assert invoice.status == "Partial"
    assert outstanding(invoice) == Decimal("200.00")
