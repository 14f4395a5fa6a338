"""
Human readable document numbers.

Invoice numbers look like ``INV-20240601-1A2B3C`` and receipt numbers like
``RCPT-20240601-1A2B3C4D``. The random suffix comes from a UUID so numbers
stay unique across processes without a counter table.
"""

from datetime import date
from typing import Optional
from uuid import uuid4


def _stamp(on: Optional[date]) -> str:
    return (on or date.today()).strftime("%Y%m%d")


def generate_invoice_number(on: Optional[date] = None) -> str:
    return f"INV-{_stamp(on)}-{uuid4().hex[:6].upper()}"


def generate_receipt_number(on: Optional[date] = None) -> str:
    return f"RCPT-{_stamp(on)}-{uuid4().hex[:8].upper()}"


def transaction_reference(receipt_number: str, sequence: int) -> str:
    """Per-invoice payment reference derived from the shared receipt number."""
    return f"{receipt_number}-{sequence}"
