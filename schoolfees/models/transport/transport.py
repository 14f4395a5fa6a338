"""
Transport Models

Routes and student route assignments. Only read by the ledger when building
the transport line item of an invoice.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.base.base_model import TimestampModel


class TransportRoute(TimestampModel):
    """Bus route with its default monthly fee"""

    __tablename__ = "transport_routes"

    route_name: Mapped[str] = mapped_column(String(150), nullable=False)
    monthly_fee: Mapped[Decimal] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=False,
        default=Decimal("0.00"),
    )


class StudentTransportAssignment(TimestampModel):
    """
    Student to route assignment.

    ``monthly_fee`` overrides the route fee when greater than zero.
    """

    __tablename__ = "student_transport_assignments"

    student_id: Mapped[str] = mapped_column(
        ForeignKey("students.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    route_id: Mapped[str] = mapped_column(
        ForeignKey("transport_routes.id", ondelete="CASCADE"),
        nullable=False,
    )
    monthly_fee: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(precision=10, scale=2),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    route: Mapped["TransportRoute"] = relationship()
