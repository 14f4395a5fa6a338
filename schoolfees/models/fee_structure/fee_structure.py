"""
Fee Structure Model

Fee template for one (course, batch, academic session) cohort. One-time
components are billed once per invoice; monthly components are multiplied by
``duration_months``.
"""

from decimal import Decimal
from typing import Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.academic.academic import AcademicSession, Batch, Course
from schoolfees.models.base.base_model import TimestampModel


def _money_column(nullable: bool = True):
    return mapped_column(
        Numeric(precision=10, scale=2),
        nullable=nullable,
        default=Decimal("0.00"),
    )


class FeeStructure(TimestampModel):
    """
    Fee Structure Model

    At most one active structure exists per (course, batch, session); the
    partial unique index enforces it at the database level.
    """

    __tablename__ = "fee_structures"

    structure_name: Mapped[str] = mapped_column(String(200), nullable=False)

    # Cohort
    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="RESTRICT"),
        nullable=False,
    )
    batch_id: Mapped[str] = mapped_column(
        ForeignKey("batches.id", ondelete="RESTRICT"),
        nullable=False,
    )
    session_id: Mapped[str] = mapped_column(
        ForeignKey("academic_sessions.id", ondelete="RESTRICT"),
        nullable=False,
    )

    # One-time components
    admission_fee: Mapped[Optional[Decimal]] = _money_column()
    registration_fee: Mapped[Optional[Decimal]] = _money_column()
    examination_fee: Mapped[Optional[Decimal]] = _money_column()
    miscellaneous_fee: Mapped[Optional[Decimal]] = _money_column()

    # Monthly components
    tuition_fee: Mapped[Optional[Decimal]] = _money_column()
    has_transport: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    transport_fee: Mapped[Optional[Decimal]] = _money_column()
    has_hostel: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hostel_fee: Mapped[Optional[Decimal]] = _money_column()

    duration_months: Mapped[int] = mapped_column(Integer, nullable=False, default=12)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)

    course: Mapped["Course"] = relationship()
    batch: Mapped["Batch"] = relationship()
    session: Mapped["AcademicSession"] = relationship()

    __table_args__ = (
        CheckConstraint("duration_months >= 1", name="ck_fee_structures_duration_positive"),
        CheckConstraint(
            "coalesce(admission_fee, 0) >= 0 AND coalesce(registration_fee, 0) >= 0 "
            "AND coalesce(examination_fee, 0) >= 0 AND coalesce(miscellaneous_fee, 0) >= 0 "
            "AND coalesce(tuition_fee, 0) >= 0 AND coalesce(transport_fee, 0) >= 0 "
            "AND coalesce(hostel_fee, 0) >= 0",
            name="ck_fee_structures_amounts_non_negative",
        ),
        Index(
            "uq_fee_structures_active_cohort",
            "course_id",
            "batch_id",
            "session_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )
