"""
Academic Models

Courses, batches, academic sessions and students. These tables are owned by
the academics module; the ledger reads them to resolve fee structures and to
scope invoices and reports.
"""

from datetime import date as Date
from typing import List, Optional

from sqlalchemy import Boolean, Date as SQLDate, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schoolfees.models.base.base_model import TimestampModel


class Course(TimestampModel):
    """Course offered by the school (e.g. "Class 10", "B.Sc")"""

    __tablename__ = "courses"

    name: Mapped[str] = mapped_column(String(150), nullable=False)
    code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, unique=True)

    batches: Mapped[List["Batch"]] = relationship(back_populates="course")


class Batch(TimestampModel):
    """Batch (section/cohort) inside a course"""

    __tablename__ = "batches"

    course_id: Mapped[str] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(150), nullable=False)

    course: Mapped["Course"] = relationship(back_populates="batches")


class AcademicSession(TimestampModel):
    """Academic year/session (e.g. "2024-25")"""

    __tablename__ = "academic_sessions"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    start_date: Mapped[Optional[Date]] = mapped_column(SQLDate, nullable=True)
    end_date: Mapped[Optional[Date]] = mapped_column(SQLDate, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)


class Student(TimestampModel):
    """Enrolled student"""

    __tablename__ = "students"

    full_name: Mapped[str] = mapped_column(String(200), nullable=False)
    roll_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    course_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("courses.id", ondelete="SET NULL"),
        nullable=True,
    )
    batch_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("batches.id", ondelete="SET NULL"),
        nullable=True,
    )
    session_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("academic_sessions.id", ondelete="SET NULL"),
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    course: Mapped[Optional["Course"]] = relationship()
    batch: Mapped[Optional["Batch"]] = relationship()
    session: Mapped[Optional["AcademicSession"]] = relationship()

    __table_args__ = (
        Index("ix_students_cohort", "course_id", "batch_id"),
    )
