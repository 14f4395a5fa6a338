"""
Student and academic lookups used by the ledger.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from schoolfees.core.exceptions import StudentNotFoundError
from schoolfees.models.academic.academic import AcademicSession, Batch, Course, Student
from schoolfees.models.transport.transport import StudentTransportAssignment
from schoolfees.repositories.base.base_repository import BaseRepository


class StudentRepository(BaseRepository[Student]):
    """Repository for students and their cohort context."""

    not_found_error = StudentNotFoundError

    def __init__(self, db: Session):
        super().__init__(Student, db)

    def list_active_in_cohort(self, course_id: str, batch_id: Optional[str] = None) -> List[Student]:
        stmt = select(Student).where(
            Student.course_id == course_id,
            Student.is_active.is_(True),
        )
        if batch_id:
            stmt = stmt.where(Student.batch_id == batch_id)
        stmt = stmt.order_by(Student.roll_number, Student.full_name, Student.id)
        return list(self.db.execute(stmt).scalars().all())

    def get_active_session(self) -> Optional[AcademicSession]:
        stmt = (
            select(AcademicSession)
            .where(AcademicSession.is_active.is_(True))
            .order_by(AcademicSession.start_date.desc(), AcademicSession.id)
            .limit(1)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def get_session(self, session_id: str) -> Optional[AcademicSession]:
        return self.db.get(AcademicSession, session_id)

    def course_exists(self, course_id: str) -> bool:
        return self.db.get(Course, course_id) is not None

    def batch_exists(self, batch_id: str) -> bool:
        return self.db.get(Batch, batch_id) is not None

    def get_active_transport_assignment(self, student_id: str) -> Optional[StudentTransportAssignment]:
        stmt = (
            select(StudentTransportAssignment)
            .options(joinedload(StudentTransportAssignment.route))
            .where(
                StudentTransportAssignment.student_id == student_id,
                StudentTransportAssignment.is_active.is_(True),
            )
            .order_by(StudentTransportAssignment.created_at.desc(), StudentTransportAssignment.id)
            .limit(1)
        )
        return self.db.execute(stmt).scalars().first()
