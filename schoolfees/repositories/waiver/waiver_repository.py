"""
Waiver Request Repository.
"""

from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from schoolfees.core.exceptions import WaiverRequestNotFoundError
from schoolfees.models.academic.academic import Student
from schoolfees.models.waiver.waiver import WaiverRequest
from schoolfees.repositories.base.base_repository import BaseRepository


class WaiverRepository(BaseRepository[WaiverRequest]):
    """Repository for the waiver queue."""

    not_found_error = WaiverRequestNotFoundError

    def __init__(self, db: Session):
        super().__init__(WaiverRequest, db)

    def list_requests(
        self,
        status: Optional[str] = None,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> List[Tuple[WaiverRequest, Student]]:
        stmt = select(WaiverRequest, Student).join(Student, Student.id == WaiverRequest.student_id)
        if status:
            stmt = stmt.where(WaiverRequest.status == status)
        if course_id:
            stmt = stmt.where(Student.course_id == course_id)
        if batch_id:
            stmt = stmt.where(Student.batch_id == batch_id)
        if student_id:
            stmt = stmt.where(WaiverRequest.student_id == student_id)
        stmt = stmt.order_by(WaiverRequest.request_date.desc(), WaiverRequest.id)
        return [(row[0], row[1]) for row in self.db.execute(stmt).all()]

    def count_by_status(self, status: str) -> int:
        stmt = select(func.count(WaiverRequest.id)).where(WaiverRequest.status == status)
        return self.db.execute(stmt).scalar_one()

    def applied_for_student(self, student_id: str) -> List[WaiverRequest]:
        """Approved requests that discounted an invoice, oldest first."""
        stmt = (
            select(WaiverRequest)
            .where(
                WaiverRequest.student_id == student_id,
                WaiverRequest.applied_invoice_id.is_not(None),
                WaiverRequest.applied_amount > 0,
            )
            .order_by(WaiverRequest.processed_date, WaiverRequest.id)
        )
        return list(self.db.execute(stmt).scalars().all())
