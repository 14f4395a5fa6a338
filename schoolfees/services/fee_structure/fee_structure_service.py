"""
Fee structure resolution and administration.
"""

from typing import List, Optional

from schoolfees.core.exceptions import (
    ConflictError,
    FeeStructureNotFoundError,
    IntegrityFailureError,
)
from schoolfees.models.academic.academic import Student
from schoolfees.models.fee_structure.fee_structure import FeeStructure
from schoolfees.repositories.academic.student_repository import StudentRepository
from schoolfees.repositories.fee_structure.fee_structure_repository import FeeStructureRepository
from schoolfees.schemas.fee_structure.fee_structure import FeeComponents, FeeStructureCreate
from schoolfees.services.base.base_service import BaseService
from schoolfees.utils.money import to_money


def to_components(structure: FeeStructure) -> FeeComponents:
    """Immutable, zero-filled view of a fee structure row."""
    return FeeComponents(
        fee_structure_id=structure.id,
        structure_name=structure.structure_name,
        course_id=structure.course_id,
        batch_id=structure.batch_id,
        session_id=structure.session_id,
        admission_fee=to_money(structure.admission_fee),
        registration_fee=to_money(structure.registration_fee),
        tuition_fee=to_money(structure.tuition_fee),
        examination_fee=to_money(structure.examination_fee),
        miscellaneous_fee=to_money(structure.miscellaneous_fee),
        has_transport=bool(structure.has_transport),
        transport_fee=to_money(structure.transport_fee),
        has_hostel=bool(structure.has_hostel),
        hostel_fee=to_money(structure.hostel_fee),
        duration_months=structure.duration_months or 1,
    )


class FeeStructureService(BaseService[FeeStructure, FeeStructureRepository]):
    """
    Resolves the fee structure that applies to a cohort and manages the
    structures themselves. A missing structure is always an error; no default
    amount is ever substituted.
    """

    def __init__(self, db_session, config=None):
        super().__init__(FeeStructureRepository(db_session), db_session, config)
        self.structures = self.repository
        self.students = StudentRepository(db_session)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_structure(self, course_id: str, batch_id: str, session_id: str) -> FeeStructure:
        structure = self.structures.find_active(course_id, batch_id, session_id)
        if structure is None:
            self._logger.warning(
                "Fee structure not found",
                extra={"course_id": course_id, "batch_id": batch_id, "session_id": session_id},
            )
            raise FeeStructureNotFoundError(course_id, batch_id, session_id)
        return structure

    def resolve(self, course_id: str, batch_id: str, session_id: str) -> FeeComponents:
        return to_components(self.resolve_structure(course_id, batch_id, session_id))

    def session_for_student(self, student: Student) -> Optional[str]:
        if student.session_id:
            return student.session_id
        active = self.students.get_active_session()
        return active.id if active else None

    def resolve_structure_for_student(self, student: Student) -> FeeStructure:
        session_id = self.session_for_student(student)
        if not (student.course_id and student.batch_id and session_id):
            raise FeeStructureNotFoundError(
                student.course_id,
                student.batch_id,
                session_id,
                message=f"Student {student.id} has no complete course/batch/session assignment",
            )
        return self.resolve_structure(student.course_id, student.batch_id, session_id)

    def resolve_for_student(self, student: Student) -> FeeComponents:
        return to_components(self.resolve_structure_for_student(student))

    # -------------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------------

    def create_structure(self, payload: FeeStructureCreate) -> FeeStructure:
        missing = []
        if not self.students.course_exists(payload.course_id):
            missing.append("course_id")
        if not self.students.batch_exists(payload.batch_id):
            missing.append("batch_id")
        if self.students.get_session(payload.session_id) is None:
            missing.append("session_id")
        if missing:
            raise IntegrityFailureError(
                "Fee structure references unknown academic records",
                {"fields": missing},
            )

        if self.structures.find_active(payload.course_id, payload.batch_id, payload.session_id):
            raise ConflictError(
                "An active fee structure already exists for this course, batch and session",
                {
                    "course_id": payload.course_id,
                    "batch_id": payload.batch_id,
                    "session_id": payload.session_id,
                },
            )

        with self.transaction():
            structure = self.structures.create(FeeStructure(**payload.model_dump(), is_active=True))

        self._logger.info(
            "Fee structure created",
            extra={"fee_structure_id": structure.id, "course_id": structure.course_id},
        )
        return structure

    def get_structure(self, structure_id: str) -> FeeStructure:
        return self.get_by_id(structure_id)

    def list_structures(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        session_id: Optional[str] = None,
        active_only: bool = True,
    ) -> List[FeeStructure]:
        return self.structures.list_structures(course_id, batch_id, session_id, active_only)

    def deactivate_structure(self, structure_id: str) -> FeeStructure:
        with self.transaction():
            structure = self.structures.get_for_update(structure_id)
            structure.is_active = False

        self._logger.info("Fee structure deactivated", extra={"fee_structure_id": structure_id})
        return structure
