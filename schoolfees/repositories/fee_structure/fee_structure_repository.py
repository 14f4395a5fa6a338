"""
Fee Structure Repository.
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolfees.core.exceptions import FeeStructureNotFoundError
from schoolfees.models.fee_structure.fee_structure import FeeStructure
from schoolfees.repositories.base.base_repository import BaseRepository


class FeeStructureRepository(BaseRepository[FeeStructure]):
    """Repository for fee structure lookups."""

    def __init__(self, db: Session):
        super().__init__(FeeStructure, db)

    def find_active(self, course_id: str, batch_id: str, session_id: str) -> Optional[FeeStructure]:
        """Active structure for the exact (course, batch, session) tuple."""
        stmt = select(FeeStructure).where(
            FeeStructure.course_id == course_id,
            FeeStructure.batch_id == batch_id,
            FeeStructure.session_id == session_id,
            FeeStructure.is_active.is_(True),
        )
        return self.db.execute(stmt).scalars().first()

    def list_structures(
        self,
        course_id: Optional[str] = None,
        batch_id: Optional[str] = None,
        session_id: Optional[str] = None,
        active_only: bool = True,
    ) -> List[FeeStructure]:
        stmt = select(FeeStructure)
        if course_id:
            stmt = stmt.where(FeeStructure.course_id == course_id)
        if batch_id:
            stmt = stmt.where(FeeStructure.batch_id == batch_id)
        if session_id:
            stmt = stmt.where(FeeStructure.session_id == session_id)
        if active_only:
            stmt = stmt.where(FeeStructure.is_active.is_(True))
        stmt = stmt.order_by(FeeStructure.structure_name, FeeStructure.id)
        return list(self.db.execute(stmt).scalars().all())

    def _not_found(self, entity_id) -> FeeStructureNotFoundError:
        return FeeStructureNotFoundError(structure_id=str(entity_id))
