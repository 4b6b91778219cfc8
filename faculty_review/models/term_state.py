from sqlalchemy import Column, Integer, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base
from faculty_review.models.term import TermType


class Visibility(str, enum.Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    COMPLETE = "COMPLETE"


class EvaluationStage(str, enum.Enum):
    """Independent publish gates within a term."""
    TEACHER_REVIEW = "teacherReview"
    HOD_EVALUATION = "hodEvaluation"


# Forward-only ordering of visibility states
VISIBILITY_RANK = {
    Visibility.DRAFT: 0,
    Visibility.PUBLISHED: 1,
    Visibility.COMPLETE: 2,
}


class TermState(Base):
    __tablename__ = "term_states"
    __table_args__ = (
        UniqueConstraint("department_id", "year", name="uq_term_state_department_year"),
    )

    id = Column(Integer, primary_key=True, index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)
    year = Column(Integer, nullable=False)

    active_term = Column(Enum(TermType), nullable=True)
    start_term_visibility = Column(Enum(Visibility), default=Visibility.DRAFT, nullable=False)
    end_term_visibility = Column(Enum(Visibility), default=Visibility.DRAFT, nullable=False)
    # Gates Asst-Dean/Dean access to HOD evaluation; never COMPLETE
    hod_visibility = Column(Enum(Visibility), default=Visibility.DRAFT, nullable=False)
    # Legacy overall flag mirroring term completion
    visibility = Column(Enum(Visibility), default=Visibility.DRAFT, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    department = relationship("Department", back_populates="term_states")

    def __repr__(self):
        return f"<TermState dept={self.department_id} year={self.year} active={self.active_term}>"

    @staticmethod
    def visibility_field(term: TermType) -> str:
        return "start_term_visibility" if term == TermType.START else "end_term_visibility"

    def term_visibility(self, term: TermType) -> Visibility:
        return getattr(self, self.visibility_field(term))
