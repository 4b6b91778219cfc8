from sqlalchemy import Column, Integer, Text, Boolean, DateTime, Enum, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base
from faculty_review.models.term import TermType


class HodReviewStatus(str, enum.Enum):
    PROMOTED = "PROMOTED"
    ON_HOLD = "ON_HOLD"


class HodPerformanceReview(Base):
    """
    Assistant Dean and Dean each keep their own row per HOD and term;
    the two tracks are independent of each other.
    """
    __tablename__ = "hod_performance_reviews"
    __table_args__ = (
        UniqueConstraint("hod_id", "term", "year", "reviewer_id", name="uq_hod_performance_review_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    hod_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    comments = Column(Text, nullable=False, default="")
    scores = Column(JSON, nullable=True)          # rubric map
    total_score = Column(Integer, nullable=True)  # 0-100, may be absent on legacy rows
    status = Column(Enum(HodReviewStatus), nullable=True)
    submitted = Column(Boolean, default=False, nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    hod = relationship("User", foreign_keys=[hod_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
