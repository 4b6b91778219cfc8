"""
Teacher review chain records: HOD → Assistant Dean → Dean.

Each record is keyed by (teacher_id, term, year) and created lazily on first
submission. Flat `score` values are the legacy 1-10 overall rating and are kept
apart from rubric-derived percentages.
"""
from sqlalchemy import Column, Integer, Text, Boolean, DateTime, Enum, ForeignKey, JSON, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base
from faculty_review.models.term import TermType


class FinalStatus(str, enum.Enum):
    PROMOTED = "PROMOTED"
    ON_HOLD = "ON_HOLD"
    NEEDS_IMPROVEMENT = "NEEDS_IMPROVEMENT"


class HodReview(Base):
    __tablename__ = "hod_reviews"
    __table_args__ = (
        UniqueConstraint("teacher_id", "term", "year", name="uq_hod_review_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    comment = Column(Text, nullable=False)
    score = Column(Integer, nullable=True)        # legacy flat 1-10
    scores = Column(JSON, nullable=True)          # {"rubric": {...}, "questionScores": {...}}
    total_score = Column(Integer, nullable=True)  # rubric percentage 0-100
    submitted = Column(Boolean, default=False, nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User", foreign_keys=[teacher_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])

    @property
    def rubric(self) -> dict:
        return (self.scores or {}).get("rubric") or {}


class AsstReview(Base):
    __tablename__ = "asst_reviews"
    __table_args__ = (
        UniqueConstraint("teacher_id", "term", "year", name="uq_asst_review_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    comment = Column(Text, nullable=False)
    score = Column(Integer, nullable=True)  # legacy flat 1-10
    submitted = Column(Boolean, default=False, nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User", foreign_keys=[teacher_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])


class FinalReview(Base):
    __tablename__ = "final_reviews"
    __table_args__ = (
        UniqueConstraint("teacher_id", "term", "year", name="uq_final_review_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    final_comment = Column(Text, nullable=False)
    final_score = Column(Integer, nullable=True)     # 0-100
    combined_score = Column(Integer, nullable=True)  # HOD + Asst flat scores frozen at finalization
    status = Column(Enum(FinalStatus), nullable=False)
    submitted = Column(Boolean, default=False, nullable=False)
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User", foreign_keys=[teacher_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])
