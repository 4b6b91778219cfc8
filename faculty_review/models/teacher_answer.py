from sqlalchemy import Column, Integer, Text, Boolean, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from faculty_review.database import Base
from faculty_review.models.term import TermType


class TeacherAnswer(Base):
    __tablename__ = "teacher_answers"
    __table_args__ = (
        UniqueConstraint("teacher_id", "question_id", "term", "year", name="uq_teacher_answer_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    answer = Column(Text, nullable=False)  # may hold a JSON-encoded list for CHECKBOX
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User")
    question = relationship("Question")


class SelfComment(Base):
    __tablename__ = "self_comments"
    __table_args__ = (
        UniqueConstraint("teacher_id", "term", "year", name="uq_self_comment_key"),
    )

    id = Column(Integer, primary_key=True, index=True)
    teacher_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    term = Column(Enum(TermType), nullable=False)
    year = Column(Integer, nullable=False)
    comment = Column(Text, nullable=False)
    submitted = Column(Boolean, default=False, nullable=False)  # False while the teacher is drafting
    term_id = Column(Integer, ForeignKey("terms.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("User")
