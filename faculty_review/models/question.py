from sqlalchemy import Column, Integer, Text, Boolean, DateTime, Enum, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base
from faculty_review.models.term import TermType


class QuestionType(str, enum.Enum):
    TEXT = "TEXT"
    TEXTAREA = "TEXTAREA"
    MCQ = "MCQ"
    CHECKBOX = "CHECKBOX"


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    text = Column(Text, nullable=False)
    type = Column(Enum(QuestionType), default=QuestionType.TEXT, nullable=False)
    term = Column(Enum(TermType), nullable=False, index=True)
    year = Column(Integer, nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id", ondelete="CASCADE"), nullable=False, index=True)

    options = Column(JSON, nullable=True)        # ordered list, MCQ/CHECKBOX only
    option_scores = Column(JSON, nullable=True)  # parallel to options
    required = Column(Boolean, default=True, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    order = Column(Integer, default=0, nullable=False)

    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    department = relationship("Department")
