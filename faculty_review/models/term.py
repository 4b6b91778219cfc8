"""
Academic term definitions.

A Term is a defined period (with dates) linked to departments. It is distinct
from the *active* term marker kept on each department's TermState.
"""
from sqlalchemy import Column, Integer, String, Date, DateTime, Enum, ForeignKey, Table
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base


class TermType(str, enum.Enum):
    """Half of the academic year an evaluation belongs to."""
    START = "START"
    END = "END"


class TermStatus(str, enum.Enum):
    INACTIVE = "INACTIVE"
    START = "START"
    END = "END"


term_departments = Table(
    "term_departments",
    Base.metadata,
    Column("term_id", Integer, ForeignKey("terms.id", ondelete="CASCADE"), primary_key=True),
    Column("department_id", Integer, ForeignKey("departments.id", ondelete="CASCADE"), primary_key=True),
)


class Term(Base):
    __tablename__ = "terms"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    year = Column(Integer, nullable=False, index=True)
    status = Column(Enum(TermStatus), default=TermStatus.INACTIVE, nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    departments = relationship("Department", secondary=term_departments, back_populates="terms")

    def __repr__(self):
        return f"<Term {self.name} {self.year} ({self.status.value})>"

    @property
    def term_type(self):
        """The evaluation half this term feeds, or None while INACTIVE."""
        if self.status == TermStatus.INACTIVE:
            return None
        return TermType(self.status.value)
