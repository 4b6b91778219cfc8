from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from faculty_review.database import Base


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    members = relationship("User", back_populates="department")
    term_states = relationship("TermState", back_populates="department", cascade="all, delete-orphan")
    terms = relationship("Term", secondary="term_departments", back_populates="departments")

    def __repr__(self):
        return f"<Department {self.id}: {self.name}>"
