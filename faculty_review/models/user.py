"""
User Model.
Institution-wide roles (ADMIN, DEAN, ASST_DEAN) carry no department;
department-scoped roles (HOD, TEACHER) must.
"""
from sqlalchemy import Column, Integer, String, Enum, DateTime, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
import enum
from faculty_review.database import Base


class UserRole(str, enum.Enum):
    ADMIN = "ADMIN"
    DEAN = "DEAN"
    ASST_DEAN = "ASST_DEAN"
    HOD = "HOD"
    TEACHER = "TEACHER"


DEPARTMENT_SCOPED_ROLES = (UserRole.HOD, UserRole.TEACHER)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            "role NOT IN ('HOD', 'TEACHER') OR department_id IS NOT NULL",
            name="ck_users_department_scoped_role",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(UserRole), default=UserRole.TEACHER, nullable=False, index=True)
    department_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)

    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    department = relationship("Department", back_populates="members")

    def __repr__(self):
        return f"<User {self.email} ({self.role.value})>"

    @property
    def is_department_scoped(self) -> bool:
        return self.role in DEPARTMENT_SCOPED_ROLES
