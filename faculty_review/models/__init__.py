# Models package
# Importing modules here ensures they are registered with SQLAlchemy Base
from . import (
    user, department, term, term_state, question,
    teacher_answer, review, hod_performance_review, audit_log
)

# Explicit class exports for cleaner imports
from .user import User, UserRole
from .department import Department
from .term import Term, TermType, TermStatus
from .term_state import TermState, Visibility, EvaluationStage
from .question import Question, QuestionType
from .teacher_answer import TeacherAnswer, SelfComment
from .review import HodReview, AsstReview, FinalReview, FinalStatus
from .hod_performance_review import HodPerformanceReview, HodReviewStatus
from .audit_log import AuditLog

__all__ = [
    "User",
    "UserRole",
    "Department",
    "Term",
    "TermType",
    "TermStatus",
    "TermState",
    "Visibility",
    "EvaluationStage",
    "Question",
    "QuestionType",
    "TeacherAnswer",
    "SelfComment",
    "HodReview",
    "AsstReview",
    "FinalReview",
    "FinalStatus",
    "HodPerformanceReview",
    "HodReviewStatus",
    "AuditLog",
]
