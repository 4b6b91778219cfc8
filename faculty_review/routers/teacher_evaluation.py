from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faculty_review.core.schemas import ApiResponse
from faculty_review.database import get_db
from faculty_review.models.term import TermType
from faculty_review.models.user import User, UserRole
from faculty_review.routers.auth_deps import require_role
from faculty_review.schemas.evaluation import (
    EvaluationStatusResponse,
    QuestionResponse,
    TeacherAnswersRequest,
    TeacherAnswersResponse,
)
from faculty_review.services.base import current_year
from faculty_review.services.review_chain import ReviewChainService

router = APIRouter(prefix="/teacher-evaluation", tags=["Teacher Evaluation"])

teacher_only = require_role([UserRole.TEACHER])


@router.post("/answers", response_model=ApiResponse[TeacherAnswersResponse])
def submit_answers(
    request: TeacherAnswersRequest,
    current_user: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    result = ReviewChainService(db).submit_teacher_answers(
        current_user,
        request.term,
        request.answer_map(),
        request.self_comment,
        request.year or current_year(),
    )
    return ApiResponse.ok(TeacherAnswersResponse(**result), message="Evaluation submitted successfully")


@router.patch("/answers", response_model=ApiResponse[TeacherAnswersResponse])
def save_draft(
    request: TeacherAnswersRequest,
    current_user: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    result = ReviewChainService(db).save_draft(
        current_user,
        request.term,
        request.answer_map(),
        request.self_comment,
        request.year or current_year(),
    )
    return ApiResponse.ok(TeacherAnswersResponse(**result), message="Draft saved")


@router.get("/status", response_model=EvaluationStatusResponse)
def evaluation_status(
    term: TermType,
    year: Optional[int] = None,
    current_user: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    return ReviewChainService(db).evaluation_status(current_user, term, year or current_year())


@router.get("/questions", response_model=List[QuestionResponse])
def list_questions(
    term: TermType,
    year: Optional[int] = None,
    current_user: User = Depends(teacher_only),
    db: Session = Depends(get_db),
):
    return ReviewChainService(db).active_questions(current_user.department_id, term, year or current_year())
