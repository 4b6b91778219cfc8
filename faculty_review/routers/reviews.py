from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from faculty_review.core.schemas import ApiResponse
from faculty_review.database import get_db
from faculty_review.models.term import TermType
from faculty_review.models.user import User, UserRole
from faculty_review.routers.auth_deps import require_role
from faculty_review.schemas.review import (
    AsstReviewRequest,
    AsstReviewResponse,
    FinalReviewRequest,
    FinalReviewResponse,
    HodCandidate,
    HodCandidateList,
    HodPerformanceReviewRequest,
    HodPerformanceReviewResponse,
    HodReviewRequest,
    HodReviewResponse,
    PendingReviewList,
    PendingTeacher,
)
from faculty_review.services.base import current_year
from faculty_review.services.review_chain import ReviewChainService

router = APIRouter(prefix="/reviews", tags=["Reviews"])


@router.post("/hod", response_model=ApiResponse[HodReviewResponse])
def submit_hod_review(
    request: HodReviewRequest,
    current_user: User = Depends(require_role([UserRole.HOD])),
    db: Session = Depends(get_db),
):
    review = ReviewChainService(db).submit_hod_review(
        current_user,
        teacher_id=request.teacher_id,
        term=request.term,
        comment=request.comment,
        score=request.score,
        rubric_scores=request.rubric_scores,
        question_scores=request.question_scores,
        year=request.year or current_year(),
    )
    return ApiResponse.ok(HodReviewResponse.model_validate(review), message="HOD review submitted successfully")


@router.post("/asst-dean", response_model=ApiResponse[AsstReviewResponse])
def submit_asst_review(
    request: AsstReviewRequest,
    current_user: User = Depends(require_role([UserRole.ASST_DEAN])),
    db: Session = Depends(get_db),
):
    review = ReviewChainService(db).submit_asst_review(
        current_user,
        teacher_id=request.teacher_id,
        term=request.term,
        comment=request.comment,
        score=request.score,
        year=request.year or current_year(),
    )
    return ApiResponse.ok(
        AsstReviewResponse.model_validate(review), message="Assistant Dean review submitted successfully"
    )


@router.post("/dean", response_model=ApiResponse[FinalReviewResponse])
def submit_final_review(
    request: FinalReviewRequest,
    current_user: User = Depends(require_role([UserRole.DEAN])),
    db: Session = Depends(get_db),
):
    review = ReviewChainService(db).submit_final_review(
        current_user,
        teacher_id=request.teacher_id,
        term=request.term,
        comment=request.comment,
        score=request.score,
        promoted=request.promoted,
        status=request.status,
        year=request.year or current_year(),
    )
    return ApiResponse.ok(FinalReviewResponse.model_validate(review), message="Dean review submitted successfully")


@router.post("/hod-performance", response_model=ApiResponse[HodPerformanceReviewResponse])
def submit_hod_performance_review(
    request: HodPerformanceReviewRequest,
    current_user: User = Depends(require_role([UserRole.ASST_DEAN, UserRole.DEAN])),
    db: Session = Depends(get_db),
):
    review = ReviewChainService(db).submit_hod_performance_review(
        current_user,
        hod_id=request.hod_id,
        term=request.term,
        comments=request.comments,
        rubric_scores=request.rubric_scores,
        promoted=request.promoted,
        total_score=request.total_score,
        year=request.year or current_year(),
    )
    return ApiResponse.ok(
        HodPerformanceReviewResponse.model_validate(review), message="HOD performance review submitted"
    )


@router.get("/hod-performance", response_model=HodCandidateList)
def list_hod_candidates(
    term: TermType = TermType.START,
    year: Optional[int] = None,
    current_user: User = Depends(require_role([UserRole.ASST_DEAN, UserRole.DEAN])),
    db: Session = Depends(get_db),
):
    year = year or current_year()
    hods = ReviewChainService(db).list_hod_candidates(current_user, term, year)
    return HodCandidateList(term=term, year=year, hods=[HodCandidate(**h) for h in hods])


def _pending(current_user: User, term: TermType, year: Optional[int], db: Session) -> PendingReviewList:
    year = year or current_year()
    teachers = ReviewChainService(db).list_pending(current_user, term, year)
    return PendingReviewList(term=term, year=year, teachers=[PendingTeacher(**t) for t in teachers])


@router.get("/hod", response_model=PendingReviewList)
def list_hod_queue(
    term: TermType = TermType.START,
    year: Optional[int] = None,
    current_user: User = Depends(require_role([UserRole.HOD])),
    db: Session = Depends(get_db),
):
    """Teachers of the HOD's department with a submitted self evaluation."""
    return _pending(current_user, term, year, db)


@router.get("/asst-dean", response_model=PendingReviewList)
def list_asst_dean_queue(
    term: TermType = TermType.START,
    year: Optional[int] = None,
    current_user: User = Depends(require_role([UserRole.ASST_DEAN])),
    db: Session = Depends(get_db),
):
    """Teachers with a submitted HOD review."""
    return _pending(current_user, term, year, db)


@router.get("/dean", response_model=PendingReviewList)
def list_dean_queue(
    term: TermType = TermType.START,
    year: Optional[int] = None,
    current_user: User = Depends(require_role([UserRole.DEAN])),
    db: Session = Depends(get_db),
):
    """Teachers with a submitted Assistant Dean review."""
    return _pending(current_user, term, year, db)
