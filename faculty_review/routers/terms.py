from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from faculty_review.core.schemas import ApiResponse
from faculty_review.database import get_db
from faculty_review.models.user import User
from faculty_review.routers.auth_deps import require_admin
from faculty_review.schemas.term import TermActivate, TermCreate, TermResponse
from faculty_review.services.term_service import TermService

router = APIRouter(prefix="/admin/terms", tags=["Terms"])


@router.get("", response_model=List[TermResponse])
def list_terms(
    year: Optional[int] = None,
    current_user: User = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    return TermService(db).list_terms(year)


@router.post("", response_model=ApiResponse[TermResponse], status_code=status.HTTP_201_CREATED)
def create_term(
    request: TermCreate,
    current_user: User = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    term = TermService(db).create_term(
        name=request.name,
        year=request.year,
        start_date=request.start_date,
        end_date=request.end_date,
        department_ids=request.department_ids,
        status=request.status,
        user=current_user,
    )
    return ApiResponse.ok(TermResponse.model_validate(term), message="Term created")


@router.post("/{term_id}/activate", response_model=ApiResponse[TermResponse])
def activate_term(
    term_id: int,
    request: TermActivate,
    current_user: User = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    term = TermService(db).activate_term(term_id, request.status, user=current_user)
    return ApiResponse.ok(TermResponse.model_validate(term), message=f"Term set to {request.status.value}")
