from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from faculty_review.core.schemas import ApiResponse
from faculty_review.database import get_db
from faculty_review.models.term import TermType
from faculty_review.models.user import User
from faculty_review.routers.auth_deps import get_current_user, require_admin, require_department_access
from faculty_review.schemas.term_state import (
    PublishStageRequest,
    SetActiveTermRequest,
    TermStateGates,
    TermStateResponse,
)
from faculty_review.services.base import current_year
from faculty_review.services.term_state import TermStateService, access_gates

router = APIRouter(prefix="/departments", tags=["Term State"])


def _to_response(state, term: Optional[TermType] = None) -> TermStateResponse:
    response = TermStateResponse.model_validate(state)
    response.persisted = state.id is not None
    gate_term = term or state.active_term
    if gate_term is not None:
        response.gates = TermStateGates(**access_gates(state, gate_term))
    return response


@router.get("/{department_id}/term-state", response_model=TermStateResponse)
def get_term_state(
    department_id: int,
    year: Optional[int] = None,
    term: Optional[TermType] = Query(None, description="Term to evaluate access gates for; defaults to the active term"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    require_department_access(current_user, department_id)
    state = TermStateService(db).get_state(department_id, year or current_year())
    return _to_response(state, term)


@router.put("/{department_id}/term-state/active-term", response_model=ApiResponse[TermStateResponse])
def set_active_term(
    department_id: int,
    request: SetActiveTermRequest,
    current_user: User = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    state = TermStateService(db).set_active_term(
        department_id, request.year or current_year(), request.term, user=current_user
    )
    return ApiResponse.ok(_to_response(state), message="Active term updated")


@router.post("/{department_id}/term-state/publish", response_model=ApiResponse[TermStateResponse])
def publish_stage(
    department_id: int,
    request: PublishStageRequest,
    current_user: User = Depends(require_admin()),
    db: Session = Depends(get_db),
):
    state = TermStateService(db).publish(
        department_id, request.year or current_year(), request.term, request.stage, user=current_user
    )
    return ApiResponse.ok(_to_response(state, request.term), message=f"{request.stage.value} published")
