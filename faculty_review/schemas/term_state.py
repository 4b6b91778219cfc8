from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional
from faculty_review.models.term import TermType
from faculty_review.models.term_state import EvaluationStage, Visibility


class TermStateGates(BaseModel):
    teacher_can_submit: bool
    hod_can_review: bool
    hod_evaluation_open: bool


class TermStateResponse(BaseModel):
    department_id: int
    year: int
    active_term: Optional[TermType] = None
    start_term_visibility: Visibility
    end_term_visibility: Visibility
    hod_visibility: Visibility
    visibility: Visibility
    persisted: bool = True
    updated_at: Optional[datetime] = None
    gates: Optional[TermStateGates] = None

    model_config = ConfigDict(from_attributes=True)


class SetActiveTermRequest(BaseModel):
    term: Optional[TermType] = None
    year: Optional[int] = None


class PublishStageRequest(BaseModel):
    term: TermType
    stage: EvaluationStage
    year: Optional[int] = None
