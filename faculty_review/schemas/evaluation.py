from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import date
from typing import Dict, List, Optional, Union
from faculty_review.models.question import QuestionType
from faculty_review.models.term import TermType
from faculty_review.models.term_state import Visibility
from faculty_review.models.review import FinalStatus


class AnswerItem(BaseModel):
    question_id: int
    answer: Union[str, List[str]]


class TeacherAnswersRequest(BaseModel):
    term: TermType
    year: Optional[int] = None
    answers: List[AnswerItem] = Field(default_factory=list)
    self_comment: Optional[str] = None

    @field_validator("answers")
    @classmethod
    def unique_questions(cls, v):
        ids = [a.question_id for a in v]
        if len(ids) != len(set(ids)):
            raise ValueError("Each question may be answered only once")
        return v

    def answer_map(self) -> Dict[int, Union[str, List[str]]]:
        return {a.question_id: a.answer for a in self.answers}


class TeacherAnswersResponse(BaseModel):
    teacher_id: int
    term: TermType
    year: int
    answered: int
    submitted: bool


class QuestionResponse(BaseModel):
    id: int
    text: str
    type: QuestionType
    term: TermType
    year: int
    options: Optional[List[str]] = None
    required: bool
    order: int

    model_config = ConfigDict(from_attributes=True)


class EvaluationStatusResponse(BaseModel):
    term: TermType
    year: int
    visibility: Visibility
    can_submit: bool
    deadline: Optional[date] = None
    question_count: int
    answered_count: int
    self_evaluation_submitted: bool
    hod_review_submitted: bool
    asst_review_submitted: bool
    finalized: bool
    final_status: Optional[FinalStatus] = None
