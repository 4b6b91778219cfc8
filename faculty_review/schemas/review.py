"""
Request and response bodies for the review chain endpoints.

Flat scores are the 1-10 overall rating; rubric scores are
``{"[Category] Item": 1..5}`` maps validated again in the service layer.
"""
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Any, Dict, List, Optional
from faculty_review.models.term import TermType
from faculty_review.models.review import FinalStatus
from faculty_review.models.hod_performance_review import HodReviewStatus


class HodReviewRequest(BaseModel):
    teacher_id: int
    term: TermType
    year: Optional[int] = None
    comment: str = Field(..., min_length=1)
    score: Optional[int] = Field(None, ge=1, le=10)
    rubric_scores: Optional[Dict[str, int]] = None
    question_scores: Optional[Dict[str, Any]] = None


class AsstReviewRequest(BaseModel):
    teacher_id: int
    term: TermType
    year: Optional[int] = None
    comment: str = Field(..., min_length=1)
    score: Optional[int] = Field(None, ge=1, le=10)


class FinalReviewRequest(BaseModel):
    teacher_id: int
    term: TermType
    year: Optional[int] = None
    comment: str = Field(..., min_length=1)
    score: Optional[int] = Field(None, ge=0, le=100)
    promoted: bool
    status: Optional[FinalStatus] = None


class HodPerformanceReviewRequest(BaseModel):
    hod_id: int
    term: TermType
    year: Optional[int] = None
    comments: Optional[str] = None
    rubric_scores: Optional[Dict[str, int]] = None
    promoted: Optional[bool] = None
    total_score: Optional[int] = Field(None, ge=0, le=100)


class HodReviewResponse(BaseModel):
    id: int
    teacher_id: int
    term: TermType
    year: int
    reviewer_id: int
    comment: str
    score: Optional[int] = None
    scores: Optional[Dict[str, Any]] = None
    total_score: Optional[int] = None
    submitted: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class AsstReviewResponse(BaseModel):
    id: int
    teacher_id: int
    term: TermType
    year: int
    reviewer_id: int
    comment: str
    score: Optional[int] = None
    submitted: bool

    model_config = ConfigDict(from_attributes=True)


class FinalReviewResponse(BaseModel):
    id: int
    teacher_id: int
    term: TermType
    year: int
    reviewer_id: int
    final_comment: str
    final_score: Optional[int] = None
    combined_score: Optional[int] = None
    status: FinalStatus
    submitted: bool

    model_config = ConfigDict(from_attributes=True)


class HodPerformanceReviewResponse(BaseModel):
    id: int
    hod_id: int
    term: TermType
    year: int
    reviewer_id: int
    comments: str
    scores: Optional[Dict[str, int]] = None
    total_score: Optional[int] = None
    status: Optional[HodReviewStatus] = None
    submitted: bool

    model_config = ConfigDict(from_attributes=True)


class HodCandidate(BaseModel):
    hod_id: int
    name: str
    email: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    rubric: Dict[str, int]
    comments: str
    submitted: bool
    total_score: Optional[int] = None
    status: Optional[HodReviewStatus] = None


class HodCandidateList(BaseModel):
    term: TermType
    year: int
    hods: List[HodCandidate]


class PendingTeacher(BaseModel):
    teacher_id: int
    name: str
    email: str
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    term: TermType
    year: int
    next_stage: Optional[str] = None
    reviewed: bool
    finalized: bool
    hod_score: Optional[int] = None
    hod_total_score: Optional[int] = None
    asst_score: Optional[int] = None


class PendingReviewList(BaseModel):
    term: TermType
    year: int
    teachers: List[PendingTeacher]
