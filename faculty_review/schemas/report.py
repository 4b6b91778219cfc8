from pydantic import BaseModel
from typing import List, Optional


class ResultRow(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    department_id: Optional[int] = None
    department: Optional[str] = None
    year: int
    term: str
    stage: str

    # Teacher rows
    has_submitted: Optional[bool] = None
    questions_answered: Optional[int] = None
    hod_reviewer_id: Optional[int] = None
    hod_score: Optional[int] = None
    asst_score: Optional[int] = None
    hod_rubric_percentage: Optional[int] = None
    final_score: Optional[int] = None

    # HOD rows
    asst_dean_total: Optional[int] = None
    dean_total: Optional[int] = None

    asst_reviewer_id: Optional[int] = None
    dean_reviewer_id: Optional[int] = None
    combined_score: Optional[int] = None
    max_possible_score: int
    performance_percentage: Optional[int] = None
    band: Optional[str] = None
    promoted: bool
    status: str


class ReportSummary(BaseModel):
    total_rows: int
    people: int
    departments: List[str]
    terms: List[str]
    generated_at: str
    generated_by: str


class ResultsReport(BaseModel):
    results: List[ResultRow]
    summary: ReportSummary
