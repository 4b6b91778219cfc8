from pydantic import BaseModel, ConfigDict, Field
from datetime import date, datetime
from typing import List, Optional
from faculty_review.models.term import TermStatus


class DepartmentRef(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


class TermCreate(BaseModel):
    name: str = Field(..., min_length=1)
    year: int = Field(..., ge=2000, le=2100)
    start_date: date
    end_date: date
    status: TermStatus = TermStatus.INACTIVE
    department_ids: List[int] = Field(..., min_length=1)


class TermActivate(BaseModel):
    status: TermStatus


class TermResponse(BaseModel):
    id: int
    name: str
    year: int
    status: TermStatus
    start_date: date
    end_date: date
    departments: List[DepartmentRef] = []
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
