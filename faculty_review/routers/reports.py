from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from faculty_review.database import get_db
from faculty_review.models.term import TermType
from faculty_review.models.user import User, UserRole
from faculty_review.routers.auth_deps import get_current_user
from faculty_review.schemas.report import ResultsReport
from faculty_review.services.base import current_year
from faculty_review.services.reporting import ReportingService

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/results", response_model=ResultsReport)
def get_results(
    role: Optional[UserRole] = None,
    term: Optional[TermType] = None,
    department_id: Optional[int] = None,
    year: Optional[int] = None,
    format: Literal["json", "csv"] = "json",
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    service = ReportingService(db)
    rows = service.get_reviews_for_role(
        current_user, year or current_year(), role=role, term=term, department_id=department_id
    )

    if format == "csv":
        subject = UserRole.HOD if role == UserRole.HOD else UserRole.TEACHER
        filename = f"{subject.value.lower()}-evaluation-results-{date.today().isoformat()}.csv"
        return Response(
            content=service.to_csv(rows, subject),
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )

    return {"results": rows, "summary": service.summary(rows, current_user)}
