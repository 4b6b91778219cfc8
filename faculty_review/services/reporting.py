"""
Read-only projection of the review chain into result rows.

One row per (person, term). Partial chains are reported as they stand; a
teacher with only an HOD review shows up with status PENDING and the HOD
figures filled in. Rubric totals missing from storage are computed on the fly
and never written back.
"""
import csv
import io
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from faculty_review.core.config import settings
from faculty_review.core.exceptions import Unauthorized, ValidationFailed
from faculty_review.models.hod_performance_review import HodPerformanceReview
from faculty_review.models.review import AsstReview, FinalReview, HodReview
from faculty_review.models.teacher_answer import SelfComment, TeacherAnswer
from faculty_review.models.term import TermType
from faculty_review.models.user import User, UserRole
from faculty_review.services import scoring
from faculty_review.services.base import BaseService

PENDING = "PENDING"

CSV_COMMON_HEADERS = ["Name", "Email", "Department", "Role", "Year", "Term", "Stage", "Status"]
CSV_SCORE_HEADERS = ["Combined Score", "Max Possible Score", "Performance %", "Band"]
# Per-role stage columns: (header, row key)
CSV_STAGE_COLUMNS = {
    "TEACHER": [("HOD Score", "hod_score"), ("Assistant Dean Score", "asst_score"), ("Final Score", "final_score")],
    "HOD": [("Assistant Dean Total", "asst_dean_total"), ("Dean Total", "dean_total")],
}


def _value(enum_or_none):
    return enum_or_none.value if enum_or_none is not None else None


class ReportingService(BaseService):

    def _scope(self, caller: User, role: Optional[UserRole], department_id: Optional[int]):
        """Resolve the subject role and department filter the caller may see."""
        if caller.role == UserRole.TEACHER:
            if role not in (None, UserRole.TEACHER):
                raise Unauthorized("Teachers can only view their own results")
            return UserRole.TEACHER, caller.department_id, caller.id
        if caller.role == UserRole.HOD:
            if department_id is not None and department_id != caller.department_id:
                raise Unauthorized("HODs can only view results for their own department")
            if role not in (None, UserRole.TEACHER):
                raise Unauthorized("HODs can only view teacher results")
            return UserRole.TEACHER, caller.department_id, None
        if caller.role in (UserRole.ADMIN, UserRole.DEAN, UserRole.ASST_DEAN):
            subject = role or UserRole.TEACHER
            if subject not in (UserRole.TEACHER, UserRole.HOD):
                raise ValidationFailed("Results exist only for TEACHER and HOD roles", field="role")
            return subject, department_id, None
        raise Unauthorized()

    def _subjects(self, role: UserRole, department_id: Optional[int], user_id: Optional[int]) -> List[User]:
        # Inactive users are left out, matching term completion counts
        query = self.db.query(User).filter(User.role == role, User.is_active.is_(True))
        if department_id is not None:
            query = query.filter(User.department_id == department_id)
        if user_id is not None:
            query = query.filter(User.id == user_id)
        return query.order_by(User.name, User.id).all()

    def _one(self, model, teacher_id: int, term: TermType, year: int):
        return (
            self.db.query(model)
            .filter(model.teacher_id == teacher_id, model.term == term, model.year == year)
            .first()
        )

    def _base_row(self, person: User, term: TermType, year: int) -> Dict[str, Any]:
        return {
            "user_id": person.id,
            "name": person.name,
            "email": person.email,
            "role": person.role.value,
            "department_id": person.department_id,
            "department": person.department.name if person.department else None,
            "year": year,
            "term": term.value,
        }

    def teacher_row(self, teacher: User, term: TermType, year: int) -> Dict[str, Any]:
        answers = (
            self.db.query(TeacherAnswer)
            .filter(TeacherAnswer.teacher_id == teacher.id, TeacherAnswer.term == term, TeacherAnswer.year == year)
            .count()
        )
        comment = self._one(SelfComment, teacher.id, term, year)
        hod = self._one(HodReview, teacher.id, term, year)
        asst = self._one(AsstReview, teacher.id, term, year)
        final = self._one(FinalReview, teacher.id, term, year)

        hod = hod if hod and hod.submitted else None
        asst = asst if asst and asst.submitted else None
        final = final if final and final.submitted else None

        hod_score = hod.score if hod else None
        asst_score = asst.score if asst else None
        flat_stages = sum(1 for s in (hod_score, asst_score) if s is not None)
        max_possible = flat_stages * settings.scoring.flat_score_max

        combined = scoring.combined_score(final.combined_score if final else None, hod_score, asst_score)
        percentage = scoring.performance_percentage(combined, max_possible)
        has_submitted = answers > 0 and comment is not None and comment.submitted

        if final:
            stage = "FINALIZED"
        elif asst:
            stage = "ASST_DEAN_REVIEWED"
        elif hod:
            stage = "HOD_REVIEWED"
        elif has_submitted:
            stage = "SUBMITTED"
        else:
            stage = "NOT_SUBMITTED"

        row = self._base_row(teacher, term, year)
        row.update({
            "has_submitted": has_submitted,
            "questions_answered": answers,
            "stage": stage,
            "hod_reviewer_id": hod.reviewer_id if hod else None,
            "asst_reviewer_id": asst.reviewer_id if asst else None,
            "dean_reviewer_id": final.reviewer_id if final else None,
            "hod_score": hod_score,
            "asst_score": asst_score,
            "hod_rubric_percentage": scoring.effective_total(hod.total_score, hod.rubric) if hod else None,
            "final_score": final.final_score if final else None,
            "combined_score": combined,
            "max_possible_score": max_possible,
            "performance_percentage": percentage,
            "band": scoring.performance_band(percentage),
            "promoted": bool(final and final.status.value == "PROMOTED"),
            "status": final.status.value if final else PENDING,
        })
        return row

    def hod_row(self, hod: User, term: TermType, year: int) -> Dict[str, Any]:
        reviews = (
            self.db.query(HodPerformanceReview, User.role)
            .join(User, User.id == HodPerformanceReview.reviewer_id)
            .filter(
                HodPerformanceReview.hod_id == hod.id,
                HodPerformanceReview.term == term,
                HodPerformanceReview.year == year,
                HodPerformanceReview.submitted.is_(True),
            )
            .order_by(HodPerformanceReview.updated_at.desc(), HodPerformanceReview.id.desc())
            .all()
        )
        tracks: Dict[UserRole, HodPerformanceReview] = {}
        for review, reviewer_role in reviews:
            tracks.setdefault(reviewer_role, review)
        asst = tracks.get(UserRole.ASST_DEAN)
        dean = tracks.get(UserRole.DEAN)

        def total(review):
            if review is None:
                return None
            return scoring.effective_total(review.total_score, review.scores, scoring.HOD_PERFORMANCE_CATEGORIES)

        asst_total = total(asst)
        dean_total = total(dean)
        present = [t for t in (asst_total, dean_total) if t is not None]
        max_possible = len(present) * settings.scoring.final_score_max
        combined = sum(present) if present else None
        percentage = scoring.performance_percentage(combined, max_possible)

        if dean:
            stage = "DEAN_REVIEWED"
        elif asst:
            stage = "ASST_DEAN_REVIEWED"
        else:
            stage = "NOT_REVIEWED"

        row = self._base_row(hod, term, year)
        row.update({
            "stage": stage,
            "asst_reviewer_id": asst.reviewer_id if asst else None,
            "dean_reviewer_id": dean.reviewer_id if dean else None,
            "asst_dean_total": asst_total,
            "dean_total": dean_total,
            "combined_score": combined,
            "max_possible_score": max_possible,
            "performance_percentage": percentage,
            "band": scoring.performance_band(percentage),
            "promoted": bool(dean and dean.status is not None and dean.status.value == "PROMOTED"),
            "status": _value(dean.status) if dean and dean.status is not None else PENDING,
        })
        return row

    def get_reviews_for_role(
        self,
        caller: User,
        year: int,
        role: Optional[UserRole] = None,
        term: Optional[TermType] = None,
        department_id: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        subject_role, department_id, user_id = self._scope(caller, role, department_id)
        terms = [term] if term else [TermType.START, TermType.END]
        build = self.teacher_row if subject_role == UserRole.TEACHER else self.hod_row

        rows = []
        for person in self._subjects(subject_role, department_id, user_id):
            for t in terms:
                rows.append(build(person, t, year))
        self.log_info(
            "Results report generated",
            caller_id=caller.id, role=subject_role.value, rows=len(rows), year=year,
        )
        return rows

    @staticmethod
    def summary(rows: List[Dict[str, Any]], caller: User) -> Dict[str, Any]:
        return {
            "total_rows": len(rows),
            "people": len({r["user_id"] for r in rows}),
            "departments": sorted({r["department"] for r in rows if r["department"]}),
            "terms": sorted({r["term"] for r in rows}),
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "generated_by": caller.name or caller.email,
        }

    @staticmethod
    def to_csv(rows: List[Dict[str, Any]], role: UserRole = UserRole.TEACHER) -> str:
        stage_columns = CSV_STAGE_COLUMNS[role.value]
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_COMMON_HEADERS + [h for h, _ in stage_columns] + CSV_SCORE_HEADERS)
        for r in rows:
            cells = [r["name"], r["email"], r["department"], r["role"], r["year"], r["term"], r["stage"], r["status"]]
            cells += [r.get(key) for _, key in stage_columns]
            cells += [r["combined_score"], r["max_possible_score"], r["performance_percentage"], r["band"]]
            writer.writerow(["" if c is None else c for c in cells])
        return buffer.getvalue()
