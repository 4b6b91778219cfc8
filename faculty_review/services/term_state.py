"""
Department term state machine.

One row per (department, year) carries the active term marker and the
visibility of each evaluation stage. Visibility moves forward only:

    DRAFT -> PUBLISHED -> COMPLETE

Publishing is an admin action. COMPLETE is reached solely through
`mark_complete`, which the review chain invokes once every teacher in the
department has been finalized for the term.
"""
from typing import Dict, Optional

from faculty_review.core.exceptions import NotFound, PrerequisiteNotMet, TermNotTransitionable
from faculty_review.models.department import Department
from faculty_review.models.term import Term, TermStatus, TermType
from faculty_review.models.term_state import EvaluationStage, TermState, Visibility, VISIBILITY_RANK
from faculty_review.services.audit import AuditService
from faculty_review.services.base import BaseService


def _snapshot(state: TermState) -> Dict[str, Optional[str]]:
    def _v(value):
        return value.value if value is not None else None

    return {
        "active_term": _v(state.active_term),
        "start_term_visibility": _v(state.start_term_visibility),
        "end_term_visibility": _v(state.end_term_visibility),
        "hod_visibility": _v(state.hod_visibility),
        "visibility": _v(state.visibility),
    }


def access_gates(state: TermState, term: TermType) -> Dict[str, bool]:
    """Derived read-only gates for a term within a department's state."""
    term_visibility = state.term_visibility(term)
    return {
        "teacher_can_submit": term_visibility == Visibility.PUBLISHED,
        "hod_can_review": term_visibility == Visibility.PUBLISHED,
        "hod_evaluation_open": state.hod_visibility == Visibility.PUBLISHED and state.active_term == term,
    }


class TermStateService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)

    def _require_department(self, department_id: int) -> Department:
        department = self.db.get(Department, department_id)
        if not department:
            raise NotFound("Department", department_id)
        return department

    def _stored(self, department_id: int, year: int) -> Optional[TermState]:
        return (
            self.db.query(TermState)
            .filter(TermState.department_id == department_id, TermState.year == year)
            .first()
        )

    def derive_active_term(self, department_id: int, year: int) -> Optional[TermType]:
        """Term type of the most recently updated active Term linked to the department."""
        term = (
            self.db.query(Term)
            .filter(
                Term.year == year,
                Term.status != TermStatus.INACTIVE,
                Term.departments.any(Department.id == department_id),
            )
            .order_by(Term.updated_at.desc(), Term.id.desc())
            .first()
        )
        return term.term_type if term else None

    def get_state(self, department_id: int, year: int) -> TermState:
        """
        Stored state for the department and year.

        When no row exists an unsaved default is returned (everything DRAFT,
        active term derived from the term definitions). Reading never writes.
        """
        self._require_department(department_id)
        state = self._stored(department_id, year)
        if state:
            return state
        return TermState(
            department_id=department_id,
            year=year,
            active_term=self.derive_active_term(department_id, year),
            start_term_visibility=Visibility.DRAFT,
            end_term_visibility=Visibility.DRAFT,
            hod_visibility=Visibility.DRAFT,
            visibility=Visibility.DRAFT,
        )

    def set_active_term(self, department_id: int, year: int, term: Optional[TermType], user=None) -> TermState:
        """Point the department at a term. Visibility is left untouched."""
        self._require_department(department_id)
        before = self.get_state(department_id, year)
        before_snapshot = _snapshot(before)

        state = self.upsert(
            TermState,
            key={"department_id": department_id, "year": year},
            values={"active_term": term},
        )
        self.audit.log_transition(
            department_id, "term_state.set_active_term", user,
            before=before_snapshot, after=_snapshot(state), year=year,
        )
        self.commit()
        self.log_info(
            "Active term set",
            department_id=department_id, year=year, term=term.value if term else None,
        )
        return state

    def publish(self, department_id: int, year: int, term: TermType, stage: EvaluationStage, user=None) -> TermState:
        """
        Open a stage of the term to its participants.

        Re-publishing is a no-op. A term that is already COMPLETE cannot be
        published again.
        """
        self._require_department(department_id)
        current = self.get_state(department_id, year)

        if stage == EvaluationStage.TEACHER_REVIEW:
            field = TermState.visibility_field(term)
        else:
            field = "hod_visibility"
        visibility = getattr(current, field)

        if visibility == Visibility.COMPLETE:
            raise TermNotTransitionable(
                f"{term.value} term is already complete for this department",
                details={"department_id": department_id, "year": year, "term": term.value},
            )
        if visibility == Visibility.PUBLISHED:
            self.log_info("Stage already published", department_id=department_id, stage=stage.value)
            return current

        if stage == EvaluationStage.TEACHER_REVIEW:
            defined = (
                self.db.query(Term)
                .filter(
                    Term.year == year,
                    Term.status == TermStatus(term.value),
                    Term.departments.any(Department.id == department_id),
                )
                .first()
            )
            if not defined:
                raise PrerequisiteNotMet(
                    f"No {term.value} term is defined for this department in {year}",
                    missing_stage="TERM_DEFINITION",
                    details={"department_id": department_id, "year": year},
                )

        before_snapshot = _snapshot(current)
        state = self.upsert(
            TermState,
            key={"department_id": department_id, "year": year},
            values={field: Visibility.PUBLISHED, "active_term": current.active_term},
            update_fields=[field],
        )
        self.audit.log_transition(
            department_id, "term_state.publish", user,
            before=before_snapshot, after=_snapshot(state),
            year=year, term=term.value, stage=stage.value,
        )
        self.commit()
        self.log_info("Stage published", department_id=department_id, year=year, term=term.value, stage=stage.value)
        return state

    def mark_complete(self, department_id: int, year: int, term: TermType, commit: bool = True) -> TermState:
        """
        Close the term for the department. Idempotent and forward-only.

        The overall visibility follows along: completing START lifts it to at
        least PUBLISHED, completing END lifts it to COMPLETE.
        """
        current = self.get_state(department_id, year)
        field = TermState.visibility_field(term)
        target = Visibility.PUBLISHED if term == TermType.START else Visibility.COMPLETE
        overall = current.visibility
        if VISIBILITY_RANK[target] > VISIBILITY_RANK[overall]:
            overall = target

        if getattr(current, field) == Visibility.COMPLETE and overall == current.visibility:
            return current

        before_snapshot = _snapshot(current)
        state = self.upsert(
            TermState,
            key={"department_id": department_id, "year": year},
            values={field: Visibility.COMPLETE, "visibility": overall, "active_term": current.active_term},
            update_fields=[field, "visibility"],
        )
        self.audit.log_transition(
            department_id, "term_state.complete", None,
            before=before_snapshot, after=_snapshot(state), year=year, term=term.value,
        )
        if commit:
            self.commit()
        self.log_info("Term marked complete", department_id=department_id, year=year, term=term.value)
        return state
