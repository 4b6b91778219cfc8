from datetime import date
from typing import List, Optional

from faculty_review.core.exceptions import NotFound, ValidationFailed
from faculty_review.models.department import Department
from faculty_review.models.term import Term, TermStatus
from faculty_review.models.term_state import TermState
from faculty_review.services.audit import AuditService
from faculty_review.services.base import BaseService


class TermService(BaseService):
    """Admin-defined academic terms and their department links."""

    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)

    def list_terms(self, year: Optional[int] = None) -> List[Term]:
        query = self.db.query(Term)
        if year is not None:
            query = query.filter(Term.year == year)
        return query.order_by(Term.year.desc(), Term.start_date).all()

    def get_term(self, term_id: int) -> Term:
        term = self.db.get(Term, term_id)
        if not term:
            raise NotFound("Term", term_id)
        return term

    def _departments(self, department_ids: List[int]) -> List[Department]:
        departments = self.db.query(Department).filter(Department.id.in_(department_ids)).all()
        missing = set(department_ids) - {d.id for d in departments}
        if missing:
            raise NotFound("Department", sorted(missing)[0])
        return departments

    def _check_duplicate(self, status: TermStatus, year: int, department_ids: List[int], exclude_id: Optional[int] = None):
        if status == TermStatus.INACTIVE:
            return
        query = self.db.query(Term).filter(
            Term.year == year,
            Term.status == status,
            Term.departments.any(Department.id.in_(department_ids)),
        )
        if exclude_id is not None:
            query = query.filter(Term.id != exclude_id)
        if query.first():
            raise ValidationFailed(
                f"A {status.value} term already exists for {year} in one of these departments",
                field="status",
            )

    def _sync_active_term(self, term: Term):
        # Point each linked department at the new term; visibility is left as is
        if term.term_type is None:
            return
        for department in term.departments:
            self.upsert(
                TermState,
                key={"department_id": department.id, "year": term.year},
                values={"active_term": term.term_type},
            )

    def create_term(
        self,
        name: str,
        year: int,
        start_date: date,
        end_date: date,
        department_ids: List[int],
        status: TermStatus = TermStatus.INACTIVE,
        user=None,
    ) -> Term:
        if end_date < start_date:
            raise ValidationFailed("Term end date must not precede its start date", field="end_date")
        if not department_ids:
            raise ValidationFailed("A term must be linked to at least one department", field="department_ids")

        departments = self._departments(department_ids)
        self._check_duplicate(status, year, department_ids)

        term = Term(
            name=name,
            year=year,
            status=status,
            start_date=start_date,
            end_date=end_date,
            departments=departments,
        )
        self.db.add(term)
        self.db.flush()
        self._sync_active_term(term)

        self.audit.log_action(
            action="term.create",
            entity_type="term",
            entity_id=term.id,
            user_id=getattr(user, "id", None),
            user_role=getattr(user, "role", None),
            details={"year": year, "status": status.value, "department_ids": sorted(department_ids)},
        )
        self.commit()
        self.db.refresh(term)
        self.log_info("Term created", term_id=term.id, year=year, status=status.value)
        return term

    def activate_term(self, term_id: int, status: TermStatus, user=None) -> Term:
        """Switch a term to START or END and move the linked departments onto it."""
        if status == TermStatus.INACTIVE:
            raise ValidationFailed("A term can only be activated as START or END", field="status")
        term = self.get_term(term_id)
        previous = term.status
        self._check_duplicate(status, term.year, [d.id for d in term.departments], exclude_id=term.id)

        term.status = status
        self.db.flush()
        self._sync_active_term(term)

        self.audit.log_action(
            action="term.activate",
            entity_type="term",
            entity_id=term.id,
            user_id=getattr(user, "id", None),
            user_role=getattr(user, "role", None),
            before_state={"status": previous.value},
            after_state={"status": status.value},
        )
        self.commit()
        self.db.refresh(term)
        self.log_info("Term activated", term_id=term.id, status=status.value)
        return term
