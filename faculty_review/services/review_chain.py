"""
Review chain: Teacher -> HOD -> Assistant Dean -> Dean.

Every stage is an upsert keyed by (teacher, term, year) and is accepted only
once the previous stage has been submitted. A submitted final review closes
the chain for that teacher and term; when the last teacher of a department is
finalized the department's term is marked complete.

HOD performance reviews sit outside the chain: the Assistant Dean and the Dean
each keep an independent review per HOD and term.
"""
import json
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from sqlalchemy import func

from faculty_review.core.exceptions import (
    AlreadyFinalized,
    NotFound,
    PrerequisiteNotMet,
    Unauthorized,
    ValidationFailed,
)
from faculty_review.core.security import sanitize_input
from faculty_review.models.department import Department
from faculty_review.models.hod_performance_review import HodPerformanceReview, HodReviewStatus
from faculty_review.models.question import Question, QuestionType
from faculty_review.models.review import AsstReview, FinalReview, FinalStatus, HodReview
from faculty_review.models.teacher_answer import SelfComment, TeacherAnswer
from faculty_review.models.term import Term, TermStatus, TermType
from faculty_review.models.term_state import TermState, Visibility
from faculty_review.models.user import User, UserRole
from faculty_review.services import scoring
from faculty_review.services.audit import AuditService
from faculty_review.services.base import BaseService
from faculty_review.services.term_state import TermStateService

AnswerValue = Union[str, List[str]]

# Stage names reported in PrerequisiteNotMet.details["missing_stage"] and as a queue's next stage
TERM_PUBLICATION = "TERM_PUBLICATION"
QUESTIONS = "QUESTIONS"
TEACHER_EVALUATION = "TEACHER_EVALUATION"
HOD_REVIEW = "HOD_REVIEW"
ASST_DEAN_REVIEW = "ASST_DEAN_REVIEW"
DEAN_REVIEW = "DEAN_REVIEW"


class ReviewChainService(BaseService):
    def __init__(self, db):
        super().__init__(db)
        self.audit = AuditService(db)
        self.term_states = TermStateService(db)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def _key(self, teacher_id: int, term: TermType, year: int) -> Dict[str, Any]:
        return {"teacher_id": teacher_id, "term": term, "year": year}

    def _get(self, model, teacher_id: int, term: TermType, year: int):
        return (
            self.db.query(model)
            .filter(model.teacher_id == teacher_id, model.term == term, model.year == year)
            .first()
        )

    def _teacher(self, teacher_id: int) -> User:
        teacher = self.db.get(User, teacher_id)
        if not teacher or teacher.role != UserRole.TEACHER:
            raise NotFound("Teacher", teacher_id)
        return teacher

    def _term_id(self, department_id: Optional[int], term: TermType, year: int) -> Optional[int]:
        if department_id is None:
            return None
        row = (
            self.db.query(Term.id)
            .filter(
                Term.year == year,
                Term.status == TermStatus(term.value),
                Term.departments.any(Department.id == department_id),
            )
            .first()
        )
        return row[0] if row else None

    def _require_role(self, user: User, *roles: UserRole):
        if user.role not in roles:
            raise Unauthorized(
                f"Access denied. Required roles: {[r.value for r in roles]}",
                details={"role": user.role.value},
            )

    def _ensure_not_finalized(self, teacher_id: int, term: TermType, year: int):
        final = self._get(FinalReview, teacher_id, term, year)
        if final and final.submitted:
            raise AlreadyFinalized(details={"teacher_id": teacher_id, "term": term.value, "year": year})

    def _teacher_evaluation_submitted(self, teacher_id: int, term: TermType, year: int) -> bool:
        answers = (
            self.db.query(func.count(TeacherAnswer.id))
            .filter(TeacherAnswer.teacher_id == teacher_id, TeacherAnswer.term == term, TeacherAnswer.year == year)
            .scalar()
        )
        comment = self._get(SelfComment, teacher_id, term, year)
        return bool(answers) and comment is not None and comment.submitted

    def active_questions(self, department_id: int, term: TermType, year: int) -> List[Question]:
        return (
            self.db.query(Question)
            .filter(
                Question.department_id == department_id,
                Question.term == term,
                Question.year == year,
                Question.is_active.is_(True),
            )
            .order_by(Question.order, Question.id)
            .all()
        )

    # ------------------------------------------------------------------
    # Teacher self-evaluation
    # ------------------------------------------------------------------
    def _normalize_answer(self, question: Question, value: AnswerValue) -> Optional[str]:
        """Validate one answer and return its stored form; None means unanswered."""
        options = question.options or []

        if question.type == QuestionType.CHECKBOX:
            if isinstance(value, str):
                if not value.strip():
                    return None
                try:
                    value = json.loads(value)
                except ValueError:
                    raise ValidationFailed(
                        f"Question {question.id} expects a list of options", field=f"answers.{question.id}"
                    )
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ValidationFailed(
                    f"Question {question.id} expects a list of options", field=f"answers.{question.id}"
                )
            if not value:
                return None
            unknown = [v for v in value if v not in options]
            if unknown:
                raise ValidationFailed(
                    f"Question {question.id} has unknown options: {unknown}", field=f"answers.{question.id}"
                )
            return json.dumps(value)

        if not isinstance(value, str):
            raise ValidationFailed(f"Question {question.id} expects a single answer", field=f"answers.{question.id}")
        if not value.strip():
            return None

        if question.type == QuestionType.MCQ:
            if value not in options:
                raise ValidationFailed(
                    f"'{value}' is not an option of question {question.id}", field=f"answers.{question.id}"
                )
            return value
        return sanitize_input(value)

    def _validated_answers(
        self, questions: List[Question], answers: Mapping[int, AnswerValue], require_all: bool
    ) -> Tuple[Dict[int, str], List[int]]:
        """Return the answers to store and the question ids answered blank."""
        by_id = {q.id: q for q in questions}
        foreign = [qid for qid in answers if qid not in by_id]
        if foreign:
            raise ValidationFailed(
                f"Questions {sorted(foreign)} do not belong to this evaluation", field="answers"
            )

        stored, cleared = {}, []
        for qid, value in answers.items():
            normalized = self._normalize_answer(by_id[qid], value)
            if normalized is None:
                cleared.append(qid)
            else:
                stored[qid] = normalized

        if require_all:
            missing = [q.id for q in questions if q.required and q.id not in stored]
            if missing:
                raise ValidationFailed(f"Required questions are unanswered: {missing}", field="answers")
        return stored, cleared

    def _open_evaluation(self, teacher: User, term: TermType, year: int) -> List[Question]:
        """Shared gating for submit and draft; returns the active questions."""
        if teacher.role != UserRole.TEACHER or teacher.department_id is None:
            raise Unauthorized("Only teachers with a department can submit self-evaluations")

        state = self.term_states.get_state(teacher.department_id, year)
        if state.term_visibility(term) != Visibility.PUBLISHED:
            raise PrerequisiteNotMet(
                f"The {term.value} term evaluation is not open for your department",
                missing_stage=TERM_PUBLICATION,
                details={"visibility": state.term_visibility(term).value},
            )
        self._ensure_not_finalized(teacher.id, term, year)

        questions = self.active_questions(teacher.department_id, term, year)
        if not questions:
            raise PrerequisiteNotMet(
                f"No questions are available for the {term.value} term",
                missing_stage=QUESTIONS,
            )
        return questions

    def _store_answers(
        self, teacher: User, term: TermType, year: int, answers: Dict[int, str], cleared: List[int], term_id
    ):
        for question_id, answer in answers.items():
            self.upsert(
                TeacherAnswer,
                key={"teacher_id": teacher.id, "question_id": question_id, "term": term, "year": year},
                values={"answer": answer, "term_id": term_id},
            )
        # A blank answer withdraws whatever was stored before
        if cleared:
            self.db.query(TeacherAnswer).filter(
                TeacherAnswer.teacher_id == teacher.id,
                TeacherAnswer.term == term,
                TeacherAnswer.year == year,
                TeacherAnswer.question_id.in_(cleared),
            ).delete(synchronize_session=False)

    def submit_teacher_answers(
        self,
        teacher: User,
        term: TermType,
        answers: Mapping[int, AnswerValue],
        self_comment: Optional[str],
        year: int,
    ) -> Dict[str, Any]:
        questions = self._open_evaluation(teacher, term, year)
        stored, cleared = self._validated_answers(questions, answers, require_all=True)

        comment = sanitize_input(self_comment or "")
        if not comment:
            raise ValidationFailed("A self comment is required", field="self_comment")

        term_id = self._term_id(teacher.department_id, term, year)
        self._store_answers(teacher, term, year, stored, cleared, term_id)
        self.upsert(
            SelfComment,
            key=self._key(teacher.id, term, year),
            values={"comment": comment, "submitted": True, "term_id": term_id},
        )
        self.audit.log_action(
            action="teacher_evaluation.submit",
            entity_type="teacher_evaluation",
            entity_id=teacher.id,
            user_id=teacher.id,
            user_role=teacher.role,
            details={"term": term.value, "year": year, "answered": len(stored)},
        )
        self.commit()
        self.log_info("Teacher evaluation submitted", teacher_id=teacher.id, term=term.value, year=year)
        return {"teacher_id": teacher.id, "term": term, "year": year, "answered": len(stored), "submitted": True}

    def save_draft(
        self,
        teacher: User,
        term: TermType,
        answers: Mapping[int, AnswerValue],
        self_comment: Optional[str],
        year: int,
    ) -> Dict[str, Any]:
        """
        Store a partial evaluation. Required questions may stay unanswered and
        the self comment is kept unsubmitted. A draft saved after submission
        edits the stored text but does not withdraw the submission.
        """
        questions = self._open_evaluation(teacher, term, year)
        stored, cleared = self._validated_answers(questions, answers, require_all=False)

        term_id = self._term_id(teacher.department_id, term, year)
        self._store_answers(teacher, term, year, stored, cleared, term_id)

        comment = sanitize_input(self_comment) if self_comment is not None else None
        existing = self._get(SelfComment, teacher.id, term, year)
        if comment is not None:
            self.upsert(
                SelfComment,
                key=self._key(teacher.id, term, year),
                values={"comment": comment, "submitted": False, "term_id": term_id},
                update_fields=["comment", "term_id"],
            )
        submitted = bool(existing and existing.submitted)

        self.commit()
        self.log_info("Teacher evaluation draft saved", teacher_id=teacher.id, term=term.value, year=year)
        return {"teacher_id": teacher.id, "term": term, "year": year, "answered": len(stored), "submitted": submitted}

    # ------------------------------------------------------------------
    # HOD, Assistant Dean and Dean reviews
    # ------------------------------------------------------------------
    def submit_hod_review(
        self,
        hod: User,
        teacher_id: int,
        term: TermType,
        comment: str,
        score: Optional[int],
        rubric_scores: Optional[Dict[str, int]],
        question_scores: Optional[Dict[str, Any]],
        year: int,
    ) -> HodReview:
        self._require_role(hod, UserRole.HOD)
        teacher = self._teacher(teacher_id)
        if hod.department_id is None or teacher.department_id != hod.department_id:
            raise Unauthorized("HODs can only review teachers in their own department")

        rubric = rubric_scores or {}
        try:
            scoring.validate_rubric(rubric)
        except ValueError as e:
            raise ValidationFailed(str(e), field="rubric_scores")

        self._ensure_not_finalized(teacher_id, term, year)
        if not self._teacher_evaluation_submitted(teacher_id, term, year):
            raise PrerequisiteNotMet(
                "Teacher has not completed their evaluation", missing_stage=TEACHER_EVALUATION
            )

        clean_comment = sanitize_input(comment)
        if not clean_comment:
            raise ValidationFailed("A review comment is required", field="comment")

        review = self.upsert(
            HodReview,
            key=self._key(teacher_id, term, year),
            values={
                "reviewer_id": hod.id,
                "comment": clean_comment,
                "score": score,
                "scores": {"rubric": rubric, "questionScores": question_scores or {}},
                "total_score": scoring.normalize(rubric),
                "submitted": True,
                "term_id": self._term_id(teacher.department_id, term, year),
            },
        )
        self.audit.log_action(
            action="hod_review.submit",
            entity_type="hod_review",
            entity_id=review.id,
            user_id=hod.id,
            user_role=hod.role,
            details={"teacher_id": teacher_id, "term": term.value, "year": year, "total_score": review.total_score},
        )
        self.commit()
        self.log_info("HOD review submitted", teacher_id=teacher_id, reviewer_id=hod.id, term=term.value)
        return review

    def submit_asst_review(
        self,
        asst_dean: User,
        teacher_id: int,
        term: TermType,
        comment: str,
        score: Optional[int],
        year: int,
    ) -> AsstReview:
        self._require_role(asst_dean, UserRole.ASST_DEAN)
        teacher = self._teacher(teacher_id)
        self._ensure_not_finalized(teacher_id, term, year)

        hod_review = self._get(HodReview, teacher_id, term, year)
        if not hod_review or not hod_review.submitted:
            raise PrerequisiteNotMet("HOD review not completed", missing_stage=HOD_REVIEW)

        clean_comment = sanitize_input(comment)
        if not clean_comment:
            raise ValidationFailed("A review comment is required", field="comment")

        review = self.upsert(
            AsstReview,
            key=self._key(teacher_id, term, year),
            values={
                "reviewer_id": asst_dean.id,
                "comment": clean_comment,
                "score": score,
                "submitted": True,
                "term_id": self._term_id(teacher.department_id, term, year),
            },
        )
        self.audit.log_action(
            action="asst_review.submit",
            entity_type="asst_review",
            entity_id=review.id,
            user_id=asst_dean.id,
            user_role=asst_dean.role,
            details={"teacher_id": teacher_id, "term": term.value, "year": year},
        )
        self.commit()
        self.log_info("Assistant Dean review submitted", teacher_id=teacher_id, reviewer_id=asst_dean.id)
        return review

    @staticmethod
    def resolve_final_status(promoted: bool, status: Optional[FinalStatus]) -> FinalStatus:
        if promoted:
            if status not in (None, FinalStatus.PROMOTED):
                raise ValidationFailed("A promoted teacher cannot be given a non-promoted status", field="status")
            return FinalStatus.PROMOTED
        if status == FinalStatus.PROMOTED:
            raise ValidationFailed("Status PROMOTED requires promoted to be true", field="status")
        return status or FinalStatus.ON_HOLD

    def submit_final_review(
        self,
        dean: User,
        teacher_id: int,
        term: TermType,
        comment: str,
        score: Optional[int],
        promoted: bool,
        year: int,
        status: Optional[FinalStatus] = None,
    ) -> FinalReview:
        self._require_role(dean, UserRole.DEAN)
        teacher = self._teacher(teacher_id)
        self._ensure_not_finalized(teacher_id, term, year)
        final_status = self.resolve_final_status(promoted, status)

        if not self._teacher_evaluation_submitted(teacher_id, term, year):
            raise PrerequisiteNotMet(
                "Teacher has not completed their evaluation", missing_stage=TEACHER_EVALUATION
            )
        hod_review = self._get(HodReview, teacher_id, term, year)
        if not hod_review or not hod_review.submitted:
            raise PrerequisiteNotMet("HOD review not completed", missing_stage=HOD_REVIEW)
        asst_review = self._get(AsstReview, teacher_id, term, year)
        if not asst_review or not asst_review.submitted:
            raise PrerequisiteNotMet("Assistant Dean review not completed", missing_stage=ASST_DEAN_REVIEW)

        clean_comment = sanitize_input(comment)
        if not clean_comment:
            raise ValidationFailed("A final comment is required", field="comment")

        # A concurrent finalization may have landed since the check above
        review = self.upsert(
            FinalReview,
            key=self._key(teacher_id, term, year),
            values={
                "reviewer_id": dean.id,
                "final_comment": clean_comment,
                "final_score": score,
                "combined_score": scoring.combined_score(None, hod_review.score, asst_review.score),
                "status": final_status,
                "submitted": True,
                "term_id": self._term_id(teacher.department_id, term, year),
            },
            where=FinalReview.submitted.is_(False),
        )
        if review is None:
            self.log_warning("Final review already submitted", teacher_id=teacher_id, term=term.value, year=year)
            raise AlreadyFinalized(details={"teacher_id": teacher_id, "term": term.value, "year": year})
        self.audit.log_action(
            action="final_review.submit",
            entity_type="final_review",
            entity_id=review.id,
            user_id=dean.id,
            user_role=dean.role,
            details={"teacher_id": teacher_id, "term": term.value, "year": year, "status": final_status.value},
        )

        if teacher.department_id is not None:
            self._complete_if_all_finalized(teacher.department_id, term, year)

        self.commit()
        self.log_info(
            "Final review submitted",
            teacher_id=teacher_id, reviewer_id=dean.id, term=term.value, status=final_status.value,
        )
        return review

    def _complete_if_all_finalized(self, department_id: int, term: TermType, year: int) -> bool:
        teachers = (
            self.db.query(func.count(User.id))
            .filter(User.department_id == department_id, User.role == UserRole.TEACHER, User.is_active.is_(True))
            .scalar()
        )
        finalized = (
            self.db.query(func.count(FinalReview.id))
            .join(User, User.id == FinalReview.teacher_id)
            .filter(
                User.department_id == department_id,
                User.role == UserRole.TEACHER,
                User.is_active.is_(True),
                FinalReview.term == term,
                FinalReview.year == year,
                FinalReview.submitted.is_(True),
            )
            .scalar()
        )
        if teachers and finalized >= teachers:
            self.term_states.mark_complete(department_id, year, term, commit=False)
            return True
        return False

    # ------------------------------------------------------------------
    # Reviewer queues
    # ------------------------------------------------------------------
    def next_stage(self, teacher_id: int, term: TermType, year: int) -> Optional[str]:
        """The furthest stage that may be submitted next; None once finalized."""
        final = self._get(FinalReview, teacher_id, term, year)
        if final and final.submitted:
            return None
        asst_review = self._get(AsstReview, teacher_id, term, year)
        if asst_review and asst_review.submitted:
            return DEAN_REVIEW
        hod_review = self._get(HodReview, teacher_id, term, year)
        if hod_review and hod_review.submitted:
            return ASST_DEAN_REVIEW
        if self._teacher_evaluation_submitted(teacher_id, term, year):
            return HOD_REVIEW
        return TEACHER_EVALUATION

    def list_pending(self, reviewer: User, term: TermType, year: int) -> List[Dict[str, Any]]:
        """
        Teachers whose previous stage is submitted for the reviewer's role.

        HODs see submitted self evaluations of their own department, the
        Assistant Dean sees submitted HOD reviews and the Dean sees submitted
        Assistant Dean reviews. Rows already reviewed at the caller's stage
        stay listed with `reviewed` set so they can still be edited until the
        Dean finalizes.
        """
        stages = {
            UserRole.HOD: (SelfComment, HodReview),
            UserRole.ASST_DEAN: (HodReview, AsstReview),
            UserRole.DEAN: (AsstReview, FinalReview),
        }
        if reviewer.role not in stages:
            raise Unauthorized("Only HODs, Assistant Deans and Deans have review queues")
        previous, own = stages[reviewer.role]

        query = (
            self.db.query(User)
            .join(previous, previous.teacher_id == User.id)
            .filter(
                User.role == UserRole.TEACHER,
                User.is_active.is_(True),
                previous.term == term,
                previous.year == year,
                previous.submitted.is_(True),
            )
        )
        if reviewer.role == UserRole.HOD:
            if reviewer.department_id is None:
                return []
            query = query.filter(User.department_id == reviewer.department_id)
        teachers = query.order_by(User.name, User.id).all()

        pending = []
        for teacher in teachers:
            hod_review = self._get(HodReview, teacher.id, term, year)
            asst_review = self._get(AsstReview, teacher.id, term, year)
            final = self._get(FinalReview, teacher.id, term, year)
            own_review = {HodReview: hod_review, AsstReview: asst_review, FinalReview: final}[own]
            pending.append({
                "teacher_id": teacher.id,
                "name": teacher.name,
                "email": teacher.email,
                "department_id": teacher.department_id,
                "department_name": teacher.department.name if teacher.department else None,
                "term": term,
                "year": year,
                "next_stage": self.next_stage(teacher.id, term, year),
                "reviewed": bool(own_review and own_review.submitted),
                "finalized": bool(final and final.submitted),
                "hod_score": hod_review.score if hod_review and hod_review.submitted else None,
                "hod_total_score": scoring.effective_total(
                    hod_review.total_score, hod_review.rubric
                ) if hod_review and hod_review.submitted else None,
                "asst_score": asst_review.score if asst_review and asst_review.submitted else None,
            })
        return pending

    # ------------------------------------------------------------------
    # HOD performance reviews
    # ------------------------------------------------------------------
    def submit_hod_performance_review(
        self,
        reviewer: User,
        hod_id: int,
        term: TermType,
        comments: Optional[str],
        rubric_scores: Optional[Dict[str, int]],
        promoted: Optional[bool],
        year: int,
        total_score: Optional[int] = None,
    ) -> HodPerformanceReview:
        self._require_role(reviewer, UserRole.ASST_DEAN, UserRole.DEAN)
        hod = self.db.get(User, hod_id)
        if not hod or hod.role != UserRole.HOD:
            raise NotFound("HOD", hod_id)

        rubric = rubric_scores or {}
        try:
            scoring.validate_rubric(rubric)
        except ValueError as e:
            raise ValidationFailed(str(e), field="rubric_scores")

        if total_score is None:
            total_score = scoring.normalize(rubric, scoring.HOD_PERFORMANCE_CATEGORIES)
        status = None
        if promoted is not None:
            status = HodReviewStatus.PROMOTED if promoted else HodReviewStatus.ON_HOLD

        review = self.upsert(
            HodPerformanceReview,
            key={"hod_id": hod_id, "term": term, "year": year, "reviewer_id": reviewer.id},
            values={
                "comments": sanitize_input(comments or ""),
                "scores": rubric,
                "total_score": total_score,
                "status": status,
                "submitted": True,
                "term_id": self._term_id(hod.department_id, term, year),
            },
        )
        self.audit.log_action(
            action="hod_performance_review.submit",
            entity_type="hod_performance_review",
            entity_id=review.id,
            user_id=reviewer.id,
            user_role=reviewer.role,
            details={"hod_id": hod_id, "term": term.value, "year": year, "total_score": total_score},
        )
        self.commit()
        self.log_info("HOD performance review submitted", hod_id=hod_id, reviewer_id=reviewer.id, term=term.value)
        return review

    def list_hod_candidates(self, reviewer: User, term: TermType, year: int) -> List[Dict[str, Any]]:
        """
        HODs open for evaluation by this reviewer: their department has
        published HOD evaluation and points at `term`.
        """
        self._require_role(reviewer, UserRole.ASST_DEAN, UserRole.DEAN)
        hods = (
            self.db.query(User)
            .join(TermState, (TermState.department_id == User.department_id) & (TermState.year == year))
            .filter(
                User.role == UserRole.HOD,
                User.is_active.is_(True),
                TermState.hod_visibility == Visibility.PUBLISHED,
                TermState.active_term == term,
            )
            .order_by(User.name)
            .all()
        )

        candidates = []
        for hod in hods:
            existing = (
                self.db.query(HodPerformanceReview)
                .filter(
                    HodPerformanceReview.hod_id == hod.id,
                    HodPerformanceReview.term == term,
                    HodPerformanceReview.year == year,
                    HodPerformanceReview.reviewer_id == reviewer.id,
                )
                .first()
            )
            candidates.append({
                "hod_id": hod.id,
                "name": hod.name,
                "email": hod.email,
                "department_id": hod.department_id,
                "department_name": hod.department.name if hod.department else None,
                "rubric": (existing.scores if existing and existing.scores else dict(scoring.DEFAULT_HOD_RUBRIC)),
                "comments": existing.comments if existing else "",
                "submitted": bool(existing and existing.submitted),
                "total_score": scoring.effective_total(
                    existing.total_score, existing.scores, scoring.HOD_PERFORMANCE_CATEGORIES
                ) if existing else None,
                "status": existing.status if existing else None,
            })
        return candidates

    # ------------------------------------------------------------------
    # Progress
    # ------------------------------------------------------------------
    def evaluation_status(self, teacher: User, term: TermType, year: int) -> Dict[str, Any]:
        """Where the teacher's chain stands for one term."""
        if teacher.role != UserRole.TEACHER or teacher.department_id is None:
            raise Unauthorized("Only teachers with a department have an evaluation status")

        state = self.term_states.get_state(teacher.department_id, year)
        questions = self.active_questions(teacher.department_id, term, year)
        answered = (
            self.db.query(func.count(TeacherAnswer.id))
            .filter(TeacherAnswer.teacher_id == teacher.id, TeacherAnswer.term == term, TeacherAnswer.year == year)
            .scalar()
        )
        comment = self._get(SelfComment, teacher.id, term, year)
        hod_review = self._get(HodReview, teacher.id, term, year)
        asst_review = self._get(AsstReview, teacher.id, term, year)
        final = self._get(FinalReview, teacher.id, term, year)

        deadline = (
            self.db.query(Term.end_date)
            .filter(
                Term.year == year,
                Term.status == TermStatus(term.value),
                Term.departments.any(Department.id == teacher.department_id),
            )
            .first()
        )

        return {
            "term": term,
            "year": year,
            "visibility": state.term_visibility(term),
            "can_submit": state.term_visibility(term) == Visibility.PUBLISHED and not (final and final.submitted),
            "deadline": deadline[0] if deadline else None,
            "question_count": len(questions),
            "answered_count": answered,
            "self_evaluation_submitted": bool(comment and comment.submitted),
            "hod_review_submitted": bool(hod_review and hod_review.submitted),
            "asst_review_submitted": bool(asst_review and asst_review.submitted),
            "finalized": bool(final and final.submitted),
            "final_status": final.status if final and final.submitted else None,
        }
