import pytest

from conftest import YEAR, auth
from faculty_review.core.exceptions import TermNotTransitionable
from faculty_review.models.audit_log import AuditLog
from faculty_review.models.term import TermType
from faculty_review.models.term_state import EvaluationStage, TermState, Visibility
from faculty_review.services.term_state import TermStateService


def _publish(client, user, department, term="START", stage="teacherReview"):
    return client.post(
        f"/api/departments/{department.id}/term-state/publish",
        headers=auth(user),
        json={"term": term, "stage": stage, "year": YEAR},
    )


def test_default_state_is_not_persisted(client, db_session, admin_user, department, start_term):
    response = client.get(f"/api/departments/{department.id}/term-state?year={YEAR}", headers=auth(admin_user))
    assert response.status_code == 200
    data = response.json()
    assert data["persisted"] is False
    assert data["active_term"] == "START"
    assert data["start_term_visibility"] == "DRAFT"
    assert data["end_term_visibility"] == "DRAFT"
    assert data["hod_visibility"] == "DRAFT"
    assert data["gates"]["teacher_can_submit"] is False
    assert db_session.query(TermState).count() == 0


def test_default_state_without_terms_has_no_active_term(client, admin_user, department):
    response = client.get(f"/api/departments/{department.id}/term-state?year={YEAR}", headers=auth(admin_user))
    assert response.status_code == 200
    assert response.json()["active_term"] is None
    assert response.json()["gates"] is None


def test_unknown_department_is_not_found(client, admin_user):
    response = client.get("/api/departments/4242/term-state", headers=auth(admin_user))
    assert response.status_code == 404
    assert response.json()["errors"][0]["code"] == "NOT_FOUND"


def test_publish_requires_term_definition(client, admin_user, department):
    response = _publish(client, admin_user, department)
    assert response.status_code == 400
    error = response.json()["errors"][0]
    assert error["code"] == "PREREQUISITE_NOT_MET"
    assert error["details"]["missing_stage"] == "TERM_DEFINITION"


def test_publish_teacher_review(client, db_session, admin_user, department, start_term):
    response = _publish(client, admin_user, department)
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    assert data["start_term_visibility"] == "PUBLISHED"
    assert data["end_term_visibility"] == "DRAFT"
    assert data["visibility"] == "DRAFT"
    assert data["persisted"] is True
    assert data["gates"]["teacher_can_submit"] is True

    entry = db_session.query(AuditLog).filter(AuditLog.action == "term_state.publish").one()
    assert entry.entity_id == department.id
    assert entry.before_state["start_term_visibility"] == "DRAFT"
    assert entry.after_state["start_term_visibility"] == "PUBLISHED"


def test_publish_is_idempotent(client, db_session, admin_user, department, start_term):
    assert _publish(client, admin_user, department).status_code == 200
    second = _publish(client, admin_user, department)
    assert second.status_code == 200
    assert second.json()["data"]["start_term_visibility"] == "PUBLISHED"
    assert db_session.query(TermState).count() == 1
    assert db_session.query(AuditLog).filter(AuditLog.action == "term_state.publish").count() == 1


def test_publish_blocked_after_completion(client, db_session, admin_user, department, start_term):
    assert _publish(client, admin_user, department).status_code == 200
    TermStateService(db_session).mark_complete(department.id, YEAR, TermType.START)

    response = _publish(client, admin_user, department)
    assert response.status_code == 409
    assert response.json()["errors"][0]["code"] == "TERM_NOT_TRANSITIONABLE"


def test_publish_on_complete_raises_in_service(db_session, department, start_term):
    service = TermStateService(db_session)
    service.mark_complete(department.id, YEAR, TermType.START)
    with pytest.raises(TermNotTransitionable):
        service.publish(department.id, YEAR, TermType.START, EvaluationStage.TEACHER_REVIEW)


def test_mark_complete_is_forward_only(db_session, department):
    service = TermStateService(db_session)

    state = service.mark_complete(department.id, YEAR, TermType.START)
    assert state.start_term_visibility == Visibility.COMPLETE
    assert state.visibility == Visibility.PUBLISHED

    state = service.mark_complete(department.id, YEAR, TermType.END)
    assert state.end_term_visibility == Visibility.COMPLETE
    assert state.visibility == Visibility.COMPLETE

    # Re-completing START never pulls the overall flag back
    state = service.mark_complete(department.id, YEAR, TermType.START)
    assert state.visibility == Visibility.COMPLETE
    assert db_session.query(TermState).count() == 1


def test_mark_complete_is_idempotent(db_session, department):
    service = TermStateService(db_session)
    service.mark_complete(department.id, YEAR, TermType.START)
    service.mark_complete(department.id, YEAR, TermType.START)
    assert db_session.query(AuditLog).filter(AuditLog.action == "term_state.complete").count() == 1


def test_publish_hod_evaluation_needs_no_term(client, admin_user, department):
    response = _publish(client, admin_user, department, stage="hodEvaluation")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["hod_visibility"] == "PUBLISHED"
    assert data["start_term_visibility"] == "DRAFT"
    # No active term yet, so HOD evaluation is not open for START
    assert data["gates"]["hod_evaluation_open"] is False


def test_set_active_term_keeps_visibility(client, admin_user, department, start_term):
    assert _publish(client, admin_user, department).status_code == 200
    response = client.put(
        f"/api/departments/{department.id}/term-state/active-term",
        headers=auth(admin_user),
        json={"term": "END", "year": YEAR},
    )
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["active_term"] == "END"
    assert data["start_term_visibility"] == "PUBLISHED"


def test_hod_evaluation_gate_follows_active_term(client, admin_user, department, start_term):
    assert _publish(client, admin_user, department, stage="hodEvaluation").status_code == 200
    response = client.get(
        f"/api/departments/{department.id}/term-state?year={YEAR}&term=START", headers=auth(admin_user)
    )
    assert response.json()["gates"]["hod_evaluation_open"] is True

    response = client.get(
        f"/api/departments/{department.id}/term-state?year={YEAR}&term=END", headers=auth(admin_user)
    )
    assert response.json()["gates"]["hod_evaluation_open"] is False


def test_only_admin_can_publish(client, hod, dean, department, start_term):
    assert _publish(client, hod, department).status_code == 403
    assert _publish(client, dean, department).status_code == 403


def test_department_scoped_read_access(client, hod, department, other_department):
    assert client.get(f"/api/departments/{department.id}/term-state", headers=auth(hod)).status_code == 200
    response = client.get(f"/api/departments/{other_department.id}/term-state", headers=auth(hod))
    assert response.status_code == 403
    assert response.json()["errors"][0]["code"] == "UNAUTHORIZED"
