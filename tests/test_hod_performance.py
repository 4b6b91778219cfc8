from conftest import YEAR, auth
from faculty_review.models.hod_performance_review import HodPerformanceReview
from faculty_review.models.term import TermType
from faculty_review.services import scoring

RUBRIC = {
    "[Professionalism] Compliance": 5,
    "[Leadership] Department Duties": 4,
    "[Development] In-Service Training": 3,
    "[Service] Community Engagement": 4,
}


def _submit(client, reviewer, hod, **overrides):
    payload = {
        "hod_id": hod.id,
        "term": "START",
        "year": YEAR,
        "comments": "Runs the department well",
        "rubric_scores": RUBRIC,
        "promoted": True,
    }
    payload.update(overrides)
    return client.post("/api/reviews/hod-performance", headers=auth(reviewer), json=payload)


def _publish_hod_evaluation(client, admin_user, department):
    response = client.post(
        f"/api/departments/{department.id}/term-state/publish",
        headers=auth(admin_user),
        json={"term": "START", "stage": "hodEvaluation", "year": YEAR},
    )
    assert response.status_code == 200, response.text


def test_asst_dean_reviews_hod(client, asst_dean, hod):
    response = _submit(client, asst_dean, hod)
    assert response.status_code == 200, response.text
    data = response.json()["data"]
    # 16 / 20
    assert data["total_score"] == 80
    assert data["status"] == "PROMOTED"
    assert data["reviewer_id"] == asst_dean.id
    assert data["submitted"] is True


def test_explicit_total_score_wins(client, dean, hod):
    response = _submit(client, dean, hod, total_score=64, promoted=False)
    data = response.json()["data"]
    assert data["total_score"] == 64
    assert data["status"] == "ON_HOLD"


def test_reviewer_tracks_are_independent(client, db_session, asst_dean, dean, hod):
    assert _submit(client, asst_dean, hod).status_code == 200
    assert _submit(client, dean, hod, promoted=False).status_code == 200
    rows = db_session.query(HodPerformanceReview).filter(HodPerformanceReview.hod_id == hod.id).all()
    assert {r.reviewer_id for r in rows} == {asst_dean.id, dean.id}


def test_resubmission_updates_same_row(client, db_session, asst_dean, hod):
    assert _submit(client, asst_dean, hod).status_code == 200
    assert _submit(client, asst_dean, hod, comments="Updated view").status_code == 200
    rows = db_session.query(HodPerformanceReview).all()
    assert len(rows) == 1
    assert rows[0].comments == "Updated view"


def test_subject_must_be_hod(client, asst_dean, teacher):
    response = _submit(client, asst_dean, teacher)
    assert response.status_code == 404


def test_hod_cannot_review_hods(client, hod, make_user, department):
    from faculty_review.models.user import UserRole
    peer = make_user(UserRole.HOD, department)
    response = _submit(client, hod, peer)
    assert response.status_code == 403


def test_invalid_rubric_is_rejected(client, asst_dean, hod):
    response = _submit(client, asst_dean, hod, rubric_scores={"Leadership": 3})
    assert response.status_code == 422


def test_candidates_require_published_hod_evaluation(client, admin_user, asst_dean, hod, department, start_term):
    response = client.get(f"/api/reviews/hod-performance?term=START&year={YEAR}", headers=auth(asst_dean))
    assert response.status_code == 200
    assert response.json()["hods"] == []

    _publish_hod_evaluation(client, admin_user, department)
    response = client.get(f"/api/reviews/hod-performance?term=START&year={YEAR}", headers=auth(asst_dean))
    hods = response.json()["hods"]
    assert [h["hod_id"] for h in hods] == [hod.id]
    assert hods[0]["rubric"] == scoring.DEFAULT_HOD_RUBRIC
    assert hods[0]["submitted"] is False
    assert hods[0]["department_name"] == "Computer Science"

    # Only the active term is open
    response = client.get(f"/api/reviews/hod-performance?term=END&year={YEAR}", headers=auth(asst_dean))
    assert response.json()["hods"] == []


def test_candidate_total_is_computed_on_read(client, db_session, admin_user, dean, hod, department, start_term):
    _publish_hod_evaluation(client, admin_user, department)
    legacy = HodPerformanceReview(
        hod_id=hod.id,
        term=TermType.START,
        year=YEAR,
        reviewer_id=dean.id,
        comments="Legacy row",
        scores=RUBRIC,
        total_score=None,
        submitted=True,
    )
    db_session.add(legacy)
    db_session.commit()

    response = client.get(f"/api/reviews/hod-performance?term=START&year={YEAR}", headers=auth(dean))
    candidate = response.json()["hods"][0]
    assert candidate["total_score"] == 80
    assert candidate["submitted"] is True

    db_session.refresh(legacy)
    assert legacy.total_score is None
