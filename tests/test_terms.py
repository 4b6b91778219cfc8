from conftest import YEAR, auth
from faculty_review.models.term_state import TermState
from faculty_review.models.term import TermType


def _create(client, user, department_ids, status="INACTIVE", name="Spring", start="2025-01-10", end="2025-05-30"):
    return client.post(
        "/api/admin/terms",
        headers=auth(user),
        json={
            "name": name,
            "year": YEAR,
            "start_date": start,
            "end_date": end,
            "status": status,
            "department_ids": department_ids,
        },
    )


def test_create_inactive_term(client, db_session, admin_user, department):
    response = _create(client, admin_user, [department.id])
    assert response.status_code == 201, response.text
    data = response.json()["data"]
    assert data["status"] == "INACTIVE"
    assert [d["id"] for d in data["departments"]] == [department.id]
    # Inactive terms do not move the department's active term
    assert db_session.query(TermState).count() == 0


def test_create_active_term_sets_department_active_term(client, db_session, admin_user, department, other_department):
    response = _create(client, admin_user, [department.id, other_department.id], status="START")
    assert response.status_code == 201
    states = db_session.query(TermState).order_by(TermState.department_id).all()
    assert [s.department_id for s in states] == sorted([department.id, other_department.id])
    assert all(s.active_term == TermType.START for s in states)


def test_duplicate_active_term_rejected(client, admin_user, department):
    assert _create(client, admin_user, [department.id], status="START").status_code == 201
    response = _create(client, admin_user, [department.id], status="START", name="Again")
    assert response.status_code == 422
    assert response.json()["errors"][0]["details"]["field"] == "status"


def test_end_before_start_rejected(client, admin_user, department):
    response = _create(client, admin_user, [department.id], start="2025-06-01", end="2025-01-01")
    assert response.status_code == 422


def test_unknown_department_rejected(client, admin_user):
    response = _create(client, admin_user, [31337])
    assert response.status_code == 404


def test_activate_term_moves_active_term(client, db_session, admin_user, department):
    created = _create(client, admin_user, [department.id]).json()["data"]
    response = client.post(
        f"/api/admin/terms/{created['id']}/activate",
        headers=auth(admin_user),
        json={"status": "END"},
    )
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "END"
    state = db_session.query(TermState).filter(TermState.department_id == department.id).one()
    assert state.active_term == TermType.END


def test_activate_as_inactive_rejected(client, admin_user, department):
    created = _create(client, admin_user, [department.id]).json()["data"]
    response = client.post(
        f"/api/admin/terms/{created['id']}/activate",
        headers=auth(admin_user),
        json={"status": "INACTIVE"},
    )
    assert response.status_code == 422


def test_list_terms(client, admin_user, department):
    _create(client, admin_user, [department.id], name="Spring")
    _create(client, admin_user, [department.id], name="Autumn", status="END")
    response = client.get(f"/api/admin/terms?year={YEAR}", headers=auth(admin_user))
    assert response.status_code == 200
    assert {t["name"] for t in response.json()} == {"Spring", "Autumn"}


def test_terms_are_admin_only(client, dean, department):
    assert client.get("/api/admin/terms", headers=auth(dean)).status_code == 403
    assert _create(client, dean, [department.id]).status_code == 403
