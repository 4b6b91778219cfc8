from fastapi import status

from conftest import auth


def test_health_check(client):
    """Test the /health endpoint returns 200 and up status."""
    response = client.get("/health")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "up"
    assert "version" in data
    assert "build" in data
    assert "timestamp" in data


def test_readiness_check(client):
    """Test the /readiness endpoint returns 200 and database status."""
    response = client.get("/readiness")
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ready"
    assert data["components"]["database"] == "connected"


def test_root_endpoint(client):
    """Test the API root endpoint."""
    response = client.get("/")
    assert response.status_code == 200
    assert "Faculty Review Service API" in response.json()["message"]


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"
    assert "X-Process-Time" in response.headers


def test_missing_identity_is_rejected(client, department):
    response = client.get(f"/api/departments/{department.id}/term-state")
    assert response.status_code == 401
    body = response.json()
    assert body["success"] is False
    assert body["errors"][0]["code"] == "AUTH_FAILED"


def test_unknown_user_is_rejected(client, department):
    response = client.get(f"/api/departments/{department.id}/term-state", headers={"X-User-Id": "9999"})
    assert response.status_code == 401


def test_inactive_user_is_rejected(client, make_user, department):
    from faculty_review.models.user import UserRole
    ghost = make_user(UserRole.ADMIN, is_active=False)
    response = client.get(f"/api/departments/{department.id}/term-state", headers=auth(ghost))
    assert response.status_code == 401


def test_request_validation_envelope(client, admin_user, department):
    response = client.post(
        f"/api/departments/{department.id}/term-state/publish",
        headers=auth(admin_user),
        json={"term": "MIDDLE", "stage": "teacherReview"},
    )
    assert response.status_code == 422
    body = response.json()
    assert body["success"] is False
    assert any(e["field"] == "term" for e in body["errors"])


def test_success_and_error_envelopes(client, admin_user, department, start_term):
    ok = client.post(
        f"/api/departments/{department.id}/term-state/publish",
        headers=auth(admin_user),
        json={"term": "START", "stage": "teacherReview", "year": 2025},
    ).json()
    assert set(ok) == {"success", "message", "data", "timestamp"}
    assert ok["success"] is True

    failed = client.get("/api/departments/31337/term-state", headers=auth(admin_user)).json()
    assert set(failed) == {"success", "errors"}
    assert failed["errors"][0]["code"] == "NOT_FOUND"
