import pytest

MUTATIONS = [
    ("post", "/api/account/update-profile"),
    ("post", "/api/admin/assign-teacher"),
    ("post", "/api/admin/remove-teacher"),
    ("put", "/api/admin/leads"),
    ("post", "/api/calendar/sessions"),
    ("post", "/api/calendar/bulk-sessions"),
    ("post", "/api/calendar/recurring-sessions"),
    ("post", "/api/calendar/session-action"),
    ("post", "/api/teacher/availability"),
    ("delete", "/api/teacher/availability"),
    ("post", "/api/update-student-notes"),
    ("post", "/api/create-checkout"),
]


@pytest.mark.parametrize("method,path", MUTATIONS)
def test_mutations_require_authentication(client, method, path):
    response = client.request(method.upper(), path, json={})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


@pytest.mark.parametrize("path", [
    "/api/auth/me",
    "/api/admin/users",
    "/api/admin/leads",
    "/api/calendar/sessions",
    "/api/calendar/available-slots",
    "/api/teacher/availability",
    "/api/packages",
])
def test_reads_require_authentication(client, path):
    assert client.get(path).status_code == 401


def test_invalid_token_is_rejected(client):
    response = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_signin_sets_cookie_and_returns_role_home(client, make_profile):
    make_profile("teacher", email="lucia@campus.es", password="secreto123", preferred_language="en")

    response = client.post("/api/auth/signin", json={"email": "lucia@campus.es", "password": "secreto123"})
    assert response.status_code == 200
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["redirect_to"] == "/en/campus/teacher"
    assert "access_token" in response.cookies

    # The cookie alone authenticates later requests
    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["email"] == "lucia@campus.es"


def test_signin_with_wrong_password(client, make_profile):
    make_profile("student", email="ivan@campus.es", password="correcta")
    response = client.post("/api/auth/signin", json={"email": "ivan@campus.es", "password": "incorrecta"})
    assert response.status_code == 401


def test_student_cannot_use_admin_endpoints(client, auth_headers, student):
    response = client.get("/api/admin/users", headers=auth_headers(student))
    assert response.status_code == 403

    response = client.post("/api/calendar/sessions", headers=auth_headers(student), json={})
    assert response.status_code == 403


def test_update_profile_defaults(client, db, auth_headers, student):
    response = client.post(
        "/api/account/update-profile",
        headers=auth_headers(student),
        json={"fullName": "Ana María", "phone": "+34 600 000 000", "timezone": "Not/AZone"},
    )
    assert response.status_code == 200

    db.refresh(student)
    assert student.full_name == "Ana María"
    assert student.preferred_language == "es"
    assert student.timezone == "Europe/Madrid"
