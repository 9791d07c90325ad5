import pytest

from app.auth.redirects import campus_redirect, role_home


def test_role_home():
    assert role_home("admin", "es") == "/es/campus/admin"
    assert role_home("teacher", "en") == "/en/campus/teacher"
    assert role_home("student", "ru") == "/ru/campus"
    assert role_home(None, "xx") == "/es/campus"


def test_campus_redirect_rules():
    assert campus_redirect(None, None, "en") == "/en/login"
    assert campus_redirect("student", "teacher", "es") == "/es/campus"
    assert campus_redirect("student", "admin", "es") == "/es/campus"
    assert campus_redirect("teacher", "admin", "es") == "/es/campus/teacher"
    assert campus_redirect("teacher", "teacher", "es") is None
    assert campus_redirect("admin", "teacher", "es") is None
    assert campus_redirect("admin", "admin", "es") is None


@pytest.mark.parametrize("section", ["teacher", "admin"])
def test_student_is_sent_back_to_student_home(client, auth_headers, student, section):
    response = client.get(f"/es/campus/{section}", headers=auth_headers(student), follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/es/campus"


def test_teacher_cannot_open_admin_calendar(client, auth_headers, teacher):
    response = client.get("/en/campus/admin", headers=auth_headers(teacher), follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/en/campus/teacher"


def test_anonymous_visitor_is_sent_to_login(client):
    response = client.get("/ru/campus", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/ru/login"


def test_unprefixed_routes_use_default_language(client):
    response = client.get("/campus/teacher", follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/es/campus/teacher"


def test_unknown_language_is_not_found(client, auth_headers, student):
    response = client.get("/fr/campus", headers=auth_headers(student), follow_redirects=False)
    assert response.status_code == 404


def test_signed_in_user_skips_login_page(client, auth_headers, admin):
    response = client.get("/es/login", headers=auth_headers(admin), follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/es/campus/admin"


def test_post_login_redirects_by_role(client, auth_headers, teacher):
    response = client.get("/api/auth/post-login?lang=en", headers=auth_headers(teacher), follow_redirects=False)
    assert response.status_code == 302
    assert response.headers["location"] == "/en/campus/teacher"

    anonymous = client.get("/api/auth/post-login", follow_redirects=False)
    assert anonymous.headers["location"] == "/es/login"


def test_student_home_payload(client, auth_headers, student, teacher, make_subscription, assign):
    make_subscription(student, sessions_total=8, sessions_used=2)
    assign(student, teacher)

    response = client.get("/es/campus", headers=auth_headers(student))
    assert response.status_code == 200
    data = response.json()
    assert data["page"] == "campus.student"
    assert data["subscription"]["sessions_remaining"] == 6
    assert data["subscription"]["package"] == "Esencial"
    assert data["teacher"]["full_name"] == "Pablo Profesor"
    assert data["next_class"] is None


def test_teacher_week_payload(client, auth_headers, teacher):
    response = client.get("/es/campus/teacher?week=2026-10-21", headers=auth_headers(teacher))
    assert response.status_code == 200
    data = response.json()
    assert data["week_start"] == "2026-10-19"
    assert data["previous_week"] == "2026-10-12"
    assert [day["label"] for day in data["days"]][:2] == ["lunes", "martes"]


def test_admin_month_view_payload(client, auth_headers, admin):
    response = client.get("/en/campus/admin?view=month&day=2026-10-05", headers=auth_headers(admin))
    assert response.status_code == 200
    data = response.json()
    assert data["view"] == "month"
    assert data["navigation"]["title"] == "October 2026"
    assert data["navigation"]["previous"] == "2026-09-01"
    assert data["cells"][:3] == [None, None, None]
    assert data["teacher_filter"] == "all"
