from datetime import timedelta
from unittest.mock import patch

import pytest

from app.models.session import ClassSession
from app.services.reminder_scheduler import ReminderScheduler
from app.services.reminder_service import ReminderService
from app.utils.timezone import utcnow

CRON_HEADERS = {"Authorization": "Bearer test-cron-secret"}


@pytest.fixture
def subscription(student, make_subscription):
    return make_subscription(student)


@pytest.fixture
def sent_ok():
    with patch("app.services.reminder_service.email_service") as email:
        email.send_class_reminder.return_value = {"success": True}
        yield email


def test_cron_requires_secret(client):
    assert client.get("/api/cron/send-reminders").status_code == 401
    assert client.get("/api/cron/send-reminders", headers={"Authorization": "Bearer nope"}).status_code == 401


def test_cron_refuses_when_secret_is_not_configured(client):
    with patch("app.api.endpoints.cron.settings") as settings:
        settings.CRON_SECRET = ""
        response = client.get("/api/cron/send-reminders", headers={"Authorization": "Bearer "})
    assert response.status_code == 401


def test_reminders_go_to_both_parties(client, db, teacher, subscription, make_session, sent_ok):
    session = make_session(subscription, teacher, utcnow() + timedelta(hours=24), meet_link="https://meet.jit.si/x")

    response = client.get("/api/cron/send-reminders", headers=CRON_HEADERS)
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["processed"] == 1
    assert data["sent"] == 2
    assert data["failed"] == 0
    assert data["errors"] == []

    recipients = [c.args[0] for c in sent_ok.send_class_reminder.call_args_list]
    assert recipients == ["ana@campus.es", "pablo@campus.es"]
    student_call = sent_ok.send_class_reminder.call_args_list[0]
    assert student_call.kwargs["teacher_name"] == "Pablo Profesor"
    assert student_call.kwargs["meet_link"] == "https://meet.jit.si/x"

    db.expire_all()
    assert db.get(ClassSession, session.id).reminder_sent is True

    # Nothing left to remind
    assert client.get("/api/cron/send-reminders", headers=CRON_HEADERS).json()["processed"] == 0


def test_only_sessions_in_the_window_are_reminded(db, teacher, subscription, make_session, sent_ok):
    now = utcnow()
    make_session(subscription, teacher, now + timedelta(hours=12))
    make_session(subscription, teacher, now + timedelta(hours=30))
    make_session(subscription, teacher, now + timedelta(hours=24), status="cancelled")
    make_session(subscription, teacher, now + timedelta(hours=24, minutes=30), reminder_sent=True)
    due = make_session(subscription, teacher, now + timedelta(hours=23, minutes=30))

    sessions = ReminderService(db).sessions_needing_reminders(now)
    assert [s.id for s in sessions] == [due.id]


def test_failed_deliveries_are_counted(db, teacher, subscription, make_session):
    make_session(subscription, teacher, utcnow() + timedelta(hours=24))
    with patch("app.services.reminder_service.email_service") as email:
        email.send_class_reminder.side_effect = [{"success": True}, {"success": False, "error": "SMTP"}]
        result = ReminderService(db).send_reminders()

    assert result["sent"] == 1
    assert result["failed"] == 1
    assert len(result["errors"]) == 1
    assert "teacher pablo@campus.es" in result["errors"][0]


def test_reminders_use_recipient_language(db, make_profile, teacher, make_subscription, make_session, sent_ok):
    student = make_profile("student", email="olga@campus.es", preferred_language="ru")
    subscription = make_subscription(student)
    make_session(subscription, teacher, utcnow() + timedelta(hours=24))

    ReminderService(db).send_reminders()
    languages = [c.args[1] for c in sent_ok.send_class_reminder.call_args_list]
    assert languages == ["ru", "es"]


def test_scheduler_run_once_uses_the_reminder_service(teacher, subscription, make_session, sent_ok):
    make_session(subscription, teacher, utcnow() + timedelta(hours=24))
    result = ReminderScheduler(interval_seconds=60, initial_delay_seconds=0).run_once()
    assert result["processed"] == 1
    assert result["sent"] == 2
