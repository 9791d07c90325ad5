import smtplib
from unittest.mock import patch

import pytest

from app.services.email_service import EmailService
from app.services.meeting_service import MeetingService


@pytest.fixture
def service():
    instance = EmailService()
    instance.smtp_username = "school@correo.es"
    instance.smtp_password = "app-password"
    instance.from_address = "school@correo.es"
    instance.is_configured = True
    return instance


def test_unconfigured_service_skips_sending():
    instance = EmailService()
    instance.is_configured = False
    result = instance.send_email("ana@campus.es", "Hola", "body")
    assert result["success"] is False
    assert result["attempts"] == 0


def test_transient_errors_are_retried(service):
    failures = [smtplib.SMTPServerDisconnected("gone"), None]
    with patch.object(service, "_deliver", side_effect=failures) as deliver, \
            patch("app.services.email_service.time.sleep") as sleep:
        result = service.send_email("ana@campus.es", "Hola", "body")

    assert result["success"] is True
    assert result["attempts"] == 2
    assert deliver.call_count == 2
    sleep.assert_called_once()


def test_authentication_errors_are_not_retried(service):
    error = smtplib.SMTPAuthenticationError(535, b"bad credentials")
    with patch.object(service, "_deliver", side_effect=error) as deliver, \
            patch("app.services.email_service.time.sleep"):
        result = service.send_email("ana@campus.es", "Hola", "body")

    assert result["success"] is False
    assert deliver.call_count == 1
    assert "SMTPAuthenticationError" in result["error"]


def test_gives_up_after_max_attempts(service):
    with patch.object(service, "_deliver", side_effect=OSError("unreachable")) as deliver, \
            patch("app.services.email_service.time.sleep"):
        result = service.send_email("ana@campus.es", "Hola", "body", max_retries=10)

    assert result["success"] is False
    assert deliver.call_count == 3


def test_reminder_is_localized(service):
    with patch.object(service, "send_email", return_value={"success": True}) as send:
        service.send_class_reminder(
            "ivan@campus.es", "ru", "Иван", "вторник, 20 октября 2026", "18:30",
            teacher_name="Pablo", meet_link="https://meet.jit.si/clase-1",
        )

    to_email, subject, text_body, html_body = send.call_args.args
    assert to_email == "ivan@campus.es"
    assert subject == "Напоминание: ваше занятие завтра"
    assert "18:30" in text_body
    assert "Pablo" in text_body
    assert 'href="https://meet.jit.si/clase-1"' in html_body


def test_confirmation_mentions_additional_classes(service):
    with patch.object(service, "send_email", return_value={"success": True}) as send:
        service.send_class_confirmation("ana@campus.es", "es", "Ana", "martes, 20 de octubre de 2026", "10:00", 60,
                                        extra_classes=3)

    text_body = send.call_args.args[2]
    assert "(+3)" in text_body
    assert "60 minutos" in text_body


def test_html_is_escaped(service):
    html_body = service._render_html("<b>", ["<script>alert(1)</script>"])
    assert "<script>" not in html_body
    assert "&lt;script&gt;" in html_body


def test_meeting_links_are_named_after_the_session():
    service = MeetingService(base_url="https://meet.jit.si/", prefix="clase")
    assert service.create_meeting_link("abc") == "https://meet.jit.si/clase-abc"
    assert service.create_meeting_link().startswith("https://meet.jit.si/clase-")
