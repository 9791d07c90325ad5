from unittest.mock import patch

import httpx
import pytest

from app.models.lead import Lead
from app.services.captcha_service import CaptchaService, captcha_service


def _subscribe(client, **overrides):
    payload = {
        "name": "Marta",
        "email": "marta@correo.es",
        "interest": "company",
        "consent": True,
        "lang": "en",
        "captchaToken": "token-123",
    }
    payload.update(overrides)
    return client.post("/api/subscribe", json=payload)


def test_lead_is_stored(client, db):
    response = _subscribe(client)
    assert response.status_code == 200

    lead = db.query(Lead).one()
    assert lead.email == "marta@correo.es"
    assert lead.interest == "company"
    assert lead.lang == "en"
    assert lead.status == "new"
    assert lead.consent is True


def test_school_is_notified(client):
    with patch("app.api.endpoints.leads.email_service") as email:
        email.send_lead_notification.return_value = {"success": True, "message": "sent"}
        _subscribe(client)
    email.send_lead_notification.assert_called_once_with("Marta", "marta@correo.es", "company", "en")


@pytest.mark.parametrize("email", ["", "not-an-email", "a@b"])
def test_invalid_email(client, db, email):
    response = _subscribe(client, email=email)
    assert response.status_code == 400
    assert response.json()["detail"] == "Email inválido"
    assert db.query(Lead).count() == 0


def test_consent_is_required(client, db):
    response = _subscribe(client, consent=False)
    assert response.status_code == 400
    assert db.query(Lead).count() == 0


def test_failed_captcha_is_rejected(client, db):
    rejected = {"success": False, "error": "invalid-input-response", "message": "Captcha verification failed"}
    with patch.object(captcha_service, "verify", return_value=rejected):
        response = _subscribe(client)
    assert response.status_code == 400
    assert db.query(Lead).count() == 0


def test_unknown_language_falls_back_to_default(client, db):
    _subscribe(client, lang="de")
    assert db.query(Lead).one().lang == "es"


def _response(status_code, payload):
    return httpx.Response(status_code, json=payload, request=httpx.Request("POST", "https://captcha.test/verify"))


def test_captcha_service_disabled_without_secret():
    service = CaptchaService(secret_key="")
    assert service.verify(None)["success"] is True


def test_captcha_service_requires_token():
    service = CaptchaService(secret_key="secret")
    assert service.verify(None)["success"] is False


def test_captcha_service_posts_token_and_ip():
    service = CaptchaService(secret_key="secret", verify_url="https://captcha.test/verify")
    with patch("app.services.captcha_service.httpx.post", return_value=_response(200, {"success": True})) as post:
        assert service.verify("tok", "203.0.113.7")["success"] is True

    assert post.call_args.kwargs["data"] == {"secret": "secret", "response": "tok", "remoteip": "203.0.113.7"}


def test_captcha_service_reports_rejections_and_network_errors():
    service = CaptchaService(secret_key="secret", verify_url="https://captcha.test/verify")
    rejected = _response(200, {"success": False, "error-codes": ["timeout-or-duplicate"]})
    with patch("app.services.captcha_service.httpx.post", return_value=rejected):
        assert service.verify("tok")["error"] == "timeout-or-duplicate"

    with patch("app.services.captcha_service.httpx.post", side_effect=httpx.ConnectError("down")):
        assert service.verify("tok")["success"] is False

    with patch("app.services.captcha_service.httpx.post", return_value=_response(500, {})):
        assert service.verify("tok")["success"] is False
