import logging
from typing import Optional

from app.client.api_client import CampusAPIError, CampusClient
from app.core.i18n import safe_lang

logger = logging.getLogger(__name__)

CONSENT_ERROR = "Debes aceptar la política de privacidad"
CAPTCHA_ERROR = "Completa la verificación de seguridad"
INTERESTS = ("general", "company", "other")


class LeadCaptureForm:
    """Newsletter / contact form on the marketing site."""

    def __init__(self, client: CampusClient, lang: str = "es", error_text: str = "Error"):
        self.client = client
        self.lang = safe_lang(lang)
        self.error_text = error_text
        self.status = "idle"
        self.error_message = ""
        self.captcha_token: Optional[str] = None
        self._clear()

    def _clear(self):
        self.name = ""
        self.email = ""
        self.interest = "general"
        self.consent = False

    def submit(self) -> bool:
        # Nothing is sent without consent and a solved challenge
        if not self.consent:
            self.status = "error"
            self.error_message = CONSENT_ERROR
            return False
        if not self.captcha_token:
            self.status = "error"
            self.error_message = CAPTCHA_ERROR
            return False

        self.status = "loading"
        self.error_message = ""
        try:
            self.client.subscribe_lead(
                self.name,
                self.email,
                self.interest if self.interest in INTERESTS else "general",
                self.consent,
                self.lang,
                self.captcha_token,
            )
        except CampusAPIError as e:
            logger.info(f"Lead form rejected: {e}")
            self.status = "error"
            self.error_message = str(e.detail) if e.status_code else self.error_text
            # A challenge token is single use
            self.captcha_token = None
            return False

        self.status = "success"
        self.captcha_token = None
        self._clear()
        return True


class CheckoutForm:
    """Commitment-length picker that hands the student over to the hosted checkout."""

    def __init__(self, client: CampusClient, package: dict, lang: str = "es", is_logged_in: bool = True):
        self.client = client
        self.package = package
        self.lang = safe_lang(lang)
        self.is_logged_in = is_logged_in
        self.months = 1
        self.is_loading = False
        self.error: Optional[str] = None

    def price_id(self) -> Optional[str]:
        for option in self.package.get("prices", []):
            if option["months"] == self.months:
                return option.get("price_id")
        return None

    def continue_to_checkout(self) -> Optional[str]:
        """URL to send the browser to: the login page for visitors, the checkout otherwise."""
        if not self.is_logged_in:
            return f"/{self.lang}/login"

        self.is_loading = True
        self.error = None
        try:
            return self.client.create_checkout(self.price_id(), self.lang)
        except CampusAPIError as e:
            self.error = str(e.detail)
            return None
        finally:
            self.is_loading = False
