import logging
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class CaptchaService:
    """Server-side verification of Cloudflare Turnstile tokens."""

    def __init__(self, secret_key: Optional[str] = None, verify_url: Optional[str] = None, timeout: float = 10.0):
        self.secret_key = settings.TURNSTILE_SECRET_KEY if secret_key is None else secret_key
        self.verify_url = verify_url or settings.TURNSTILE_VERIFY_URL
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.secret_key)

    def verify(self, token: Optional[str], remote_ip: Optional[str] = None) -> Dict[str, Any]:
        if not self.enabled:
            return {"success": True, "message": "Captcha verification disabled"}
        if not token:
            return {"success": False, "error": "Missing captcha token", "message": "Captcha verification failed"}

        data = {"secret": self.secret_key, "response": token}
        if remote_ip:
            data["remoteip"] = remote_ip

        try:
            response = httpx.post(self.verify_url, data=data, timeout=self.timeout)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            logger.error(f"Captcha verification request failed: {e}")
            return {"success": False, "error": str(e), "message": "Captcha verification unavailable"}

        if result.get("success"):
            return {"success": True, "message": "Captcha verified"}

        logger.info(f"Captcha rejected: {result.get('error-codes')}")
        return {
            "success": False,
            "error": ", ".join(result.get("error-codes") or []) or "invalid-token",
            "message": "Captcha verification failed",
        }


captcha_service = CaptchaService()
