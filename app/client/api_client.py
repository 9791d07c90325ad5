"""
HTTP client for the campus API.

Used by the scheduling wizard and the lead/checkout forms, and handy from
scripts that talk to a running deployment.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)


class CampusAPIError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, detail: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.detail = detail or message


class CampusClient:
    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10.0,
                 transport: Optional[httpx.BaseTransport] = None):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    def close(self):
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _handle_response(self, response: httpx.Response, operation: str) -> Dict[str, Any]:
        if response.is_success:
            return response.json()

        try:
            data = response.json()
            detail = data.get("detail") or data.get("error") or str(data)
        except ValueError:
            detail = response.text
        raise CampusAPIError(f"{operation} failed: {detail}", status_code=response.status_code, detail=detail)

    def _request(self, method: str, path: str, operation: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"Connection error during {operation}: {e}")
            raise CampusAPIError(f"{operation} failed: {e}") from e
        return self._handle_response(response, operation)

    # Calendar

    def get_available_slots(self, teacher_id: str, date: str, duration: int) -> List[Dict[str, str]]:
        data = self._request(
            "GET", "/api/calendar/available-slots", "Load available slots",
            params={"teacherId": teacher_id, "date": date, "duration": duration},
        )
        return data.get("slots", [])

    def create_session(self, student_id: str, teacher_id: str, scheduled_at: str, duration_minutes: int,
                       meet_link: Optional[str] = None, auto_create_meeting: bool = True) -> Dict[str, Any]:
        payload = {
            "studentId": student_id,
            "teacherId": teacher_id,
            "scheduledAt": scheduled_at,
            "durationMinutes": duration_minutes,
            "autoCreateMeeting": auto_create_meeting,
        }
        if meet_link:
            payload["meetLink"] = meet_link
        return self._request("POST", "/api/calendar/sessions", "Create session", json=payload)

    def create_recurring_sessions(self, student_id: str, teacher_id: str, day_of_week: int, time: str,
                                  start_date: str, end_date: Optional[str] = None, duration_minutes: int = 60,
                                  meet_link: Optional[str] = None,
                                  auto_create_meeting: bool = True) -> Dict[str, Any]:
        payload = {
            "studentId": student_id,
            "teacherId": teacher_id,
            "dayOfWeek": day_of_week,
            "time": time,
            "startDate": start_date,
            "durationMinutes": duration_minutes,
            "autoCreateMeeting": auto_create_meeting,
        }
        if end_date:
            payload["endDate"] = end_date
        if meet_link:
            payload["meetLink"] = meet_link
        return self._request("POST", "/api/calendar/recurring-sessions", "Create recurring sessions", json=payload)

    def create_bulk_sessions(self, student_id: str, teacher_id: str, sessions: List[str],
                             duration_minutes: int = 60) -> Dict[str, Any]:
        payload = {
            "studentId": student_id,
            "teacherId": teacher_id,
            "sessions": sessions,
            "durationMinutes": duration_minutes,
        }
        return self._request("POST", "/api/calendar/bulk-sessions", "Create bulk sessions", json=payload)

    # Marketing site

    def subscribe_lead(self, name: str, email: str, interest: str, consent: bool, lang: str,
                       captcha_token: Optional[str]) -> Dict[str, Any]:
        payload = {
            "name": name,
            "email": email,
            "interest": interest,
            "consent": consent,
            "lang": lang,
            "captchaToken": captcha_token,
        }
        return self._request("POST", "/api/subscribe", "Subscribe", json=payload)

    def create_checkout(self, price_id: str, lang: str = "es") -> str:
        data = self._request("POST", "/api/create-checkout", "Create checkout",
                             json={"priceId": price_id, "lang": lang})
        return data["url"]
