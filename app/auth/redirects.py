from typing import Optional

from app.core.i18n import localized_path

ROLE_HOMES = {
    "admin": "campus/admin",
    "teacher": "campus/teacher",
    "student": "campus",
}


def role_home(role: Optional[str], lang: str) -> str:
    """Landing page of a role's campus area; unknown roles land on the student home."""
    return localized_path(lang, ROLE_HOMES.get(role or "student", "campus"))


def campus_redirect(role: Optional[str], section: Optional[str], lang: str) -> Optional[str]:
    """
    Where a user with ``role`` must be sent when opening ``section`` of the campus
    (None for the student home), or None when access is allowed.
    """
    if role is None:
        return localized_path(lang, "login")
    if section == "teacher" and role not in ("teacher", "admin"):
        return localized_path(lang, "campus")
    if section == "admin" and role != "admin":
        return role_home(role, lang)
    return None
