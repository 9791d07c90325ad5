"""Locale handling for the localized page routes and outgoing emails."""

from typing import Dict, Optional

from app.core.config import settings

TRANSLATIONS: Dict[str, Dict[str, str]] = {
    "es": {
        "login.title": "Iniciar sesión",
        "campus.student.title": "Mi campus",
        "campus.teacher.title": "Panel del profesor",
        "campus.admin.title": "Panel de administración",
        "campus.no_subscription": "No tienes una suscripción activa",
        "campus.no_upcoming": "No tienes clases programadas",
        "email.reminder.subject": "Recordatorio: tu clase es mañana",
        "email.reminder.greeting": "Hola {name},",
        "email.reminder.body": "Te recordamos que tienes una clase el {date} a las {time}.",
        "email.reminder.with_teacher": "Profesor: {name}",
        "email.reminder.with_student": "Estudiante: {name}",
        "email.confirmation.subject": "Clase confirmada: {date}",
        "email.confirmation.body": "Tu clase ha sido programada para el {date} a las {time} ({duration} minutos).",
        "email.meet_link": "Enlace de la videollamada: {link}",
        "email.signature": "Un saludo,\nEl equipo de la escuela",
    },
    "en": {
        "login.title": "Sign in",
        "campus.student.title": "My campus",
        "campus.teacher.title": "Teacher dashboard",
        "campus.admin.title": "Admin dashboard",
        "campus.no_subscription": "You have no active subscription",
        "campus.no_upcoming": "You have no scheduled classes",
        "email.reminder.subject": "Reminder: your class is tomorrow",
        "email.reminder.greeting": "Hi {name},",
        "email.reminder.body": "This is a reminder that you have a class on {date} at {time}.",
        "email.reminder.with_teacher": "Teacher: {name}",
        "email.reminder.with_student": "Student: {name}",
        "email.confirmation.subject": "Class confirmed: {date}",
        "email.confirmation.body": "Your class has been scheduled for {date} at {time} ({duration} minutes).",
        "email.meet_link": "Video call link: {link}",
        "email.signature": "Best regards,\nThe school team",
    },
    "ru": {
        "login.title": "Вход",
        "campus.student.title": "Мой кампус",
        "campus.teacher.title": "Панель преподавателя",
        "campus.admin.title": "Панель администратора",
        "campus.no_subscription": "У вас нет активной подписки",
        "campus.no_upcoming": "У вас нет запланированных занятий",
        "email.reminder.subject": "Напоминание: ваше занятие завтра",
        "email.reminder.greeting": "Здравствуйте, {name}!",
        "email.reminder.body": "Напоминаем, что у вас занятие {date} в {time}.",
        "email.reminder.with_teacher": "Преподаватель: {name}",
        "email.reminder.with_student": "Студент: {name}",
        "email.confirmation.subject": "Занятие подтверждено: {date}",
        "email.confirmation.body": "Ваше занятие назначено на {date} в {time} ({duration} минут).",
        "email.meet_link": "Ссылка на видеозвонок: {link}",
        "email.signature": "С уважением,\nКоманда школы",
    },
}

MONTH_NAMES = {
    "es": ["enero", "febrero", "marzo", "abril", "mayo", "junio", "julio",
           "agosto", "septiembre", "octubre", "noviembre", "diciembre"],
    "en": ["January", "February", "March", "April", "May", "June", "July",
           "August", "September", "October", "November", "December"],
    "ru": ["января", "февраля", "марта", "апреля", "мая", "июня", "июля",
           "августа", "сентября", "октября", "ноября", "декабря"],
}

# Monday first
DAY_NAMES = {
    "es": ["lunes", "martes", "miércoles", "jueves", "viernes", "sábado", "domingo"],
    "en": ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"],
    "ru": ["понедельник", "вторник", "среда", "четверг", "пятница", "суббота", "воскресенье"],
}


def is_supported(lang: Optional[str]) -> bool:
    return lang in settings.SUPPORTED_LANGS


def safe_lang(lang: Optional[str]) -> str:
    return lang if is_supported(lang) else settings.DEFAULT_LANG


def translate(lang: str, key: str, **kwargs) -> str:
    table = TRANSLATIONS.get(safe_lang(lang), TRANSLATIONS["es"])
    text = table.get(key) or TRANSLATIONS["es"].get(key, key)
    return text.format(**kwargs) if kwargs else text


def labels(lang: str, prefix: str) -> Dict[str, str]:
    table = TRANSLATIONS.get(safe_lang(lang), TRANSLATIONS["es"])
    return {key[len(prefix) + 1:]: value for key, value in table.items() if key.startswith(prefix + ".")}


def localized_path(lang: str, path: str = "") -> str:
    path = path.strip("/")
    return f"/{safe_lang(lang)}/{path}" if path else f"/{safe_lang(lang)}"


def format_long_date(value, lang: str) -> str:
    """e.g. 'martes, 3 de marzo de 2026' / 'Tuesday, March 3, 2026'."""
    lang = safe_lang(lang)
    day_name = DAY_NAMES[lang][value.weekday()]
    month_name = MONTH_NAMES[lang][value.month - 1]
    if lang == "en":
        return f"{day_name}, {month_name} {value.day}, {value.year}"
    if lang == "ru":
        return f"{day_name}, {value.day} {month_name} {value.year}"
    return f"{day_name}, {value.day} de {month_name} de {value.year}"


def format_time(value) -> str:
    return value.strftime("%H:%M")
