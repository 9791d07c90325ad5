import html
import logging
import random
import smtplib
import time
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Any, Dict, List, Optional

from app.core.config import settings
from app.core.i18n import translate

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3


class EmailService:
    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_username = settings.SMTP_USERNAME
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_address = settings.EMAIL_FROM or settings.SMTP_USERNAME
        self.is_configured = bool(self.smtp_host and self.smtp_username and self.smtp_password)

    def _build_message(self, to_email: str, subject: str, body: str, html_body: Optional[str]) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to_email
        msg.attach(MIMEText(body, "plain", "utf-8"))
        if html_body:
            msg.attach(MIMEText(html_body, "html", "utf-8"))
        return msg

    def _deliver(self, to_email: str, msg: MIMEMultipart) -> None:
        if self.smtp_port == 465:
            with smtplib.SMTP_SSL(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_address, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
                server.starttls()
                server.login(self.smtp_username, self.smtp_password)
                server.sendmail(self.from_address, [to_email], msg.as_string())

    def send_email(self, to_email: str, subject: str, body: str, html_body: Optional[str] = None,
                   max_retries: int = MAX_ATTEMPTS, email_type: str = "general") -> Dict[str, Any]:
        """
        Send an email, retrying transient SMTP failures with exponential backoff.
        Returns: {"success": bool, "message": str, "error": Optional[str], "attempts": int}
        """
        max_retries = min(max(int(max_retries), 1), MAX_ATTEMPTS)
        if not self.is_configured:
            logger.warning(f"Email service not configured; skipping {email_type} email to {to_email}")
            return {
                "success": False,
                "message": "Email service not configured",
                "error": "SMTP settings not configured",
                "attempts": 0,
            }

        msg = self._build_message(to_email, subject, body, html_body)
        last_error = None
        attempts = 0

        for attempt in range(1, max_retries + 1):
            attempts = attempt
            try:
                logger.info(f"Sending {email_type} email to {to_email} (attempt {attempt}/{max_retries})")
                self._deliver(to_email, msg)
                logger.info(f"{email_type} email sent to {to_email} on attempt {attempt}")
                return {
                    "success": True,
                    "message": f"Email sent successfully to {to_email}",
                    "error": None,
                    "attempts": attempt,
                }
            except (smtplib.SMTPAuthenticationError, smtplib.SMTPRecipientsRefused) as e:
                # Not retryable
                last_error = f"{type(e).__name__}: {e}"
                logger.error(f"Attempt {attempt} failed - {last_error}")
                break
            except (smtplib.SMTPException, OSError) as e:
                last_error = f"SMTP error: {e}"
                logger.error(f"Attempt {attempt} failed - {last_error}")
                if isinstance(e, smtplib.SMTPResponseException) and e.smtp_code == 550:
                    logger.info("Non-retryable SMTP error detected; will not retry further.")
                    break
                if attempt < max_retries:
                    wait_time = (2 ** attempt) + random.uniform(0, 1)
                    logger.info(f"Waiting {wait_time:.2f} seconds before retry...")
                    time.sleep(wait_time)

        logger.error(f"{email_type} email to {to_email} failed after {attempts} attempts: {last_error}")
        return {
            "success": False,
            "message": f"Email sending failed after {attempts} attempts",
            "error": last_error,
            "attempts": attempts,
        }

    @staticmethod
    def _render_html(title: str, paragraphs: List[str], link: Optional[str] = None, link_label: str = "") -> str:
        body = "".join(f"<p>{html.escape(p).replace(chr(10), '<br>')}</p>" for p in paragraphs)
        button = (
            f'<p><a href="{html.escape(link, quote=True)}" class="button">{html.escape(link_label)}</a></p>'
            if link else ""
        )
        return f"""
<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>{html.escape(title)}</title>
    <style>
        body {{ font-family: Arial, sans-serif; line-height: 1.6; color: #333; }}
        .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
        .header {{ background-color: #006064; color: #ffffff; padding: 20px; text-align: center; }}
        .content {{ padding: 20px; border: 2px solid #006064; }}
        .button {{ display: inline-block; padding: 12px 24px; background-color: #006064; color: #ffffff; text-decoration: none; margin: 20px 0; }}
    </style>
</head>
<body>
    <div class="container">
        <div class="header"><h2>{html.escape(title)}</h2></div>
        <div class="content">{body}{button}</div>
    </div>
</body>
</html>
        """

    def send_class_reminder(self, email: str, lang: str, recipient_name: str, date: str, time_str: str,
                            teacher_name: Optional[str] = None, student_name: Optional[str] = None,
                            meet_link: Optional[str] = None) -> Dict[str, Any]:
        """Reminder sent the day before a class, to the student or to the teacher."""
        subject = translate(lang, "email.reminder.subject")
        lines = [
            translate(lang, "email.reminder.greeting", name=recipient_name),
            translate(lang, "email.reminder.body", date=date, time=time_str),
        ]
        if teacher_name:
            lines.append(translate(lang, "email.reminder.with_teacher", name=teacher_name))
        if student_name:
            lines.append(translate(lang, "email.reminder.with_student", name=student_name))
        if meet_link:
            lines.append(translate(lang, "email.meet_link", link=meet_link))
        lines.append(translate(lang, "email.signature"))

        text_body = "\n\n".join(lines)
        html_body = self._render_html(subject, lines, meet_link, "Meet")
        return self.send_email(email, subject, text_body, html_body, email_type="class_reminder")

    def send_class_confirmation(self, email: str, lang: str, recipient_name: str, date: str, time_str: str,
                                duration: int, meet_link: Optional[str] = None,
                                extra_classes: int = 0) -> Dict[str, Any]:
        subject = translate(lang, "email.confirmation.subject", date=date)
        shown_date = f"{date} (+{extra_classes})" if extra_classes else date
        lines = [
            translate(lang, "email.reminder.greeting", name=recipient_name),
            translate(lang, "email.confirmation.body", date=shown_date, time=time_str, duration=duration),
        ]
        if meet_link:
            lines.append(translate(lang, "email.meet_link", link=meet_link))
        lines.append(translate(lang, "email.signature"))

        text_body = "\n\n".join(lines)
        html_body = self._render_html(subject, lines, meet_link, "Meet")
        return self.send_email(email, subject, text_body, html_body, email_type="class_confirmation")

    def send_lead_notification(self, name: Optional[str], email: str, interest: Optional[str], lang: str) -> Dict[str, Any]:
        """Notify the school inbox about a new lead from the marketing site."""
        if not settings.LEADS_NOTIFY_EMAIL:
            logger.info("LEADS_NOTIFY_EMAIL not set; lead notification skipped")
            return {"success": False, "message": "No recipient configured", "error": None, "attempts": 0}

        subject = f"Nuevo lead: {name or email} ({interest or 'general'})"
        lines = [
            f"Nombre: {name or 'N/A'}",
            f"Email: {email}",
            f"Interés: {interest or 'N/A'}",
            f"Idioma: {lang}",
        ]
        text_body = "\n".join(lines)
        html_body = self._render_html("Nuevo lead capturado", lines)
        return self.send_email(settings.LEADS_NOTIFY_EMAIL, subject, text_body, html_body, email_type="lead_notification")

    def send_subscription_confirmation(self, email: str, student_name: str, package_name: str,
                                       months: int, sessions_total: int, ends_at: str) -> Dict[str, Any]:
        subject = f"Suscripción activada: {package_name}"
        lines = [
            f"Hola {student_name},",
            f"Tu plan {package_name} ({months} mes(es)) está activo hasta el {ends_at}.",
            f"Clases incluidas: {sessions_total}.",
            translate("es", "email.signature"),
        ]
        campus_url = f"{settings.SITE_URL}/es/campus"
        text_body = "\n\n".join(lines + [campus_url])
        html_body = self._render_html(subject, lines, campus_url, "Campus")
        return self.send_email(email, subject, text_body, html_body, email_type="subscription_confirmation")


# Global email service instance
email_service = EmailService()
