import logging
import smtplib
from email.message import EmailMessage

from config import Settings
from errors import EmailDeliveryError

logger = logging.getLogger(__name__)


class Mailer:
    """SMTP transport. Without EMAIL_HOST configured, mail is logged and dropped."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def send(self, to: str, subject: str, body: str) -> None:
        if not self.settings.email_host:
            logger.info("Mail transport not configured, skipping '%s' to %s", subject, to)
            return

        message = EmailMessage()
        message["From"] = self.settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content(body)

        try:
            with smtplib.SMTP(self.settings.email_host, self.settings.email_port, timeout=10) as smtp:
                smtp.starttls()
                if self.settings.email_user:
                    smtp.login(self.settings.email_user, self.settings.email_pass or "")
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Sending '%s' to %s failed: %s", subject, to, exc)
            raise EmailDeliveryError("Email could not be sent")
        logger.info("Sent '%s' to %s", subject, to)

    def send_welcome_email(self, name: str, email: str, verification_token: str) -> None:
        url = f"{self.settings.client_url}/verify-email/{verification_token}"
        self.send(
            email,
            "Welcome to LVL.AI - verify your email",
            f"Hi {name},\n\nwelcome aboard! Please confirm your email address by opening:\n\n{url}\n",
        )

    def send_password_reset_email(self, email: str, reset_token: str) -> None:
        url = f"{self.settings.client_url}/reset-password/{reset_token}"
        self.send(
            email,
            "Password reset",
            "You are receiving this email because a password reset was requested for your account.\n\n"
            f"Open the following link within 10 minutes to choose a new password:\n\n{url}\n\n"
            "If you did not request this, you can ignore this email.\n",
        )
