"""Email service for activation codes and deadline reminders."""

import smtplib
import logging
from email.mime.text import MIMEText
from typing import Optional

from .models import Task

logger = logging.getLogger(__name__)

ACTIVATION_SUBJECT = "Registration confirmation"
REMINDER_SUBJECT = "Deadline reminder"


class EmailService:
    """Service for sending plain-text emails with SMTP fallback to console.

    Sending never raises: failures are logged and reported as False.
    """

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: int = 587,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        smtp_from_email: Optional[str] = None,
        smtp_timeout: float = 10.0,
    ):
        """Initialize email service."""
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._smtp_from_email = smtp_from_email or smtp_user
        self._smtp_timeout = smtp_timeout

    @property
    def is_configured(self) -> bool:
        """Check if SMTP is properly configured."""
        return bool(
            self._smtp_host
            and self._smtp_user
            and self._smtp_password
            and self._smtp_from_email
        )

    def send(self, to: str, subject: str, body: str) -> bool:
        """
        Send a plain-text email.
        Returns True if sent (or printed to console when SMTP is not configured).
        """
        if not self.is_configured:
            # Console fallback
            print(f"\n{'='*50}")
            print(f"To: {to}")
            print(f"Subject: {subject}")
            print(body)
            print(f"{'='*50}\n")
            logger.info(f"Email to {to} printed to console (SMTP not configured)")
            return True

        try:
            msg = MIMEText(body, "plain", "utf-8")
            msg["Subject"] = subject
            msg["From"] = self._smtp_from_email
            msg["To"] = to

            with smtplib.SMTP(
                self._smtp_host, self._smtp_port, timeout=self._smtp_timeout
            ) as server:
                server.starttls()
                server.login(self._smtp_user, self._smtp_password)
                server.sendmail(self._smtp_from_email, to, msg.as_string())

            logger.info(f"Email '{subject}' sent to {to}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to}: {e}")
            return False

    def send_activation_code(self, email: str, code: str, ttl_seconds: int) -> bool:
        """Send the registration activation code."""
        body = f"""Your registration code is: {code}

This code will expire in {ttl_seconds} seconds.

If you didn't request this code, you can safely ignore this email.
"""
        return self.send(email, ACTIVATION_SUBJECT, body)

    def send_deadline_reminder(self, email: str, task: Task) -> bool:
        """Remind a user that a task deadline is less than a day away."""
        body = (
            "The deadline you set is less than 24 hours away.\n"
            f"Task: {task.title}\n"
            f"Description: {task.description}\n"
            f"Deadline: {task.deadline.isoformat()}\n"
        )
        return self.send(email, REMINDER_SUBJECT, body)
