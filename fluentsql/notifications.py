"""Error notification sinks.

A driver reports every failed statement to its notifier when
``ErrorNotificationConfig.send_on_error`` is set. Notifiers never raise:
a delivery failure is logged and reported through the return value so that
it cannot mask the database error being reported.
"""

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional, Protocol, runtime_checkable

from fluentsql.exceptions import NotificationError
from fluentsql.utils.logging import get_logger

__all__ = ("ErrorNotificationConfig", "ErrorNotifier", "SMTPErrorNotifier", "create_notifier")

logger = get_logger("notifications")


@dataclass
class ErrorNotificationConfig:
    """Where and how database errors are reported by e-mail."""

    send_on_error: bool = False
    """Send a notification for every failed statement."""
    to_email: str = ""
    """Recipient. Nothing is sent while empty."""
    from_email: str = "no-reply@example.com"
    subject: str = "Database Error Alert"
    smtp_host: str = "localhost"
    smtp_port: int = 25
    smtp_timeout: float = 10.0
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    use_starttls: bool = False


@runtime_checkable
class ErrorNotifier(Protocol):
    """Anything able to deliver an error report."""

    def notify(self, message: str, last_query: Optional[str] = None) -> bool: ...


class SMTPErrorNotifier:
    """Deliver error reports as plain text e-mail through :mod:`smtplib`."""

    __slots__ = ("config",)

    def __init__(self, config: ErrorNotificationConfig) -> None:
        self.config = config

    def build_message(self, message: str, last_query: Optional[str] = None) -> EmailMessage:
        """Build the e-mail for one error report.

        Args:
            message: The error message.
            last_query: The statement that failed, if known.

        Returns:
            The message, ready to send.
        """
        email = EmailMessage()
        email["Subject"] = self.config.subject
        email["From"] = self.config.from_email
        email["To"] = self.config.to_email
        email["Reply-To"] = self.config.from_email
        email.set_content(
            f"A database error occurred on your application:\n\n{message}\n\nLast Query: {last_query or 'N/A'}\n"
        )
        return email

    def send(self, email: EmailMessage) -> None:
        """Send a message, raising on failure.

        Raises:
            NotificationError: If the SMTP exchange fails.
        """
        try:
            with smtplib.SMTP(self.config.smtp_host, self.config.smtp_port, timeout=self.config.smtp_timeout) as smtp:
                if self.config.use_starttls:
                    smtp.starttls()
                if self.config.smtp_username:
                    smtp.login(self.config.smtp_username, self.config.smtp_password or "")
                smtp.send_message(email)
        except OSError as e:  # smtplib.SMTPException included
            msg = f"Failed to send error email to {self.config.to_email}: {e}"
            raise NotificationError(msg) from e

    def notify(self, message: str, last_query: Optional[str] = None) -> bool:
        """Send an error report.

        Returns:
            True if the e-mail was handed to the SMTP server, False otherwise.
        """
        if not self.config.to_email:
            logger.warning("Error email not sent: 'to_email' is not configured.")
            return False
        try:
            self.send(self.build_message(message, last_query))
        except NotificationError as e:
            logger.error("%s", e)
            return False
        logger.debug("Error email sent to %s", self.config.to_email)
        return True


def create_notifier(config: Optional[ErrorNotificationConfig]) -> Optional[ErrorNotifier]:
    """Return an SMTP notifier when notifications are enabled, else None."""
    if config is None or not config.send_on_error:
        return None
    return SMTPErrorNotifier(config)
