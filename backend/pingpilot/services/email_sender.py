"""Email sender service - sends alert emails via SMTP."""
import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import make_msgid

from ..config import settings

logger = logging.getLogger(__name__)


class EmailSendError(Exception):
    """Raised when the SMTP transport fails to deliver a message."""


@dataclass
class EmailConfig:
    """SMTP configuration for sending emails."""
    host: str
    port: int
    username: str
    password: str
    use_tls: bool = True
    from_address: str = ""

    @classmethod
    def from_settings(cls) -> "EmailConfig":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=settings.smtp_password,
            use_tls=settings.smtp_use_tls,
            from_address=settings.email_from,
        )


class EmailSenderService:
    """Service for sending HTML email via SMTP."""

    def __init__(self, config: EmailConfig | None = None):
        self._config = config

    @property
    def config(self) -> EmailConfig:
        return self._config or EmailConfig.from_settings()

    def is_configured(self) -> bool:
        return bool(self.config.host)

    async def send_email(self, to_address: str, subject: str, html: str) -> str:
        """Send one message and return its Message-ID.

        Raises EmailSendError on any transport failure.
        """
        config = self.config
        if not config.host:
            logger.warning(f"SMTP host not configured, cannot send \"{subject}\" to {to_address}")
            raise EmailSendError("Email not configured - missing SMTP host")
        if not to_address:
            raise EmailSendError("No recipient address")

        loop = asyncio.get_running_loop()
        # smtplib is blocking, keep it off the event loop
        return await loop.run_in_executor(None, self._send_blocking, config, to_address, subject, html)

    def _send_blocking(self, config: EmailConfig, to_address: str, subject: str, html: str) -> str:
        from_addr = config.from_address or config.username
        message_id = make_msgid(domain=config.host)

        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = from_addr
        msg["To"] = to_address
        msg["Message-ID"] = message_id
        msg.attach(MIMEText(html, "html"))

        try:
            with smtplib.SMTP(config.host, config.port, timeout=30) as server:
                if config.use_tls:
                    server.starttls(context=ssl.create_default_context())
                if config.username and config.password:
                    server.login(config.username, config.password)
                server.sendmail(from_addr, [to_address], msg.as_string())
        except smtplib.SMTPAuthenticationError as e:
            raise EmailSendError(f"SMTP authentication failed for user '{config.username}': {e}") from e
        except smtplib.SMTPConnectError as e:
            raise EmailSendError(f"Failed to connect to SMTP server {config.host}:{config.port}: {e}") from e
        except smtplib.SMTPRecipientsRefused as e:
            raise EmailSendError(f"Recipient refused by server: {to_address}") from e
        except smtplib.SMTPException as e:
            raise EmailSendError(f"SMTP error: {type(e).__name__}: {e}") from e
        except OSError as e:
            raise EmailSendError(f"Could not reach {config.host}:{config.port}: {e}") from e

        logger.info(f"Email sent to {to_address}: {subject}")
        return message_id


# Global instance
email_sender_service = EmailSenderService()
