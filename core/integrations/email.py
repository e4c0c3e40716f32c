"""Email transport used by notification workers."""

import logging
import smtplib
from email.mime.text import MIMEText
from typing import List, Optional

from core.config import settings

logger = logging.getLogger(__name__)


class EmailService:
    """Plain-text email over SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        use_tls: Optional[bool] = None,
    ):
        self.smtp_host = smtp_host or settings.smtp_host
        self.smtp_port = smtp_port or settings.smtp_port
        self.smtp_user = smtp_user or settings.smtp_user
        self.smtp_password = smtp_password or settings.smtp_password
        self.from_email = from_email or settings.from_email
        self.from_name = from_name or settings.from_name
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls

    def send_email(
        self,
        to_email: str | List[str],
        subject: str,
        body: str,
        bcc: Optional[List[str]] = None,
    ) -> bool:
        """
        Send a plain-text email.

        Returns:
            True if the SMTP server accepted the message
        """
        recipients = list(to_email) if isinstance(to_email, list) else [to_email]
        if bcc:
            recipients.extend(bcc)
        if not recipients:
            return True

        msg = MIMEText(body, "plain", "utf-8")
        msg["From"] = f"{self.from_name} <{self.from_email}>"
        msg["To"] = ", ".join(to_email) if isinstance(to_email, list) else to_email
        msg["Subject"] = subject

        try:
            with smtplib.SMTP(self.smtp_host, self.smtp_port) as server:
                if self.use_tls:
                    server.starttls()
                if self.smtp_user and self.smtp_password:
                    server.login(self.smtp_user, self.smtp_password)
                server.send_message(msg, from_addr=self.from_email, to_addrs=recipients)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email '{subject}' to {len(recipients)} recipient(s): {e}")
            return False

        logger.info(f"Email '{subject}' sent to {len(recipients)} recipient(s)")
        return True
