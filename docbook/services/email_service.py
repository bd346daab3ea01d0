"""
Outbound email over SMTP
"""

import smtplib
import ssl
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional

from docbook.core import config
from docbook.core.logger import get_module_logger

logger = get_module_logger(__name__)


class EmailDeliveryError(Exception):
    pass


class SMTPEmailTransport:
    """Sends one message per call. SSL on port 465, STARTTLS otherwise when enabled."""

    def __init__(
        self,
        host: str,
        port: int = 465,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: bool = True,
        from_address: str = config.EMAIL_FROM_ADDRESS,
        timeout: float = config.EMAIL_SEND_TIMEOUT,
    ):
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.from_address = from_address
        self.timeout = timeout

    def _connect(self) -> smtplib.SMTP:
        if self.port == 465:
            context = ssl.create_default_context()
            return smtplib.SMTP_SSL(self.host, self.port, context=context, timeout=self.timeout)

        server = smtplib.SMTP(self.host, self.port, timeout=self.timeout)
        if self.use_tls:
            context = ssl.create_default_context()
            server.starttls(context=context)
        return server

    def send(self, to: str, subject: str, text: str, html: str) -> dict:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        msg.attach(MIMEText(text, "plain"))
        msg.attach(MIMEText(html, "html"))

        try:
            server = self._connect()
            try:
                if self.username and self.password:
                    server.login(self.username, self.password)
                server.sendmail(parseaddr(self.from_address)[1], [to], msg.as_string())
            finally:
                server.quit()
        except (smtplib.SMTPException, OSError) as e:
            # socket.timeout is an OSError
            raise EmailDeliveryError(f"SMTP send to {to} failed: {e}") from e

        logger.info(f"Email '{subject}' sent to {to} via {self.host}")
        return {"id": f"smtp-{datetime.now(timezone.utc).timestamp()}", "success": True}


def get_email_transport() -> Optional[SMTPEmailTransport]:
    if not config.SMTP_HOST:
        return None
    return SMTPEmailTransport(
        host=config.SMTP_HOST,
        port=config.SMTP_PORT,
        username=config.SMTP_USERNAME,
        password=config.SMTP_PASSWORD,
        use_tls=config.SMTP_USE_TLS,
        from_address=config.EMAIL_FROM_ADDRESS,
        timeout=config.EMAIL_SEND_TIMEOUT,
    )
