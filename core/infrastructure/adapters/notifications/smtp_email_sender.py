"""
SMTP email sender backed by aiosmtplib.

One connection per message: order mail volume is low and a pooled
connection would only add reconnect handling.
"""
import logging
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr

import aiosmtplib

from core.application.interfaces import IEmailSender
from core.settings.modules.integrations_settings import EmailSettings


logger = logging.getLogger(__name__)


class SMTPEmailSender(IEmailSender):

    def __init__(self, settings: EmailSettings):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.sender = settings.sender
        self.password = settings.password
        self.sender_name = settings.sender_name
        self.timeout = settings.timeout_seconds
        # 465 is implicit TLS; anything else upgrades with STARTTLS
        self.use_ssl = settings.smtp_port == 465

    def build_message(self, to: str, subject: str, html: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr((self.sender_name, self.sender))
        msg["To"] = to
        msg.attach(MIMEText(html, "html", "utf-8"))
        return msg

    async def send(self, to: str, subject: str, html: str) -> None:
        message = self.build_message(to, subject, html)
        smtp = aiosmtplib.SMTP(
            hostname=self.host,
            port=self.port,
            use_tls=self.use_ssl,
            start_tls=not self.use_ssl,
            timeout=self.timeout,
        )
        await smtp.connect()
        try:
            if self.password:
                await smtp.login(self.sender, self.password)
            await smtp.send_message(message)
        finally:
            await smtp.quit()
        logger.info(f"✅ Email '{subject}' sent to {to}")
