"""
SMTP Transport - Deliver the rendered report as a multipart e-mail.
"""
import asyncio
import smtplib
from email.message import EmailMessage

from repl_auditor.config import settings
from repl_auditor.logger import logger
from repl_auditor.services.errors import TransportError
from repl_auditor.services.report_builder import RenderedReport


class SmtpTransport:
    """Sends reports through a relay; plain text with an HTML alternative."""

    def __init__(self, port: int = None, timeout: float = None):
        self.port = port or settings.SMTP_PORT
        self.timeout = timeout or settings.TRANSPORT_TIMEOUT

    async def send(self, rendered: RenderedReport, destination: str, source: str, endpoint: str) -> None:
        if not (destination and source and endpoint):
            raise TransportError("Report destination, source and SMTP server are all required")

        message = EmailMessage()
        message["Subject"] = rendered.subject
        message["From"] = source
        message["To"] = destination
        message.set_content(rendered.text)
        message.add_alternative(rendered.html, subtype="html")

        await asyncio.to_thread(self._deliver, message, endpoint)
        logger.info(f"Report mailed to {destination} via {endpoint}")

    def _deliver(self, message: EmailMessage, endpoint: str) -> None:
        try:
            with smtplib.SMTP(endpoint, self.port, timeout=self.timeout) as smtp:
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise TransportError(f"SMTP delivery via {endpoint} failed: {e}") from e
