"""
Webhook Transport - POST the report to an HTTP endpoint with httpx.
"""
import httpx

from repl_auditor.config import settings
from repl_auditor.logger import logger
from repl_auditor.services.errors import TransportError
from repl_auditor.services.report_builder import RenderedReport


class WebhookTransport:
    """Posts the report JSON, with rendered bodies, to a collector URL."""

    def __init__(self, timeout: float = None, client: httpx.AsyncClient = None):
        self.timeout = timeout or settings.TRANSPORT_TIMEOUT
        self._client = client

    async def send(self, rendered: RenderedReport, destination: str, source: str, endpoint: str) -> None:
        if not endpoint:
            raise TransportError("Webhook endpoint is required")

        body = {
            "to": destination,
            "from": source,
            "subject": rendered.subject,
            "text": rendered.text,
            "html": rendered.html,
            "report": rendered.payload,
        }

        try:
            if self._client is not None:
                response = await self._client.post(endpoint, json=body, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(endpoint, json=body)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"Webhook delivery to {endpoint} failed: {e}") from e

        logger.info(f"Report posted to {endpoint} ({response.status_code})")

