"""Assessment event webhook client with exponential backoff retry logic"""

import asyncio
import logging
import httpx
from typing import Dict, Any
from recouply_assessment.config import settings
from recouply_assessment.infrastructure.observability.metrics import webhook_latency_histogram, webhook_failure_counter

logger = logging.getLogger(__name__)


class AssessmentWebhookClient:
    """Client for delivering assessment events (captured leads, shared results) to the notification webhook"""

    def __init__(
        self,
        webhook_url: str | None = None,
        max_retries: int | None = None,
        backoff_base: float | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.webhook_url
        self.max_retries = max_retries if max_retries is not None else settings.webhook_max_retries
        self.backoff_base = backoff_base if backoff_base is not None else settings.webhook_backoff_base
        self.timeout = timeout or settings.http_timeout_seconds
        self.transport = transport

        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")

    async def send_event(self, payload: Dict[str, Any]) -> bool:
        """
        Send an assessment event with retry logic.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^(attempt-1))
        - Retries on HTTP status errors and network failures
        - Tracks latency histogram and failure counter

        Args:
            payload: Event data to deliver

        Returns:
            True once delivered, False when no webhook is configured

        Raises:
            httpx.HTTPStatusError, httpx.RequestError: after the final attempt fails
        """
        if not self.webhook_url:
            logger.info("Assessment webhook not configured, skipping", extra={"event": payload.get("event")})
            return False

        attempt = 0
        async with httpx.AsyncClient(transport=self.transport, timeout=self.timeout) as client:
            while True:
                try:
                    with webhook_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return True

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    webhook_failure_counter.inc()
                    logger.warning(
                        f"Assessment webhook attempt {attempt} failed: {e}",
                        extra={"event": payload.get("event"), "attempt": attempt},
                    )

                    if attempt >= self.max_retries:
                        # Final failure after all retries
                        raise

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
