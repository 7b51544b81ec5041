"""Best-effort analytics events.

Events are posted to a JSON collector (for example a Google Apps Script web app
writing to a sheet). Sending is detached from the caller: ``emit`` schedules the
request and returns immediately, transport errors go to the error sink and are
never retried or surfaced.

Analytics is enabled only when both an endpoint and a token are configured.
Without them ``emit`` is a no-op.
"""

import time
import asyncio
import logging
from typing import Callable, Optional, Set

import requests

from review_pulse.models import ActionCode, AnalyticsContext, AnalyticsEvent

logger = logging.getLogger(__name__)


def log_transport_error(event: AnalyticsEvent, error: BaseException) -> None:
    """Default error sink."""
    logger.warning("Analytics delivery failed for %s: %s", event.event_type, error)


class AnalyticsEmitter:
    """Fire-and-forget sender of analysis outcome events."""

    def __init__(
        self,
        endpoint: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        error_sink: Callable[[AnalyticsEvent, BaseException], None] = log_transport_error,
        session: Optional[requests.Session] = None,
    ):
        self.endpoint = endpoint
        self.token = token
        self.timeout = timeout
        self.error_sink = error_sink
        self.http = session or requests.Session()
        self._pending: Set[asyncio.Task] = set()

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint) and bool(self.token)

    def build_event(
        self,
        review_text: str,
        sentiment_label: str,
        confidence: float,
        action_code: Optional[ActionCode],
        context: AnalyticsContext,
    ) -> AnalyticsEvent:
        metadata = dict(context.extra)
        if context.page_url:
            metadata["url"] = context.page_url
        return AnalyticsEvent(
            event_type=context.event_type,
            variant=context.variant,
            user_id=context.user_id or f"user-{int(time.time() * 1000)}",
            metadata=metadata,
            review_text=review_text,
            sentiment_label=sentiment_label,
            sentiment_confidence=confidence,
            action_code=action_code,
        )

    def emit(
        self,
        review_text: str,
        sentiment_label: str,
        confidence: float,
        action_code: Optional[ActionCode],
        context: AnalyticsContext,
    ) -> None:
        """Schedule one event for delivery. Never raises."""
        if not self.enabled:
            logger.debug("Analytics disabled (no endpoint or token), skipping event")
            return

        try:
            event = self.build_event(review_text, sentiment_label, confidence, action_code, context)
            task = asyncio.get_running_loop().create_task(self._send(event))
        except Exception:
            logger.exception("Could not schedule analytics event")
            return

        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _send(self, event: AnalyticsEvent) -> None:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
        }
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None,
                lambda: self.http.post(
                    self.endpoint,
                    json=event.to_payload(),
                    headers=headers,
                    timeout=self.timeout,
                )
            )
            logger.debug("Analytics event sent to %s", self.endpoint)
        except Exception as e:
            self.error_sink(event, e)

    @property
    def pending(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight deliveries to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
