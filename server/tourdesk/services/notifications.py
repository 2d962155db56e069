"""Booking events and the best-effort cancellation notifier."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

import httpx

from ..core.config import Settings
from ..core.observability import get_logger, metrics_collector
from ..models.booking import BookingStatus
from ..schemas.common import NotificationWarning

logger = get_logger(__name__)


@dataclass(frozen=True)
class BookingCancelled:
    """Published after a booking's transition into cancelled has committed."""

    booking_id: UUID
    previous_status: BookingStatus
    occurred_at: datetime


@dataclass(frozen=True)
class NotificationResult:
    ok: bool
    error: Optional[str] = None


class CancellationNotifier(ABC):
    """Consumer of cancellation events. Implementations must not raise for delivery failures."""

    @abstractmethod
    async def notify_cancellation(self, booking_id: UUID) -> NotificationResult:
        """Deliver one cancellation notice."""


class HttpCancellationNotifier(CancellationNotifier):
    """
    Posts ``{"bookingId": ...}`` to a notification endpoint.

    The endpoint is authenticated with a bearer credential. Delivery is
    attempted once; timeouts, connection errors and non-2xx responses are
    reported through the returned result.
    """

    def __init__(
        self,
        url: str,
        api_key: str,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def notify_cancellation(self, booking_id: UUID) -> NotificationResult:
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                response = await client.post(self.url, json={"bookingId": str(booking_id)}, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            return NotificationResult(
                ok=False,
                error=f"Notification endpoint returned HTTP {e.response.status_code}",
            )
        except httpx.HTTPError as e:
            return NotificationResult(ok=False, error=str(e) or e.__class__.__name__)

        return NotificationResult(ok=True)


class BookingEventDispatcher:
    """Hands booking events to the configured notifier and converts failures into warnings."""

    def __init__(self, notifier: Optional[CancellationNotifier] = None):
        self.notifier = notifier

    async def publish_cancelled(self, event: BookingCancelled) -> Optional[NotificationWarning]:
        """
        Notify about a committed cancellation.

        Returns:
            A warning when delivery failed, otherwise None
        """
        log = logger.bind(booking_id=str(event.booking_id), previous_status=event.previous_status.value)

        if self.notifier is None:
            log.info("cancellation notifier not configured")
            return None

        try:
            result = await self.notifier.notify_cancellation(event.booking_id)
        except Exception as e:
            # The transition already committed; any notifier fault is reported, never raised
            result = NotificationResult(ok=False, error=str(e) or e.__class__.__name__)

        if result.ok:
            metrics_collector.record_notification("sent")
            log.info("cancellation notification sent")
            return None

        metrics_collector.record_notification("failed")
        log.warning("cancellation notification failed", error=result.error)
        return NotificationWarning(
            booking_id=event.booking_id,
            message=result.error or "Notification failed",
        )


def build_notifier(config: Settings) -> Optional[CancellationNotifier]:
    """Return the HTTP notifier when an endpoint is configured."""
    if not config.notification_url:
        return None
    return HttpCancellationNotifier(
        url=config.notification_url,
        api_key=config.notification_api_key,
        timeout_seconds=config.notification_timeout_seconds,
    )
