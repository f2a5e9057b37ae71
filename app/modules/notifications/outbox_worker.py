"""Outbox consumer that turns booking and payment events into user notifications."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from uuid import UUID

from app.core.enums import NotificationStatusEnum
from app.modules.audit.models import OutboxEvent
from app.modules.audit.repository import AuditRepository
from app.modules.notifications.repository import NotificationsRepository
from app.shared.utils import utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NotificationMessage:
    user_id: UUID
    title: str
    body: str
    channel: str = "email"


@dataclass(frozen=True, slots=True)
class EventRoute:
    """Which payload keys receive an event, and what they are told."""

    recipients: tuple[str, ...]
    title: str
    body: str


# Therapist responses go to the business owner only; the customer hears about
# them through `booking.response_released`.
EVENT_ROUTES: dict[str, EventRoute] = {
    "booking.created": EventRoute(("customer_id", "therapist_id"), "Booking requested", "Booking {booking_id} was requested."),
    "booking.confirmed": EventRoute(("customer_id",), "Booking confirmed", "Your booking {booking_id} is confirmed."),
    "booking.cancelled": EventRoute(
        ("customer_id", "therapist_id"),
        "Booking cancelled",
        "Booking {booking_id} was cancelled.",
    ),
    "booking.therapist_responded": EventRoute(
        ("business_owner_id",),
        "Therapist responded",
        "Therapist response on booking {booking_id} is waiting for your review.",
    ),
    "booking.response_released": EventRoute(
        ("customer_id",),
        "Booking updated",
        "Your booking {booking_id} is now {status}.",
    ),
    "booking.assigned": EventRoute(("therapist_id",), "New assignment", "You were assigned booking {booking_id}."),
    "booking.completed": EventRoute(
        ("customer_id", "therapist_id"),
        "Session completed",
        "Booking {booking_id} was completed.",
    ),
    "booking.expired": EventRoute(
        ("customer_id",),
        "Booking expired",
        "Booking {booking_id} was cancelled because its time has passed.",
    ),
    "booking.rescheduled": EventRoute(
        ("customer_id", "therapist_id"),
        "Booking rescheduled",
        "Booking {booking_id} moved and awaits approval.",
    ),
    "booking.no_show": EventRoute(("customer_id",), "Missed appointment", "Booking {booking_id} was marked as no-show."),
    "payment.recorded": EventRoute(("customer_id",), "Payment recorded", "Payment {payment_id} was recorded."),
    "payment.verified": EventRoute(("customer_id",), "Payment received", "Payment {payment_id} was received."),
    "payment.failed": EventRoute(("customer_id",), "Payment failed", "Payment {payment_id} could not be verified."),
    "payment.status_updated": EventRoute(
        ("customer_id",),
        "Payment updated",
        "Payment {payment_id} is now {status}.",
    ),
    "payout.released": EventRoute(("therapist_id",), "Payout released", "Payout of {amount} for booking {booking_id} was sent."),
}


class NotificationsOutboxWorker:
    """Process outbox events and create user notifications."""

    def __init__(
        self,
        audit_repository: AuditRepository,
        notifications_repository: NotificationsRepository,
        *,
        batch_size: int = 100,
        max_retries: int = 5,
        base_backoff_seconds: int = 30,
        max_backoff_seconds: int = 300,
        now_provider=utc_now,
    ) -> None:
        self.audit_repository = audit_repository
        self.notifications_repository = notifications_repository
        self.batch_size = batch_size
        self.max_retries = max_retries
        self.base_backoff_seconds = base_backoff_seconds
        self.max_backoff_seconds = max_backoff_seconds
        self.now_provider = now_provider

    async def run_once(self) -> dict[str, int]:
        """Run one processing cycle."""
        stats = {"requeued": 0, "processed": 0, "failed": 0, "dispatched": 0}
        stats["requeued"] = await self._requeue_retryable_failed_events()

        events = await self.audit_repository.list_pending_outbox(limit=self.batch_size)
        for event in events:
            try:
                for message in self.build_messages(event):
                    notification = await self.notifications_repository.create_notification(
                        user_id=message.user_id,
                        channel=message.channel,
                        title=message.title,
                        body=message.body,
                    )
                    await self.notifications_repository.set_status(
                        notification,
                        NotificationStatusEnum.SENT,
                        self.now_provider(),
                    )
                    stats["dispatched"] += 1
                await self.audit_repository.mark_outbox_processed(event, self.now_provider())
                stats["processed"] += 1
            except (KeyError, ValueError) as exc:
                logger.warning("Outbox event %s (%s) failed: %s", event.id, event.event_type, exc)
                await self.audit_repository.mark_outbox_failed(event, str(exc))
                stats["failed"] += 1
        return stats

    async def _requeue_retryable_failed_events(self) -> int:
        now = self.now_provider()
        failed_events = await self.audit_repository.list_failed_outbox(
            limit=self.batch_size,
            max_retries=self.max_retries,
        )
        requeued = 0
        for event in failed_events:
            if self._is_backoff_elapsed(event, now):
                await self.audit_repository.mark_outbox_pending(event)
                requeued += 1
        return requeued

    def _is_backoff_elapsed(self, event: OutboxEvent, now: datetime) -> bool:
        retries = max(event.retries, 1)
        backoff_seconds = min(
            self.max_backoff_seconds,
            self.base_backoff_seconds * (2 ** (retries - 1)),
        )
        last_attempt_at = event.updated_at or event.occurred_at
        return now >= last_attempt_at + timedelta(seconds=backoff_seconds)

    @staticmethod
    def build_messages(event: OutboxEvent) -> list[NotificationMessage]:
        """Expand one event into per-recipient messages; unknown events yield none."""
        route = EVENT_ROUTES.get(event.event_type)
        if route is None:
            return []

        payload = event.payload or {}
        body = route.body.format_map(_PayloadView(payload))
        recipients: list[UUID] = []
        for key in route.recipients:
            value = payload.get(key)
            if value is None:
                continue
            user_id = UUID(str(value))
            if user_id not in recipients:
                recipients.append(user_id)

        if not recipients:
            raise ValueError(f"No recipients in payload for {event.event_type}")
        return [NotificationMessage(user_id=user_id, title=route.title, body=body) for user_id in recipients]


class _PayloadView(dict):
    def __missing__(self, key: str) -> str:
        return "unknown"
