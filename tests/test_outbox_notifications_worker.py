from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4

import pytest

from app.core.enums import NotificationStatusEnum, OutboxStatusEnum
from app.modules.notifications.outbox_worker import NotificationsOutboxWorker


@dataclass
class FakeOutboxEvent:
    id: UUID
    event_type: str
    payload: dict
    status: OutboxStatusEnum = OutboxStatusEnum.PENDING
    retries: int = 0
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    processed_at: datetime | None = None
    error_message: str | None = None


@dataclass
class FakeNotification:
    id: UUID
    user_id: UUID
    channel: str
    title: str
    body: str
    status: NotificationStatusEnum = NotificationStatusEnum.PENDING
    sent_at: datetime | None = None


class FakeAuditRepository:
    def __init__(self, events: list[FakeOutboxEvent]) -> None:
        self.events = events

    async def list_pending_outbox(self, limit: int) -> list[FakeOutboxEvent]:
        return [event for event in self.events if event.status == OutboxStatusEnum.PENDING][:limit]

    async def list_failed_outbox(self, limit: int, max_retries: int) -> list[FakeOutboxEvent]:
        return [
            event
            for event in self.events
            if event.status == OutboxStatusEnum.FAILED and event.retries < max_retries
        ][:limit]

    async def mark_outbox_pending(self, event: FakeOutboxEvent) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PENDING
        event.error_message = None
        event.updated_at = datetime.now(UTC)
        return event

    async def mark_outbox_processed(
        self,
        event: FakeOutboxEvent,
        processed_at: datetime,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.PROCESSED
        event.processed_at = processed_at
        event.error_message = None
        event.updated_at = processed_at
        return event

    async def mark_outbox_failed(
        self,
        event: FakeOutboxEvent,
        error_message: str,
    ) -> FakeOutboxEvent:
        event.status = OutboxStatusEnum.FAILED
        event.retries += 1
        event.error_message = error_message
        event.updated_at = datetime.now(UTC)
        return event


class FakeNotificationsRepository:
    def __init__(self) -> None:
        self.notifications: list[FakeNotification] = []

    async def create_notification(
        self,
        user_id: UUID,
        channel: str,
        title: str,
        body: str,
    ) -> FakeNotification:
        notification = FakeNotification(
            id=uuid4(),
            user_id=user_id,
            channel=channel,
            title=title,
            body=body,
        )
        self.notifications.append(notification)
        return notification

    async def set_status(
        self,
        notification: FakeNotification,
        status: NotificationStatusEnum,
        sent_at: datetime | None,
    ) -> FakeNotification:
        notification.status = status
        notification.sent_at = sent_at
        return notification


def make_worker(
    events: list[FakeOutboxEvent],
    *,
    now: datetime | None = None,
    base_backoff_seconds: int = 30,
) -> tuple[NotificationsOutboxWorker, FakeAuditRepository, FakeNotificationsRepository]:
    now_point = now or datetime.now(UTC)
    audit_repo = FakeAuditRepository(events)
    notifications_repo = FakeNotificationsRepository()
    worker = NotificationsOutboxWorker(
        audit_repository=audit_repo,  # type: ignore[arg-type]
        notifications_repository=notifications_repo,  # type: ignore[arg-type]
        now_provider=lambda: now_point,
        base_backoff_seconds=base_backoff_seconds,
    )
    return worker, audit_repo, notifications_repo


def booking_event(event_type: str, **payload) -> FakeOutboxEvent:
    return FakeOutboxEvent(
        id=uuid4(),
        event_type=event_type,
        payload={"booking_id": str(uuid4()), "status": "confirmed", **payload},
    )


@pytest.mark.asyncio
async def test_worker_processes_booking_confirmed_into_customer_notification() -> None:
    customer_id = uuid4()
    event = booking_event("booking.confirmed", customer_id=str(customer_id), therapist_id=str(uuid4()))
    worker, _, notifications_repo = make_worker([event], now=datetime(2026, 2, 23, 12, 0, tzinfo=UTC))

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 1}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert [item.user_id for item in notifications_repo.notifications] == [customer_id]
    assert notifications_repo.notifications[0].status == NotificationStatusEnum.SENT


@pytest.mark.asyncio
async def test_therapist_response_notifies_business_owner_only() -> None:
    customer_id = uuid4()
    owner_id = uuid4()
    event = booking_event(
        "booking.therapist_responded",
        customer_id=str(customer_id),
        therapist_id=str(uuid4()),
        business_owner_id=str(owner_id),
    )
    worker, _, notifications_repo = make_worker([event])

    await worker.run_once()

    recipients = [item.user_id for item in notifications_repo.notifications]
    assert recipients == [owner_id]
    assert customer_id not in recipients


@pytest.mark.asyncio
async def test_cancellation_notifies_customer_and_therapist() -> None:
    customer_id = uuid4()
    therapist_id = uuid4()
    event = booking_event("booking.cancelled", customer_id=str(customer_id), therapist_id=str(therapist_id))
    worker, _, notifications_repo = make_worker([event])

    stats = await worker.run_once()

    assert stats["dispatched"] == 2
    assert {item.user_id for item in notifications_repo.notifications} == {customer_id, therapist_id}


@pytest.mark.asyncio
async def test_unassigned_therapist_is_skipped() -> None:
    customer_id = uuid4()
    event = booking_event("booking.created", customer_id=str(customer_id), therapist_id=None)
    worker, _, notifications_repo = make_worker([event])

    stats = await worker.run_once()

    assert stats["dispatched"] == 1
    assert notifications_repo.notifications[0].user_id == customer_id


@pytest.mark.asyncio
async def test_worker_processes_unknown_event_without_dispatch() -> None:
    event = FakeOutboxEvent(id=uuid4(), event_type="unknown.event", payload={})
    worker, _, notifications_repo = make_worker([event])

    stats = await worker.run_once()

    assert stats == {"requeued": 0, "processed": 1, "failed": 0, "dispatched": 0}
    assert event.status == OutboxStatusEnum.PROCESSED
    assert notifications_repo.notifications == []


@pytest.mark.asyncio
async def test_event_without_recipients_is_marked_failed() -> None:
    event = FakeOutboxEvent(id=uuid4(), event_type="payout.released", payload={"booking_id": "b-1"})
    worker, _, notifications_repo = make_worker([event])

    stats = await worker.run_once()

    assert stats["failed"] == 1
    assert event.status == OutboxStatusEnum.FAILED
    assert event.retries == 1
    assert notifications_repo.notifications == []


@pytest.mark.asyncio
async def test_failed_event_is_requeued_after_backoff() -> None:
    now = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    customer_id = uuid4()
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="payment.verified",
        payload={"payment_id": str(uuid4()), "customer_id": str(customer_id)},
        status=OutboxStatusEnum.FAILED,
        retries=1,
        updated_at=now - timedelta(seconds=31),
    )
    worker, _, notifications_repo = make_worker([event], now=now, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats["requeued"] == 1
    assert stats["processed"] == 1
    assert notifications_repo.notifications[0].user_id == customer_id


@pytest.mark.asyncio
async def test_failed_event_waits_for_backoff() -> None:
    now = datetime(2026, 2, 23, 12, 0, tzinfo=UTC)
    event = FakeOutboxEvent(
        id=uuid4(),
        event_type="payment.verified",
        payload={"customer_id": str(uuid4())},
        status=OutboxStatusEnum.FAILED,
        retries=2,
        updated_at=now - timedelta(seconds=45),
    )
    worker, _, _ = make_worker([event], now=now, base_backoff_seconds=30)

    stats = await worker.run_once()

    assert stats["requeued"] == 0
    assert event.status == OutboxStatusEnum.FAILED
