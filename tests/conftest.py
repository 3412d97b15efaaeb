"""Shared test fixtures and helpers."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Optional

import pytest

from inkbook.scheduling.booking_flow import BookingFlow
from inkbook.scheduling.orchestrator import BookingOrchestrator
from inkbook.schemas.appointment_schema import Appointment, AppointmentStatus
from inkbook.stores.appointment_store import InMemoryAppointmentStore
from inkbook.stores.artist_rates import InMemoryArtistRateStore
from inkbook.stores.notifications import LoggingNotificationDispatcher

DAY = datetime(2025, 3, 18, tzinfo=timezone.utc)


def at(hour: int, minute: int = 0, day: datetime = DAY) -> datetime:
    """Timestamp on the reference day."""
    return day.replace(hour=hour, minute=minute)


def make_appointment(
    appointment_id: str = "APT-1",
    artist_id: str = "A",
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    deposit_amount: Optional[Decimal] = Decimal("311"),
    deposit_paid: bool = False,
    customer_id: str = "cust-1",
) -> Appointment:
    """Helper to create an Appointment with sensible defaults."""
    start = start or at(10)
    return Appointment(
        id=appointment_id,
        artist_id=artist_id,
        customer_id=customer_id,
        start=start,
        end=end if end is not None else start + timedelta(hours=2),
        status=status,
        deposit_amount=deposit_amount,
        deposit_paid=deposit_paid,
        title="Test session",
    )


def booking_payload(**overrides) -> dict:
    """Booking form payload using the camelCase contract names."""
    payload = {
        "artistId": "A",
        "customerId": "cust-1",
        "startDate": "2025-03-18T14:00:00Z",
        "size": "medium",
        "placement": "arm",
        "complexity": 3,
    }
    payload.update(overrides)
    return payload


class FailingNotifier(LoggingNotificationDispatcher):
    """Dispatcher whose every send fails."""

    async def notify_booking_created(self, appointment):
        raise RuntimeError("mail queue down")

    async def notify_booking_cancelled(self, appointment, decision):
        raise RuntimeError("mail queue down")

    async def notify_deposit_reminder(self, appointment):
        raise RuntimeError("mail queue down")

    async def notify_appointment_reminder(self, appointment):
        raise RuntimeError("mail queue down")


@pytest.fixture
def store():
    return InMemoryAppointmentStore()


@pytest.fixture
def rate_store():
    return InMemoryArtistRateStore({"artist-custom": 200})


@pytest.fixture
def notifier():
    return LoggingNotificationDispatcher()


@pytest.fixture
def orchestrator(store, rate_store, notifier):
    return BookingOrchestrator(store, rate_store, notifier)


@pytest.fixture
def booking_flow():
    return BookingFlow()
