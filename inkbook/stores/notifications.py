"""
Notification dispatch boundary.

In production this enqueues the confirmation, cancellation and reminder
emails; delivery itself is out of scope. The logging dispatcher
records what would have been sent so the demo and tests can inspect it.
"""

import logging
from typing import Protocol

from inkbook.schemas.appointment_schema import Appointment, CancellationDecision

logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    async def notify_booking_created(self, appointment: Appointment) -> None: ...

    async def notify_booking_cancelled(
        self, appointment: Appointment, decision: CancellationDecision
    ) -> None: ...

    async def notify_deposit_reminder(self, appointment: Appointment) -> None: ...

    async def notify_appointment_reminder(self, appointment: Appointment) -> None: ...


class LoggingNotificationDispatcher:
    """Logs each notification and keeps an ordered record of them."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []

    async def notify_booking_created(self, appointment: Appointment) -> None:
        self.sent.append(("booking_created", appointment.id))
        logger.info(
            "Booking confirmation queued for customer %s (%s at %s)",
            appointment.customer_id, appointment.id, appointment.start.isoformat(),
        )

    async def notify_booking_cancelled(
        self, appointment: Appointment, decision: CancellationDecision
    ) -> None:
        self.sent.append(("booking_cancelled", appointment.id))
        logger.info(
            "Cancellation notice queued for customer %s (%s, refundable=%s)",
            appointment.customer_id, appointment.id, decision.is_refundable,
        )

    async def notify_deposit_reminder(self, appointment: Appointment) -> None:
        self.sent.append(("deposit_reminder", appointment.id))
        logger.info(
            "Deposit reminder queued for customer %s (%s, deposit %s)",
            appointment.customer_id, appointment.id, appointment.deposit_amount,
        )

    async def notify_appointment_reminder(self, appointment: Appointment) -> None:
        self.sent.append(("appointment_reminder", appointment.id))
        logger.info(
            "Appointment reminder queued for customer %s (%s at %s)",
            appointment.customer_id, appointment.id, appointment.start.isoformat(),
        )

    def reset(self) -> None:
        self.sent.clear()
