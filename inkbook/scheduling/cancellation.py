"""
Cancellation policy: a hard lead-time cutoff and a refund window.

    ... ----[ refundable ]----|----[ non-refundable ]----|--[ refused ]--| start
                        start - 7d                  start - 48h

Cancelling at or after ``start - 48h`` is refused. Earlier cancellations
succeed; the deposit is refundable only at or before ``start - 7d``.
Both windows come from ``PolicyConfig``.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from inkbook.config import AppConfig, PolicyConfig, settings
from inkbook.schemas.appointment_schema import (
    ACTIVE_STATUSES,
    AppointmentStatus,
    CancellationDecision,
    CancellationOutcome,
)
from inkbook.stores.appointment_store import AppointmentStore
from inkbook.utils import call_store, ensure_utc

logger = logging.getLogger(__name__)


def decide_cancellation(
    scheduled_start: datetime,
    now: datetime,
    policy: Optional[PolicyConfig] = None,
) -> CancellationDecision:
    """Apply the lead-time and refund rules. Pure; touches no store."""
    policy = policy or settings.policy
    scheduled_start = ensure_utc(scheduled_start)
    now = ensure_utc(now)

    cutoff = scheduled_start - timedelta(hours=policy.cancellation_lead_hours)
    if now >= cutoff:
        return CancellationDecision(
            success=False,
            message=(
                "Appointments must be cancelled at least "
                f"{policy.cancellation_lead_hours} hours in advance. "
                "Please contact the studio directly."
            ),
            is_refundable=False,
            outcome=CancellationOutcome.TOO_LATE,
        )

    refund_deadline = scheduled_start - timedelta(days=policy.refund_window_days)
    if now <= refund_deadline:
        return CancellationDecision(
            success=True,
            message="Appointment cancelled. Your deposit will be refunded.",
            is_refundable=True,
            outcome=CancellationOutcome.CANCELLED,
        )
    return CancellationDecision(
        success=True,
        message=(
            "Appointment cancelled. Deposits are only refundable for cancellations "
            f"made at least {policy.refund_window_days} days in advance."
        ),
        is_refundable=False,
        outcome=CancellationOutcome.CANCELLED,
    )


def not_found_decision(appointment_id: str) -> CancellationDecision:
    return CancellationDecision(
        success=False,
        message=f"Appointment {appointment_id} not found.",
        is_refundable=False,
        outcome=CancellationOutcome.NOT_FOUND,
    )


class CancellationPolicyEnforcer:
    """Looks up an appointment, applies the policy and records the cancellation."""

    def __init__(self, store: AppointmentStore, config: Optional[AppConfig] = None) -> None:
        self._store = store
        self._config = config or settings

    async def enforce_cancellation_policy(
        self,
        appointment_id: str,
        scheduled_start: datetime,
        reason: str,
        now: Optional[datetime] = None,
    ) -> CancellationDecision:
        now = now or datetime.now(timezone.utc)
        timeout = self._config.store.store_timeout_sec

        appointment = await call_store(
            self._store.find_by_id(appointment_id), timeout, "cancellation lookup"
        )
        if appointment is None:
            logger.info("Cancellation requested for unknown appointment %s", appointment_id)
            return not_found_decision(appointment_id)
        if appointment.status not in ACTIVE_STATUSES:
            return CancellationDecision(
                success=False,
                message=f"Appointment {appointment_id} is already {appointment.status.value}.",
                is_refundable=False,
                outcome=CancellationOutcome.NOT_CANCELLABLE,
            )

        decision = decide_cancellation(scheduled_start, now, self._config.policy)
        if not decision.success:
            logger.info(
                "Cancellation of %s refused: inside the %dh window",
                appointment_id, self._config.policy.cancellation_lead_hours,
            )
            return decision

        await call_store(
            self._store.update_status(appointment_id, AppointmentStatus.CANCELLED),
            timeout,
            "cancellation",
        )
        logger.info(
            "Appointment %s cancelled (refundable=%s, reason=%r)",
            appointment_id, decision.is_refundable, reason,
        )
        return decision
