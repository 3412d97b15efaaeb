"""
Booking orchestrator: validates, checks availability, prices, persists
and notifies.

Each public method handles one request and gets its own request id for
log correlation. Typed errors are raised before anything is persisted;
once an appointment is stored the booking succeeds even if the
confirmation cannot be sent.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from inkbook.config import AppConfig, settings
from inkbook.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    TransientError,
    ValidationError,
)
from inkbook.logging_context import get_request_logger, set_request_id
from inkbook.scheduling.availability import AvailabilityChecker
from inkbook.scheduling.booking_flow import BookingFlow, BookingTrigger
from inkbook.scheduling.cancellation import CancellationPolicyEnforcer, not_found_decision
from inkbook.scheduling.duration import estimate_end, resolve_size, validate_complexity
from inkbook.scheduling.pricing import PricingEngine
from inkbook.schemas.appointment_schema import (
    Appointment,
    AppointmentStatus,
    BookingRequest,
    CancellationDecision,
    CancellationOutcome,
)
from inkbook.schemas.pricing_schema import PricingQuote
from inkbook.stores.appointment_store import AppointmentStore, new_appointment_id
from inkbook.stores.artist_rates import ArtistRateStore
from inkbook.stores.notifications import NotificationDispatcher
from inkbook.utils import call_store, ensure_utc, parse_timestamp

logger = get_request_logger(__name__)


def parse_booking_request(payload: Union[BookingRequest, Mapping[str, Any]]) -> BookingRequest:
    """Validate a raw booking payload, reporting every bad field at once."""
    if isinstance(payload, BookingRequest):
        return payload
    try:
        return BookingRequest.model_validate(payload)
    except PydanticValidationError as exc:
        fields = [".".join(str(part) for part in err["loc"]) or "request" for err in exc.errors()]
        raise ValidationError(
            f"Invalid booking request: {', '.join(fields)}", fields
        ) from None


class BookingOrchestrator:
    """Coordinates the scheduling components for the booking operations."""

    def __init__(
        self,
        store: AppointmentStore,
        rate_store: ArtistRateStore,
        notifier: NotificationDispatcher,
        config: Optional[AppConfig] = None,
    ) -> None:
        self._config = config or settings
        self._store = store
        self._notifier = notifier
        self.availability = AvailabilityChecker(store, self._config)
        self.pricing = PricingEngine(rate_store, self._config)
        self.cancellation = CancellationPolicyEnforcer(store, self._config)

    @property
    def _timeout(self) -> float:
        return self._config.store.store_timeout_sec

    # ------------------------------------------------------------------ #
    # Scheduling
    # ------------------------------------------------------------------ #

    async def schedule_appointment(
        self,
        request: Union[BookingRequest, Mapping[str, Any]],
        quote: Optional[PricingQuote] = None,
    ) -> Appointment:
        """
        Book a new appointment in ``pending`` status.

        Args:
            request: Booking request model or raw payload.
            quote: Pre-computed pricing; computed from the request if omitted.

        Returns:
            The stored appointment.

        Raises:
            ValidationError: Malformed request, unknown size or complexity.
            ConflictError: The artist is already booked in that window.
            TransientError: The appointment store timed out.
        """
        set_request_id()
        flow = BookingFlow()
        try:
            appointment = await self._run_booking(flow, request, quote)
        finally:
            logger.debug("Booking flow trace: %s", " -> ".join(flow.get_state_trace()))

        try:
            await call_store(
                self._notifier.notify_booking_created(appointment),
                self._timeout,
                "booking notification",
            )
            flow.transition(BookingTrigger.NOTIFIED)
        except Exception:
            flow.transition(BookingTrigger.NOTIFY_FAILED)
            logger.warning(
                "Booking %s created but confirmation could not be sent",
                appointment.id, exc_info=True,
            )
        return appointment

    async def _run_booking(
        self,
        flow: BookingFlow,
        payload: Union[BookingRequest, Mapping[str, Any]],
        quote: Optional[PricingQuote],
    ) -> Appointment:
        try:
            request = parse_booking_request(payload)
            validate_complexity(request.complexity)
            resolve_size(request.size, self._config.pricing)
            end = request.end_date or estimate_end(
                request.start_date, request.size, request.complexity, self._config.pricing
            )
        except ValidationError:
            flow.transition(BookingTrigger.INPUT_INVALID)
            raise
        flow.transition(BookingTrigger.INPUT_VALID)

        try:
            result = await self.availability.check_availability(
                request.artist_id, request.start_date, end
            )
        except TransientError:
            flow.transition(BookingTrigger.STORE_FAILED)
            raise
        if not result.is_available:
            flow.transition(BookingTrigger.SLOT_TAKEN)
            raise ConflictError(
                f"Artist {request.artist_id} is already booked between "
                f"{request.start_date.isoformat()} and {end.isoformat()}.",
                result.conflicts,
            )
        flow.transition(BookingTrigger.SLOT_FREE)

        if quote is None:
            try:
                quote = await self.pricing.calculate_pricing(
                    request.size,
                    request.placement,
                    request.complexity,
                    artist_id=request.artist_id,
                    custom_hourly_rate=request.custom_hourly_rate,
                )
            except TransientError:
                flow.transition(BookingTrigger.STORE_FAILED)
                raise
            except InvalidInputError:
                flow.transition(BookingTrigger.PRICING_FAILED)
                raise
        flow.transition(BookingTrigger.PRICED)

        appointment = Appointment(
            id=new_appointment_id(),
            artist_id=request.artist_id,
            customer_id=request.customer_id,
            start=request.start_date,
            end=end,
            status=AppointmentStatus.PENDING,
            deposit_amount=Decimal(quote.deposit_amount),
            total_price=quote.total_price,
            title=request.title or f"{request.size.title()} {request.placement} tattoo",
            description=request.description or "",
        )
        try:
            stored = await call_store(self._store.insert(appointment), self._timeout, "insert")
        except ConflictError:
            # Lost a race with a concurrent booking for the same slot
            flow.transition(BookingTrigger.SLOT_TAKEN)
            raise
        except TransientError:
            flow.transition(BookingTrigger.STORE_FAILED)
            raise
        flow.transition(BookingTrigger.STORED)

        logger.info(
            "Appointment %s scheduled for artist %s at %s (total=%d, deposit=%d)",
            stored.id, stored.artist_id, stored.start.isoformat(),
            quote.total_price, quote.deposit_amount,
        )
        return stored

    async def reschedule_appointment(
        self,
        appointment_id: str,
        new_start: Union[datetime, str],
        new_end: Union[datetime, str, None] = None,
    ) -> Appointment:
        """Move an active appointment, keeping its length when no end is given."""
        set_request_id()
        current = await self._get_appointment(appointment_id)
        if not current.is_active:
            raise ValidationError(
                f"Appointment {appointment_id} is {current.status.value} and cannot be moved.",
                ["status"],
            )

        start = parse_timestamp(new_start, "startDate")
        if new_end is not None:
            end = parse_timestamp(new_end, "endDate")
        elif current.end is not None:
            end = start + (current.end - current.start)
        else:
            end = None

        result = await self.availability.check_availability(
            current.artist_id, start, end, exclude_appointment_id=appointment_id
        )
        if not result.is_available:
            raise ConflictError(
                f"Artist {current.artist_id} is already booked at the new time.",
                result.conflicts,
            )
        moved = await call_store(
            self._store.update_times(appointment_id, start, end), self._timeout, "reschedule"
        )
        logger.info("Appointment %s rescheduled to %s", appointment_id, start.isoformat())
        return moved

    # ------------------------------------------------------------------ #
    # Cancellation and deposits
    # ------------------------------------------------------------------ #

    async def cancel_appointment(
        self, appointment_id: str, reason: str, now: Optional[datetime] = None
    ) -> CancellationDecision:
        """Cancel under the lead-time policy and notify the customer on success."""
        set_request_id()
        appointment = await call_store(
            self._store.find_by_id(appointment_id), self._timeout, "cancellation lookup"
        )
        if appointment is None:
            return not_found_decision(appointment_id)

        decision = await self.cancellation.enforce_cancellation_policy(
            appointment_id, appointment.start, reason, now
        )
        if decision.success:
            cancelled = appointment.model_copy(update={"status": AppointmentStatus.CANCELLED})
            await self._notify_quietly(
                self._notifier.notify_booking_cancelled(cancelled, decision), appointment_id
            )
        return decision

    async def mark_deposit_paid(self, appointment_id: str) -> Appointment:
        """Record a captured deposit and confirm the pending appointment."""
        set_request_id()
        current = await self._get_appointment(appointment_id)
        if current.status == AppointmentStatus.CANCELLED:
            raise ValidationError(
                f"Appointment {appointment_id} is cancelled; refund the payment instead.",
                ["status"],
            )
        updated = await call_store(
            self._store.update_deposit_paid(appointment_id, True), self._timeout, "deposit update"
        )
        if updated.status == AppointmentStatus.PENDING:
            updated = await call_store(
                self._store.update_status(appointment_id, AppointmentStatus.CONFIRMED),
                self._timeout,
                "confirmation",
            )
        logger.info("Deposit paid for %s; status %s", appointment_id, updated.status.value)
        return updated

    async def send_appointment_reminders(self, now: Optional[datetime] = None) -> int:
        """Remind customers whose active session starts within the reminder lead time."""
        set_request_id()
        now = ensure_utc(now or datetime.now(timezone.utc))
        horizon = now + timedelta(hours=self._config.policy.reminder_lead_hours)
        upcoming = await call_store(
            self._store.find_starting_between(now, horizon), self._timeout, "reminder scan"
        )
        for appointment in upcoming:
            await self._notify_quietly(
                self._notifier.notify_appointment_reminder(appointment), appointment.id
            )
        logger.info("Appointment reminders processed: %d", len(upcoming))
        return len(upcoming)

    async def send_deposit_reminders(self, now: Optional[datetime] = None) -> int:
        """Remind customers with unpaid deposits whose session is inside the refund window."""
        set_request_id()
        now = ensure_utc(now or datetime.now(timezone.utc))
        horizon = now + timedelta(days=self._config.policy.refund_window_days)
        due = await self._unpaid_between(now, horizon)
        for appointment in due:
            await self._notify_quietly(
                self._notifier.notify_deposit_reminder(appointment), appointment.id
            )
        logger.info("Deposit reminders processed: %d", len(due))
        return len(due)

    async def auto_cancel_unpaid_deposits(self, now: Optional[datetime] = None) -> list[Appointment]:
        """Cancel sessions inside the lead-time window whose deposit is still unpaid."""
        set_request_id()
        now = ensure_utc(now or datetime.now(timezone.utc))
        horizon = now + timedelta(hours=self._config.policy.cancellation_lead_hours)
        cancelled = []
        for appointment in await self._unpaid_between(now, horizon):
            updated = await call_store(
                self._store.update_status(appointment.id, AppointmentStatus.CANCELLED),
                self._timeout,
                "auto-cancel",
            )
            decision = CancellationDecision(
                success=True,
                message="Appointment cancelled due to unpaid deposit.",
                is_refundable=False,
                outcome=CancellationOutcome.CANCELLED,
            )
            await self._notify_quietly(
                self._notifier.notify_booking_cancelled(updated, decision), updated.id
            )
            cancelled.append(updated)
        logger.info("Auto-cancelled %d appointment(s) with unpaid deposits", len(cancelled))
        return cancelled

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    async def _get_appointment(self, appointment_id: str) -> Appointment:
        appointment = await call_store(
            self._store.find_by_id(appointment_id), self._timeout, "lookup"
        )
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found.")
        return appointment

    async def _unpaid_between(self, start: datetime, end: datetime) -> list[Appointment]:
        appointments = await call_store(
            self._store.find_starting_between(start, end), self._timeout, "deposit scan"
        )
        return [
            a for a in appointments
            if a.is_active and not a.deposit_paid and (a.deposit_amount or 0) > 0
        ]

    async def _notify_quietly(self, notification, appointment_id: str) -> None:
        try:
            await call_store(notification, self._timeout, "notification")
        except Exception:
            logger.warning(
                "Notification for %s could not be sent", appointment_id, exc_info=True
            )

