"""
Appointment persistence boundary.

In production this is the relational appointments table, with an
exclusion constraint on (artist_id, time range) for active statuses. The
in-memory store reproduces that constraint: inserts and moves that would
overlap another active appointment of the same artist are rejected under
a single lock, so concurrent bookings cannot double-book a slot.
"""

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol

from pydantic import ValidationError as PydanticValidationError

from inkbook.errors import ConflictError, NotFoundError, ValidationError
from inkbook.schemas.appointment_schema import ACTIVE_STATUSES, Appointment, AppointmentStatus
from inkbook.utils import intervals_overlap

logger = logging.getLogger(__name__)


def new_appointment_id() -> str:
    return f"APT-{uuid.uuid4().hex[:8].upper()}"


class AppointmentStore(Protocol):
    async def find_overlapping(
        self,
        artist_id: str,
        start: datetime,
        end: Optional[datetime],
        exclude_id: Optional[str] = None,
    ) -> list[Appointment]:
        """Active appointments of the artist overlapping ``[start, end)``."""
        ...

    async def insert(self, appointment: Appointment) -> Appointment: ...

    async def update_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment: ...

    async def update_times(
        self, appointment_id: str, start: datetime, end: Optional[datetime]
    ) -> Appointment: ...

    async def update_deposit_paid(self, appointment_id: str, paid: bool) -> Appointment: ...

    async def find_by_id(self, appointment_id: str) -> Optional[Appointment]: ...

    async def find_starting_between(self, start: datetime, end: datetime) -> list[Appointment]:
        """Active appointments with ``start <= appointment.start <= end``."""
        ...


class InMemoryAppointmentStore:
    """Dict-backed appointment store keyed by appointment id."""

    def __init__(self, appointments: Optional[Iterable[Appointment]] = None) -> None:
        self._appointments: dict[str, Appointment] = {}
        self._lock = asyncio.Lock()
        for appointment in appointments or []:
            self._appointments[appointment.id] = appointment.model_copy()

    def _overlapping(
        self,
        artist_id: str,
        start: datetime,
        end: Optional[datetime],
        exclude_id: Optional[str],
    ) -> list[Appointment]:
        matches = [
            a for a in self._appointments.values()
            if a.artist_id == artist_id
            and a.status in ACTIVE_STATUSES
            and a.id != exclude_id
            and intervals_overlap(start, end, a.start, a.end)
        ]
        return sorted(matches, key=lambda a: (a.start, a.id))

    def _get(self, appointment_id: str) -> Appointment:
        try:
            return self._appointments[appointment_id]
        except KeyError:
            raise NotFoundError(f"Appointment {appointment_id} not found.") from None

    def _save(self, appointment: Appointment, **changes) -> Appointment:
        fields = sorted(changes)
        changes["updated_at"] = datetime.now(timezone.utc)
        # Re-validate so start < end still holds after the change
        try:
            updated = Appointment.model_validate({**appointment.model_dump(), **changes})
        except PydanticValidationError as exc:
            reasons = "; ".join(err["msg"] for err in exc.errors())
            raise ValidationError(
                f"Invalid update for appointment {appointment.id}: {reasons}", fields
            ) from None
        self._appointments[updated.id] = updated
        return updated.model_copy()

    async def find_overlapping(
        self,
        artist_id: str,
        start: datetime,
        end: Optional[datetime],
        exclude_id: Optional[str] = None,
    ) -> list[Appointment]:
        return [a.model_copy() for a in self._overlapping(artist_id, start, end, exclude_id)]

    async def insert(self, appointment: Appointment) -> Appointment:
        async with self._lock:
            if appointment.id in self._appointments:
                raise ValueError(f"Appointment {appointment.id} already exists")
            if appointment.status in ACTIVE_STATUSES:
                clashes = self._overlapping(
                    appointment.artist_id, appointment.start, appointment.end, None
                )
                if clashes:
                    raise ConflictError(
                        f"Artist {appointment.artist_id} is already booked at that time.",
                        [a.summary() for a in clashes],
                    )
            self._appointments[appointment.id] = appointment.model_copy()
            logger.info(
                "Appointment stored: %s for artist %s at %s",
                appointment.id, appointment.artist_id, appointment.start.isoformat(),
            )
            return appointment.model_copy()

    async def update_status(self, appointment_id: str, status: AppointmentStatus) -> Appointment:
        async with self._lock:
            current = self._get(appointment_id)
            if status in ACTIVE_STATUSES and current.status not in ACTIVE_STATUSES:
                clashes = self._overlapping(
                    current.artist_id, current.start, current.end, current.id
                )
                if clashes:
                    raise ConflictError(
                        f"Cannot reactivate {appointment_id}: the slot has been rebooked.",
                        [a.summary() for a in clashes],
                    )
            logger.info("Appointment %s status %s -> %s", appointment_id, current.status.value, status.value)
            return self._save(current, status=status)

    async def update_times(
        self, appointment_id: str, start: datetime, end: Optional[datetime]
    ) -> Appointment:
        async with self._lock:
            current = self._get(appointment_id)
            if current.status in ACTIVE_STATUSES:
                clashes = self._overlapping(current.artist_id, start, end, current.id)
                if clashes:
                    raise ConflictError(
                        f"Artist {current.artist_id} is already booked at that time.",
                        [a.summary() for a in clashes],
                    )
            logger.info("Appointment %s moved to %s", appointment_id, start.isoformat())
            return self._save(current, start=start, end=end)

    async def update_deposit_paid(self, appointment_id: str, paid: bool) -> Appointment:
        async with self._lock:
            current = self._get(appointment_id)
            return self._save(current, deposit_paid=paid)

    async def find_by_id(self, appointment_id: str) -> Optional[Appointment]:
        appointment = self._appointments.get(appointment_id)
        return appointment.model_copy() if appointment is not None else None

    async def find_starting_between(self, start: datetime, end: datetime) -> list[Appointment]:
        matches = [
            a for a in self._appointments.values()
            if a.status in ACTIVE_STATUSES and start <= a.start <= end
        ]
        return [a.model_copy() for a in sorted(matches, key=lambda a: (a.start, a.id))]

    def reset(self) -> None:
        """Clear all appointments. Used by test fixtures for isolation."""
        self._appointments.clear()
