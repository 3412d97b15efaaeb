"""
Artist availability checks against existing bookings.

Availability is a predicate over the artist's active (pending or
confirmed) appointments, not an existence check on the artist: an artist
with no bookings, or one the studio has never heard of, is available.

The answer is a point-in-time snapshot. The store's overlap constraint
is what prevents double-booking; this check gives the caller the
conflicting appointments before any write is attempted.
"""

import logging
from datetime import datetime
from typing import Optional

from inkbook.config import AppConfig, settings
from inkbook.errors import ValidationError
from inkbook.schemas.appointment_schema import ACTIVE_STATUSES, AvailabilityResult
from inkbook.stores.appointment_store import AppointmentStore
from inkbook.utils import call_store, ensure_utc, intervals_overlap

logger = logging.getLogger(__name__)


class AvailabilityChecker:
    """Reports whether an artist is free over a time window."""

    def __init__(self, store: AppointmentStore, config: Optional[AppConfig] = None) -> None:
        self._store = store
        self._config = config or settings

    async def check_availability(
        self,
        artist_id: str,
        start: datetime,
        end: Optional[datetime] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> AvailabilityResult:
        """
        Check an artist's availability over ``[start, end)``.

        Args:
            artist_id: Artist whose schedule is probed.
            start: Start of the requested window.
            end: End of the window. ``None`` probes the single instant
                ``start``, which conflicts with any appointment running
                at that moment.
            exclude_appointment_id: Appointment to ignore, used when an
                appointment is checked against its own new time.

        Returns:
            AvailabilityResult with conflicts ordered by start time.

        Raises:
            ValidationError: If ``end`` is not after ``start``.
        """
        if not artist_id:
            raise ValidationError("artistId is required", ["artistId"])
        start = ensure_utc(start)
        end = ensure_utc(end) if end is not None else None
        if end is not None and not start < end:
            raise ValidationError("endDate must be after startDate", ["endDate"])

        candidates = await call_store(
            self._store.find_overlapping(artist_id, start, end, exclude_appointment_id),
            self._config.store.store_timeout_sec,
            "availability check",
        )
        # The store filter is advisory; this predicate decides
        conflicts = sorted(
            (
                a for a in candidates
                if a.artist_id == artist_id
                and a.status in ACTIVE_STATUSES
                and a.id != exclude_appointment_id
                and intervals_overlap(start, end, a.start, a.end)
            ),
            key=lambda a: (a.start, a.id),
        )

        if conflicts:
            logger.info(
                "Artist %s unavailable from %s: %d conflict(s)",
                artist_id, start.isoformat(), len(conflicts),
            )
        else:
            logger.debug("Artist %s available from %s", artist_id, start.isoformat())

        return AvailabilityResult(
            is_available=not conflicts,
            conflicts=[a.summary() for a in conflicts],
        )
