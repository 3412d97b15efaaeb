"""Appointment, booking request and scheduling result models."""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from inkbook.config import MAX_COMPLEXITY, MIN_COMPLEXITY
from inkbook.errors import ValidationError
from inkbook.utils import ensure_utc, parse_timestamp


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentStatus(str, Enum):
    """Lifecycle status of an appointment."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses that occupy an artist's time
ACTIVE_STATUSES = frozenset({AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED})


class Appointment(BaseModel):
    """A scheduled studio session."""

    id: str
    artist_id: str
    customer_id: str
    start: datetime
    end: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    deposit_amount: Optional[Decimal] = None
    deposit_paid: bool = False
    total_price: Optional[int] = None
    title: str = ""
    description: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("start", "end", "created_at", "updated_at")
    @classmethod
    def _to_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @model_validator(mode="after")
    def _start_before_end(self) -> "Appointment":
        if self.end is not None and not self.start < self.end:
            raise ValueError("start must be strictly before end")
        return self

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    def summary(self) -> "AppointmentSummary":
        return AppointmentSummary(id=self.id, start=self.start, end=self.end, status=self.status)


class AppointmentSummary(BaseModel):
    """The slice of an appointment reported back as a conflict."""

    id: str
    start: datetime
    end: Optional[datetime] = None
    status: AppointmentStatus


class BookingRequest(BaseModel):
    """Validated booking request data.

    Accepts both the snake_case attribute names and the camelCase field
    names the booking form posts (``artistId``, ``startDate``, ...).
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    artist_id: str = Field(alias="artistId", min_length=1)
    customer_id: str = Field(alias="customerId", min_length=1)
    start_date: datetime = Field(alias="startDate")
    end_date: Optional[datetime] = Field(default=None, alias="endDate")
    size: str = Field(min_length=1)
    placement: str = Field(min_length=1)
    complexity: int = Field(ge=MIN_COMPLEXITY, le=MAX_COMPLEXITY, strict=True)
    custom_hourly_rate: Optional[Decimal] = Field(default=None, alias="customHourlyRate", ge=0)
    title: Optional[str] = None
    description: Optional[str] = None

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _parse_dates(cls, value):
        if value is None:
            return None
        try:
            return parse_timestamp(value)
        except ValidationError as exc:
            raise ValueError(exc.message) from None

    @model_validator(mode="after")
    def _end_after_start(self) -> "BookingRequest":
        if self.end_date is not None and not self.start_date < self.end_date:
            raise ValueError("endDate must be after startDate")
        return self


class AvailabilityResult(BaseModel):
    """Point-in-time answer to an availability probe."""

    model_config = ConfigDict(populate_by_name=True)

    is_available: bool = Field(alias="isAvailable")
    conflicts: list[AppointmentSummary] = Field(default_factory=list)

    def to_response(self) -> dict:
        """Serialize to the ``{isAvailable, conflicts}`` response shape."""
        return self.model_dump(mode="json", by_alias=True)


class CancellationOutcome(str, Enum):
    CANCELLED = "cancelled"
    TOO_LATE = "too_late"
    NOT_FOUND = "not_found"
    NOT_CANCELLABLE = "not_cancellable"


class CancellationDecision(BaseModel):
    """Result of applying the cancellation policy to one appointment."""

    success: bool
    message: str
    is_refundable: bool = False
    outcome: CancellationOutcome
