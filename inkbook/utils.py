"""Shared utilities used across the scheduling core."""

import asyncio
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Awaitable, Optional, TypeVar, Union

from inkbook.errors import TransientError, ValidationError

T = TypeVar("T")


def ensure_utc(value: datetime) -> datetime:
    """Return an aware datetime in UTC. Naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_timestamp(value: Union[str, datetime], field_name: str = "timestamp") -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Examples:
        >>> parse_timestamp("2025-03-18T10:00:00Z")
        datetime.datetime(2025, 3, 18, 10, 0, tzinfo=datetime.timezone.utc)
        >>> parse_timestamp("2025-03-18T12:00:00+02:00").hour
        10
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{field_name} must be an ISO-8601 timestamp", [field_name])
    raw = value.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        return ensure_utc(datetime.fromisoformat(raw))
    except ValueError:
        raise ValidationError(
            f"{field_name} is not a valid ISO-8601 timestamp: {value!r}", [field_name]
        ) from None


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer currency unit, halves away from zero.

    Examples:
        >>> round_half_up(Decimal("310.5"))
        311
        >>> round_half_up(Decimal("4921.875"))
        4922
    """
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


async def call_store(awaitable: Awaitable[T], timeout: float, operation: str) -> T:
    """Await a store call, turning timeouts and connection failures into TransientError."""
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError:
        raise TransientError(
            f"Store timed out after {timeout}s during {operation}"
        ) from None
    except (ConnectionError, OSError) as exc:
        raise TransientError(
            f"Store unavailable during {operation}: {exc}"
        ) from exc


def intervals_overlap(
    start_a: datetime,
    end_a: Optional[datetime],
    start_b: datetime,
    end_b: Optional[datetime],
) -> bool:
    """Half-open overlap test where a missing end makes the interval an instant.

    ``[s1, e1)`` and ``[s2, e2)`` overlap iff ``s1 < e2 and s2 < e1``, so
    touching boundaries do not conflict. An instant ``t`` overlaps
    ``[s, e)`` iff ``s <= t < e``; two instants overlap only when equal.
    """
    if end_a is None and end_b is None:
        return start_a == start_b
    if end_a is None:
        return start_b <= start_a < end_b
    if end_b is None:
        return start_a <= start_b < end_a
    return start_a < end_b and start_b < end_a
