"""
Artist hourly rate lookup.

In production this reads the studio settings table; the in-memory store
backs the console demo and the tests.
"""

import logging
from decimal import Decimal
from typing import Optional, Protocol, Union


logger = logging.getLogger(__name__)


class ArtistRateStore(Protocol):
    async def get_rate(self, artist_id: str) -> Optional[Decimal]:
        """Return the artist's custom hourly rate, or None if they have none."""
        ...


class InMemoryArtistRateStore:
    """Artist rates held in a dict keyed by artist id."""

    def __init__(self, rates: Optional[dict[str, Union[Decimal, int, str]]] = None) -> None:
        self._rates: dict[str, Decimal] = {
            artist_id: Decimal(str(rate)) for artist_id, rate in (rates or {}).items()
        }

    async def get_rate(self, artist_id: str) -> Optional[Decimal]:
        return self._rates.get(artist_id)

    def set_rate(self, artist_id: str, rate: Union[Decimal, int, str, None]) -> None:
        if rate is None:
            self._rates.pop(artist_id, None)
        else:
            self._rates[artist_id] = Decimal(str(rate))
        logger.info("Hourly rate for %s set to %s", artist_id, rate)

    def reset(self) -> None:
        """Clear all rates. Used by test fixtures for isolation."""
        self._rates.clear()
