"""
Tattoo pricing: hourly rate x hours x size, placement and complexity factors.

The arithmetic is done in ``Decimal`` and rounded half-up to whole
currency units. ``quote`` is pure; ``PricingEngine`` adds the artist-rate
lookup in front of it.

Usage:
    engine = PricingEngine(rate_store)
    quote = await engine.calculate_pricing("medium", "arm", 3, artist_id="artist-1")
    quote.total_price  # 1035 at the standard rate of 150
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional, Union

from inkbook.config import AppConfig, PricingConfig, normalize_key, settings
from inkbook.errors import InvalidInputError
from inkbook.scheduling.duration import estimate_duration_hours, resolve_size, validate_complexity
from inkbook.schemas.pricing_schema import PricingQuote
from inkbook.stores.artist_rates import ArtistRateStore
from inkbook.utils import call_store, round_half_up

logger = logging.getLogger(__name__)


def to_hourly_rate(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a rate to a finite, non-negative Decimal."""
    try:
        rate = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInputError(
            f"Hourly rate must be a number, got {value!r}", ["customHourlyRate"]
        ) from None
    if not rate.is_finite() or rate < 0:
        raise InvalidInputError(
            f"Hourly rate must be a finite number >= 0, got {value!r}", ["customHourlyRate"]
        )
    return rate


def placement_factor(placement: str, tables: PricingConfig) -> Decimal:
    """Factor for a body placement; unknown placements use the fallback."""
    key = normalize_key(placement) if isinstance(placement, str) else ""
    factor = tables.placement_factors.get(key)
    if factor is not None:
        return factor
    if tables.placement_fallback is None:
        raise InvalidInputError(f"Unknown placement {placement!r}", ["placement"])
    logger.debug("Unknown placement %r, using fallback factor %s", placement, tables.placement_fallback)
    return tables.placement_fallback


def quote(
    hourly_rate: Union[Decimal, int, str],
    size: str,
    placement: str,
    complexity: int,
    tables: Optional[PricingConfig] = None,
) -> PricingQuote:
    """Price a session at a known hourly rate."""
    tables = tables or settings.pricing
    rate = to_hourly_rate(hourly_rate)

    complexity = validate_complexity(complexity)
    size_key = resolve_size(size, tables)
    hours = estimate_duration_hours(size_key, complexity, tables)
    size_factor = tables.size_factors[size_key]
    place_factor = placement_factor(placement, tables)
    complexity_factor = tables.complexity_factors[complexity]

    total_price = round_half_up(rate * hours * size_factor * place_factor * complexity_factor)
    deposit_amount = round_half_up(Decimal(total_price) * tables.deposit_ratio)

    return PricingQuote(
        base_hourly_rate=rate,
        size_factor=size_factor,
        placement_factor=place_factor,
        complexity_factor=complexity_factor,
        estimated_hours=hours,
        total_price=total_price,
        deposit_amount=deposit_amount,
    )


class PricingEngine:
    """Resolves the hourly rate for a request and prices it."""

    def __init__(self, rate_store: ArtistRateStore, config: Optional[AppConfig] = None) -> None:
        self._rates = rate_store
        self._config = config or settings

    async def resolve_hourly_rate(
        self,
        artist_id: Optional[str] = None,
        custom_hourly_rate: Optional[Union[Decimal, int, str]] = None,
    ) -> Decimal:
        """Custom rate, else the artist's configured rate, else the studio rate."""
        if custom_hourly_rate is not None:
            return to_hourly_rate(custom_hourly_rate)
        if artist_id:
            rate = await call_store(
                self._rates.get_rate(artist_id),
                self._config.store.store_timeout_sec,
                "artist rate lookup",
            )
            if rate is not None:
                return Decimal(str(rate))
            logger.debug("Artist %s has no configured rate, using studio rate", artist_id)
        return self._config.pricing.standard_hourly_rate

    async def calculate_pricing(
        self,
        size: str,
        placement: str,
        complexity: int,
        artist_id: Optional[str] = None,
        custom_hourly_rate: Optional[Union[Decimal, int, str]] = None,
    ) -> PricingQuote:
        # Reject bad categories before touching the rate store
        validate_complexity(complexity)
        resolve_size(size, self._config.pricing)

        rate = await self.resolve_hourly_rate(artist_id, custom_hourly_rate)
        result = quote(rate, size, placement, complexity, self._config.pricing)
        logger.info(
            "Quoted %s/%s/complexity %d at rate %s: total=%d deposit=%d",
            size, placement, complexity, rate, result.total_price, result.deposit_amount,
        )
        return result
