"""Session length estimation from tattoo size and complexity."""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

from inkbook.config import MAX_COMPLEXITY, MIN_COMPLEXITY, PricingConfig, normalize_key, settings
from inkbook.errors import InvalidInputError

logger = logging.getLogger(__name__)


def validate_complexity(complexity: int) -> int:
    """Return the complexity level, or raise if it is not an integer in 1..5."""
    if isinstance(complexity, bool) or not isinstance(complexity, int):
        raise InvalidInputError(
            f"Complexity must be an integer between {MIN_COMPLEXITY} and {MAX_COMPLEXITY}, "
            f"got {complexity!r}",
            ["complexity"],
        )
    if not MIN_COMPLEXITY <= complexity <= MAX_COMPLEXITY:
        raise InvalidInputError(
            f"Complexity must be between {MIN_COMPLEXITY} and {MAX_COMPLEXITY}, got {complexity}",
            ["complexity"],
        )
    return complexity


def resolve_size(size: str, tables: PricingConfig) -> str:
    """Normalize a size name and check it against the configured sizes."""
    key = normalize_key(size) if isinstance(size, str) else ""
    if key not in tables.size_hours:
        raise InvalidInputError(
            f"Unknown size {size!r}. Valid sizes: {sorted(tables.size_hours)}", ["size"]
        )
    return key


def estimate_duration_hours(
    size: str, complexity: int, tables: Optional[PricingConfig] = None
) -> Decimal:
    """Expected session length in hours.

    Only the size sets the duration; complexity is validated but scales
    price, not time.
    """
    tables = tables or settings.pricing
    validate_complexity(complexity)
    return tables.size_hours[resolve_size(size, tables)]


def estimate_end(
    start: datetime, size: str, complexity: int, tables: Optional[PricingConfig] = None
) -> datetime:
    """End time for a session starting at ``start``."""
    hours = estimate_duration_hours(size, complexity, tables)
    end = start + timedelta(hours=float(hours))
    logger.debug("Estimated %s hour session from %s to %s", hours, start, end)
    return end
