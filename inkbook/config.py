"""
Centralized studio configuration with environment variable overrides.

Rates, factor tables, policy windows and store timeouts are all
configurable here. Components receive a config object at construction
time and fall back to the module-level ``settings`` singleton.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from types import MappingProxyType
from typing import Mapping, Optional

from dotenv import load_dotenv

from inkbook.logging_context import RequestIdFilter

load_dotenv()

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(name)s] [%(request_id)s] %(levelname)s: %(message)s"

MIN_COMPLEXITY = 1
MAX_COMPLEXITY = 5


def _safe_int(env_var: str, default: str) -> int:
    """Parse an integer from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return int(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid integer for {env_var}: {raw!r}"
        ) from None


def _safe_float(env_var: str, default: str) -> float:
    """Parse a float from an env var with a clear error on bad values."""
    raw = os.getenv(env_var, default)
    try:
        return float(raw)
    except (ValueError, TypeError):
        raise ValueError(
            f"Invalid float for {env_var}: {raw!r}"
        ) from None


def _safe_decimal(env_var: str, default: str) -> Decimal:
    """Parse a Decimal from an env var. Money and factors never go through float."""
    raw = os.getenv(env_var, default)
    try:
        return Decimal(raw)
    except (InvalidOperation, TypeError):
        raise ValueError(
            f"Invalid decimal for {env_var}: {raw!r}"
        ) from None


def _safe_json(env_var: str) -> dict:
    raw = os.getenv(env_var)
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        raise ValueError(f"Invalid JSON for {env_var}: {raw!r}") from None
    if not isinstance(value, dict):
        raise ValueError(f"{env_var} must be a JSON object, got {type(value).__name__}")
    return value


def normalize_key(value: str) -> str:
    """Normalize a category key: ``" Full-Sleeve "`` -> ``"full_sleeve"``."""
    return value.strip().lower().replace("-", "_").replace(" ", "_")


BASE_SIZE_HOURS: dict[str, Decimal] = {
    "small": Decimal("1"),
    "medium": Decimal("3"),
    "large": Decimal("5"),
}

BASE_SIZE_FACTORS: dict[str, Decimal] = {
    "small": Decimal("1.0"),
    "medium": Decimal("2.0"),
    "large": Decimal("3.5"),
}

BASE_PLACEMENT_FACTORS: dict[str, Decimal] = {
    "arm": Decimal("1.0"),
    "back": Decimal("1.0"),
    "ribs": Decimal("1.5"),
}

BASE_COMPLEXITY_FACTORS: dict[int, Decimal] = {
    1: Decimal("1.00"),
    2: Decimal("1.10"),
    3: Decimal("1.15"),
    4: Decimal("1.20"),
    5: Decimal("1.25"),
}


def _load_size_tables() -> tuple[dict[str, Decimal], dict[str, Decimal]]:
    """Merge studio-defined sizes from ``EXTRA_SIZES`` into the base tables."""
    hours = dict(BASE_SIZE_HOURS)
    factors = dict(BASE_SIZE_FACTORS)
    for name, entry in _safe_json("EXTRA_SIZES").items():
        try:
            hours[normalize_key(name)] = Decimal(str(entry["hours"]))
            factors[normalize_key(name)] = Decimal(str(entry["factor"]))
        except (KeyError, TypeError, InvalidOperation):
            raise ValueError(
                f"EXTRA_SIZES entry {name!r} needs numeric 'hours' and 'factor'"
            ) from None
    return hours, factors


def _load_placement_table() -> dict[str, Decimal]:
    factors = dict(BASE_PLACEMENT_FACTORS)
    for name, factor in _safe_json("EXTRA_PLACEMENTS").items():
        try:
            factors[normalize_key(name)] = Decimal(str(factor))
        except InvalidOperation:
            raise ValueError(f"EXTRA_PLACEMENTS entry {name!r} is not numeric") from None
    return factors


_SIZE_HOURS, _SIZE_FACTORS = _load_size_tables()


@dataclass(frozen=True)
class PricingConfig:
    """Rates and the closed factor tables used by duration and pricing."""

    standard_hourly_rate: Decimal = _safe_decimal("STANDARD_HOURLY_RATE", "150")
    deposit_ratio: Decimal = _safe_decimal("DEPOSIT_RATIO", "0.30")
    size_hours: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType(dict(_SIZE_HOURS))
    )
    size_factors: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType(dict(_SIZE_FACTORS))
    )
    placement_factors: Mapping[str, Decimal] = field(
        default_factory=lambda: MappingProxyType(_load_placement_table())
    )
    # Unknown placements price at this factor instead of failing
    placement_fallback: Optional[Decimal] = Decimal("1.0")
    complexity_factors: Mapping[int, Decimal] = field(
        default_factory=lambda: MappingProxyType(dict(BASE_COMPLEXITY_FACTORS))
    )


@dataclass(frozen=True)
class PolicyConfig:
    """Cancellation and refund windows."""

    cancellation_lead_hours: int = _safe_int("CANCELLATION_LEAD_HOURS", "48")
    refund_window_days: int = _safe_int("REFUND_WINDOW_DAYS", "7")
    reminder_lead_hours: int = _safe_int("REMINDER_LEAD_HOURS", "24")


@dataclass(frozen=True)
class StoreConfig:
    """External store round-trip settings."""

    store_timeout_sec: float = _safe_float("STORE_TIMEOUT", "5.0")


@dataclass(frozen=True)
class AppConfig:
    """Root configuration aggregating all sub-configs."""

    pricing: PricingConfig = field(default_factory=PricingConfig)
    policy: PolicyConfig = field(default_factory=PolicyConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    studio_name: str = os.getenv("STUDIO_NAME", "Ink 'n' Iron Tattoo Studio")


def _validate_config(config: AppConfig) -> None:
    """Validate configuration values are within acceptable ranges."""
    pricing = config.pricing
    if pricing.standard_hourly_rate < 0:
        raise ValueError(
            f"STANDARD_HOURLY_RATE must be >= 0, got {pricing.standard_hourly_rate}"
        )
    if not Decimal("0") <= pricing.deposit_ratio <= Decimal("1"):
        raise ValueError(
            f"DEPOSIT_RATIO must be between 0 and 1, got {pricing.deposit_ratio}"
        )
    if set(pricing.size_hours) != set(pricing.size_factors):
        raise ValueError("Size hours and size factor tables must list the same sizes")

    for table_name, table in [
        ("size hours", pricing.size_hours),
        ("size factors", pricing.size_factors),
        ("placement factors", pricing.placement_factors),
        ("complexity factors", pricing.complexity_factors),
    ]:
        for key, value in table.items():
            if value < 0:
                raise ValueError(f"Negative value in {table_name} for {key!r}: {value}")

    expected_levels = set(range(MIN_COMPLEXITY, MAX_COMPLEXITY + 1))
    if set(pricing.complexity_factors) != expected_levels:
        raise ValueError(
            f"Complexity factors must cover levels {sorted(expected_levels)}, "
            f"got {sorted(pricing.complexity_factors)}"
        )

    policy = config.policy
    if policy.cancellation_lead_hours < 0:
        raise ValueError(
            f"CANCELLATION_LEAD_HOURS must be >= 0, got {policy.cancellation_lead_hours}"
        )
    if policy.refund_window_days * 24 < policy.cancellation_lead_hours:
        raise ValueError(
            "REFUND_WINDOW_DAYS must not be shorter than CANCELLATION_LEAD_HOURS, "
            f"got {policy.refund_window_days} days vs {policy.cancellation_lead_hours} hours"
        )
    if policy.reminder_lead_hours <= 0:
        raise ValueError(
            f"REMINDER_LEAD_HOURS must be > 0, got {policy.reminder_lead_hours}"
        )
    if config.store.store_timeout_sec <= 0:
        raise ValueError(
            f"STORE_TIMEOUT must be > 0, got {config.store.store_timeout_sec}"
        )


def load_config() -> AppConfig:
    """Load and validate application configuration."""
    config = AppConfig()
    _validate_config(config)
    handler = logging.StreamHandler()
    handler.addFilter(RequestIdFilter())
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
    )
    logger.info("Configuration loaded for '%s'", config.studio_name)
    return config


# Singleton instance
settings = load_config()
