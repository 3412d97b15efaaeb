"""Tests for session duration estimation."""

from dataclasses import replace
from datetime import timedelta
from decimal import Decimal
from types import MappingProxyType

import pytest

from inkbook.config import PricingConfig
from inkbook.errors import InvalidInputError
from inkbook.scheduling.duration import estimate_duration_hours, estimate_end

from tests.conftest import at


class TestEstimateDurationHours:
    @pytest.mark.parametrize("size,hours", [("small", 1), ("medium", 3), ("large", 5)])
    def test_base_hours_per_size(self, size, hours):
        assert estimate_duration_hours(size, 3) == Decimal(hours)

    def test_complexity_does_not_change_hours(self):
        results = {estimate_duration_hours("medium", level) for level in range(1, 6)}
        assert results == {Decimal("3")}

    def test_size_is_normalized(self):
        assert estimate_duration_hours("  Large ", 1) == Decimal("5")

    def test_unknown_size_rejected(self):
        with pytest.raises(InvalidInputError, match="Unknown size") as exc_info:
            estimate_duration_hours("gigantic", 3)
        assert exc_info.value.fields == ["size"]

    @pytest.mark.parametrize("complexity", [0, 6, -1])
    def test_out_of_range_complexity_rejected(self, complexity):
        with pytest.raises(InvalidInputError, match="Complexity"):
            estimate_duration_hours("small", complexity)

    @pytest.mark.parametrize("complexity", [2.5, "3", True, None])
    def test_non_integer_complexity_rejected(self, complexity):
        with pytest.raises(InvalidInputError):
            estimate_duration_hours("small", complexity)

    def test_studio_defined_size(self):
        tables = replace(
            PricingConfig(),
            size_hours=MappingProxyType({**PricingConfig().size_hours, "full_sleeve": Decimal("8")}),
            size_factors=MappingProxyType({**PricingConfig().size_factors, "full_sleeve": Decimal("6")}),
        )
        assert estimate_duration_hours("Full-Sleeve", 4, tables) == Decimal("8")
        with pytest.raises(InvalidInputError):
            estimate_duration_hours("full_sleeve", 4)


class TestEstimateEnd:
    def test_adds_estimated_hours(self):
        assert estimate_end(at(10), "medium", 2) == at(10) + timedelta(hours=3)

    def test_invalid_input_raises(self):
        with pytest.raises(InvalidInputError):
            estimate_end(at(10), "medium", 9)
