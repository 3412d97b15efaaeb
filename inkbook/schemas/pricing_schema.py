"""Pricing quote model."""

from decimal import Decimal

from pydantic import BaseModel, Field, model_validator


class PricingQuote(BaseModel):
    """Estimated price and deposit for a tattoo session. Never persisted.

    Field names match the pricing endpoint's response contract.
    """

    base_hourly_rate: Decimal
    size_factor: Decimal
    placement_factor: Decimal
    complexity_factor: Decimal
    estimated_hours: Decimal
    total_price: int = Field(ge=0)
    deposit_amount: int = Field(ge=0)

    @model_validator(mode="after")
    def _deposit_within_total(self) -> "PricingQuote":
        if self.deposit_amount > self.total_price:
            raise ValueError("deposit_amount cannot exceed total_price")
        return self

    def to_response(self) -> dict:
        """Serialize with factors as JSON numbers and integer currency amounts."""
        return {
            "base_hourly_rate": float(self.base_hourly_rate),
            "size_factor": float(self.size_factor),
            "placement_factor": float(self.placement_factor),
            "complexity_factor": float(self.complexity_factor),
            "estimated_hours": float(self.estimated_hours),
            "total_price": self.total_price,
            "deposit_amount": self.deposit_amount,
        }
