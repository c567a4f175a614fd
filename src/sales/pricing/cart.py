"""Cart line value object."""

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field


class CartLine(BaseModel):
    """One product and quantity in a cart, priced in cents.

    The unit price is trusted once the caller has compared it with the
    catalog price.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str = Field(min_length=1)
    quantity: int = Field(ge=1)
    unit_price_cents: int = Field(ge=0)

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


def total_units(cart: Iterable[CartLine]) -> int:
    """Physical unit count of a cart (sum of quantities, not lines)."""
    return sum(line.quantity for line in cart)
