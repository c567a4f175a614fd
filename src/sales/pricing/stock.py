"""Stock validation of a cart against a point-in-time snapshot."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from protean.exceptions import ValidationError
from pydantic import BaseModel, ConfigDict

from sales.errors import error_summary
from sales.pricing.cart import CartLine
from sales.pricing.errors import InsufficientStock, ProductNotFound


class StockFact(BaseModel):
    """Available stock of a product; ``None`` means unlimited."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    available_stock: int | None = None

    @property
    def is_unlimited(self) -> bool:
        return self.available_stock is None


@dataclass(frozen=True, slots=True)
class StockValidation:
    errors: tuple[ValidationError, ...] = ()

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def messages(self) -> list[str]:
        return [error_summary(error.messages) for error in self.errors]


def validate_stock(cart: Sequence[CartLine], stock_facts: Iterable[StockFact]) -> StockValidation:
    """Check every line and collect every failure, in cart order."""
    facts = {fact.product_id: fact for fact in stock_facts}
    errors = []

    for line in cart:
        fact = facts.get(line.product_id)
        if fact is None:
            errors.append(ProductNotFound(line.product_id))
            continue

        if not fact.is_unlimited and line.quantity > fact.available_stock:
            errors.append(
                InsufficientStock(
                    product_id=line.product_id,
                    requested=line.quantity,
                    available=fact.available_stock,
                )
            )

    return StockValidation(errors=tuple(errors))
