"""Product aggregate — an item, menu or ticket sold during one event."""

import json
from enum import Enum

from protean import invariant
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String, Text

from sales.domain import sales
from sales.pricing import StockFact
from sales.utils.logging import get_logger

logger = get_logger(__name__)


class ProductType(Enum):
    ITEM = "ITEM"
    MENU = "MENU"
    TICKET = "TICKET"


# Fields the back office may change after creation
_UPDATABLE_FIELDS = {
    "name",
    "description",
    "price_cents",
    "product_type",
    "is_active",
    "sort_order",
    "allergens",
    "is_vegetarian",
    "is_vegan",
}


@sales.aggregate
class Product:
    event_id: Identifier(required=True)
    name: String(required=True, max_length=200)
    description: Text()
    price_cents: Integer(required=True, min_value=0)
    product_type: String(max_length=10, choices=ProductType, default=ProductType.ITEM.value)
    stock: Integer()  # None = unlimited
    is_active: Boolean(default=True)
    sort_order: Integer(default=0)
    allergens: Text()  # JSON: list of allergen names
    is_vegetarian: Boolean(default=False)
    is_vegan: Boolean(default=False)

    @classmethod
    def create(
        cls,
        event_id,
        name,
        price_cents,
        product_type=ProductType.ITEM.value,
        description=None,
        stock=None,
        is_active=True,
        sort_order=0,
        allergens=None,
        is_vegetarian=False,
        is_vegan=False,
    ):
        errors = _check_fields(name=name, price_cents=price_cents, product_type=product_type)
        if errors:
            raise ValidationError(errors)

        return cls(
            event_id=str(event_id),
            name=name.strip(),
            description=description,
            price_cents=price_cents,
            product_type=product_type,
            stock=stock,
            is_active=is_active,
            sort_order=sort_order or 0,
            allergens=json.dumps(list(allergens or [])),
            is_vegetarian=bool(is_vegetarian),
            is_vegan=bool(is_vegan),
        )

    @invariant.post
    def stock_cannot_be_negative(self):
        if self.stock is not None and self.stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})

    @property
    def allergen_list(self) -> list[str]:
        return json.loads(self.allergens) if self.allergens else []

    def update(self, **changes):
        unknown = sorted(set(changes) - _UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError({field: ["Field cannot be updated"] for field in unknown})

        errors = _check_fields(
            name=changes.get("name", self.name),
            price_cents=changes.get("price_cents", self.price_cents),
            product_type=changes.get("product_type", self.product_type),
        )
        if errors:
            raise ValidationError(errors)

        for field_name, value in changes.items():
            if field_name == "allergens":
                value = json.dumps(list(value or []))
            elif field_name == "name":
                value = value.strip()
            setattr(self, field_name, value)

    # -------------------------------------------------------------------
    # Stock
    # -------------------------------------------------------------------
    @property
    def has_limited_stock(self) -> bool:
        return self.stock is not None

    def deduct_stock(self, quantity: int):
        """Take ``quantity`` units out of limited stock, never going below zero."""
        if not self.has_limited_stock:
            return
        if quantity > self.stock:
            logger.warning(
                "Stock deduction floored at zero",
                product_id=str(self.id),
                requested=quantity,
                available=self.stock,
            )
        self.stock = max(0, self.stock - quantity)

    def restore_stock(self, quantity: int):
        if self.has_limited_stock:
            self.stock += quantity

    def adjust_stock(self, stock: int | None):
        if stock is not None and stock < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})
        self.stock = stock

    def stock_fact(self) -> StockFact:
        return StockFact(product_id=str(self.id), available_stock=self.stock)


def _check_fields(name, price_cents, product_type) -> dict[str, list[str]]:
    errors = {}
    if not name or not str(name).strip():
        errors["name"] = ["Product name is required"]
    if price_cents is None or price_cents < 0:
        errors["price_cents"] = ["Price must be a non-negative number of cents"]
    if product_type not in {member.value for member in ProductType}:
        errors["product_type"] = [f"Unknown product type {product_type}"]
    return errors
