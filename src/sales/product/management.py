"""Product management — commands and handler."""

import json

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.event.event import SaleEvent
from sales.product.product import Product, ProductType
from sales.utils.logging import get_logger

logger = get_logger(__name__)


@sales.command(part_of="Product")
class AddProduct:
    event_id = Identifier(required=True)
    name = String(required=True, max_length=200)
    price_cents = Integer(required=True)
    product_type = String(max_length=10, default=ProductType.ITEM.value)
    description = Text()
    stock = Integer()
    is_active = Boolean(default=True)
    sort_order = Integer(default=0)
    allergens = Text()  # JSON: list of allergen names
    is_vegetarian = Boolean(default=False)
    is_vegan = Boolean(default=False)


@sales.command(part_of="Product")
class UpdateProduct:
    """Partial update: fields left empty keep their current value."""

    product_id = Identifier(required=True)
    name = String(max_length=200)
    description = Text()
    price_cents = Integer()
    product_type = String(max_length=10)
    is_active = Boolean()
    sort_order = Integer()
    allergens = Text()  # JSON: list of allergen names
    is_vegetarian = Boolean()
    is_vegan = Boolean()


@sales.command(part_of="Product")
class AdjustProductStock:
    product_id = Identifier(required=True)
    stock = Integer()  # empty = unlimited


@sales.command_handler(part_of=Product)
class ManageProductHandler:
    @handle(AddProduct)
    def add_product(self, command):
        current_domain.repository_for(SaleEvent).get(command.event_id)
        product = Product.create(
            event_id=command.event_id,
            name=command.name,
            price_cents=command.price_cents,
            product_type=command.product_type,
            description=command.description,
            stock=command.stock,
            is_active=command.is_active,
            sort_order=command.sort_order,
            allergens=json.loads(command.allergens) if command.allergens else [],
            is_vegetarian=command.is_vegetarian,
            is_vegan=command.is_vegan,
        )
        current_domain.repository_for(Product).add(product)
        logger.info("Product added", product_id=str(product.id), event_id=product.event_id)
        return str(product.id)

    @handle(UpdateProduct)
    def update_product(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)

        changes = {
            field_name: getattr(command, field_name)
            for field_name in (
                "name",
                "description",
                "price_cents",
                "product_type",
                "is_active",
                "sort_order",
                "is_vegetarian",
                "is_vegan",
            )
            if getattr(command, field_name) is not None
        }
        if command.allergens is not None:
            changes["allergens"] = json.loads(command.allergens)

        product.update(**changes)
        repo.add(product)
        logger.info("Product updated", product_id=str(product.id), changed=sorted(changes))

    @handle(AdjustProductStock)
    def adjust_product_stock(self, command):
        repo = current_domain.repository_for(Product)
        product = repo.get(command.product_id)
        previous = product.stock
        product.adjust_stock(command.stock)
        repo.add(product)
        logger.info("Product stock adjusted", product_id=str(product.id), previous=previous, stock=product.stock)
