"""Promo code management — commands, handler and the storefront lookup."""

from dataclasses import dataclass

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.promo.promo_code import PromoCode, find_promo_code, normalize_code
from sales.utils.logging import get_logger
from sales.utils.queries import find_all

logger = get_logger(__name__)


@sales.command(part_of="PromoCode")
class CreatePromoCode:
    code = String(required=True, max_length=50)
    discount_cents = Integer(required=True)
    description = String(max_length=255)
    is_active = Boolean(default=True)


@sales.command(part_of="PromoCode")
class UpdatePromoCode:
    promo_code_id = Identifier(required=True)
    discount_cents = Integer()
    description = String(max_length=255)
    is_active = Boolean()


@sales.command(part_of="PromoCode")
class DeactivatePromoCode:
    promo_code_id = Identifier(required=True)


@sales.command_handler(part_of=PromoCode)
class ManagePromoCodeHandler:
    @handle(CreatePromoCode)
    def create_promo_code(self, command):
        if find_promo_code(command.code) is not None:
            raise ValidationError({"code": [f"Promo code {normalize_code(command.code)} already exists"]})

        promo = PromoCode.create(
            code=command.code,
            discount_cents=command.discount_cents,
            description=command.description,
            is_active=command.is_active,
        )
        current_domain.repository_for(PromoCode).add(promo)
        logger.info("Promo code created", promo_code_id=str(promo.id), code=promo.code)
        return str(promo.id)

    @handle(UpdatePromoCode)
    def update_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        promo = repo.get(command.promo_code_id)
        promo.update(
            discount_cents=command.discount_cents,
            description=command.description,
            is_active=command.is_active,
        )
        repo.add(promo)
        logger.info("Promo code updated", promo_code_id=str(promo.id))

    @handle(DeactivatePromoCode)
    def deactivate_promo_code(self, command):
        repo = current_domain.repository_for(PromoCode)
        promo = repo.get(command.promo_code_id)
        promo.deactivate()
        repo.add(promo)
        logger.info("Promo code deactivated", promo_code_id=str(promo.id))


@dataclass(frozen=True)
class PromoCheck:
    valid: bool
    promo_code: PromoCode | None = None
    reason: str | None = None


def validate_promo_code(code: str) -> PromoCheck:
    """Storefront check of a code before checkout; never raises for unknown codes."""
    if not normalize_code(code):
        raise ValidationError({"code": ["Promo code is required"]})

    promo = find_promo_code(code)
    if promo is None:
        return PromoCheck(valid=False, reason="Invalid promo code")
    if not promo.is_active:
        return PromoCheck(valid=False, reason="This promo code is no longer active")
    return PromoCheck(valid=True, promo_code=promo)


def list_promo_codes() -> list[PromoCode]:
    """Every promo code, newest first."""
    return sorted(find_all(PromoCode), key=lambda promo: promo.created_at, reverse=True)
