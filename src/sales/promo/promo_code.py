"""PromoCode aggregate — a fixed-amount discount redeemable by code.

Codes are stored upper-case and looked up case-insensitively. The discount is
a flat amount in cents, capped at the order total when applied.
"""

from protean.exceptions import ValidationError
from protean.fields import Boolean, DateTime, Integer, String

from sales.domain import sales
from sales.utils.clock import utcnow
from sales.utils.queries import find_first


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


@sales.aggregate
class PromoCode:
    code: String(required=True, max_length=50)
    discount_cents: Integer(required=True)
    is_active: Boolean(default=True)
    description: String(max_length=255)
    created_at: DateTime(default=utcnow)

    @classmethod
    def create(cls, code, discount_cents, description=None, is_active=True):
        _check(normalize_code(code), discount_cents)
        return cls(
            code=normalize_code(code),
            discount_cents=discount_cents,
            description=description,
            is_active=is_active,
            created_at=utcnow(),
        )

    def update(self, discount_cents=None, description=None, is_active=None):
        _check(self.code, self.discount_cents if discount_cents is None else discount_cents)
        if discount_cents is not None:
            self.discount_cents = discount_cents
        if description is not None:
            self.description = description
        if is_active is not None:
            self.is_active = is_active

    def deactivate(self):
        self.is_active = False


def _check(code, discount_cents):
    errors = {}
    if not code:
        errors["code"] = ["Promo code is required"]
    if discount_cents is None or discount_cents <= 0:
        errors["discount_cents"] = ["Discount must be a positive number of cents"]
    if errors:
        raise ValidationError(errors)


def find_promo_code(code: str | None) -> PromoCode | None:
    """Case-insensitive lookup, active or not."""
    normalized = normalize_code(code)
    if not normalized:
        return None
    return find_first(PromoCode, code=normalized)
