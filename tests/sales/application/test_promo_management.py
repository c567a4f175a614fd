import time

import pytest
from protean import current_domain
from protean.exceptions import ValidationError

from sales.promo.management import (
    CreatePromoCode,
    DeactivatePromoCode,
    UpdatePromoCode,
    list_promo_codes,
    validate_promo_code,
)
from sales.promo.promo_code import PromoCode


def _promo(promo_id):
    return current_domain.repository_for(PromoCode).get(promo_id)


class TestManagePromoCodes:
    def test_code_stored_upper_case(self, process):
        promo_id = process(CreatePromoCode(code=" noel10 ", discount_cents=1000))
        assert _promo(promo_id).code == "NOEL10"

    def test_duplicate_ignores_case(self, process, sale):
        with pytest.raises(ValidationError) as exc_info:
            process(CreatePromoCode(code="Scout5", discount_cents=100))
        assert exc_info.value.messages["code"] == ["Promo code SCOUT5 already exists"]

    def test_discount_must_be_positive(self, process):
        with pytest.raises(ValidationError):
            process(CreatePromoCode(code="ZERO", discount_cents=0))

    def test_update_discount(self, process, sale):
        process(UpdatePromoCode(promo_code_id=sale.promo_code_id, discount_cents=800))
        promo = _promo(sale.promo_code_id)
        assert promo.discount_cents == 800
        assert promo.is_active

    def test_listing_newest_first(self, process, sale):
        time.sleep(0.01)
        process(CreatePromoCode(code="NOEL10", discount_cents=1000))
        process(DeactivatePromoCode(promo_code_id=sale.promo_code_id))

        listed = list_promo_codes()

        assert [promo.code for promo in listed] == ["NOEL10", "SCOUT5"]
        assert [promo.is_active for promo in listed] == [True, False]


class TestValidatePromoCode:
    def test_active_code(self, sale):
        check = validate_promo_code("scout5")
        assert check.valid
        assert check.promo_code.discount_cents == 500

    def test_unknown_code(self, sale):
        check = validate_promo_code("NOPE")
        assert not check.valid
        assert check.reason == "Invalid promo code"

    def test_deactivated_code(self, process, sale):
        process(DeactivatePromoCode(promo_code_id=sale.promo_code_id))
        check = validate_promo_code("SCOUT5")
        assert not check.valid
        assert check.reason == "This promo code is no longer active"

    def test_blank_code(self, sale):
        with pytest.raises(ValidationError):
            validate_promo_code("   ")
