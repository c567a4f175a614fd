"""Tests for cart stock validation."""

from sales.pricing import CartLine, InsufficientStock, ProductNotFound, StockFact, validate_stock


def _line(product_id, quantity):
    return CartLine(product_id=product_id, quantity=quantity, unit_price_cents=1000)


class TestValidateStock:
    def test_all_lines_fit(self):
        result = validate_stock(
            [_line("a", 5), _line("b", 100)],
            [StockFact(product_id="a", available_stock=5), StockFact(product_id="b", available_stock=None)],
        )
        assert result.valid
        assert result.errors == ()

    def test_unlimited_stock_always_fits(self):
        result = validate_stock([_line("a", 10_000)], [StockFact(product_id="a")])
        assert result.valid

    def test_insufficient_stock(self):
        result = validate_stock([_line("a", 6)], [StockFact(product_id="a", available_stock=5)])

        assert not result.valid
        [error] = result.errors
        assert isinstance(error, InsufficientStock)
        assert (error.product_id, error.requested, error.available) == ("a", 6, 5)

    def test_unknown_product(self):
        result = validate_stock([_line("ghost", 1)], [])

        [error] = result.errors
        assert isinstance(error, ProductNotFound)
        assert error.product_id == "ghost"

    def test_collects_one_error_per_violating_line_in_cart_order(self):
        result = validate_stock(
            [_line("ghost", 1), _line("ok", 1), _line("short", 3)],
            [StockFact(product_id="ok", available_stock=1), StockFact(product_id="short", available_stock=2)],
        )

        assert [type(error) for error in result.errors] == [ProductNotFound, InsufficientStock]
        assert len(result.messages) == 2
        assert "ghost" in result.messages[0]

    def test_zero_stock_rejects_any_quantity(self):
        result = validate_stock([_line("a", 1)], [StockFact(product_id="a", available_stock=0)])
        assert not result.valid
