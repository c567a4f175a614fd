import json

import pytest
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

from sales.product.csv_import import ImportProducts, read_csv
from sales.product.management import AddProduct, AdjustProductStock, UpdateProduct
from sales.product.product import Product
from sales.utils.queries import find_all


def _products(event_id):
    return {p.name: p for p in find_all(Product, event_id=event_id)}


def _product(product_id):
    return current_domain.repository_for(Product).get(product_id)


class TestManageProducts:
    def test_add_product(self, process, sale):
        product_id = process(
            AddProduct(event_id=sale.event_id, name="Jus de pomme", price_cents=300, allergens=json.dumps(["sulfites"]))
        )
        product = _product(product_id)
        assert product.price_cents == 300
        assert product.stock is None
        assert product.allergen_list == ["sulfites"]

    def test_add_product_to_unknown_event(self, process, sale):
        with pytest.raises(ObjectNotFoundError):
            process(AddProduct(event_id="missing", name="X", price_cents=100))

    def test_partial_update_keeps_other_fields(self, process, sale):
        product_id = sale.product_ids["brut"]
        process(UpdateProduct(product_id=product_id, price_cents=1100))
        product = _product(product_id)
        assert product.price_cents == 1100
        assert product.name == "Crémant Brut"
        assert product.stock == 50

    def test_update_rejects_negative_price(self, process, sale):
        with pytest.raises(ValidationError):
            process(UpdateProduct(product_id=sale.product_ids["brut"], price_cents=-1))

    def test_stock_can_become_unlimited(self, process, sale):
        product_id = sale.product_ids["brut"]
        process(AdjustProductStock(product_id=product_id, stock=None))
        assert _product(product_id).stock is None

    def test_negative_stock_rejected(self, process, sale):
        with pytest.raises(ValidationError):
            process(AdjustProductStock(product_id=sale.product_ids["brut"], stock=-3))


CSV_CONTENT = (
    "﻿Nom du produit;Prix (en centimes);Type (ITEM/MENU/TICKET);Stock disponible;Ordre\n"
    "Spaghetti bolo;1200;MENU;;1\n"
    "Entrée souper;1500;TICKET;100;x\n"
)


class TestImportProducts:
    def test_preview_writes_nothing(self, process, sale):
        command = ImportProducts(event_id=sale.event_id, rows=json.dumps(read_csv(CSV_CONTENT)), preview=True)
        report = process(command)

        assert report.valid_count == 2
        assert report.warnings == ["Line 3: invalid sort order, 0 will be used"]
        assert "Spaghetti bolo" not in _products(sale.event_id)

    def test_import_creates_products(self, process, sale):
        report = process(ImportProducts(event_id=sale.event_id, rows=json.dumps(read_csv(CSV_CONTENT))))

        assert len(report.imported_ids) == 2
        products = _products(sale.event_id)
        assert products["Spaghetti bolo"].product_type == "MENU"
        assert products["Spaghetti bolo"].stock is None
        assert products["Entrée souper"].stock == 100
        assert products["Entrée souper"].sort_order == 0

    def test_any_invalid_row_blocks_the_import(self, process, sale):
        rows = [
            {"name": "Lasagne", "price_cents": "1300", "product_type": "MENU"},
            {"name": "", "price_cents": "abc", "product_type": "MENU"},
        ]
        with pytest.raises(ValidationError) as exc_info:
            process(ImportProducts(event_id=sale.event_id, rows=json.dumps(rows)))

        assert exc_info.value.messages["rows"] == [
            "Line 3: product name is required",
            "Line 3: invalid price (must be a positive number of cents)",
        ]
        assert "Lasagne" not in _products(sale.event_id)
