"""Bulk product import from spreadsheet exports.

Rows come from ``csv.DictReader`` (or any list of dicts with the same shape).
Headers may be the English field names or the French labels of the import
template; both are mapped onto the ``Product`` field names before each row is
validated. Line numbers in messages count the header as line 1.
"""

import csv
import io
import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Boolean, Identifier, Text
from protean.utils.globals import current_domain

from sales.domain import sales
from sales.event.event import SaleEvent
from sales.product.product import Product, ProductType
from sales.utils.logging import get_logger

logger = get_logger(__name__)

COLUMN_ALIASES = {
    "name": "name",
    "nom du produit": "name",
    "nom": "name",
    "description": "description",
    "price_cents": "price_cents",
    "prix (en centimes)": "price_cents",
    "prix en centimes": "price_cents",
    "prix": "price_cents",
    "product_type": "product_type",
    "type (item/menu/ticket)": "product_type",
    "type": "product_type",
    "stock": "stock",
    "stock disponible": "stock",
    "is_active": "is_active",
    "actif (true/false)": "is_active",
    "actif": "is_active",
    "sort_order": "sort_order",
    "ordre d'affichage": "sort_order",
    "ordre": "sort_order",
    "allergens": "allergens",
    "allergènes (séparés par virgule)": "allergens",
    "allergènes": "allergens",
    "allergenes": "allergens",
    "is_vegetarian": "is_vegetarian",
    "végétarien (true/false)": "is_vegetarian",
    "végétarien": "is_vegetarian",
    "vegetarien": "is_vegetarian",
    "is_vegan": "is_vegan",
    "végétalien/vegan (true/false)": "is_vegan",
    "végétalien": "is_vegan",
    "vegan": "is_vegan",
}

_TRUE_VALUES = {"true", "1", "oui", "yes"}


@dataclass
class RowResult:
    line_number: int
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    product: dict | None = None

    @property
    def valid(self) -> bool:
        return not self.errors


@dataclass
class ImportReport:
    total_rows: int
    products: list[dict]
    errors: list[str]
    warnings: list[str]
    imported_ids: list[str] = field(default_factory=list)

    @property
    def valid_count(self) -> int:
        return len(self.products)

    @property
    def invalid_count(self) -> int:
        return self.total_rows - self.valid_count


def normalize_row(row: Mapping[str, object]) -> dict:
    """Map column headers onto field names; unknown headers are kept as-is."""
    normalized = {}
    for key, value in row.items():
        if key is None:
            continue
        normalized[COLUMN_ALIASES.get(key.strip().lower(), key)] = value
    return normalized


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def parse_boolean(value) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_VALUES
    return False


def validate_product_row(row: Mapping[str, object], line_number: int) -> RowResult:
    data = normalize_row(row)
    result = RowResult(line_number=line_number)
    prefix = f"Line {line_number}"

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        result.errors.append(f"{prefix}: product name is required")

    product_type = data.get("product_type")
    product_type = product_type.strip().upper() if isinstance(product_type, str) else None
    if product_type not in {member.value for member in ProductType}:
        result.errors.append(f"{prefix}: invalid product type (expected ITEM, MENU or TICKET)")

    price_cents = _parse_int(data.get("price_cents"))
    if price_cents is None or price_cents <= 0:
        result.errors.append(f"{prefix}: invalid price (must be a positive number of cents)")

    stock = None
    if not _is_blank(data.get("stock")):
        stock = _parse_int(data["stock"])
        if stock is None or stock < 0:
            result.errors.append(f"{prefix}: invalid stock (must be a non-negative number or empty)")

    sort_order = 0
    if not _is_blank(data.get("sort_order")):
        parsed = _parse_int(data["sort_order"])
        if parsed is None or parsed < 0:
            result.warnings.append(f"{prefix}: invalid sort order, 0 will be used")
        else:
            sort_order = parsed

    allergens = []
    if isinstance(data.get("allergens"), str):
        allergens = [allergen.strip() for allergen in data["allergens"].split(",") if allergen.strip()]

    if result.errors:
        return result

    description = data.get("description")
    result.product = {
        "name": name.strip(),
        "description": description.strip() if isinstance(description, str) else "",
        "price_cents": price_cents,
        "product_type": product_type,
        "stock": stock,
        "is_active": parse_boolean(data["is_active"]) if "is_active" in data else True,
        "sort_order": sort_order,
        "allergens": allergens,
        "is_vegetarian": parse_boolean(data.get("is_vegetarian")),
        "is_vegan": parse_boolean(data.get("is_vegan")),
    }
    return result


def read_csv(content: str) -> list[dict]:
    """Parse CSV text into row dicts; the delimiter (comma or semicolon) is sniffed."""
    content = content.lstrip("\ufeff")
    try:
        dialect = csv.Sniffer().sniff(content.splitlines()[0] if content else "", delimiters=",;")
    except csv.Error:
        dialect = csv.excel
    return list(csv.DictReader(io.StringIO(content), dialect=dialect))


def build_report(rows: Iterable[Mapping[str, object]]) -> ImportReport:
    results = [validate_product_row(row, index + 2) for index, row in enumerate(rows)]
    return ImportReport(
        total_rows=len(results),
        products=[result.product for result in results if result.valid],
        errors=[error for result in results for error in result.errors],
        warnings=[warning for result in results for warning in result.warnings],
    )


@sales.command(part_of="Product")
class ImportProducts:
    event_id = Identifier(required=True)
    rows = Text(required=True)  # JSON: list of row dicts
    preview = Boolean(default=False)


@sales.command_handler(part_of=Product)
class ImportProductsHandler:
    @handle(ImportProducts)
    def import_products(self, command):
        report = build_report(json.loads(command.rows))
        if command.preview:
            return report

        if report.errors:
            raise ValidationError({"rows": report.errors})

        current_domain.repository_for(SaleEvent).get(command.event_id)
        repo = current_domain.repository_for(Product)
        for data in report.products:
            product = Product.create(event_id=command.event_id, **data)
            repo.add(product)
            report.imported_ids.append(str(product.id))

        logger.info(
            "Products imported",
            event_id=command.event_id,
            imported=len(report.imported_ids),
            warnings=len(report.warnings),
        )
        return report
