import csv
import io

from sales.export.orders_csv import BOM, HEADERS, export_orders_csv
from sales.order.notes import UpdateOrderNotes
from sales.order.queries import find_by_code, orders_for_export
from sales.order.status import ChangeOrderStatus


def _export(**filters):
    content = export_orders_csv(orders_for_export(**filters))
    assert content.startswith(BOM)
    return list(csv.reader(io.StringIO(content[len(BOM):])))


class TestOrdersExport:
    def test_header_row(self, sale):
        assert _export(event_id=sale.event_id) == [HEADERS]

    def test_order_row(self, place_order, process, sale, today):
        order = place_order(notes="Sonner deux fois")
        process(UpdateOrderNotes(order_id=order.order_id, bank_reference=" VIR-123 "))

        header, row = _export(event_id=sale.event_id)
        values = dict(zip(header, row, strict=True))

        assert values["Code"] == order.code
        assert values["Date"] == today.strftime("%d/%m/%Y")
        assert values["Événement"] == "Vente de Crémant 2025"
        assert values["Section"] == "Pionniers"
        assert values["Quantités"] == "6x; 6x"
        assert values["Type livraison"] == "Retrait"
        assert values["Sous-total (€)"] == "132.00"
        assert values["Remise groupée (€)"] == "10.00"
        assert values["Total (€)"] == "122.00"
        assert values["Statut"] == "En attente"
        assert values["Communication virement"] == "Dupont Marie - Crémant 25"
        assert values["Référence bancaire"] == "VIR-123"
        assert values["Notes"] == "Sonner deux fois"

    def test_status_filter(self, place_order, process, sale):
        first = place_order()
        place_order(customer_name="Martin Paul")
        process(ChangeOrderStatus(order_id=first.order_id, status="PAID"))

        rows = _export(event_id=sale.event_id, statuses=["PAID"])

        assert [row[0] for row in rows[1:]] == [first.code]
        assert rows[1][HEADERS.index("Statut")] == "Payé"


class TestFindByCode:
    def test_lookup_ignores_case_and_spaces(self, place_order):
        order = place_order()
        assert str(find_by_code(f"  {order.code.lower()} ").id) == order.order_id
