"""ScoutShop management CLI.

Usage:
    python src/manage.py setup-db                       # Create all tables
    python src/manage.py drop-db                        # Drop all tables
    python src/manage.py import-products EVENT_ID FILE  # Import a product CSV
    python src/manage.py import-products EVENT_ID FILE --preview
    python src/manage.py export-orders [--event EVENT_ID] [--status PAID ...] [-o FILE]
"""

import argparse
import json
import sys
from pathlib import Path

from protean.exceptions import ValidationError


def setup_database():
    """Create the sales database schema."""
    from sales.domain import sales
    from sales.utils.db import setup_db

    print("Initializing sales domain...")
    sales.init()
    print("Creating sales database schema...")
    setup_db(sales)
    print("Done.")


def drop_database():
    """Drop the sales database schema."""
    from sales.domain import sales
    from sales.utils.db import drop_db

    print("Initializing sales domain...")
    sales.init()
    print("Dropping sales database schema...")
    drop_db(sales)
    print("Done.")


def import_products(event_id, path, preview=False):
    from sales.domain import sales
    from sales.product.csv_import import ImportProducts, read_csv

    rows = read_csv(Path(path).read_text(encoding="utf-8"))
    sales.init()
    with sales.domain_context():
        report = sales.process(
            ImportProducts(event_id=event_id, rows=json.dumps(rows), preview=preview),
            asynchronous=False,
        )

    for warning in report.warnings:
        print(f"warning: {warning}")
    for error in report.errors:
        print(f"error: {error}")
    if preview:
        print(f"{report.valid_count}/{report.total_rows} rows valid.")
    else:
        print(f"{len(report.imported_ids)} products imported.")


def export_orders(event_id=None, statuses=None, output=None):
    from sales.domain import sales
    from sales.export.orders_csv import export_orders_csv
    from sales.order.queries import orders_for_export

    sales.init()
    with sales.domain_context():
        content = export_orders_csv(orders_for_export(event_id=event_id, statuses=statuses))

    if output:
        Path(output).write_text(content, encoding="utf-8")
        print(f"Orders written to {output}.")
    else:
        sys.stdout.write(content)


def main():
    parser = argparse.ArgumentParser(description="ScoutShop management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    import_parser = subparsers.add_parser("import-products", help="Import products of an event from a CSV file")
    import_parser.add_argument("event_id")
    import_parser.add_argument("path")
    import_parser.add_argument("--preview", action="store_true", help="Validate only, import nothing")

    export_parser = subparsers.add_parser("export-orders", help="Export orders as CSV")
    export_parser.add_argument("--event", dest="event_id")
    export_parser.add_argument("--status", dest="statuses", nargs="*")
    export_parser.add_argument("-o", "--output")

    args = parser.parse_args()

    from sales.errors import error_summary

    try:
        if args.command == "setup-db":
            setup_database()
        elif args.command == "drop-db":
            drop_database()
        elif args.command == "import-products":
            import_products(args.event_id, args.path, preview=args.preview)
        elif args.command == "export-orders":
            export_orders(args.event_id, args.statuses, args.output)
    except ValidationError as exc:
        print(f"error: {error_summary(exc.messages)}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
