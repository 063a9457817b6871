"""Command-line interface for bikestock."""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .entity_store import EntityStore
from .errors import BikestockError
from .inventory import InventoryService
from .models import REGISTRATION_DURATIONS, CustomerFields, Motorcycle
from .queries import list_available, list_sales, search_customers, stock_matches
from .sales import SaleCoordinator
from .stats import container_report, container_summaries, container_summary, dashboard_stats
from .utils import parse_bike_rows


def get_store(args: argparse.Namespace) -> EntityStore:
    """Get the EntityStore selected by --data-dir (or the environment default)."""
    data_dir = getattr(args, "data_dir", None)
    return EntityStore(Path(data_dir) if data_dir else None)


def format_motorcycle(bike: Motorcycle) -> str:
    """Format a motorcycle as one listing line."""
    price = f"  bought {bike.buying_price}" if bike.buying_price is not None else ""
    reg = f"  reg {bike.registration_number}" if bike.registration_number else ""
    return (
        f"  {bike.id[:8]}  {bike.chassis:<16} {bike.model} "
        f"({bike.color}, engine {bike.engine})  [{bike.status}]{price}{reg}"
    )


# --- Containers ---


def cmd_container_create(args: argparse.Namespace) -> int:
    """Create a container."""
    try:
        service = InventoryService(get_store(args))
        container = service.create_container(args.name, args.exporter, args.date)

        print(f"Created container: {container.id[:8]}")
        print(f"  Name: {container.name}")
        print(f"  Exporter: {container.exporter_name}")
        print(f"  Imported: {container.import_date}")
        print(f"  ID: {container.id}")
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_container_list(args: argparse.Namespace) -> int:
    """List containers with profit figures."""
    try:
        summaries = container_summaries(get_store(args))

        if not summaries:
            print("No containers found.")
            return 0

        if args.json:
            print(json.dumps([s.to_dict() for s in summaries], indent=2))
            return 0

        print(f"Containers ({len(summaries)}):")
        print()
        for s in summaries:
            c = s.container
            print(f"  {c.id[:8]}  {c.name}  ({c.exporter_name}, {c.import_date[:10]})")
            print(
                f"           {s.unit_count} units, {s.sold_count} sold, "
                f"invested {s.investment}, profit {s.realized_profit}"
            )
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_container_import(args: argparse.Namespace) -> int:
    """Import bikes into a container from a CSV/TSV file."""
    try:
        if args.file == "-":
            text = sys.stdin.read()
        else:
            text = Path(args.file).read_text(encoding="utf-8")

        rows = parse_bike_rows(text)
        service = InventoryService(get_store(args))
        bikes = service.import_bikes(args.container_id, rows)

        print(f"Imported {len(bikes)} motorcycle(s)")
        for bike in bikes:
            print(format_motorcycle(bike))
        return 0

    except (OSError, UnicodeDecodeError, BikestockError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_container_show(args: argparse.Namespace) -> int:
    """Show one container's figures, optionally with per-bike rows."""
    try:
        store = get_store(args)
        summary = container_summary(store, args.container_id)
        rows = container_report(store, args.container_id) if args.report else []

        if args.json:
            data = summary.to_dict()
            if args.report:
                data["report"] = [r.to_dict() for r in rows]
            print(json.dumps(data, indent=2))
            return 0

        c = summary.container
        print(f"Container: {c.name} ({c.id[:8]})")
        print(f"  Exporter: {c.exporter_name}")
        print(f"  Units: {summary.unit_count} ({summary.available_count} available, {summary.sold_count} sold)")
        print(f"  Investment: {summary.investment}")
        print(f"  Sales: {summary.sales_total}")
        print(f"  Realized profit: {summary.realized_profit}")
        if rows:
            print()
            for r in rows:
                print(
                    f"  {r.chassis:<16} {r.model:<20} {r.status:<9} "
                    f"buy {r.buying_price}  sell {r.selling_price}  profit {r.profit}"
                )
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


# --- Stock ---


def cmd_stock_list(args: argparse.Namespace) -> int:
    """List motorcycles."""
    try:
        store = get_store(args)
        if args.all:
            bikes = [b for b in store.list_motorcycles() if stock_matches(b, args.query)]
        else:
            bikes = list_available(store, query=args.query)

        if not bikes:
            print("No motorcycles found.")
            return 0

        if args.json:
            print(json.dumps([b.to_dict() for b in bikes], indent=2))
        else:
            print(f"Motorcycles ({len(bikes)}):")
            for bike in bikes:
                print(format_motorcycle(bike))
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stock_add(args: argparse.Namespace) -> int:
    """Add one motorcycle to stock."""
    try:
        service = InventoryService(get_store(args))
        bike = service.add_motorcycle(
            model=args.model,
            chassis=args.chassis,
            engine=args.engine,
            color=args.color,
            buying_price=args.price,
            exporter_name=args.exporter,
            container_id=args.container,
        )
        print(f"Added motorcycle: {bike.id[:8]}")
        print(format_motorcycle(bike))
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stock_remove(args: argparse.Namespace) -> int:
    """Remove an unsold motorcycle."""
    try:
        service = InventoryService(get_store(args))
        bike = service.remove_motorcycle(args.motorcycle_id)
        print(f"Removed motorcycle: {bike.chassis} ({bike.model})")
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stock_register(args: argparse.Namespace) -> int:
    """Set the registration number of a sold motorcycle."""
    try:
        service = InventoryService(get_store(args))
        bike = service.set_registration_number(args.motorcycle_id, args.registration_number)
        print(f"Registered {bike.chassis} as {bike.registration_number}")
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


# --- Sales ---


def cmd_sell(args: argparse.Namespace) -> int:
    """Sell a motorcycle."""
    try:
        coordinator = SaleCoordinator(get_store(args))
        fields = CustomerFields(
            name=args.name,
            phone=args.phone,
            nid=args.nid,
            father_name=args.father or "",
            mother_name=args.mother or "",
            dob=args.dob or "",
            address=args.address or "",
            notes=args.notes or "",
        )
        record = coordinator.submit_sale(args.chassis, fields, args.price, args.duration)

        if args.json:
            print(
                json.dumps(
                    {
                        "sale": record.sale.to_dict(),
                        "customer": record.customer.to_dict(),
                        "motorcycle": record.motorcycle.to_dict(),
                        "customer_created": record.customer_created,
                    },
                    indent=2,
                )
            )
            return 0

        status = "new customer" if record.customer_created else "existing customer"
        print(f"Sold {record.motorcycle.chassis} ({record.motorcycle.model})")
        print(f"  Sale: {record.sale.id[:8]}")
        print(f"  Customer: {record.customer.name} ({status}, {record.customer.id[:8]})")
        print(f"  Price: {record.sale.sale_price}")
        print(f"  Registration: {record.sale.registration_duration}")
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_sales(args: argparse.Namespace) -> int:
    """List sales."""
    try:
        listings = list_sales(get_store(args), limit=args.limit)

        if not listings:
            print("No sales found.")
            return 0

        if args.json:
            print(json.dumps([s.to_dict() for s in listings], indent=2))
        else:
            print(f"Sales ({len(listings)}):")
            for s in listings:
                print(
                    f"  {s.sale.sale_date[:10]}  {s.chassis:<16} {s.model:<20} "
                    f"{s.customer_name} ({s.customer_phone})  {s.sale.sale_price}"
                )
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_customers(args: argparse.Namespace) -> int:
    """Search customers."""
    try:
        customers = search_customers(get_store(args), query=args.query, month=args.month)

        if not customers:
            print("No customers found.")
            return 0

        if args.json:
            print(json.dumps([c.to_dict() for c in customers], indent=2))
        else:
            print(f"Customers ({len(customers)}):")
            for c in customers:
                print(
                    f"  {c.id[:8]}  {c.name}  phone {c.phone}  nid {c.nid}  "
                    f"{len(c.purchased_bike_ids)} bike(s)"
                )
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_stats(args: argparse.Namespace) -> int:
    """Show dashboard statistics."""
    try:
        stats = dashboard_stats(get_store(args))

        if args.json:
            print(json.dumps(stats.to_dict(), indent=2))
        else:
            print(f"In stock:   {stats.in_stock}")
            print(f"Sold:       {stats.sold}")
            print(f"Sales:      {stats.total_sales}")
            print(f"Revenue:    {stats.total_revenue}")
            print(f"Customers:  {stats.total_customers}")
        return 0

    except BikestockError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        if args.data_dir:
            # The API builds its own stores; hand the directory over via the environment
            os.environ["BIKESTOCK_DATA_DIR"] = str(Path(args.data_dir).resolve())

        print("Starting bikestock API server...")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "bikestock.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="bikestock",
        description="Track motorcycle containers, stock and sales.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--data-dir", help="Directory holding inventory.json (default: $BIKESTOCK_DATA_DIR)"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # container
    container_parser = subparsers.add_parser("container", help="Manage import containers")
    container_subparsers = container_parser.add_subparsers(dest="container_command")

    container_create_parser = container_subparsers.add_parser("create", help="Create a container")
    container_create_parser.add_argument("name", help="Container name, e.g. 'Feb 2024 Shipment'")
    container_create_parser.add_argument("--exporter", "-e", required=True, help="Exporter name")
    container_create_parser.add_argument("--date", help="Import date (ISO, default: now)")

    container_list_parser = container_subparsers.add_parser("list", help="List containers")
    container_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    container_import_parser = container_subparsers.add_parser(
        "import", help="Import bikes from 'model,chassis,engine,color[,price]' lines"
    )
    container_import_parser.add_argument("container_id", help="Container ID")
    container_import_parser.add_argument("file", help="CSV/TSV file ('-' for stdin)")

    container_show_parser = container_subparsers.add_parser("show", help="Show container figures")
    container_show_parser.add_argument("container_id", help="Container ID")
    container_show_parser.add_argument("--report", "-r", action="store_true", help="Include per-bike rows")
    container_show_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # stock
    stock_parser = subparsers.add_parser("stock", help="Manage motorcycles in stock")
    stock_subparsers = stock_parser.add_subparsers(dest="stock_command")

    stock_list_parser = stock_subparsers.add_parser("list", help="List motorcycles")
    stock_list_parser.add_argument("query", nargs="?", default="", help="Model, chassis or engine substring")
    stock_list_parser.add_argument("--all", "-a", action="store_true", help="Include sold motorcycles")
    stock_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    stock_add_parser = stock_subparsers.add_parser("add", help="Add a motorcycle")
    stock_add_parser.add_argument("--model", "-m", required=True, help="Model name")
    stock_add_parser.add_argument("--chassis", "-c", required=True, help="Chassis number")
    stock_add_parser.add_argument("--engine", default="", help="Engine number")
    stock_add_parser.add_argument("--color", default="", help="Color")
    stock_add_parser.add_argument("--price", type=float, help="Buying price")
    stock_add_parser.add_argument("--exporter", help="Exporter name")
    stock_add_parser.add_argument("--container", help="Container ID")

    stock_remove_parser = stock_subparsers.add_parser("remove", help="Remove an unsold motorcycle")
    stock_remove_parser.add_argument("motorcycle_id", help="Motorcycle ID")

    stock_register_parser = stock_subparsers.add_parser(
        "register", help="Set the registration number of a sold motorcycle"
    )
    stock_register_parser.add_argument("motorcycle_id", help="Motorcycle ID")
    stock_register_parser.add_argument("registration_number", help="Registration number")

    # sell
    sell_parser = subparsers.add_parser("sell", help="Sell a motorcycle")
    sell_parser.add_argument("chassis", help="Chassis number")
    sell_parser.add_argument("--price", "-p", type=float, required=True, help="Sale price")
    sell_parser.add_argument(
        "--duration", "-d", required=True, help=f"Registration duration ({' or '.join(REGISTRATION_DURATIONS)})"
    )
    sell_parser.add_argument("--name", required=True, help="Customer name")
    sell_parser.add_argument("--phone", required=True, help="Customer phone")
    sell_parser.add_argument("--nid", required=True, help="Customer national ID")
    sell_parser.add_argument("--father", help="Father's name")
    sell_parser.add_argument("--mother", help="Mother's name")
    sell_parser.add_argument("--dob", help="Date of birth (YYYY-MM-DD)")
    sell_parser.add_argument("--address", help="Address")
    sell_parser.add_argument("--notes", help="Notes")
    sell_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # sales
    sales_parser = subparsers.add_parser("sales", help="List sales")
    sales_parser.add_argument("--limit", "-n", type=int, help="Show only the newest N")
    sales_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # customers
    customers_parser = subparsers.add_parser("customers", help="Search customers")
    customers_parser.add_argument("query", nargs="?", default="", help="Search terms")
    customers_parser.add_argument("--month", help="Purchase month (YYYY-MM)")
    customers_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # stats
    stats_parser = subparsers.add_parser("stats", help="Show dashboard statistics")
    stats_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to bind to")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    return parser


def main() -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 0

    # Handle container subcommands
    if args.command == "container":
        if not getattr(args, "container_command", None):
            parser.parse_args(["container", "--help"])
            return 0
        container_commands = {
            "create": cmd_container_create,
            "list": cmd_container_list,
            "import": cmd_container_import,
            "show": cmd_container_show,
        }
        return container_commands[args.container_command](args)

    # Handle stock subcommands
    if args.command == "stock":
        if not getattr(args, "stock_command", None):
            parser.parse_args(["stock", "--help"])
            return 0
        stock_commands = {
            "list": cmd_stock_list,
            "add": cmd_stock_add,
            "remove": cmd_stock_remove,
            "register": cmd_stock_register,
        }
        return stock_commands[args.stock_command](args)

    commands = {
        "sell": cmd_sell,
        "sales": cmd_sales,
        "customers": cmd_customers,
        "stats": cmd_stats,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
