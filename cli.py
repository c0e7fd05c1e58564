"""
CLI for the Order Service.
Start the server, repair the order index, or manage orders over HTTP.
"""

import sys
import argparse
import uuid
from pathlib import Path

# Add project to path
project_root = Path(__file__).resolve().parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

DEFAULT_API_URL = "http://localhost:8000"


def _init():
    """Load config and configure logging; returns the config."""
    from order_service.core.config import get_config
    from order_service.core.logging import setup_logging_from_config

    config = get_config()
    setup_logging_from_config(config)
    return config


def _build_reconciler(config, batch_size=None):
    from order_service.core.redis_client import get_redis
    from order_service.orders.reconciler import IndexReconciler

    return IndexReconciler(
        get_redis(),
        key_prefix=config.get('redis', 'key_prefix', default='order:'),
        index_key=config.get('redis', 'index_key', default='orders'),
        batch_size=batch_size or config.get_int('reconciler', 'batch_size', default=200),
    )


def parse_line_item(text):
    """Parse ITEM:QTY[:PRICE] into a LineItem."""
    from order_service.orders.models import LineItem

    parts = text.split(':')
    if len(parts) not in (2, 3):
        raise argparse.ArgumentTypeError(f"expected ITEM:QTY[:PRICE], got '{text}'")
    try:
        quantity = int(parts[1])
        price = int(parts[2]) if len(parts) == 3 else 0
        return LineItem(item_id=parts[0], quantity=quantity, price=price)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid line item '{text}': {e}")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn

    print(f"[SERVER] Starting API server on http://{args.host}:{args.port}")
    print(f"   Docs: http://{args.host}:{args.port}/docs")

    uvicorn.run(
        "order_service.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        workers=None if args.reload else args.workers
    )


def cmd_reconcile(args):
    """Run one index reconciliation sweep."""
    from order_service.orders.errors import StoreUnavailable

    config = _init()
    reconciler = _build_reconciler(config, args.batch_size)

    mode = "dry run" if args.dry_run else "repair"
    print(f"[RECONCILE] Sweeping index '{reconciler.index_key}' ({mode})...")

    try:
        result = reconciler.run(dry_run=args.dry_run)
    except StoreUnavailable as e:
        print(f"[ERROR] {e}")
        return 1

    print(f"\n[OK] Reconcile complete!")
    print(f"   Index entries scanned: {result.index_scanned}")
    print(f"   Records scanned: {result.records_scanned}")
    print(f"   Dangling entries {'found' if args.dry_run else 'removed'}: {result.dangling_removed}")
    print(f"   Unindexed records {'found' if args.dry_run else 'added'}: {result.unindexed_added}")
    return 0


def cmd_schedule(args):
    """Run periodic reconciliation."""
    from order_service.orders.reconciler import ReconcileScheduler

    config = _init()
    interval = args.interval or config.get_float('reconciler', 'interval_minutes', default=30)
    scheduler = ReconcileScheduler(_build_reconciler(config), interval_minutes=interval)
    try:
        scheduler.run()
    except KeyboardInterrupt:
        scheduler.stop()
    return 0


def cmd_orders(args):
    """Order commands against a running server."""
    from order_service.orders.client import OrderClient
    from order_service.orders.errors import OrderStoreError

    _init()
    client = OrderClient(args.url, timeout=args.timeout)

    try:
        if args.orders_command == "list":
            count = 0
            for order in client.iter_orders(size=args.size):
                print(order.model_dump_json())
                count += 1
            print(f"[OK] {count} orders", file=sys.stderr)
        elif args.orders_command == "get":
            print(client.get_order(args.order_id).model_dump_json(indent=2))
        elif args.orders_command == "create":
            order = client.create_order(args.customer, args.item or [])
            print(order.model_dump_json(indent=2))
        elif args.orders_command == "update":
            order = client.replace_order(args.order_id, args.customer, args.item or [])
            print(order.model_dump_json(indent=2))
        elif args.orders_command == "delete":
            client.delete_order(args.order_id)
            print(f"[OK] Deleted order {args.order_id}")
        else:
            return 2
    except OrderStoreError as e:
        print(f"[ERROR] {e}")
        return 1
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Order Service CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py serve
  python cli.py reconcile --dry-run
  python cli.py orders create --customer 8d3c... --item sku-1:2 --item sku-9:1:499
  python cli.py orders list --size 100
        """
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--host", type=str, default="0.0.0.0", help="Host to bind")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    serve_parser.add_argument("--workers", type=int, default=1, help="Worker processes")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    # Reconcile command
    reconcile_parser = subparsers.add_parser("reconcile", help="Repair drift between the index and records")
    reconcile_parser.add_argument("--dry-run", action="store_true", help="Report drift without writing")
    reconcile_parser.add_argument("--batch-size", type=int, default=None, help="Keys per scan step")

    # Schedule command
    schedule_parser = subparsers.add_parser("schedule", help="Run reconciliation periodically")
    schedule_parser.add_argument("--interval", type=float, default=None, help="Minutes between sweeps")

    # Orders commands
    orders_parser = subparsers.add_parser("orders", help="Manage orders through the API")
    orders_parser.add_argument("--url", type=str, default=DEFAULT_API_URL, help="API base URL")
    orders_parser.add_argument("--timeout", type=float, default=30, help="Request timeout in seconds")
    orders_subparsers = orders_parser.add_subparsers(dest="orders_command")

    list_parser = orders_subparsers.add_parser("list", help="List every order")
    list_parser.add_argument("--size", type=int, default=None, help="Page size")

    get_parser = orders_subparsers.add_parser("get", help="Show one order")
    get_parser.add_argument("order_id", type=int)

    for name, help_text in (("create", "Create an order"), ("update", "Replace an order")):
        sub = orders_subparsers.add_parser(name, help=help_text)
        if name == "update":
            sub.add_argument("order_id", type=int)
        sub.add_argument("--customer", type=uuid.UUID, required=True, help="Customer UUID")
        sub.add_argument("--item", type=parse_line_item, action="append", help="ITEM:QTY[:PRICE], repeatable")

    delete_parser = orders_subparsers.add_parser("delete", help="Delete an order")
    delete_parser.add_argument("order_id", type=int)

    return parser, orders_parser


def main(argv=None):
    parser, orders_parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "serve":
        return cmd_serve(args)
    elif args.command == "reconcile":
        return cmd_reconcile(args)
    elif args.command == "schedule":
        return cmd_schedule(args)
    elif args.command == "orders":
        if not args.orders_command:
            orders_parser.print_help()
            return 2
        return cmd_orders(args)
    else:
        parser.print_help()
        return 2


if __name__ == "__main__":
    sys.exit(main())
