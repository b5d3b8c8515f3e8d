#!/usr/bin/env python3
"""
Print packing lists for a delivery date, or write them to a PDF.

Usage:
    python3 scripts/packing_lists.py 2024-01-15
    python3 scripts/packing_lists.py 2024-01-15 --sort-by route --pdf out.pdf
    python3 scripts/packing_lists.py --order-id 3f2b... --pdf one.pdf

Reads configuration through DELIVERY_CONFIG / DATABASE_URL unless
--config / --db-url are given.
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from uuid import UUID, uuid4

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 60


def _print_batch(batch) -> None:
    from delivery_kernel.db.types import format_quantity

    if batch.is_empty:
        print("  No orders to pack.")
        return

    for sheet in batch:
        print()
        print("=" * W)
        print(f"  {sheet.customer_name}  (order {sheet.order_id.hex[:8].upper()})")
        if sheet.route_key:
            print(f"  Route: {sheet.route_key}")
        print(f"  Method: {sheet.delivery_method.upper()}")
        if sheet.special_instructions:
            print(f"  Instructions: {sheet.special_instructions}")
        print("-" * W)
        if sheet.is_empty:
            print("  No items")
        for row in sheet.rows:
            print(f"  {row.product_name:<36} {format_quantity(row.quantity):>10} {row.unit}")
    print("=" * W)
    print(f"  {len(batch)} order(s)")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Build packing lists for a delivery date or specific orders.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("delivery_date", nargs="?", help="Delivery date (YYYY-MM-DD)")
    parser.add_argument(
        "--order-id", action="append", default=[],
        help="Order UUID (repeatable); replaces the delivery date",
    )
    parser.add_argument("--sort-by", choices=("name", "route"), default=None)
    parser.add_argument("--pdf", type=Path, default=None, help="Write a PDF here instead of printing")
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--db-url", type=str, default=None, help="Database URL override")
    args = parser.parse_args(argv)

    if bool(args.delivery_date) == bool(args.order_id):
        parser.error("give a delivery date or at least one --order-id, not both")

    try:
        order_ids = [UUID(value) for value in args.order_id]
    except ValueError as exc:
        print(f"  ERROR: Invalid UUID: {exc}", file=sys.stderr)
        return 1

    from delivery_config import get_active_config
    from delivery_kernel.domain.context import Actor, Role
    from delivery_kernel.exceptions import DeliveryKernelError
    from delivery_services.authorization import AllowAllPolicy
    from delivery_services.bootstrap import bootstrap

    config = get_active_config(args.config)
    if args.db_url:
        config = replace(config, database=replace(config.database, url=args.db_url))

    try:
        service = bootstrap(config, policy=AllowAllPolicy())
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    actor = Actor(id=uuid4(), role=Role.ADMIN)
    try:
        if args.pdf is not None:
            document = service.render_packing_list_pdf(
                actor,
                order_ids=order_ids or None,
                delivery_date=args.delivery_date,
                sort_by=args.sort_by,
            )
            args.pdf.write_bytes(document.content)
            print(f"  Wrote {document.page_count} page(s) to {args.pdf}")
        elif order_ids:
            from delivery_modules.packing.models import PackingBatch

            sheets = tuple(service.get_packing_list(actor, order_id) for order_id in order_ids)
            _print_batch(PackingBatch(sheets=sheets))
        else:
            _print_batch(service.get_packing_lists_by_date(actor, args.delivery_date, args.sort_by))
    except DeliveryKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
