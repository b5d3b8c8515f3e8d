#!/usr/bin/env python3
"""
Run one overdue-payment reminder pass and print the messages.

Usage:
    python3 scripts/send_reminders.py
    python3 scripts/send_reminders.py --as-of 2024-02-01

The console messenger only prints; wire a real Messenger (email,
WhatsApp) through delivery_services.bootstrap.build_reminder_scheduler.
"""

import argparse
import sys
from dataclasses import replace
from datetime import date
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


class ConsoleMessenger:
    """Prints each reminder instead of sending it."""

    def __init__(self, currency_symbol: str = "R"):
        self._symbol = currency_symbol

    def send_overdue_reminder(self, message) -> None:
        from delivery_kernel.db.types import format_money

        customer = message.customer
        print()
        print(f"  To: {customer.name}  {customer.phone or ''} {customer.email or ''}".rstrip())
        for summary in message.invoices:
            invoice = summary.invoice
            print(
                f"    {invoice.invoice_number}  due {invoice.due_date.isoformat()}  "
                f"{format_money(summary.amount_due, self._symbol):>12}"
            )
        print(f"    Total outstanding: {format_money(message.total_due, self._symbol)}")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Send overdue payment reminders once.")
    parser.add_argument(
        "--as-of", type=date.fromisoformat, default=None,
        help="Treat invoices due before this date as overdue (default: today)",
    )
    parser.add_argument("--config", type=Path, default=None, help="YAML configuration file")
    parser.add_argument("--db-url", type=str, default=None, help="Database URL override")
    args = parser.parse_args(argv)

    from delivery_config import get_active_config
    from delivery_kernel.logging_config import configure_logging
    from delivery_services.bootstrap import build_reminder_scheduler, init_database

    config = get_active_config(args.config)
    if args.db_url:
        config = replace(config, database=replace(config.database, url=args.db_url))

    configure_logging(level=config.log_level.upper())
    try:
        init_database(config)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    scheduler = build_reminder_scheduler(
        config, ConsoleMessenger(config.ledger.currency_symbol)
    )
    sent = scheduler.run_once(args.as_of or date.today())
    print(f"\n  {sent} reminder(s) sent.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
