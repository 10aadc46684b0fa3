# salesbook/cli.py
"""
Command-line entry point: python -m salesbook <command>

    export-backup PATH        write a JSON backup (PATH may be a folder)
    import-backup PATH        merge a JSON backup into the local database
    balances                  outstanding balance for every customer
    daily [DAY]               sales, vendor bills and net profit for one day
    report START END          sales report for an inclusive date range
    reset-db --yes            wipe local data and restore defaults
    test-connection           write a probe document to the cloud
"""
from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional, Sequence

from .config import AppConfig
from .modules.backup_restore import BackupFormatError
from .modules.login import AppSession
from .utils.helpers import fmt_money, today_str
from .utils.loggers import get_logger
from .utils.validators import is_iso_day


def _day(text: str) -> str:
    if not is_iso_day(text):
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {text!r}")
    return text.strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="salesbook", description="Sales book ledger tools")
    parser.add_argument("--db", help="Path to the SQLite database (default: SALESBOOK_DB_PATH or the app data folder)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("export-backup", help="Write a JSON backup")
    p.add_argument("path", help="Backup file, or a folder to place sp_sales_backup_<date>.json in")

    p = sub.add_parser("import-backup", help="Merge a JSON backup into the local database")
    p.add_argument("path")

    sub.add_parser("balances", help="Outstanding balance per customer")

    p = sub.add_parser("daily", help="Totals for one day")
    p.add_argument("day", nargs="?", type=_day, help="YYYY-MM-DD (default: today)")

    p = sub.add_parser("report", help="Sales report for a date range")
    p.add_argument("start", type=_day)
    p.add_argument("end", type=_day)

    p = sub.add_parser("reset-db", help="Wipe local data and restore defaults")
    p.add_argument("--yes", action="store_true", help="Confirm the reset")

    sub.add_parser("test-connection", help="Check that the cloud backend accepts writes")
    return parser


def _print_balances(session: AppSession) -> None:
    rows = session.customer_balances()
    if not rows:
        print("No customers.")
        return
    width = max(len(r.name) for r in rows)
    for r in rows:
        print(f"{r.name:<{width}}  {fmt_money(r.balance):>14}")


def _print_daily(session: AppSession, day: str) -> None:
    totals = session.daily_summary(day, day)
    sales = totals[0].sales if totals else 0.0
    bills = totals[0].vendor_bills if totals else 0.0
    print(f"Date:         {day}")
    print(f"Sales:        {fmt_money(sales):>14}")
    print(f"Vendor bills: {fmt_money(bills):>14}")
    print(f"Net profit:   {fmt_money(session.daily_net_profit(day)):>14}")


def _print_report(session: AppSession, start: str, end: str) -> None:
    agg = session.period_report(start, end)
    s = agg.summary
    print(f"Sales report {start} .. {end}")
    print(f"  Invoices: {s.count}")
    print(f"  Revenue:  {fmt_money(s.revenue):>14}")
    print(f"  Paid:     {fmt_money(s.paid):>14}")
    print(f"  Balance:  {fmt_money(s.balance):>14}")
    if agg.products:
        print("Products:")
        for p in agg.products:
            print(f"  {p.name:<30} {p.qty:>10.2f} {p.unit:<4} {fmt_money(p.revenue):>14}")
    if agg.customers:
        print("Customers:")
        for c in agg.customers:
            print(f"  {c.name:<30} {c.count:>5} {fmt_money(c.total):>14}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = AppConfig.from_env()
    except ValueError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 1
    if args.db:
        config = replace(config, db_path=Path(args.db))
    get_logger("salesbook", config.log_level)

    session = AppSession.from_config(config)
    try:
        if args.command == "export-backup":
            try:
                path = session.backup.export_database(args.path)
            except (RuntimeError, OSError) as exc:
                print(f"Failed to export backup: {exc}", file=sys.stderr)
                return 1
            print(f"Backup exported successfully: {path}")
        elif args.command == "import-backup":
            try:
                counts = session.backup.import_database(args.path)
            except BackupFormatError as exc:
                print(f"Failed to import backup: {exc}", file=sys.stderr)
                return 1
            summary = ", ".join(f"{t}={n}" for t, n in counts.items())
            print(f"Backup imported successfully ({summary}).")
        elif args.command == "balances":
            _print_balances(session)
        elif args.command == "daily":
            _print_daily(session, args.day or today_str())
        elif args.command == "report":
            _print_report(session, args.start, args.end)
        elif args.command == "reset-db":
            if not args.yes:
                print("Refusing to reset without --yes.", file=sys.stderr)
                return 2
            session.backup.reset_database()
            print("Local database reset to defaults.")
        elif args.command == "test-connection":
            if session.sync is None:
                print("No cloud backend configured (set SALESBOOK_REMOTE).", file=sys.stderr)
                return 1
            ok, message = session.sync.test_connection()
            print(message, file=sys.stdout if ok else sys.stderr)
            return 0 if ok else 1
    finally:
        session.close()
    return 0
