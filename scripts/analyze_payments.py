"""
Monthly payment analysis.

Fetches one month of documents from the platform and compares what
customers were charged (total_cost) with what reached the account
(payment_amount), grouped by payment status. Refunded documents are left
out of the totals.

Usage:
    python scripts/analyze_payments.py --year 2025 --month 11 --exclude-email internal@example.com
"""
import argparse
import logging
import sys
import os
from datetime import datetime

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from core.baas import PlatformClient, PlatformError
from core.config import ConfigurationError, configure_logging
from payments.summary import summarize
from affiliates.formatting import format_currency

logger = logging.getLogger("analyze_payments")

DOCUMENT_COLUMNS = (
    "id,filename,total_cost,payment_amount,payment_status,status,created_at,user_id,"
    "profiles!inner(name,email)"
)


def month_bounds(year: int, month: int) -> tuple[str, str]:
    start = datetime(year, month, 1)
    end = datetime(year + 1, 1, 1) if month == 12 else datetime(year, month + 1, 1)
    return start.isoformat(), end.isoformat()


def is_excluded(row: dict, excluded_emails: list[str]) -> bool:
    email = ((row.get("profiles") or {}).get("email") or "").lower()
    return any(excluded.lower() in email for excluded in excluded_emails)


def fetch_documents(client: PlatformClient, year: int, month: int) -> list[dict]:
    start, end = month_bounds(year, month)
    return client.select(
        "documents",
        columns=DOCUMENT_COLUMNS,
        filters={"and": f"(created_at.gte.{start},created_at.lt.{end})"},
        order="created_at.asc",
    )


def print_report(documents: list[dict], year: int, month: int) -> None:
    summary = summarize(documents, gross_key="total_cost", net_key="payment_amount", status_key="payment_status")

    print(f"Payments for {year}-{month:02d}: {summary.total_count} documents\n")
    print("By payment status:")
    for status, count in sorted(summary.count_by_status.items()):
        print(f"  - {status}: {count}")

    print(f"\nCompleted documents: {summary.completed_count}")
    for index, row in enumerate(d for d in documents if d.get("payment_status") == "completed"):
        name = (row.get("profiles") or {}).get("name") or "N/A"
        print(f"{index + 1}. {row.get('filename')} ({name})")
        print(f"   total_cost: {format_currency(row.get('total_cost') or 0)}")
        print(f"   payment_amount: {format_currency(row.get('payment_amount') or 0)}")

    print("\nTotals:")
    print(f"  Gross (charged to customers): {format_currency(summary.gross_total)}")
    print(f"  Net (after card fees): {format_currency(summary.net_total)}")
    print(f"  Card fees: {format_currency(summary.fee_total)}")


def main():
    parser = argparse.ArgumentParser(description='Summarize one month of document payments')
    parser.add_argument('--year', type=int, default=datetime.now().year)
    parser.add_argument('--month', type=int, default=datetime.now().month, choices=range(1, 13))
    parser.add_argument('--exclude-email', action='append', default=[],
                        help='Leave out documents from users whose email contains this value')
    args = parser.parse_args()

    configure_logging()

    try:
        client = PlatformClient.from_settings()
    except ConfigurationError as e:
        print(f"Error: {e}")
        print("Export SUPABASE_URL and SUPABASE_ANON_KEY (or the VITE_ prefixed names) and try again.")
        sys.exit(1)

    with client:
        try:
            documents = fetch_documents(client, args.year, args.month)
        except PlatformError as e:
            logger.error(f"Could not fetch documents: {e}")
            sys.exit(1)

    documents = [d for d in documents if not is_excluded(d, args.exclude_email)]
    print_report(documents, args.year, args.month)


if __name__ == '__main__':
    main()
