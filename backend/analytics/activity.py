"""Recent activity feed: latest paid sales and low-stock alerts, newest first."""

from __future__ import annotations

from collections.abc import Sequence

from analytics.frames import parse_timestamp
from analytics.results import ActivityEntry
from domain.records import Record, is_low_stock, is_paid, parse_amount

RECENT_SALES = 5
RECENT_LOW_STOCK = 3
FEED_SIZE = 10


def build_recent_activity(invoices: Sequence[Record], items: Sequence[Record]) -> list[ActivityEntry]:
    """Records without a parseable timestamp are left out of the feed."""
    sales = []
    for invoice in invoices:
        if not is_paid(invoice):
            continue
        created = parse_timestamp(invoice.get("created_at"))
        if created is not None:
            sales.append((created, invoice))
    sales.sort(key=lambda pair: pair[0], reverse=True)

    low_stock = []
    for item in items:
        if not is_low_stock(item):
            continue
        updated = parse_timestamp(item.get("updated_at"))
        if updated is not None:
            low_stock.append((updated, item))
    low_stock.sort(key=lambda pair: pair[0], reverse=True)

    entries = []
    for created, invoice in sales[:RECENT_SALES]:
        line_count = len(invoice.get("items") or [])
        entries.append(
            (
                created,
                ActivityEntry(
                    type="sale",
                    title=f"Sale to {invoice.get('customer_name') or 'Unknown'}",
                    description=f"Invoice #{invoice.get('invoice_number') or invoice.get('id')} - {line_count} items",
                    time=created.isoformat(),
                    status="completed",
                    amount=parse_amount(invoice.get("total")) or 0.0,
                ),
            )
        )
    for updated, item in low_stock[:RECENT_LOW_STOCK]:
        entries.append(
            (
                updated,
                ActivityEntry(
                    type="low_stock",
                    title=f"Low stock alert: {item.get('name') or 'Unknown'}",
                    description=f"Only {item.get('stock', 0)} units remaining",
                    time=updated.isoformat(),
                    status="warning",
                ),
            )
        )

    entries.sort(key=lambda pair: pair[0], reverse=True)
    return [entry for _, entry in entries[:FEED_SIZE]]
