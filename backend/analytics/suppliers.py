"""
Supplier analytics — spend and reliability per supplier.

Reliability is the share of a supplier's purchase orders that reached
"received", as a whole percentage (0 when the supplier has no orders).
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import structlog

from analytics.frames import parse_timestamp, record_key, round_half_up, status_value
from analytics.results import SupplierAnalytics, SupplierReport
from domain.records import PurchaseOrderStatus, Record, parse_amount

logger = structlog.get_logger()


def calculate_supplier_analytics(
    suppliers: Sequence[Record],
    purchase_orders: Sequence[Record],
) -> SupplierReport:
    """
    Group purchase orders by supplier id and score each supplier.

    Every listed supplier is reported, zeroed when it has no orders. Orders
    for a supplier id missing from the list are still reported under the
    order's own supplier name and counted in ``unmatched_orders``.
    Sorted by total spend descending; ties keep first-seen order.
    """
    stats: dict[str, SupplierAnalytics] = {}
    latest: dict[str, Any] = {}

    for supplier in suppliers:
        supplier_id = record_key(supplier.get("id"))
        if supplier_id is None or supplier_id in stats:
            continue
        stats[supplier_id] = SupplierAnalytics(supplier_id=supplier_id, name=supplier.get("name") or "Unknown")
    listed = set(stats)

    unmatched = 0
    for order in purchase_orders:
        supplier_id = record_key(order.get("supplier_id")) or ""
        entry = stats.get(supplier_id)
        if entry is None:
            entry = stats[supplier_id] = SupplierAnalytics(
                supplier_id=supplier_id,
                name=order.get("supplier_name") or "Unknown",
            )
        if supplier_id not in listed:
            unmatched += 1

        entry.total_orders += 1
        entry.total_spend += parse_amount(order.get("total_amount")) or 0.0

        status = status_value(order.get("status"))
        if status == PurchaseOrderStatus.RECEIVED.value:
            entry.received_orders += 1
        elif status == PurchaseOrderStatus.PENDING.value:
            entry.pending_orders += 1
        elif status == PurchaseOrderStatus.CANCELLED.value:
            entry.cancelled_orders += 1

        # Latest by parsed date, not by iteration order
        order_date = order.get("order_date")
        parsed = parse_timestamp(order_date)
        if parsed is not None and (supplier_id not in latest or parsed > latest[supplier_id]):
            latest[supplier_id] = parsed
            entry.last_order_date = str(order_date)

    for entry in stats.values():
        if entry.total_orders > 0:
            entry.reliability = int(round_half_up(entry.received_orders / entry.total_orders * 100))

    if unmatched:
        logger.info("analytics.supplier_orders_unmatched", count=unmatched)

    ranked = sorted(stats.values(), key=lambda entry: entry.total_spend, reverse=True)
    return SupplierReport(suppliers=ranked, unmatched_orders=unmatched)


def get_top_suppliers(report: SupplierReport, limit: int = 5) -> list[SupplierAnalytics]:
    return report.suppliers[:limit]
