"""
Sales aggregation — per-product sales, revenue by day, headline totals and
time-windowed performance.

Only paid invoices contribute. Draft, pending and cancelled invoices are
excluded from every figure here.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta, timezone, tzinfo

import pandas as pd
import structlog

from analytics.frames import (
    ensure_aware,
    inventory_frame,
    paid_invoices_frame,
    paid_line_items_frame,
    resolve_tz,
)
from analytics.results import RevenueByDate, SalesData, SalesPerformance, SalesReport, TotalStats
from domain.records import Record

logger = structlog.get_logger()


def calculate_sales_data(invoices: Sequence[Record]) -> SalesReport:
    """
    Aggregate paid line items by inventory item id.

    Sorted by total revenue descending; products with equal revenue keep the
    order in which they were first seen. invoice_count counts line items.
    """
    lines = paid_line_items_frame(invoices)
    unkeyed = lines["inventory_item_id"].isna()
    skipped = int(unkeyed.sum())
    if skipped:
        logger.info("analytics.sales_lines_skipped", count=skipped)
    lines = lines[~unkeyed]
    if lines.empty:
        return SalesReport(products=[], skipped_records=skipped)

    grouped = lines.groupby("inventory_item_id", sort=False).agg(
        item_name=("name", "first"),
        total_quantity=("quantity", "sum"),
        total_revenue=("total", "sum"),
        invoice_count=("total", "size"),
    )
    products = [
        SalesData(
            item_id=str(item_id),
            item_name=row.item_name if isinstance(row.item_name, str) else "Unknown",
            total_quantity=int(row.total_quantity),
            total_revenue=float(row.total_revenue),
            invoice_count=int(row.invoice_count),
        )
        for item_id, row in zip(grouped.index, grouped.itertuples(index=False))
    ]
    products = sorted(products, key=lambda product: product.total_revenue, reverse=True)
    return SalesReport(products=products, skipped_records=skipped)


def calculate_revenue_by_date(invoices: Sequence[Record], tz: tzinfo | str | None = None) -> list[RevenueByDate]:
    """Paid revenue and invoice count per calendar day, oldest first."""
    paid = paid_invoices_frame(invoices)
    undated = paid["created_at"].isna()
    if undated.any():
        logger.info("analytics.revenue_undated_skipped", count=int(undated.sum()))
    paid = paid[~undated]
    if paid.empty:
        return []

    local_day = paid["created_at"].dt.tz_convert(resolve_tz(tz)).dt.date.rename("day")
    grouped = paid.groupby(local_day, sort=True).agg(
        revenue=("total", "sum"),
        invoices=("total", "size"),
    )
    return [
        RevenueByDate(date=day.isoformat(), revenue=float(row.revenue), invoices=int(row.invoices))
        for day, row in zip(grouped.index, grouped.itertuples(index=False))
    ]


def calculate_total_stats(invoices: Sequence[Record], items: Sequence[Record]) -> TotalStats:
    paid = paid_invoices_frame(invoices)
    inventory = inventory_frame(items)
    return TotalStats(
        total_revenue=float(paid["total"].sum()),
        total_invoices=len(paid),
        total_products=len(inventory),
        low_stock_count=int((inventory["stock"] <= inventory["min_stock"]).sum()),
    )


def calculate_sales_performance(
    invoices: Sequence[Record],
    now: datetime,
    tz: tzinfo | str | None = None,
) -> SalesPerformance:
    """
    Today / yesterday / 7-day / 30-day sales windows relative to ``now``.

    Windows are anchored on local midnight in ``tz``:
      today      midnight .. now
      yesterday  previous calendar day
      week       midnight - 7 x 24h .. now
      month      midnight - 30 x 24h .. now

    growth_rate is 0 when yesterday had no revenue.
    """
    zone = resolve_tz(tz)
    local_now = ensure_aware(now).astimezone(zone)
    today_start = datetime(local_now.year, local_now.month, local_now.day, tzinfo=zone)
    yesterday_start = today_start - timedelta(days=1)
    # Trailing windows span exact 24h days, even across a DST change
    midnight_utc = today_start.astimezone(timezone.utc)
    week_start = midnight_utc - timedelta(days=7)
    month_start = midnight_utc - timedelta(days=30)

    paid = paid_invoices_frame(invoices)
    created = paid["created_at"]
    upper = pd.Timestamp(local_now)

    def window(start: datetime, end: pd.Timestamp, inclusive_end: bool = True) -> pd.Series:
        lower = created >= pd.Timestamp(start)
        return lower & ((created <= end) if inclusive_end else (created < end))

    today = paid.loc[window(today_start, upper), "total"]
    yesterday = paid.loc[window(yesterday_start, pd.Timestamp(today_start), inclusive_end=False), "total"]
    week = paid.loc[window(week_start, upper), "total"]
    month = paid.loc[window(month_start, upper), "total"]

    today_sales = float(today.sum())
    yesterday_sales = float(yesterday.sum())

    return SalesPerformance(
        today_sales=today_sales,
        yesterday_sales=yesterday_sales,
        week_sales=float(week.sum()),
        month_sales=float(month.sum()),
        today_orders=len(today),
        yesterday_orders=len(yesterday),
        week_orders=len(week),
        month_orders=len(month),
        avg_order_value=today_sales / len(today) if len(today) > 0 else 0.0,
        growth_rate=(today_sales - yesterday_sales) / yesterday_sales * 100 if yesterday_sales > 0 else 0.0,
    )
