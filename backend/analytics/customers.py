"""
Customer insights from paid invoices.

Customers are identified by email, falling back to name when no email was
captured. Two different customers sharing a name and lacking an email are
therefore counted as one. "New this month" is a rolling window (30 days by
default) ending at ``now``, not the calendar month.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime, timedelta

import pandas as pd

from analytics.frames import ensure_aware, paid_invoices_frame
from analytics.results import CustomerInsights, CustomerSummary
from domain.records import Record

DEFAULT_NEW_CUSTOMER_WINDOW_DAYS = 30
DEFAULT_TOP_CUSTOMERS = 5


def calculate_customer_insights(
    invoices: Sequence[Record],
    now: datetime,
    window_days: int = DEFAULT_NEW_CUSTOMER_WINDOW_DAYS,
    top_limit: int = DEFAULT_TOP_CUSTOMERS,
) -> CustomerInsights:
    paid = paid_invoices_frame(invoices)
    if paid.empty:
        return CustomerInsights()

    paid["customer_key"] = paid["customer_email"].where(paid["customer_email"] != "", paid["customer_name"])
    grouped = paid.groupby("customer_key", sort=False).agg(
        name=("customer_name", "first"),
        email=("customer_email", "first"),
        total_spent=("total", "sum"),
        order_count=("total", "size"),
        first_order=("created_at", "min"),
    )

    total_customers = len(grouped)
    repeat_customers = int((grouped["order_count"] > 1).sum())
    window_start = pd.Timestamp(ensure_aware(now) - timedelta(days=window_days))
    new_this_month = int((grouped["first_order"] >= window_start).sum())

    summaries = [
        CustomerSummary(
            name=str(row.name),
            email=str(row.email),
            total_spent=float(row.total_spent),
            order_count=int(row.order_count),
            first_order=row.first_order.isoformat() if not pd.isna(row.first_order) else None,
        )
        for row in grouped.itertuples(index=False)
    ]
    top_customers = sorted(summaries, key=lambda summary: summary.total_spent, reverse=True)[:top_limit]

    total_revenue = float(paid["total"].sum())
    return CustomerInsights(
        total_customers=total_customers,
        new_this_month=new_this_month,
        repeat_customers=repeat_customers,
        top_customers=top_customers,
        avg_customer_value=total_revenue / total_customers,
        repeat_rate=repeat_customers / total_customers * 100,
    )
