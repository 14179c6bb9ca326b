"""
Inventory analytics — low stock, restock prediction and stock health.

Restock prediction uses sales velocity: units sold on paid invoices divided
by the number of days the invoice history spans (all statuses, at least 1).

  avg_daily_sales     = total_sold / days_covered        (2dp, half-up)
  days_until_stockout = floor(stock / avg_daily_sales)   (sentinel if no sales)
  needs_restock       = days_until_stockout < horizon OR stock <= min_stock
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any

import structlog

from analytics.frames import (
    invoices_frame,
    inventory_frame,
    observed_days,
    paid_line_items_frame,
    round_half_up,
)
from analytics.results import CategoryValue, InventoryHealth, RestockPrediction
from domain.records import Record, parse_amount

logger = structlog.get_logger()

DEFAULT_RESTOCK_HORIZON_DAYS = 30
STOCKOUT_SENTINEL_DAYS = 999


def get_low_stock_items(items: Sequence[Record]) -> list[Record]:
    """Items with stock <= min_stock, lowest stock first (ties keep input order)."""
    frame = inventory_frame(items)
    low = frame[frame["stock"] <= frame["min_stock"]]
    ordered = low.sort_values("stock", kind="stable")
    return [items[position] for position in ordered.index]


def calculate_restock_predictions(
    items: Sequence[Record],
    invoices: Sequence[Record],
    horizon_days: int = DEFAULT_RESTOCK_HORIZON_DAYS,
    sentinel: int = STOCKOUT_SENTINEL_DAYS,
) -> list[RestockPrediction]:
    """One prediction per inventory item, in input order."""
    days_covered = observed_days(invoices_frame(invoices)["created_at"])
    lines = paid_line_items_frame(invoices)
    sold = lines.dropna(subset=["inventory_item_id"]).groupby("inventory_item_id", sort=False)["quantity"].sum()

    inventory = inventory_frame(items)
    predictions = []
    for item, row in zip(items, inventory.itertuples(index=False)):
        total_sold = float(sold.get(row.item_id, 0.0)) if row.item_id is not None else 0.0
        avg_daily_sales = total_sold / days_covered
        if avg_daily_sales > 0:
            days_until_stockout = math.floor(row.stock / avg_daily_sales)
        else:
            days_until_stockout = sentinel

        predictions.append(
            RestockPrediction(
                item_id=row.item_id or "",
                name=row.name,
                sku=row.sku,
                category=row.category,
                stock=int(row.stock),
                min_stock=int(row.min_stock),
                avg_daily_sales=round_half_up(avg_daily_sales, 2),
                days_until_stockout=days_until_stockout,
                needs_restock=days_until_stockout < horizon_days or row.stock <= row.min_stock,
                sale_price=float(row.sale_price),
                cost_price=parse_amount(item.get("cost_price")),
                discount=parse_amount(item.get("discount")) or 0.0,
                updated_at=_timestamp_text(item.get("updated_at")),
            )
        )

    logger.debug(
        "analytics.restock_predicted",
        items=len(predictions),
        days_covered=days_covered,
        needs_restock=sum(p.needs_restock for p in predictions),
    )
    return predictions


def _timestamp_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


def calculate_inventory_health(items: Sequence[Record]) -> InventoryHealth:
    """
    Stock status counts, stock value (stock × sale_price) and a per-category
    value breakdown sorted by value descending.
    """
    frame = inventory_frame(items)
    if frame.empty:
        return InventoryHealth()

    frame["value"] = frame["stock"] * frame["sale_price"]
    in_stock = int((frame["stock"] > frame["min_stock"]).sum())
    low_stock = int(((frame["stock"] <= frame["min_stock"]) & (frame["stock"] > 0)).sum())
    out_of_stock = int((frame["stock"] == 0).sum())

    grouped = frame.groupby("category", sort=False).agg(item_count=("value", "size"), value=("value", "sum"))
    categories = [
        CategoryValue(category=str(category), count=int(row.item_count), value=float(row.value))
        for category, row in zip(grouped.index, grouped.itertuples(index=False))
    ]
    categories = sorted(categories, key=lambda entry: entry.value, reverse=True)

    return InventoryHealth(
        total_items=len(frame),
        total_value=float(frame["value"].sum()),
        in_stock=in_stock,
        low_stock=low_stock,
        out_of_stock=out_of_stock,
        health_score=int(round_half_up(in_stock / len(frame) * 100)),
        categories=categories,
    )
