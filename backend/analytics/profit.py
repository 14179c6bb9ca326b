"""
Profit analytics — revenue, cost and margin from paid line items.

Each paid line item is joined to its inventory item for cost_price. Line
items whose inventory item no longer exists are skipped and counted; a
missing cost_price counts as zero cost.
"""

from __future__ import annotations

from collections.abc import Sequence

import structlog

from analytics.frames import inventory_frame, paid_line_items_frame
from analytics.results import ProductProfit, ProfitAnalytics
from domain.records import Record

logger = structlog.get_logger()

DEFAULT_TOP_PRODUCTS = 10


def calculate_profit_analytics(
    invoices: Sequence[Record],
    items: Sequence[Record],
    limit: int = DEFAULT_TOP_PRODUCTS,
) -> ProfitAnalytics:
    lines = paid_line_items_frame(invoices)
    if lines.empty:
        return ProfitAnalytics()

    catalog = inventory_frame(items).dropna(subset=["item_id"]).drop_duplicates("item_id", keep="first")
    joined = lines.merge(
        catalog[["item_id", "name", "cost_price"]].rename(columns={"name": "item_name"}),
        how="left",
        left_on="inventory_item_id",
        right_on="item_id",
        indicator=True,
    )
    matched = joined["_merge"] == "both"
    skipped = int((~matched).sum())
    if skipped:
        logger.info("analytics.profit_lines_skipped", count=skipped)

    joined = joined[matched].copy()
    if joined.empty:
        return ProfitAnalytics(skipped_line_items=skipped)

    joined["cost"] = joined["cost_price"].fillna(0.0) * joined["quantity"]
    joined["profit"] = joined["total"] - joined["cost"]

    total_revenue = float(joined["total"].sum())
    total_cost = float(joined["cost"].sum())
    total_profit = float(joined["profit"].sum())

    grouped = joined.groupby("item_id", sort=False).agg(
        name=("item_name", "first"),
        revenue=("total", "sum"),
        cost=("cost", "sum"),
        profit=("profit", "sum"),
        units=("quantity", "sum"),
    )
    products = [
        ProductProfit(
            item_id=str(item_id),
            name=str(row.name),
            revenue=float(row.revenue),
            cost=float(row.cost),
            profit=float(row.profit),
            units=int(row.units),
        )
        for item_id, row in zip(grouped.index, grouped.itertuples(index=False))
    ]
    products = sorted(products, key=lambda product: product.profit, reverse=True)

    return ProfitAnalytics(
        total_revenue=total_revenue,
        total_cost=total_cost,
        total_profit=total_profit,
        profit_margin=total_profit / total_revenue * 100 if total_revenue > 0 else 0.0,
        top_profitable_products=products[:limit],
        skipped_line_items=skipped,
    )
