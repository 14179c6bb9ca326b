"""
Analytics engine package.

Pure transforms from raw entity lists (invoices, inventory, suppliers,
purchase orders) to dashboard view-models. Nothing here performs I/O or
reads the clock; callers pass ``now`` explicitly.

Usage:
    from analytics import calculate_sales_data, calculate_sales_performance

    report = calculate_sales_data(invoices)
    performance = calculate_sales_performance(invoices, now=datetime.now(timezone.utc), tz="UTC")
"""

from analytics.activity import build_recent_activity
from analytics.customers import calculate_customer_insights
from analytics.inventory import (
    calculate_inventory_health,
    calculate_restock_predictions,
    get_low_stock_items,
)
from analytics.profit import calculate_profit_analytics
from analytics.sales import (
    calculate_revenue_by_date,
    calculate_sales_data,
    calculate_sales_performance,
    calculate_total_stats,
)
from analytics.suppliers import calculate_supplier_analytics, get_top_suppliers

__all__ = [
    "build_recent_activity",
    "calculate_customer_insights",
    "calculate_inventory_health",
    "calculate_profit_analytics",
    "calculate_restock_predictions",
    "calculate_revenue_by_date",
    "calculate_sales_data",
    "calculate_sales_performance",
    "calculate_supplier_analytics",
    "calculate_total_stats",
    "get_low_stock_items",
    "get_top_suppliers",
]
