"""Derived view-models produced by the analytics engine. Never persisted."""

from dataclasses import dataclass, field


@dataclass
class SalesData:
    item_id: str
    item_name: str
    total_quantity: int
    total_revenue: float
    invoice_count: int


@dataclass
class SalesReport:
    products: list[SalesData] = field(default_factory=list)
    skipped_records: int = 0  # line items with no inventory item id


@dataclass
class RevenueByDate:
    date: str  # ISO calendar day in the business timezone
    revenue: float
    invoices: int


@dataclass
class TotalStats:
    total_revenue: float = 0.0
    total_invoices: int = 0
    total_products: int = 0
    low_stock_count: int = 0


@dataclass
class RestockPrediction:
    item_id: str
    name: str
    sku: str
    category: str
    stock: int
    min_stock: int
    avg_daily_sales: float
    days_until_stockout: int
    needs_restock: bool
    # carried over from the inventory item
    sale_price: float = 0.0
    cost_price: float | None = None
    discount: float = 0.0
    updated_at: str | None = None


@dataclass
class SupplierAnalytics:
    supplier_id: str
    name: str
    total_orders: int = 0
    total_spend: float = 0.0
    received_orders: int = 0
    pending_orders: int = 0
    cancelled_orders: int = 0
    reliability: int = 0
    last_order_date: str | None = None


@dataclass
class SupplierReport:
    suppliers: list[SupplierAnalytics] = field(default_factory=list)
    unmatched_orders: int = 0  # orders whose supplier id is not in the supplier list


@dataclass
class ProductProfit:
    item_id: str
    name: str
    revenue: float
    cost: float
    profit: float
    units: int


@dataclass
class ProfitAnalytics:
    total_revenue: float = 0.0
    total_cost: float = 0.0
    total_profit: float = 0.0
    profit_margin: float = 0.0
    top_profitable_products: list[ProductProfit] = field(default_factory=list)
    skipped_line_items: int = 0  # line items whose inventory item no longer exists


@dataclass
class CustomerSummary:
    name: str
    email: str
    total_spent: float
    order_count: int
    first_order: str | None


@dataclass
class CustomerInsights:
    total_customers: int = 0
    new_this_month: int = 0
    repeat_customers: int = 0
    top_customers: list[CustomerSummary] = field(default_factory=list)
    avg_customer_value: float = 0.0
    repeat_rate: float = 0.0


@dataclass
class SalesPerformance:
    today_sales: float = 0.0
    yesterday_sales: float = 0.0
    week_sales: float = 0.0
    month_sales: float = 0.0
    today_orders: int = 0
    yesterday_orders: int = 0
    week_orders: int = 0
    month_orders: int = 0
    avg_order_value: float = 0.0
    growth_rate: float = 0.0


@dataclass
class CategoryValue:
    category: str
    count: int
    value: float


@dataclass
class InventoryHealth:
    total_items: int = 0
    total_value: float = 0.0
    in_stock: int = 0
    low_stock: int = 0
    out_of_stock: int = 0
    health_score: int = 0
    categories: list[CategoryValue] = field(default_factory=list)


@dataclass
class ActivityEntry:
    type: str  # "sale" | "low_stock"
    title: str
    description: str
    time: str
    status: str
    amount: float | None = None
