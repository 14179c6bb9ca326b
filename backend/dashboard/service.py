"""
Dashboard Service — fetch barrier and view-model assembly.

Each load fetches a fresh snapshot from the backend (independent GETs run
concurrently; any failure fails the whole load) and then runs the analytics
engine over it. Nothing is cached between loads.

Profit, supplier and restock sections are restricted to managers and
administrators, matching what the dashboard shows each role.
"""

import asyncio
import time
from dataclasses import dataclass, field
from datetime import datetime

import structlog

from analytics import (
    build_recent_activity,
    calculate_customer_insights,
    calculate_inventory_health,
    calculate_profit_analytics,
    calculate_restock_predictions,
    calculate_revenue_by_date,
    calculate_sales_data,
    calculate_sales_performance,
    calculate_supplier_analytics,
    calculate_total_stats,
    get_low_stock_items,
    get_top_suppliers,
)
from analytics.results import (
    ActivityEntry,
    CustomerInsights,
    InventoryHealth,
    ProfitAnalytics,
    RestockPrediction,
    RevenueByDate,
    SalesPerformance,
    SalesReport,
    SupplierAnalytics,
    SupplierReport,
    TotalStats,
)
from core.config import Settings
from core.session import get_role_value, is_manager_or_admin
from domain.records import Record
from integrations.backend_api import BackendAPIClient

logger = structlog.get_logger()


class DashboardPermissionError(PermissionError):
    """The session's role may not view this dashboard section."""


class StaleResultError(RuntimeError):
    """A newer load started before this one finished."""


@dataclass
class DashboardOverview:
    generated_at: str
    role: str | None
    stats: TotalStats
    sales: SalesReport
    revenue_by_date: list[RevenueByDate]
    low_stock_items: list[Record]
    sales_performance: SalesPerformance
    inventory_health: InventoryHealth
    customer_insights: CustomerInsights
    recent_activity: list[ActivityEntry]
    profit: ProfitAnalytics | None = None
    suppliers: SupplierReport | None = None
    top_suppliers: list[SupplierAnalytics] = field(default_factory=list)
    restock_predictions: list[RestockPrediction] | None = None


class DashboardService:
    """Computes dashboard view-models for one session."""

    def __init__(self, client: BackendAPIClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or client.settings
        self.session = client.session
        self.logger = logger.bind(username=self.session.username, role=get_role_value(self.session))

    @property
    def can_view_financials(self) -> bool:
        return is_manager_or_admin(self.session)

    def _require_manager(self, section: str) -> None:
        if not self.can_view_financials:
            self.logger.warning("dashboard.permission_denied", section=section)
            raise DashboardPermissionError(f"{section} requires manager or administrator role")

    # ── Overview ────────────────────────────────────────────────────────

    async def load_overview(self, now: datetime) -> DashboardOverview:
        """Fetch every entity once and compute all sections the role may see."""
        started = time.perf_counter()
        if self.can_view_financials:
            invoices, items, suppliers, purchase_orders = await asyncio.gather(
                self.client.fetch_invoices(),
                self.client.fetch_inventory_items(),
                self.client.fetch_suppliers(),
                self.client.fetch_purchase_orders(),
            )
        else:
            invoices, items = await asyncio.gather(
                self.client.fetch_invoices(),
                self.client.fetch_inventory_items(),
            )
            suppliers = purchase_orders = None

        settings = self.settings
        overview = DashboardOverview(
            generated_at=now.isoformat(),
            role=get_role_value(self.session),
            stats=calculate_total_stats(invoices, items),
            sales=calculate_sales_data(invoices),
            revenue_by_date=calculate_revenue_by_date(invoices, tz=settings.tz),
            low_stock_items=get_low_stock_items(items),
            sales_performance=calculate_sales_performance(invoices, now=now, tz=settings.tz),
            inventory_health=calculate_inventory_health(items),
            customer_insights=calculate_customer_insights(
                invoices,
                now=now,
                window_days=settings.new_customer_window_days,
                top_limit=settings.top_customers_limit,
            ),
            recent_activity=build_recent_activity(invoices, items),
        )

        if suppliers is not None and purchase_orders is not None:
            overview.profit = calculate_profit_analytics(invoices, items, limit=settings.top_profitable_limit)
            overview.suppliers = calculate_supplier_analytics(suppliers, purchase_orders)
            overview.top_suppliers = get_top_suppliers(overview.suppliers, limit=settings.top_suppliers_limit)
            overview.restock_predictions = calculate_restock_predictions(
                items,
                invoices,
                horizon_days=settings.restock_horizon_days,
                sentinel=settings.stockout_sentinel_days,
            )

        self.logger.info(
            "dashboard.overview_loaded",
            invoices=len(invoices),
            items=len(items),
            financials=self.can_view_financials,
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return overview

    # ── Per-widget loaders ──────────────────────────────────────────────

    async def load_total_stats(self) -> TotalStats:
        invoices, items = await asyncio.gather(self.client.fetch_invoices(), self.client.fetch_inventory_items())
        return calculate_total_stats(invoices, items)

    async def load_sales_data(self) -> SalesReport:
        return calculate_sales_data(await self.client.fetch_invoices())

    async def load_revenue_by_date(self) -> list[RevenueByDate]:
        return calculate_revenue_by_date(await self.client.fetch_invoices(), tz=self.settings.tz)

    async def load_sales_performance(self, now: datetime) -> SalesPerformance:
        return calculate_sales_performance(await self.client.fetch_invoices(), now=now, tz=self.settings.tz)

    async def load_customer_insights(self, now: datetime) -> CustomerInsights:
        return calculate_customer_insights(
            await self.client.fetch_invoices(),
            now=now,
            window_days=self.settings.new_customer_window_days,
            top_limit=self.settings.top_customers_limit,
        )

    async def load_low_stock_items(self) -> list[Record]:
        return get_low_stock_items(await self.client.fetch_inventory_items())

    async def load_inventory_health(self) -> InventoryHealth:
        return calculate_inventory_health(await self.client.fetch_inventory_items())

    async def load_recent_activity(self) -> list[ActivityEntry]:
        invoices, items = await asyncio.gather(self.client.fetch_invoices(), self.client.fetch_inventory_items())
        return build_recent_activity(invoices, items)

    async def load_profit_summary(self) -> ProfitAnalytics:
        self._require_manager("profit")
        invoices, items = await asyncio.gather(self.client.fetch_invoices(), self.client.fetch_inventory_items())
        return calculate_profit_analytics(invoices, items, limit=self.settings.top_profitable_limit)

    async def load_supplier_analytics(self) -> SupplierReport:
        self._require_manager("suppliers")
        suppliers, purchase_orders = await asyncio.gather(
            self.client.fetch_suppliers(),
            self.client.fetch_purchase_orders(),
        )
        return calculate_supplier_analytics(suppliers, purchase_orders)

    async def load_restock_predictions(self) -> list[RestockPrediction]:
        self._require_manager("restock")
        items, invoices = await asyncio.gather(self.client.fetch_inventory_items(), self.client.fetch_invoices())
        return calculate_restock_predictions(
            items,
            invoices,
            horizon_days=self.settings.restock_horizon_days,
            sentinel=self.settings.stockout_sentinel_days,
        )


class DashboardLoader:
    """
    Keeps only the newest overview.

    Every call to load() starts a new generation; a load that resolves after
    a newer one has started raises StaleResultError instead of returning.
    """

    def __init__(self, service: DashboardService):
        self.service = service
        self.latest: DashboardOverview | None = None
        self._generation = 0

    async def load(self, now: datetime) -> DashboardOverview:
        self._generation += 1
        generation = self._generation
        overview = await self.service.load_overview(now)
        if generation != self._generation:
            logger.info("dashboard.stale_result_discarded", generation=generation, current=self._generation)
            raise StaleResultError(f"load {generation} superseded by load {self._generation}")
        self.latest = overview
        return overview
