"""
Dashboard Router — overview and per-widget analytics.

Every request fetches a fresh snapshot from the backend. Profit, supplier
and restock widgets are limited to managers and administrators.
"""

from collections.abc import Awaitable
from datetime import datetime
from typing import Any, TypeVar

import httpx
import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from analytics.results import (
    ActivityEntry,
    CustomerInsights,
    InventoryHealth,
    ProfitAnalytics,
    RestockPrediction,
    RevenueByDate,
    SalesPerformance,
    SalesReport,
    SupplierReport,
    TotalStats,
)
from api.deps import get_current_session, get_dashboard_service, get_now, get_session_registry
from core.session import Session, SessionRegistry
from dashboard.service import DashboardOverview, DashboardPermissionError, DashboardService
from integrations.backend_api import BackendAPIError, BackendAuthError

logger = structlog.get_logger()

router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])

T = TypeVar("T")

LOAD_FAILED_DETAIL = "Error loading dashboard data"


async def _load(
    widget: str,
    pending: Awaitable[T],
    session: Session,
    registry: SessionRegistry,
) -> T:
    """Await a service call and map its failures onto HTTP errors."""
    try:
        return await pending
    except DashboardPermissionError as exc:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(exc))
    except BackendAuthError:
        registry.revoke(session.token)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Session expired")
    except (BackendAPIError, httpx.HTTPError) as exc:
        logger.error("dashboard.load_failed", widget=widget, username=session.username, error=str(exc))
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=LOAD_FAILED_DETAIL)


# ─── Overview ───────────────────────────────────────────────────────────────


@router.get("/overview", response_model=DashboardOverview)
async def get_overview(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
    now: datetime = Depends(get_now),
):
    return await _load("overview", service.load_overview(now), session, registry)


# ─── Sales ──────────────────────────────────────────────────────────────────


@router.get("/stats", response_model=TotalStats)
async def get_total_stats(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("stats", service.load_total_stats(), session, registry)


@router.get("/sales", response_model=SalesReport)
async def get_sales(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("sales", service.load_sales_data(), session, registry)


@router.get("/revenue", response_model=list[RevenueByDate])
async def get_revenue_by_date(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("revenue", service.load_revenue_by_date(), session, registry)


@router.get("/sales-performance", response_model=SalesPerformance)
async def get_sales_performance(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
    now: datetime = Depends(get_now),
):
    return await _load("sales_performance", service.load_sales_performance(now), session, registry)


@router.get("/customers", response_model=CustomerInsights)
async def get_customer_insights(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
    now: datetime = Depends(get_now),
):
    return await _load("customers", service.load_customer_insights(now), session, registry)


# ─── Inventory ──────────────────────────────────────────────────────────────


@router.get("/inventory-health", response_model=InventoryHealth)
async def get_inventory_health(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("inventory_health", service.load_inventory_health(), session, registry)


@router.get("/low-stock", response_model=list[dict[str, Any]])
async def get_low_stock(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("low_stock", service.load_low_stock_items(), session, registry)


@router.get("/activity", response_model=list[ActivityEntry])
async def get_recent_activity(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("activity", service.load_recent_activity(), session, registry)


# ─── Manager / administrator only ───────────────────────────────────────────


@router.get("/profit", response_model=ProfitAnalytics)
async def get_profit(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("profit", service.load_profit_summary(), session, registry)


@router.get("/suppliers", response_model=SupplierReport)
async def get_suppliers(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("suppliers", service.load_supplier_analytics(), session, registry)


@router.get("/restock", response_model=list[RestockPrediction])
async def get_restock_predictions(
    service: DashboardService = Depends(get_dashboard_service),
    session: Session = Depends(get_current_session),
    registry: SessionRegistry = Depends(get_session_registry),
):
    return await _load("restock", service.load_restock_predictions(), session, registry)
