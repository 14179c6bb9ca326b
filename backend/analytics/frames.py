"""
Frame builders shared by the analytics modules.

Records arrive as plain dicts from the data-access facade. These helpers
flatten them into pandas frames with fixed columns (so empty inputs still
produce well-formed frames), coerce numerics and timestamps, and keep the
input order so first-seen tie-breaking survives grouping.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from datetime import date, datetime, timezone, tzinfo
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd
import structlog

from domain.records import InvoiceStatus, Record

logger = structlog.get_logger()

INVOICE_COLUMNS = ["invoice_id", "status", "customer_name", "customer_email", "total", "created_at"]
LINE_ITEM_COLUMNS = ["invoice_id", "inventory_item_id", "name", "quantity", "total"]
INVENTORY_COLUMNS = ["item_id", "name", "sku", "category", "stock", "min_stock", "cost_price", "sale_price"]


def record_key(value: Any) -> str | None:
    """Normalize an id for joining (backend ids may be int or str)."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    key = str(value).strip()
    return key or None


def status_value(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value or "").strip().lower()


def coerce_numeric(series: pd.Series, column: str) -> pd.Series:
    """
    Coerce a column to float, mapping missing and malformed values to 0.0.

    Malformed values (present but unparseable) are logged with their count.
    """
    numeric = pd.to_numeric(series, errors="coerce")
    malformed = int((numeric.isna() & series.notna()).sum())
    if malformed:
        logger.warning("analytics.malformed_numeric", column=column, count=malformed)
    return numeric.fillna(0.0).astype(float)


def coerce_timestamps(series: pd.Series) -> pd.Series:
    """Parse ISO-8601 timestamps as UTC; naive values are taken as UTC."""
    as_text = series.map(lambda value: value.isoformat() if isinstance(value, (datetime, date)) else value)
    return pd.to_datetime(as_text, utc=True, errors="coerce", format="ISO8601")


def parse_timestamp(value: Any) -> pd.Timestamp | None:
    if value is None or value == "":
        return None
    parsed = pd.to_datetime(value, utc=True, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed


def resolve_tz(tz: tzinfo | str | None) -> tzinfo:
    if tz is None:
        return timezone.utc
    if isinstance(tz, str):
        return ZoneInfo(tz)
    return tz


def ensure_aware(now: datetime) -> datetime:
    """Naive reference times are taken as UTC."""
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now


def round_half_up(value: float, digits: int = 0) -> float:
    """Round halves away from zero for non-negative values (2.5 -> 3)."""
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor


# ── Frames ─────────────────────────────────────────────────────────────────


def invoices_frame(invoices: Iterable[Record]) -> pd.DataFrame:
    """One row per invoice."""
    rows = [
        {
            "invoice_id": record_key(invoice.get("id")),
            "status": status_value(invoice.get("status")),
            "customer_name": invoice.get("customer_name") or "",
            "customer_email": invoice.get("customer_email") or "",
            "total": invoice.get("total"),
            "created_at": invoice.get("created_at"),
        }
        for invoice in invoices
    ]
    frame = pd.DataFrame(rows, columns=INVOICE_COLUMNS)
    frame["total"] = coerce_numeric(frame["total"], "invoice.total")
    frame["created_at"] = coerce_timestamps(frame["created_at"])
    return frame


def paid_invoices_frame(invoices: Iterable[Record]) -> pd.DataFrame:
    frame = invoices_frame(invoices)
    return frame[frame["status"] == InvoiceStatus.PAID.value].reset_index(drop=True)


def paid_line_items_frame(invoices: Iterable[Record]) -> pd.DataFrame:
    """One row per line item of every paid invoice, in input order."""
    rows = []
    for invoice in invoices:
        if status_value(invoice.get("status")) != InvoiceStatus.PAID.value:
            continue
        for item in invoice.get("items") or []:
            rows.append(
                {
                    "invoice_id": record_key(invoice.get("id")),
                    "inventory_item_id": record_key(item.get("inventory_item_id")),
                    "name": item.get("name"),
                    "quantity": item.get("quantity"),
                    "total": item.get("total"),
                }
            )
    frame = pd.DataFrame(rows, columns=LINE_ITEM_COLUMNS)
    frame["quantity"] = coerce_numeric(frame["quantity"], "line_item.quantity")
    frame["total"] = coerce_numeric(frame["total"], "line_item.total")
    return frame


def inventory_frame(items: Iterable[Record]) -> pd.DataFrame:
    """One row per inventory item; missing cost_price becomes 0.0."""
    rows = [
        {
            "item_id": record_key(item.get("id")),
            "name": item.get("name") or "",
            "sku": item.get("sku") or "",
            "category": item.get("category") or "Uncategorized",
            "stock": item.get("stock"),
            "min_stock": item.get("min_stock"),
            "cost_price": item.get("cost_price"),
            "sale_price": item.get("sale_price"),
        }
        for item in items
    ]
    frame = pd.DataFrame(rows, columns=INVENTORY_COLUMNS)
    for column in ("stock", "min_stock", "cost_price", "sale_price"):
        frame[column] = coerce_numeric(frame[column], f"inventory.{column}")
    return frame


def observed_days(timestamps: pd.Series) -> int:
    """Whole days between the oldest and newest timestamp, at least 1."""
    dated = timestamps.dropna()
    if dated.empty:
        return 1
    span = (dated.max() - dated.min()).total_seconds() / 86400
    return max(1, math.ceil(span))
