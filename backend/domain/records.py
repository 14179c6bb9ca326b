"""
Record shapes consumed by the analytics engine.

The data-access facade maps backend payloads into plain dicts with the keys
listed below. The engine only reads these records; it never mutates them.

  inventory item:  id, name, sku, category, stock, min_stock, cost_price,
                   sale_price, discount, updated_at, created_at
  invoice:         id, invoice_number, customer_name, customer_email, status,
                   items, subtotal, tax, discount, total, created_at
  invoice item:    id, inventory_item_id, name, sku, quantity, price,
                   discount, total
  supplier:        id, name, contact_person, email, phone, address, created_at
  purchase order:  id, po_number, supplier_id, supplier_name, order_date,
                   status, total_amount
"""

import math
from enum import Enum
from typing import Any

Record = dict[str, Any]


class InvoiceStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


class PurchaseOrderStatus(str, Enum):
    PENDING = "pending"
    RECEIVED = "received"
    CANCELLED = "cancelled"


def parse_amount(value: Any) -> float | None:
    """
    Parse a backend monetary/quantity value ("12.50", 12.5, None).

    Returns None for missing or unparseable input; callers decide whether
    None means 0 or "not provided" (e.g. cost_price).
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


def line_total(price: float, discount: float, quantity: float) -> float:
    """price × (1 - discount/100) × quantity."""
    return price * (1 - discount / 100) * quantity


def is_paid(invoice: Record) -> bool:
    status = invoice.get("status")
    if isinstance(status, InvoiceStatus):
        return status is InvoiceStatus.PAID
    return isinstance(status, str) and status.strip().lower() == InvoiceStatus.PAID.value


def is_low_stock(item: Record) -> bool:
    """stock <= min_stock; out-of-stock items are low too."""
    stock = parse_amount(item.get("stock")) or 0.0
    min_stock = parse_amount(item.get("min_stock")) or 0.0
    return stock <= min_stock
