"""
Business Backend REST Client — Data Access Facade

Fetches raw entity lists (inventory, invoices, suppliers, purchase orders)
from the Django REST backend and maps them into the plain records the
analytics engine consumes. Multi-endpoint joins run their GETs concurrently;
if any one GET fails the whole fetch fails.
"""

import asyncio
from typing import Any

import httpx
import structlog
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import Settings, get_settings
from core.session import Session
from domain.records import PurchaseOrderStatus, Record, line_total, parse_amount

logger = structlog.get_logger()


class BackendAPIError(Exception):
    """Non-2xx response from the REST backend."""

    def __init__(self, status_code: int, detail: str, url: str = ""):
        super().__init__(detail)
        self.status_code = status_code
        self.detail = detail
        self.url = url


class BackendAuthError(BackendAPIError):
    """The backend rejected the session token (HTTP 401)."""


def build_api_url(endpoint: str, settings: Settings) -> str:
    """Join an endpoint onto the configured API root."""
    normalized = endpoint if endpoint.startswith("/") else f"/{endpoint}"
    return f"{settings.api_root}{normalized}"


def extract_error_detail(response: httpx.Response) -> str:
    """
    Pull a human-readable message out of an error body.

    Handles DRF shapes: {"detail": ...}, {"lineItems": [...]}, and field
    error maps where the first field's first message wins.
    """
    fallback = response.reason_phrase or f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback

    if not isinstance(body, dict) or not body:
        return fallback
    if body.get("detail"):
        return str(body["detail"])
    if body.get("lineItems"):
        line_errors = body["lineItems"]
        return ", ".join(map(str, line_errors)) if isinstance(line_errors, list) else str(line_errors)

    first_error = next(iter(body.values()))
    if isinstance(first_error, list):
        return str(first_error[0]) if first_error else fallback
    return str(first_error)


class BackendAPIClient:
    """Authenticated client for the business backend."""

    def __init__(
        self,
        session: Session,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.session = session
        self.settings = settings or get_settings()
        self.transport = transport
        self.headers = {
            "Authorization": f"{self.settings.backend_auth_scheme} {session.token}",
            "Content-Type": "application/json",
        }
        self.logger = logger.bind(adapter="backend_api", username=session.username)

    # ── Transport ───────────────────────────────────────────────────────

    async def _get(self, endpoint: str) -> Any:
        url = build_api_url(endpoint, self.settings)
        retrying = AsyncRetrying(
            stop=stop_after_attempt(max(1, self.settings.backend_retry_attempts)),
            wait=wait_exponential(min=1, max=10),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                async with httpx.AsyncClient(transport=self.transport) as client:
                    response = await client.get(url, headers=self.headers)
        return _decode_response(response, self.logger)

    async def _get_list(self, endpoint: str) -> list[dict]:
        payload = await self._get(endpoint)
        if payload is None:
            return []
        # DRF pagination wraps rows in "results"
        if isinstance(payload, dict):
            payload = payload.get("results", [])
        return [row for row in payload if isinstance(row, dict)]

    # ── Entity fetchers ─────────────────────────────────────────────────

    async def fetch_inventory_items(self) -> list[Record]:
        """Inventory rows joined with product, subcategory, category and source."""
        inventory, products, subcategories, categories, sources = await asyncio.gather(
            self._get_list("/inventory/"),
            self._get_list("/products/"),
            self._get_list("/subcategories/"),
            self._get_list("/categories/"),
            self._get_list("/sources/"),
        )
        products_by_id = _index(products, "productId")
        subcategories_by_id = _index(subcategories, "subcategoryId")
        categories_by_id = _index(categories, "categoryId")
        sources_by_id = _index(sources, "sourceId")

        items = [
            map_inventory_item(row, products_by_id, subcategories_by_id, categories_by_id, sources_by_id)
            for row in inventory
        ]
        self.logger.info("backend_api.fetched", entity="inventory", records=len(items))
        return _newest_first(items)

    async def fetch_invoices(self) -> list[Record]:
        """Invoices with their line items and customer identity attached."""
        invoices, purchases, products, inventory, customers = await asyncio.gather(
            self._get_list("/invoices/"),
            self._get_list("/purchases/"),
            self._get_list("/products/"),
            self._get_list("/inventory/"),
            self._get_list("/customers/"),
        )
        purchases_by_invoice: dict[Any, list[dict]] = {}
        for purchase in purchases:
            purchases_by_invoice.setdefault(purchase.get("invoice"), []).append(purchase)

        products_by_id = _index(products, "productId")
        customers_by_id = _index(customers, "customerId")
        inventory_id_by_product = {
            row.get("product"): str(row.get("inventoryId"))
            for row in inventory
            if row.get("inventoryId") is not None
        }

        mapped = [
            map_invoice(
                invoice,
                purchases_by_invoice.get(invoice.get("invoiceId"), []),
                products_by_id,
                inventory_id_by_product,
                customers_by_id,
            )
            for invoice in invoices
        ]
        self.logger.info("backend_api.fetched", entity="invoices", records=len(mapped))
        return mapped

    async def fetch_suppliers(self) -> list[Record]:
        sources = await self._get_list("/sources/")
        suppliers = [map_source_to_supplier(source) for source in sources]
        self.logger.info("backend_api.fetched", entity="suppliers", records=len(suppliers))
        return _newest_first(suppliers)

    async def fetch_purchase_orders(self) -> list[Record]:
        """New-stock receipts, each mapped to a received purchase order."""
        new_stock, sources = await asyncio.gather(
            self._get_list("/newstock/"),
            self._get_list("/sources/"),
        )
        sources_by_id = _index(sources, "sourceId")
        orders = [map_new_stock_to_purchase_order(row, sources_by_id) for row in new_stock]
        self.logger.info("backend_api.fetched", entity="purchase_orders", records=len(orders))
        return _newest_first(orders)

    # ── Auth ────────────────────────────────────────────────────────────

    @classmethod
    async def login(
        cls,
        username: str,
        password: str,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> Session:
        """POST credentials to /login/ and return the resulting session."""
        settings = settings or get_settings()
        url = build_api_url("/login/", settings)
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post(
                url,
                json={"username": username, "password": password},
                headers={"Content-Type": "application/json"},
            )
        if response.status_code in (400, 401, 403):
            raise BackendAuthError(response.status_code, extract_error_detail(response) or "Login failed", url)
        payload = _decode_response(response, logger)
        if not isinstance(payload, dict):
            raise BackendAPIError(response.status_code, "Login response was empty", url)
        try:
            session = Session.from_login_response(payload)
        except ValueError as exc:
            raise BackendAPIError(response.status_code, str(exc), url) from exc
        logger.info("backend_api.login", username=session.username)
        return session


# ── Response handling ──────────────────────────────────────────────────────


def _decode_response(response: httpx.Response, log: Any) -> Any:
    if response.is_success:
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    detail = extract_error_detail(response)
    url = str(response.request.url)
    log.warning(
        "backend_api.request_failed",
        url=url,
        status_code=response.status_code,
        detail=detail,
    )
    if response.status_code == 401:
        raise BackendAuthError(response.status_code, detail, url)
    raise BackendAPIError(response.status_code, detail, url)


# ── Mappers ────────────────────────────────────────────────────────────────


def map_inventory_item(
    inventory: dict,
    products: dict[Any, dict],
    subcategories: dict[Any, dict],
    categories: dict[Any, dict],
    sources: dict[Any, dict],
) -> Record:
    """Map an inventory row (plus lookups) to an inventory item record."""
    product = products.get(inventory.get("product")) or {}
    subcategory = subcategories.get(product.get("subcategory")) or {}
    category = categories.get(subcategory.get("category")) or {}
    source = sources.get(product.get("source")) or {}
    record_id = str(inventory.get("inventoryId", ""))

    return {
        "id": record_id,
        "product_id": str(product["productId"]) if product.get("productId") is not None else "",
        "name": product.get("productName") or "Unknown",
        "sku": product.get("skuCode") or "",
        "category": category.get("name") or "Uncategorized",
        "subcategory": subcategory.get("name") or "",
        "source": source.get("name") or "",
        "status": product.get("status") or "Active",
        "cost_price": parse_amount(product.get("costPrice")),
        "sale_price": _money(product.get("salePrice"), "sale_price", record_id),
        "discount": _money(product.get("discount"), "discount", record_id),
        "stock": _count(inventory.get("quantity"), "stock", record_id),
        "min_stock": _count(inventory.get("reorderLevel"), "min_stock", record_id),
        "location": inventory.get("location") or "",
        "created_at": product.get("createdAt"),
        "updated_at": inventory.get("updatedAt"),
    }


def map_invoice(
    invoice: dict,
    purchases: list[dict],
    products: dict[Any, dict],
    inventory_id_by_product: dict[Any, str],
    customers: dict[Any, dict],
) -> Record:
    """Map an invoice and its purchase rows to an invoice record."""
    invoice_id = invoice.get("invoiceId")
    customer = customers.get(invoice.get("customer")) or {}
    record_id = str(invoice_id)

    return {
        "id": record_id,
        "invoice_number": f"INV-{invoice_id}",
        "customer_name": customer.get("name") or "",
        "customer_email": customer.get("email") or "",
        "status": str(invoice.get("status") or "").lower(),
        "payment_method": invoice.get("paymentMethod") or "Cash",
        "subtotal": _money(invoice.get("totalBeforeDiscount"), "subtotal", record_id),
        "tax": _money(invoice.get("tax"), "tax", record_id),
        "discount": _money(invoice.get("discount"), "discount", record_id),
        "total": _money(invoice.get("grandTotal"), "total", record_id),
        "items": [map_purchase_to_line_item(p, products, inventory_id_by_product) for p in purchases],
        "created_at": invoice.get("createdAt"),
    }


def map_purchase_to_line_item(
    purchase: dict,
    products: dict[Any, dict],
    inventory_id_by_product: dict[Any, str],
) -> Record:
    """Line items point at the inventory row of their product when one exists."""
    product_id = purchase.get("product")
    product = products.get(product_id) or {}
    record_id = str(purchase.get("purchaseId", ""))
    quantity = _count(purchase.get("quantity"), "quantity", record_id)
    price = _money(purchase.get("pricePerUnit"), "price", record_id)
    discount = _money(purchase.get("discount"), "discount", record_id)

    total = parse_amount(purchase.get("subtotal"))
    if total is None:
        total = line_total(price, discount, quantity)

    return {
        "id": record_id,
        "inventory_item_id": inventory_id_by_product.get(product_id, str(product_id) if product_id is not None else None),
        "name": product.get("productName") or "Unknown",
        "sku": product.get("skuCode") or "",
        "quantity": quantity,
        "price": price,
        "discount": discount,
        "total": total,
    }


def map_source_to_supplier(source: dict) -> Record:
    return {
        "id": str(source.get("sourceId", "")),
        "name": source.get("name") or "Unknown",
        "contact_person": source.get("contactPerson"),
        "email": source.get("email"),
        "phone": source.get("phone"),
        "address": source.get("address"),
        "created_at": source.get("createdAt"),
    }


def map_new_stock_to_purchase_order(stock: dict, sources: dict[Any, dict]) -> Record:
    """A new-stock receipt is a purchase order that has already been received."""
    record_id = str(stock.get("newstockId", ""))
    supplier_key = stock.get("supplier")
    supplier = sources.get(supplier_key) or {}
    quantity = _count(stock.get("quantity"), "quantity", record_id)
    unit_price = _money(stock.get("purchasePrice"), "purchase_price", record_id)

    return {
        "id": record_id,
        "po_number": f"PO-{record_id}",
        "supplier_id": str(supplier_key) if supplier_key is not None else "",
        "supplier_name": supplier.get("name") or stock.get("supplierName") or "Unknown",
        "order_date": stock.get("receivedDate"),
        "status": PurchaseOrderStatus.RECEIVED.value,
        "total_amount": unit_price * quantity,
        "received_date": stock.get("receivedDate"),
        "created_at": stock.get("createdAt"),
    }


# ── Helpers ────────────────────────────────────────────────────────────────


def _index(rows: list[dict], key: str) -> dict[Any, dict]:
    return {row.get(key): row for row in rows}


def _newest_first(records: list[Record]) -> list[Record]:
    return sorted(records, key=lambda record: record.get("created_at") or "", reverse=True)


def _money(value: Any, field: str, record_id: str) -> float:
    """Parse a monetary string; malformed values are coerced to 0.0 and logged."""
    parsed = parse_amount(value)
    if parsed is None:
        if value not in (None, ""):
            logger.warning("backend_api.malformed_numeric", field=field, record_id=record_id, value=str(value))
        return 0.0
    return parsed


def _count(value: Any, field: str, record_id: str) -> int:
    return int(_money(value, field, record_id))
