"""
Test Configuration — Fixtures for analytics records, a mocked REST backend,
and the API test client.

Records mirror what the data-access facade produces. The mocked backend
serves the raw Django REST payloads through httpx.MockTransport so the
facade and the API run end to end without a network.
"""

from datetime import datetime, timezone

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from api.deps import get_app_settings, get_backend_transport, get_now
from api.main import app
from core.config import Settings
from core.session import Session, SessionRegistry, UserRole

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)

MANAGER_TOKEN = "manager-token"
STAFF_TOKEN = "staff-token"


# ─── Settings / sessions ────────────────────────────────────────────────────


@pytest.fixture
def settings():
    """Local settings pointed at the mocked backend, without retry backoff."""
    return Settings(backend_api_url="http://backend.test", backend_retry_attempts=1)


@pytest.fixture
def manager_session():
    return Session(token=MANAGER_TOKEN, user_id=1, username="maria", role=UserRole.MANAGER)


@pytest.fixture
def staff_session():
    return Session(token=STAFF_TOKEN, user_id=2, username="sam", role=UserRole.STAFF)


# ─── Facade-shaped records ──────────────────────────────────────────────────


@pytest.fixture
def inventory_items():
    return [
        {
            "id": "1",
            "name": "Widget",
            "sku": "W-1",
            "category": "Tools",
            "stock": 10,
            "min_stock": 5,
            "cost_price": 4.0,
            "sale_price": 10.0,
            "updated_at": "2024-03-10T09:00:00Z",
        },
        {
            "id": "2",
            "name": "Gadget",
            "sku": "G-2",
            "category": "Tools",
            "stock": 3,
            "min_stock": 5,
            "cost_price": 10.0,
            "sale_price": 25.0,
            "updated_at": "2024-03-12T09:00:00Z",
        },
        {
            "id": "3",
            "name": "Gizmo",
            "sku": "Z-3",
            "category": "Toys",
            "stock": 0,
            "min_stock": 2,
            "cost_price": None,
            "sale_price": 8.0,
            "updated_at": "2024-03-11T09:00:00Z",
        },
    ]


def _line(item_id, name, quantity, total):
    return {"inventory_item_id": item_id, "name": name, "quantity": quantity, "total": total}


@pytest.fixture
def invoices():
    """Three paid invoices and one pending invoice spanning 13-15 March."""
    return [
        {
            "id": "101",
            "invoice_number": "INV-101",
            "customer_name": "Alice",
            "customer_email": "alice@example.com",
            "status": "paid",
            "total": 70.0,
            "created_at": "2024-03-14T10:00:00Z",
            "items": [_line("1", "Widget", 2, 20.0), _line("2", "Gadget", 2, 50.0)],
        },
        {
            "id": "102",
            "invoice_number": "INV-102",
            "customer_name": "Bob",
            "customer_email": "bob@example.com",
            "status": "pending",
            "total": 100.0,
            "created_at": "2024-03-14T11:00:00Z",
            "items": [_line("1", "Widget", 10, 100.0)],
        },
        {
            "id": "103",
            "invoice_number": "INV-103",
            "customer_name": "Alice",
            "customer_email": "alice@example.com",
            "status": "paid",
            "total": 25.0,
            "created_at": "2024-03-15T08:00:00Z",
            "items": [_line("2", "Gadget", 1, 25.0)],
        },
        {
            "id": "104",
            "invoice_number": "INV-104",
            "customer_name": "Carol",
            "customer_email": "carol@example.com",
            "status": "paid",
            "total": 16.0,
            "created_at": "2024-03-13T12:00:00Z",
            "items": [_line("3", "Gizmo", 2, 16.0)],
        },
    ]


@pytest.fixture
def suppliers():
    return [
        {"id": "1", "name": "Acme"},
        {"id": "2", "name": "Bolt"},
        {"id": "3", "name": "Idle"},
    ]


@pytest.fixture
def purchase_orders():
    return [
        {"id": "1", "supplier_id": "1", "supplier_name": "Acme", "status": "received", "total_amount": 100.0, "order_date": "2024-03-01"},
        {"id": "2", "supplier_id": "1", "supplier_name": "Acme", "status": "pending", "total_amount": 50.0, "order_date": "2024-03-10"},
        {"id": "3", "supplier_id": "1", "supplier_name": "Acme", "status": "received", "total_amount": 30.0, "order_date": "2024-02-01"},
        {"id": "4", "supplier_id": "2", "supplier_name": "Bolt", "status": "received", "total_amount": 200.0, "order_date": "2024-03-05"},
        {"id": "5", "supplier_id": "9", "supplier_name": "Ghost", "status": "received", "total_amount": 10.0, "order_date": "2024-03-07"},
    ]


# ─── Mocked REST backend ────────────────────────────────────────────────────


@pytest.fixture
def backend_payloads():
    """Raw Django REST payloads keyed by endpoint path."""
    return {
        "/api/products/": [
            {
                "productId": 1,
                "productName": "Widget",
                "skuCode": "W-1",
                "costPrice": "4.00",
                "salePrice": "10.00",
                "discount": "0.00",
                "subcategory": 1,
                "source": 1,
                "status": "Active",
                "createdAt": "2024-01-01T00:00:00Z",
            }
        ],
        "/api/subcategories/": [{"subcategoryId": 1, "name": "Hand tools", "category": 1}],
        "/api/categories/": [{"categoryId": 1, "name": "Tools"}],
        "/api/sources/": [{"sourceId": 1, "name": "Acme", "email": "orders@acme.test", "createdAt": "2023-06-01T00:00:00Z"}],
        "/api/inventory/": [
            {"inventoryId": 7, "product": 1, "quantity": "12", "reorderLevel": 5, "location": "A1", "updatedAt": "2024-03-10T09:00:00Z"}
        ],
        "/api/invoices/": [
            {
                "invoiceId": 11,
                "customer": 3,
                "status": "Paid",
                "paymentMethod": "Card",
                "totalBeforeDiscount": "20.00",
                "tax": "0.00",
                "discount": "0.00",
                "grandTotal": "20.00",
                "createdAt": "2024-03-15T09:30:00Z",
            }
        ],
        "/api/purchases/": [
            {"purchaseId": 5, "invoice": 11, "product": 1, "quantity": 2, "pricePerUnit": "10.00", "discount": "0", "subtotal": "20.00"}
        ],
        "/api/customers/": [{"customerId": 3, "name": "Alice", "email": "alice@example.com"}],
        "/api/newstock/": [
            {"newstockId": 4, "supplier": 1, "purchasePrice": "3.50", "quantity": 10, "receivedDate": "2024-03-01", "createdAt": "2024-03-01T08:00:00Z"}
        ],
    }


class BackendStub:
    """Routes requests by path; records every request it sees."""

    def __init__(self, payloads: dict, failures: dict | None = None):
        self.payloads = payloads
        self.failures = failures or {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path in self.failures:
            status_code, body = self.failures[path]
            return httpx.Response(status_code, json=body)
        if path not in self.payloads:
            return httpx.Response(404, json={"detail": "Not found."})
        return httpx.Response(200, json=self.payloads[path])

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def backend(backend_payloads):
    return BackendStub(backend_payloads)


# ─── API client ─────────────────────────────────────────────────────────────


@pytest.fixture
def registry(manager_session, staff_session):
    sessions = SessionRegistry()
    sessions.register(manager_session)
    sessions.register(staff_session)
    return sessions


@pytest.fixture
async def client(settings, backend, registry):
    """Create an async test client with dependency overrides."""
    app.state.sessions = registry
    app.dependency_overrides[get_app_settings] = lambda: settings
    app.dependency_overrides[get_backend_transport] = lambda: backend.transport
    app.dependency_overrides[get_now] = lambda: NOW

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
    app.state.sessions = SessionRegistry()


def auth_header(token: str, scheme: str = "Token") -> dict:
    return {"Authorization": f"{scheme} {token}"}
