"""
Integration adapters package.

The business backend is the only data source: a Django REST service that
owns inventory, invoices, suppliers and purchase orders.

Usage:
    from integrations import BackendAPIClient

    session = await BackendAPIClient.login("alice", "secret")
    client = BackendAPIClient(session)
    invoices = await client.fetch_invoices()
"""

from integrations.backend_api import (
    BackendAPIClient,
    BackendAPIError,
    BackendAuthError,
    build_api_url,
    extract_error_detail,
)

__all__ = [
    "BackendAPIClient",
    "BackendAPIError",
    "BackendAuthError",
    "build_api_url",
    "extract_error_detail",
]
