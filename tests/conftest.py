"""
Pytest configuration and shared fixtures for Order Service tests.
"""

import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import fakeredis
import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from order_service.orders.models import LineItem, Order
from order_service.orders.repository import OrderStore

CUSTOMER_ID = uuid.UUID("8d3c5b0e-7f4a-4f7e-9b57-2c1e1c0a9f11")


@pytest.fixture
def redis_server():
    return fakeredis.FakeServer()


@pytest.fixture
def redis_client(redis_server):
    """In-process Redis double with the same response decoding as production."""
    return fakeredis.FakeRedis(server=redis_server, decode_responses=True)


@pytest.fixture
def store(redis_client):
    return OrderStore(redis_client)


@pytest.fixture
def make_order():
    """Factory for orders with a single line item."""
    def _make(order_id, item="A", quantity=2, created_at=None):
        return Order(
            order_id=order_id,
            customer_id=CUSTOMER_ID,
            line_items=[LineItem(item_id=item, quantity=quantity)],
            created_at=created_at or datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc),
        )
    return _make


@pytest.fixture
def api_client(store):
    """TestClient whose routes use the fakeredis-backed store."""
    from fastapi.testclient import TestClient
    from order_service.main import app
    from order_service.api.routes.orders import get_order_store

    app.dependency_overrides[get_order_store] = lambda: store
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
