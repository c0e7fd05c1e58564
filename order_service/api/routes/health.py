"""
Health check endpoint.
"""

from fastapi import APIRouter, Depends

from ..schemas import HealthResponse
from .orders import get_order_store
from ...core.redis_client import ping
from ...orders.errors import StoreUnavailable
from ...orders.repository import OrderStore

router = APIRouter(tags=["health"])

VERSION = "1.0.0"


@router.get("/health", response_model=HealthResponse)
def health_check(store: OrderStore = Depends(get_order_store)):
    """Check API health and Redis reachability."""
    reachable = ping(store.client)
    indexed = 0
    if reachable:
        try:
            indexed = store.count()
        except StoreUnavailable:
            reachable = False

    return HealthResponse(
        status="healthy" if reachable else "degraded",
        version=VERSION,
        redis=reachable,
        indexed_orders=indexed
    )
