"""
Order Service.
Builds orders from client input and hands them to the repository.
"""

import logging
import secrets
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import UUID

from ..core.context import Context
from .models import LineItem, Order
from .repository import FindAllPage, FindResult, OrderStore

logger = logging.getLogger(__name__)


def random_order_id() -> int:
    """Random unsigned 64-bit order id."""
    return secrets.randbits(64)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class OrderService:
    """Orchestrates order creation, replacement and listing."""

    def __init__(
        self,
        store: OrderStore,
        id_factory: Callable[[], int] = random_order_id,
        clock: Callable[[], datetime] = utc_now
    ):
        self.store = store
        self.id_factory = id_factory
        self.clock = clock

    def create_order(
        self,
        customer_id: UUID,
        line_items: List[LineItem],
        ctx: Optional[Context] = None
    ) -> Order:
        """Assign an id and creation time, then insert."""
        order = Order(
            order_id=self.id_factory(),
            customer_id=customer_id,
            line_items=line_items,
            created_at=self.clock(),
        )
        self.store.insert(order, ctx)
        logger.info(f"Created order {order.order_id} for customer {customer_id}")
        return order

    def get_order(self, order_id: int, ctx: Optional[Context] = None) -> Order:
        return self.store.find_by_id(order_id, ctx)

    def replace_order(
        self,
        order_id: int,
        customer_id: UUID,
        line_items: List[LineItem],
        ctx: Optional[Context] = None
    ) -> Order:
        """
        Replace an order's contents. The stored creation time is kept so
        `created_at` never changes after insert.
        """
        existing = self.store.find_by_id(order_id, ctx)
        order = Order(
            order_id=order_id,
            customer_id=customer_id,
            line_items=line_items,
            created_at=existing.created_at,
        )
        self.store.update(order, ctx)
        logger.info(f"Updated order {order_id}")
        return order

    def delete_order(self, order_id: int, ctx: Optional[Context] = None) -> None:
        self.store.delete_by_id(order_id, ctx)
        logger.info(f"Deleted order {order_id}")

    def list_orders(self, cursor: int = 0, size: int = 50, ctx: Optional[Context] = None) -> FindResult:
        return self.store.find_all(FindAllPage(size=size, offset=cursor), ctx)
