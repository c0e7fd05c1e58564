"""
Order entity and its storage codec.
"""

from datetime import datetime
from typing import List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, Field, ValidationError

from .errors import CorruptRecord, EncodingError

KEY_PREFIX = "order:"
INDEX_KEY = "orders"

MAX_ORDER_ID = 2 ** 64 - 1


class LineItem(BaseModel):
    """One product line of an order."""
    item_id: str = Field(min_length=1)
    quantity: int = Field(ge=0)
    price: int = Field(default=0, ge=0)  # minor currency units


class Order(BaseModel):
    """The persisted order entity."""
    order_id: int = Field(ge=0, le=MAX_ORDER_ID)
    customer_id: UUID
    line_items: List[LineItem] = Field(default_factory=list)
    created_at: Optional[datetime] = None


def key_of(order_id: int, prefix: str = KEY_PREFIX) -> str:
    """Primary key for an order id, e.g. ``order:42``."""
    return f"{prefix}{int(order_id)}"


def encode(order: Order) -> bytes:
    """Serialize an order to JSON bytes."""
    if not isinstance(order, Order):
        raise EncodingError("encode", detail=f"expected Order, got {type(order).__name__}")
    try:
        return order.model_dump_json().encode('utf-8')
    except ValueError as e:
        raise EncodingError("encode", key_of(order.order_id), str(e)) from e


def decode(raw: Union[bytes, str, None], key: Optional[str] = None) -> Order:
    """Parse a stored value back into an order; any defect is a CorruptRecord."""
    if raw is None:
        raise CorruptRecord("decode", key, "value is missing")
    try:
        return Order.model_validate_json(raw)
    except ValidationError as e:
        raise CorruptRecord("decode", key, f"{e.error_count()} validation error(s)") from e
