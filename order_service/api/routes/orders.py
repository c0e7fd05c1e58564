"""
Order API endpoints.
"""

from fastapi import APIRouter, Depends, Path, Query, Response, status
from typing import Annotated, Optional

from ..schemas import ErrorResponse, OrderPage, OrderRequest
from ...core.config import get_config
from ...core.context import Context
from ...core.redis_client import get_redis
from ...orders.models import MAX_ORDER_ID, Order
from ...orders.repository import MAX_CURSOR, OrderStore
from ...orders.service import OrderService

router = APIRouter(
    prefix="/orders",
    tags=["orders"],
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)

OrderId = Annotated[int, Path(ge=0, le=MAX_ORDER_ID, description="Order id")]


def get_order_store() -> OrderStore:
    """Repository over the process-wide Redis client."""
    config = get_config()
    return OrderStore(
        get_redis(),
        key_prefix=config.get('redis', 'key_prefix', default='order:'),
        index_key=config.get('redis', 'index_key', default='orders'),
    )


def get_order_service(store: OrderStore = Depends(get_order_store)) -> OrderService:
    return OrderService(store)


def get_request_context() -> Context:
    """Per-request deadline for store calls."""
    timeout = get_config().get_float('api', 'request_timeout', default=10.0)
    return Context.with_timeout(timeout)


@router.post(
    "",
    response_model=Order,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
)
def create_order(
    body: OrderRequest,
    service: OrderService = Depends(get_order_service),
    ctx: Context = Depends(get_request_context),
):
    """Create an order; the server assigns its id and creation time."""
    return service.create_order(body.customer_id, body.line_items, ctx)


@router.get("", response_model=OrderPage)
def list_orders(
    cursor: int = Query(default=0, ge=0, le=MAX_CURSOR, description="Cursor returned by the previous page"),
    size: Optional[int] = Query(default=None, ge=1, description="Max index entries to scan"),
    service: OrderService = Depends(get_order_service),
    ctx: Context = Depends(get_request_context),
):
    """
    List orders one scan step at a time.
    Keep requesting with `cursor=next` until `next` is 0; a page may be
    empty before the end.
    """
    config = get_config()
    if size is None:
        size = config.get_int('api', 'page_size', default=50)
    size = min(size, config.get_int('api', 'max_page_size', default=1000))

    result = service.list_orders(cursor=cursor, size=size, ctx=ctx)
    return OrderPage(items=result.orders, next=result.cursor)


@router.get("/{order_id}", response_model=Order, responses={404: {"model": ErrorResponse}})
def get_order(
    order_id: OrderId,
    service: OrderService = Depends(get_order_service),
    ctx: Context = Depends(get_request_context),
):
    """Get one order."""
    return service.get_order(order_id, ctx)


@router.put("/{order_id}", response_model=Order, responses={404: {"model": ErrorResponse}})
def replace_order(
    body: OrderRequest,
    order_id: OrderId,
    service: OrderService = Depends(get_order_service),
    ctx: Context = Depends(get_request_context),
):
    """Replace an order's customer and line items."""
    return service.replace_order(order_id, body.customer_id, body.line_items, ctx)


@router.delete(
    "/{order_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    responses={404: {"model": ErrorResponse}},
)
def delete_order(
    order_id: OrderId,
    service: OrderService = Depends(get_order_service),
    ctx: Context = Depends(get_request_context),
):
    """Delete an order."""
    service.delete_order(order_id, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
