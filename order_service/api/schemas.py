"""
Pydantic schemas for API request/response validation.
"""

from pydantic import BaseModel, Field
from typing import List
from uuid import UUID

from ..orders.models import LineItem, Order


# ==================== Order Schemas ====================

class OrderRequest(BaseModel):
    """Body of create and replace requests."""
    customer_id: UUID
    line_items: List[LineItem] = Field(default_factory=list)


class OrderPage(BaseModel):
    """One page of the order listing."""
    items: List[Order]
    next: int = Field(default=0, description="Cursor for the next page, 0 when done")


# ==================== Generic Schemas ====================

class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    redis: bool
    indexed_orders: int


class ErrorResponse(BaseModel):
    """Body of every error response."""
    detail: str
    status_code: int
