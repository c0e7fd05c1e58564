"""
FastAPI application for the Order Service.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from order_service.api.errors import register_exception_handlers
from order_service.api.routes import health, orders
from order_service.core.config import get_config
from order_service.core.logging import setup_logging_from_config
from order_service.core.redis_client import close_redis

# Initialize logging
config = get_config()
setup_logging_from_config(config)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    close_redis()


# Create FastAPI app
app = FastAPI(
    title="Order Service API",
    description="CRUD API for orders stored in Redis",
    version=health.VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(orders.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Order Service API",
        "version": health.VERSION,
        "docs": "/docs"
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "order_service.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
