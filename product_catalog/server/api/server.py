"""
FastAPI server for the Product Catalog.
Serves the product list, single products and a liveness check.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from product_catalog.shared import format_price

logger = logging.getLogger(__name__)


class ProductResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: str
    image_url: Optional[str] = None
    created_at: Optional[str] = None


class HealthResponse(BaseModel):
    status: str


# Global references (set during app creation)
_storage_manager = None


def _to_wire(row: dict) -> dict:
    """Product row as served: price as a two-decimal numeric string."""
    return ProductResponse(
        id=row["id"],
        name=row["name"],
        description=row.get("description"),
        price=format_price(row["price"]),
        image_url=row.get("image_url"),
        created_at=str(row["created_at"]) if row.get("created_at") is not None else None,
    ).model_dump()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(storage_manager) -> FastAPI:
    """Create and configure the FastAPI application."""
    global _storage_manager
    _storage_manager = storage_manager

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API server starting up")
        yield
        logger.info("API server shutting down")

    app = FastAPI(
        title="Product Catalog API",
        description="Product listing service backed by a relational store",
        version="1.0.0",
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = ", ".join(str(err["loc"][-1]) for err in exc.errors() if err.get("loc")) or "request"
        logger.warning(f"Rejected {request.method} {request.url.path}: invalid {fields}")
        return _error(400, f"Invalid value for {fields}")

    register_routes(app)

    return app


def register_routes(app: FastAPI):
    """Register all API routes."""

    # ==================== Products ====================

    @app.get("/api/products")
    async def list_products():
        """All products ordered by id."""
        try:
            rows = _storage_manager.list_products()
        except Exception as e:
            logger.error(f"Error fetching products: {e}")
            return _error(500, "Failed to fetch products")

        return [_to_wire(row) for row in rows]

    @app.get("/api/products/{product_id}")
    async def get_product(product_id: int):
        """A single product, or 404 when absent."""
        try:
            row = _storage_manager.get_product(product_id)
        except Exception as e:
            logger.error(f"Error fetching product {product_id}: {e}")
            return _error(500, "Failed to fetch product")

        if row is None:
            return _error(404, "Product not found")

        return _to_wire(row)

    # ==================== Health ====================

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return {"status": "Backend API is running"}
