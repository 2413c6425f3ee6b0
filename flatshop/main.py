# flatshop/main.py
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from flatshop.api.routers import carts, health, orders, products, users
from flatshop.data.seed import seed
from flatshop.domain.errors import (
    FlatShopError,
    InventoryExhausted,
    NotFound,
    PermissionDenied,
    StoreIOError,
    ValidationError,
)
from flatshop.utils import settings
from flatshop.utils.logging import get_logger

logger = get_logger(__name__)

_STATUS_CODES = (
    (ValidationError, 400),
    (InventoryExhausted, 409),
    (PermissionDenied, 403),
    (NotFound, 404),
    (StoreIOError, 500),
)


def status_for(error: FlatShopError) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(error, error_type):
            return status_code
    return 400


async def flatshop_error_handler(request: Request, exc: FlatShopError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Using data directory {settings.DATA_DIR}")
    seed()
    yield


def create_app() -> FastAPI:
    app = FastAPI(
        title="FlatShop",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(FlatShopError, flatshop_error_handler)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(products.router)
    app.include_router(products.categories_router)
    app.include_router(carts.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
