"""
Storefront API

Single FastAPI application serving the product catalogue, cart, checkout,
inventory and user profile endpoints.
"""

from contextlib import asynccontextmanager
from typing import Optional
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.auth_dependencies import configure_auth
from core.auth_provider import SupabaseAuthProvider, create_auth_provider
from core.config import get_settings
from core.errors import InternalError, RateLimitError, StorefrontError, ValidationError
from core.logger import setup_service_logger
from core.postgres_client import PostgresClient, close_postgres_clients, get_postgres_client
from core.rate_limiter import (
    RedisRateLimitStore,
    create_rate_limit_store,
    set_rate_limit_store,
)

from microservices.auth_service.routes import router as auth_router
from microservices.cart_service.factory import create_cart_service
from microservices.cart_service.routes import router as cart_router
from microservices.error_service.factory import create_error_service
from microservices.error_service.routes import router as error_router
from microservices.inventory_service.factory import create_inventory_service
from microservices.inventory_service.routes import router as inventory_router
from microservices.product_service.factory import create_product_service
from microservices.product_service.routes import router as product_router
from microservices.purchase_service.factory import create_purchase_service
from microservices.purchase_service.routes import router as purchase_router
from microservices.storefront_api import dependencies
from microservices.storefront_api.dependencies import set_services
from microservices.user_service.factory import create_user_service
from microservices.user_service.routes import router as user_router

config = get_settings()

# 配置日志
logger = setup_service_logger(config.service_name, config=config.logging)

# 全局变量
db: Optional[PostgresClient] = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    global db

    auth_provider = None
    rate_limit_store = None
    try:
        db = await get_postgres_client(
            config.service_name,
            dsn=config.infra.postgres_dsn,
            min_size=config.infra.postgres_pool_min,
            max_size=config.infra.postgres_pool_max,
        )

        inventory = create_inventory_service(db)
        product = create_product_service(db, inventory)
        user = create_user_service(db)
        cart = create_cart_service(db, product, inventory)
        purchase = create_purchase_service(db, cart, product, inventory, user)
        set_services(
            cart=cart,
            product=product,
            inventory=inventory,
            purchase=purchase,
            user=user,
            errors=create_error_service(db),
        )

        auth_provider = create_auth_provider(config.auth, config.infra)
        configure_auth(auth_provider, role_resolver=user.repository)
        logger.info(f"✅ Auth provider configured: {config.auth.provider}")

        rate_limit_store = create_rate_limit_store(config.rate_limit, config.infra.redis_dsn)
        set_rate_limit_store(rate_limit_store)

        logger.info(f"Storefront API started on port {config.port} ({config.environment})")
        yield

    except Exception as e:
        logger.error(f"Failed to initialize storefront API: {e}")
        raise
    finally:
        set_services()
        if isinstance(auth_provider, SupabaseAuthProvider):
            await auth_provider.close()
        if isinstance(rate_limit_store, RedisRateLimitStore):
            await rate_limit_store.close()
        await close_postgres_clients()
        db = None
        logger.info("Storefront API shut down")


# 创建 FastAPI 应用
app = FastAPI(
    title="Storefront API",
    description="Product catalogue, cart, checkout and inventory",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in config.cors_origins.split(",")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in (
    product_router, cart_router, purchase_router, inventory_router, user_router, auth_router, error_router,
):
    app.include_router(router)


# ====================
# 异常处理
# ====================

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError):
    headers = None
    if isinstance(exc, RateLimitError) and exc.retry_after is not None:
        headers = {"Retry-After": str(exc.retry_after)}
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in error['loc'] if part not in ('body', 'query', 'path'))}: {error['msg']}"
        for error in exc.errors()
    ]
    error = ValidationError(details)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """全局异常处理"""
    logger.error(f"Unhandled exception in {request.url}: {exc}", exc_info=True)
    error = InternalError()
    if dependencies.error_service is not None:
        try:
            await dependencies.error_service.log_api_error(
                exc, request.url.path, request.method, status_code=error.status_code
            )
        except Exception as log_error:
            logger.error(f"Failed to record error report: {log_error}")
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# ====================
# 健康检查
# ====================

@app.get("/health")
async def health_check():
    """健康检查"""
    database = await db.health_check() if db else None
    healthy = bool(database and database.get("healthy"))
    return JSONResponse(
        status_code=200 if healthy else 503,
        content={
            "status": "healthy" if healthy else "degraded",
            "service": config.service_name,
            "database": "connected" if healthy else "unavailable",
        },
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "microservices.storefront_api.main:app",
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level=config.logging.log_level.lower(),
    )
