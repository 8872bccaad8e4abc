# shopcart/api/__init__.py
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from shopcart.api.routers import carts, checkout, orders, health
from shopcart.domain.errors import CartError, PersistenceError
from shopcart.services.notification_service import build_publisher
from shopcart.services.payment_gateway import PaymentGateway, build_gateway
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


async def cart_error_handler(request: Request, exc: CartError):
    if isinstance(exc, PersistenceError):
        logger.error(f"Storage failure on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": "Internal server error", "details": {}},
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "details": exc.details},
    )


def create_app(publisher=None, gateway: PaymentGateway | None = None) -> FastAPI:
    """
    Klienci zewnetrzni (redis, bramka platnosci) tworzeni raz na proces
    i trzymani w app.state, nie jako globalne zmienne modulu.
    """
    app = FastAPI(title="Cart Service", version="1.0.0")

    app.state.publisher = publisher if publisher is not None else build_publisher()
    app.state.gateway = gateway if gateway is not None else build_gateway()

    app.add_exception_handler(CartError, cart_error_handler)

    app.include_router(health.router)
    app.include_router(carts.router)
    app.include_router(checkout.router)
    app.include_router(orders.router)

    return app
