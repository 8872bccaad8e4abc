# shopcart/api/deps.py
from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from shopcart.data.database import get_db
from shopcart.domain.identity import Identity
from shopcart.services.cart_service import CartService
from shopcart.services.checkout_service import CheckoutService
from shopcart.services.notification_service import NotificationService
from shopcart.services.order_service import OrderService


def get_identity(
    x_user_id: int | None = Header(None),
    x_session_id: str | None = Header(None),
) -> Identity:
    # naglowki ustawia middleware uwierzytelniania przed nami
    return Identity.resolve(user_id=x_user_id, session_id=x_session_id)


def get_notifications(request: Request) -> NotificationService:
    return NotificationService(request.app.state.publisher)


def get_cart_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notifications),
) -> CartService:
    return CartService(db, notifications)


def get_checkout_service(
    request: Request,
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notifications),
) -> CheckoutService:
    return CheckoutService(db, request.app.state.gateway, notifications)


def get_order_service(
    db: Session = Depends(get_db),
    notifications: NotificationService = Depends(get_notifications),
) -> OrderService:
    return OrderService(db, notifications)
