# shopcart/services/order_service.py
from datetime import datetime, timezone
from math import ceil
from typing import Any, Dict

from sqlalchemy.orm import Session

from shopcart.data.models.order import OrderModel
from shopcart.domain.errors import OrderNotCancellable, OrderNotFound
from shopcart.domain.identity import Identity
from shopcart.domain.reservation import Reservation
from shopcart.repos.order_repo import OrderRepo
from shopcart.repos.reservation_repo import ReservationRepo
from shopcart.services.inventory_service import InventoryService
from shopcart.services.notification_service import NotificationService
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)

CONFIRMED = "confirmed"
CANCELLED = "cancelled"


class OrderService:
    """
    Zamowienie powstaje z zwalidowanego koszyka.
    W przeciwienstwie do koszyka zamowienie zapisuje nazwe i cene na stale.
    """

    def __init__(self, db: Session, notifications: NotificationService):
        self.repo = OrderRepo(db)
        self.reservations = ReservationRepo(db)
        self.inventory = InventoryService(db, notifications)
        self.notifications = notifications

    def create_order(
        self,
        cart: Dict[str, Any],
        identity: Identity,
        reservation_id: int | None,
        payment_reference: str | None,
        currency: str,
    ) -> Dict[str, Any]:
        items = [
            {
                "product_id": i["product_id"],
                "variant_id": i["variant_id"],
                "name": i["name"],
                "unit_price": str(i["unit_price"]),
                "quantity": i["quantity"],
                "line_total": str(i["line_total"]),
            }
            for i in cart["items"]
        ]

        order = self.repo.create_order(
            OrderModel(
                cart_id=cart["cart_id"],
                **identity.as_filter(),
                reservation_id=reservation_id,
                items=items,
                subtotal=cart["subtotal"],
                total=cart["subtotal"],
                currency=currency.lower(),
                status=CONFIRMED,
                payment_reference=payment_reference,
            )
        )

        logger.info(f"Order {order.id} created from cart {cart['cart_id']}")

        return self._to_dict(order)

    def get_order(self, order_id: int, identity: Identity) -> Dict[str, Any]:
        return self._to_dict(self._owned(order_id, identity))

    def list_orders(self, identity: Identity, page: int = 1, limit: int = 10) -> Dict[str, Any]:
        owner = identity.as_filter()
        orders = self.repo.list_for_owner(owner, offset=(page - 1) * limit, limit=limit)
        total = self.repo.count_for_owner(owner)
        pages = ceil(total / limit)

        return {
            "orders": [self._to_dict(o) for o in orders],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": pages,
                "has_next": page < pages,
                "has_prev": page > 1,
            },
        }

    def cancel_order(self, order_id: int, identity: Identity, reason: str | None = None) -> Dict[str, Any]:
        """
        confirmed -> cancelled i zwrot towaru.
        Zwracamy dokladnie to co zostalo zdjete ze stanu przy rezerwacji,
        produkty bez sledzenia stanu nie sa zwiekszane.
        """
        order = self._owned(order_id, identity)

        changed = self.repo.transition_status(
            order_id,
            CONFIRMED,
            CANCELLED,
            cancel_reason=reason or "Order cancelled by customer",
            cancelled_at=datetime.now(timezone.utc),
        )
        if changed == 0:
            current = self.repo.get_order(order_id)
            raise OrderNotCancellable(order_id, current.status if current else order.status)

        if order.reservation_id is not None:
            record = self.reservations.get(order.reservation_id)
            if record is not None:
                failed = self.inventory.release_inventory(Reservation.from_model(record).lines)
                if failed:
                    logger.error(f"Zamowienie {order_id} anulowane, brak zwrotu stanu dla produktow {failed}")

        cancelled = self._to_dict(self.repo.get_order(order_id))
        self.notifications.order_updated(identity, cancelled)

        logger.info(f"Order {order_id} cancelled")

        return cancelled

    def _owned(self, order_id: int, identity: Identity) -> OrderModel:
        order = self.repo.get_order(order_id)

        # cudze zamowienie wyglada jak nieistniejace
        if not order or order.user_id != identity.user_id or order.session_id != identity.session_id:
            raise OrderNotFound(order_id)

        return order

    @staticmethod
    def _to_dict(order: OrderModel) -> Dict[str, Any]:
        return {
            "id": order.id,
            "cart_id": order.cart_id,
            "user_id": order.user_id,
            "session_id": order.session_id,
            "reservation_id": order.reservation_id,
            "items": order.items,
            "subtotal": order.subtotal,
            "total": order.total,
            "currency": order.currency,
            "status": order.status,
            "payment_reference": order.payment_reference,
            "cancel_reason": order.cancel_reason,
            "cancelled_at": order.cancelled_at,
            "created_at": order.created_at,
        }
