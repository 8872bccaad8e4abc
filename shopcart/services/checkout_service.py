# shopcart/services/checkout_service.py
from typing import Any, Dict

from sqlalchemy.orm import Session

from shopcart.domain.errors import PaymentFailed, PaymentGatewayError
from shopcart.domain.identity import Identity
from shopcart.services.cart_service import CartService
from shopcart.services.inventory_service import InventoryService
from shopcart.services.notification_service import NotificationService
from shopcart.services.order_service import OrderService
from shopcart.services.payment_gateway import PaymentGateway
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class CheckoutService:
    """
    Koszyk (zwalidowany) -> Reserved -> Committed | Released.

    1. walidacja koszyka
    2. rezerwacja stanu
    3. obciazenie przez bramke platnosci
    4. sukces: commit rezerwacji, zamowienie, czyszczenie koszyka
       porazka: zwolnienie rezerwacji
    Brak automatycznego ponawiania, nowa proba to nowa rezerwacja.
    """

    def __init__(self, db: Session, gateway: PaymentGateway, notifications: NotificationService):
        self.carts = CartService(db, notifications)
        self.inventory = InventoryService(db, notifications)
        self.orders = OrderService(db, notifications)
        self.gateway = gateway
        self.notifications = notifications

    def checkout(self, identity: Identity, payment_token: str, currency: str) -> Dict[str, Any]:
        validation = self.carts.validate_cart_for_checkout(identity)
        cart = validation["cart"]

        # kwota i zamowienie pochodza z tej samej wersji koszyka co rezerwacja
        reservation = self.inventory.reserve_inventory(cart["cart_id"], expected_version=cart["version"])

        try:
            result = self.gateway.create_charge(
                amount=cart["subtotal"],
                currency=currency,
                payment_token=payment_token,
                idempotency_key=f"reservation-{reservation.id}",
            )
        except PaymentGatewayError:
            logger.warning(f"Bramka platnosci niedostepna, zwalniam rezerwacje {reservation.id}")
            self.inventory.release_reservation(reservation.id)
            raise
        except Exception:
            logger.exception(f"Nieoczekiwany blad przy platnosci, zwalniam rezerwacje {reservation.id}")
            self.inventory.release_reservation(reservation.id)
            raise

        if not result.success:
            logger.info(f"Platnosc odrzucona ({result.failure_reason}), zwalniam rezerwacje {reservation.id}")
            self.inventory.release_reservation(reservation.id)
            raise PaymentFailed(result.failure_reason)

        self.inventory.commit_reservation(reservation.id)

        order = self.orders.create_order(
            cart,
            identity,
            reservation_id=reservation.id,
            payment_reference=result.transaction_id,
            currency=currency,
        )

        self.carts.clear_cart(identity)
        self.notifications.order_updated(identity, order)

        logger.info(f"Checkout koszyka {cart['cart_id']} zakonczony zamowieniem {order['id']}")

        return order
