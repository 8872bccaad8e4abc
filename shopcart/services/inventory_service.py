# shopcart/services/inventory_service.py
from datetime import datetime, timezone, timedelta
from typing import Iterable, List

from sqlalchemy.orm import Session

from shopcart.data.models.reservation import ReservationModel
from shopcart.domain.errors import (
    CartNotFound,
    CartVersionConflict,
    InsufficientInventory,
    PersistenceError,
    ProductNotFound,
    ReservationStateError,
)
from shopcart.domain.reservation import (
    COMMITTED,
    RELEASED,
    RESERVED,
    Reservation,
    ReservedLine,
)
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.product_repo import ProductRepo
from shopcart.repos.reservation_repo import ReservationRepo
from shopcart.services.notification_service import NotificationService
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Dwufazowa rezerwacja stanu magazynowego na czas platnosci:
    reserve -> (commit | release).

    Jedynym prymitywem wspolbieznosci jest warunkowy UPDATE na produkcie,
    bez rozproszonych lockow.
    """

    def __init__(self, db: Session, notifications: NotificationService):
        self.carts = CartRepo(db)
        self.products = ProductRepo(db)
        self.reservations = ReservationRepo(db)
        self.notifications = notifications

    def reserve_inventory(self, cart_id: int, expected_version: int | None = None) -> Reservation:
        cart = self.carts.get_cart(cart_id)
        if cart is None:
            raise CartNotFound(cart_id)

        # koszyk zmienil sie od walidacji, rezerwujemy tylko to co klient zobaczyl
        if expected_version is not None and cart.version != expected_version:
            logger.warning(f"Koszyk {cart_id} ma wersje {cart.version}, oczekiwano {expected_version}")
            raise CartVersionConflict(cart_id)

        items = list(cart.items or [])
        products = self.products.find_many(i["product_id"] for i in items)
        reserved: List[ReservedLine] = []

        for item in items:
            product_id, quantity = item["product_id"], item["quantity"]
            product = products.get(product_id)

            if product is None:
                self._roll_back(cart_id, reserved)
                raise ProductNotFound(product_id)

            if not product.limits_quantity:
                continue

            try:
                updated = self.products.atomic_increment(product_id, -quantity)
            except PersistenceError:
                self._roll_back(cart_id, reserved)
                raise

            if updated is None:
                #konflikt albo brak towaru - cofamy wszystko co juz zarezerwowane
                self._roll_back(cart_id, reserved)
                current = self.products.find_by_id(product_id)
                raise InsufficientInventory(
                    product_id,
                    product.name,
                    current.inventory if current is not None else None,
                    quantity,
                )

            reserved.append(ReservedLine(product_id, quantity))
            self.notifications.inventory_updated(updated)

        try:
            record = self.reservations.create(
                ReservationModel(
                    cart_id=cart_id,
                    lines=[{"product_id": l.product_id, "quantity": l.quantity} for l in reserved],
                    status=RESERVED,
                )
            )
        except PersistenceError:
            self._roll_back(cart_id, reserved)
            raise

        logger.info(f"Rezerwacja {record.id} dla koszyka {cart_id}: {reserved}")
        return Reservation.from_model(record)

    def release_inventory(self, lines: Iterable[ReservedLine]) -> List[int]:
        """
        Best-effort: blad dla jednego produktu jest logowany,
        reszta jest zwalniana dalej. Zwraca produkty ktorych nie udalo sie zwolnic.
        """
        failed = []
        for product_id, quantity in lines:
            try:
                updated = self.products.atomic_increment(product_id, quantity)
            except PersistenceError as e:
                logger.warning(f"Nie udalo sie zwolnic {quantity} szt. produktu {product_id}: {e}")
                failed.append(product_id)
                continue

            if updated is None:
                logger.warning(f"Nie udalo sie zwolnic {quantity} szt. produktu {product_id}: produkt nie istnieje")
                failed.append(product_id)
                continue

            self.notifications.inventory_updated(updated)

        return failed

    def commit_reservation(self, reservation_id: int) -> Reservation:
        if self.reservations.transition(reservation_id, RESERVED, COMMITTED) == 0:
            existing = self.reservations.get(reservation_id)
            raise ReservationStateError(reservation_id, existing.status if existing else None)

        logger.info(f"Rezerwacja {reservation_id} zatwierdzona")
        return Reservation.from_model(self.reservations.get(reservation_id))

    def release_reservation(self, reservation_id: int) -> Reservation:
        # najpierw zmiana stanu, potem zwrot towaru - dwa rownolegle release nie zwroca podwojnie
        if self.reservations.transition(reservation_id, RESERVED, RELEASED) == 0:
            existing = self.reservations.get(reservation_id)
            if existing is not None and existing.status == RELEASED:
                return Reservation.from_model(existing)
            raise ReservationStateError(reservation_id, existing.status if existing else None)

        reservation = Reservation.from_model(self.reservations.get(reservation_id))
        failed = self.release_inventory(reservation.lines)

        if failed:
            logger.error(f"Rezerwacja {reservation_id} zwolniona czesciowo, brak zwrotu dla produktow {failed}")
        else:
            logger.info(f"Rezerwacja {reservation_id} zwolniona")

        return reservation

    def release_stale_reservations(self, max_age_seconds: int) -> int:
        cutoff = datetime.now(timezone.utc) - timedelta(seconds=max_age_seconds)
        released = 0

        for reservation_id in self.reservations.find_stale(RESERVED, cutoff):
            try:
                self.release_reservation(reservation_id)
                released += 1
            except ReservationStateError as e:
                # zatwierdzona w miedzyczasie
                logger.info(f"Pominieto rezerwacje {reservation_id}: {e}")

        return released

    def _roll_back(self, cart_id: int, reserved: List[ReservedLine]):
        if not reserved:
            return
        logger.warning(f"Wycofywanie {len(reserved)} rezerwacji dla koszyka {cart_id}")
        self.release_inventory(list(reversed(reserved)))
