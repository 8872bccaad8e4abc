from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import Any, Callable, Dict, List, NamedTuple
from sqlalchemy.orm import Session
from shopcart.data.models.cart import CartModel
from shopcart.domain import cart as lines
from shopcart.domain.errors import (
    CartError,
    CartValidationFailed,
    CartVersionConflict,
    EmptyCart,
    InsufficientInventory,
    ItemNotFound,
    ProductNotFound,
    ProductUnavailable,
    VariantUnavailable,
)
from shopcart.domain.identity import Identity
from shopcart.repos.cart_repo import CartRepo
from shopcart.repos.product_repo import ProductRepo
from shopcart.services.notification_service import NotificationService
from shopcart.utils.retry import conflict_retry
from shopcart.utils.settings import GUEST_CART_TTL_SECONDS
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


class CartState(NamedTuple):
    cart: CartModel
    items: List[lines.Line]
    products: Dict[int, Any]
    subtotal: Decimal
    total_items: int
    version: int


class CartService:
    """
    Use case'y koszyka: odczyt z przycinaniem, add/update/remove/clear, merge, walidacja przed checkoutem.
    Kazdy zapis to zapis calego dokumentu z warunkiem na version,
    przy konflikcie caly cykl odczyt-oblicz-zapis jest powtarzany.
    """

    def __init__(self, db: Session, notifications: NotificationService):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.notifications = notifications

    #query - odczyt (moze zapisac przyciety koszyk)
    def get_cart(self, identity: Identity) -> Dict[str, Any]:
        return self._view(self._apply(identity))

    def get_summary(self, identity: Identity) -> Dict[str, Any]:
        return self._summary(self._apply(identity))

    #commands
    def add_item(
        self,
        identity: Identity,
        product_id: int,
        quantity: int,
        variant_id: str | None = None,
    ) -> Dict[str, Any]:

        if quantity < 1:
            raise CartError("Quantity must be at least 1")

        product = self.products.find_by_id(product_id)
        if product is None:
            raise ProductNotFound(product_id)

        if not product.is_available:
            raise ProductUnavailable(product_id, product.name)

        if variant_id is not None and not product.has_active_variant(variant_id):
            raise VariantUnavailable(product_id, variant_id, product.name)

        # stan tylko odczytany, nie rezerwowany - wyscig z checkoutem jest akceptowany
        if product.limits_quantity and product.inventory < quantity:
            raise InsufficientInventory(product_id, product.name, product.inventory, quantity)

        state = self._apply(
            identity,
            lambda items: lines.add_line(items, product_id, quantity, variant_id),
        )

        logger.info(f"Produkt {product_id} (variant {variant_id}) x{quantity} dodany do koszyka {state.cart.id}")

        return self._changed(identity, state)

    def update_item(self, identity: Identity, item_id: str, quantity: int) -> Dict[str, Any]:

        def change(items):
            if lines.find_line(items, item_id) is None:
                raise ItemNotFound(item_id)
            return lines.set_quantity(items, item_id, quantity)

        state = self._apply(identity, change)

        logger.info(f"Pozycja {item_id} w koszyku {state.cart.id} ustawiona na {quantity}")

        return self._changed(identity, state)

    def remove_item(self, identity: Identity, item_id: str) -> Dict[str, Any]:
        # brak pozycji to nie blad
        state = self._apply(identity, lambda items: lines.remove_line(items, item_id))
        return self._changed(identity, state)

    def clear_cart(self, identity: Identity) -> Dict[str, Any]:
        state = self._apply(identity, lambda items: [])
        logger.info(f"Koszyk {state.cart.id} wyczyszczony")
        return self._changed(identity, state)

    def merge_cart(self, user_id: int, guest_session_id: str) -> Dict[str, Any]:
        """
        Guest -> user po zalogowaniu.
        Tylko dodaje/sumuje, bez walidacji magazynu (to robi checkout).
        """
        user = Identity(user_id=user_id)
        guest = Identity(session_id=guest_session_id)

        guest_state = self._apply(guest)

        if not guest_state.items:
            logger.info(f"Koszyk goscia {guest_session_id} pusty, nic do scalenia")
            return self.get_cart(user)

        state = self._apply(user, lambda items: lines.merge_lines(items, guest_state.items))

        self.repo.delete_cart(guest_state.cart.id)

        logger.info(
            f"Scalono {len(guest_state.items)} pozycji z koszyka goscia {guest_state.cart.id} "
            f"do koszyka {state.cart.id} uzytkownika {user_id}"
        )

        return self._changed(user, state)

    def validate_cart_for_checkout(self, identity: Identity) -> Dict[str, Any]:
        state = self._apply(identity)

        if not state.items:
            raise EmptyCart()

        reasons = []
        requested: Dict[int, int] = {}
        for item in state.items:
            requested[item["product_id"]] = requested.get(item["product_id"], 0) + item["quantity"]

        #zbieramy wszystkie bledy, bez przerywania na pierwszym
        for product_id, quantity in requested.items():
            # niedostepne produkty zostaly juz usuniete przez _apply
            product = state.products[product_id]

            if product.limits_quantity and product.inventory < quantity:
                reasons.append(f'Only {product.inventory} items of "{product.name}" available in stock')

        if reasons:
            logger.info(f"Walidacja koszyka {state.cart.id} nieudana: {reasons}")
            raise CartValidationFailed(reasons)

        return {
            "valid": True,
            "cart": self._view(state),
            "summary": self._summary(state),
        }

    # =====================================================
    # dokument koszyka
    # =====================================================
    @conflict_retry()
    def _apply(self, identity: Identity, change: Callable | None = None) -> CartState:
        cart = self._load_or_create(identity)
        stored = cart.items or []

        items, products = self._join(stored)
        if len(items) != len(stored):
            logger.info(f"Usunieto {len(stored) - len(items)} niedostepnych pozycji z koszyka {cart.id}")

        if change is not None:
            items, products = self._join(change(items))

        subtotal, total_items = lines.compute_totals(items, products)

        if (
            items != stored
            or subtotal != Decimal(cart.subtotal or 0)
            or total_items != cart.total_items
        ):
            cart = self._write(cart, items, subtotal, total_items)

        return CartState(cart, items, products, subtotal, total_items, cart.version)

    def _load_or_create(self, identity: Identity) -> CartModel:
        cart = self.repo.get_cart_by_owner(identity)
        if cart:
            return cart

        now = datetime.now(timezone.utc)
        created = self.repo.create_cart(
            CartModel(
                **identity.as_filter(),
                items=[],
                subtotal=Decimal("0.00"),
                total_items=0,
                version=1,
                created_at=now,
                updated_at=now,
                expires_at=self._expiry(identity, now),
            )
        )

        if created is None:
            #inne zapytanie utworzylo koszyk w miedzyczasie
            return self.repo.get_cart_by_owner(identity)

        logger.info(f"Utworzono nowy koszyk {created.id} dla {identity.channel}")
        return created

    def _join(self, items: List[lines.Line]):
        products = self.products.find_many(i["product_id"] for i in items)
        kept = [
            i for i in items
            if i["product_id"] in products and products[i["product_id"]].is_available
        ]
        return kept, products

    def _write(self, cart: CartModel, items, subtotal: Decimal, total_items: int) -> CartModel:
        now = datetime.now(timezone.utc)
        data = {
            "items": items,
            "subtotal": subtotal,
            "total_items": total_items,
            "version": cart.version + 1,
            "updated_at": now,
        }
        # koszyk goscia zyje GUEST_CART_TTL_SECONDS od ostatniej zmiany
        if cart.session_id is not None:
            data["expires_at"] = now + timedelta(seconds=GUEST_CART_TTL_SECONDS)

        # Optimistic locking
        rowcount = self.repo.update_cart_version(
            cart_id=cart.id,
            old_version=cart.version,
            new_data=data,
        )

        if rowcount == 0:
            self.repo.rollback()
            logger.warning(f"Konflikt wersji koszyka {cart.id} (version {cart.version})")
            raise CartVersionConflict(cart.id)

        self.repo.commit()
        return self.repo.get_cart(cart.id)

    @staticmethod
    def _expiry(identity: Identity, now: datetime):
        if identity.is_guest:
            return now + timedelta(seconds=GUEST_CART_TTL_SECONDS)
        return None

    def _changed(self, identity: Identity, state: CartState) -> Dict[str, Any]:
        view = self._view(state)
        self.notifications.cart_updated(identity, view)
        return view

    @staticmethod
    def _summary(state: CartState) -> Dict[str, Any]:
        return {
            "total_items": state.total_items,
            "subtotal": state.subtotal,
            "item_count": len(state.items),
        }

    @staticmethod
    def _view(state: CartState) -> Dict[str, Any]:
        items = []
        for i in state.items:
            product = state.products[i["product_id"]]
            unit_price = product.unit_price(i.get("variant_id"))
            items.append(
                {
                    "item_id": i["id"],
                    "product_id": i["product_id"],
                    "variant_id": i.get("variant_id"),
                    "quantity": i["quantity"],
                    "added_at": i.get("added_at"),
                    "name": product.name,
                    "image": product.image,
                    "unit_price": unit_price,
                    "available_inventory": product.inventory if product.track_inventory else None,
                    "line_total": (unit_price * i["quantity"]).quantize(lines.CENT),
                }
            )

        cart = state.cart
        return {
            "cart_id": cart.id,
            "user_id": cart.user_id,
            "session_id": cart.session_id,
            "items": items,
            "subtotal": state.subtotal,
            "total_items": state.total_items,
            "item_count": len(items),
            "version": state.version,
            "expires_at": cart.expires_at,
        }
