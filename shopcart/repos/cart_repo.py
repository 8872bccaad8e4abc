# shopcart/repos/cart_repo.py
from datetime import datetime
from typing import Any, Dict

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shopcart.data.models.cart import CartModel
from shopcart.domain.identity import Identity
from shopcart.repos.base import persistence_guard


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    @persistence_guard
    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id, populate_existing=True)

    @persistence_guard
    def get_cart_by_owner(self, identity: Identity) -> CartModel | None:
        return self.db.execute(
            select(CartModel)
            .filter_by(**identity.as_filter())
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    @persistence_guard
    def create_cart(self, cart: CartModel) -> CartModel | None:
        # None gdy rownolegle zapytanie utworzylo juz koszyk dla tego wlasciciela
        self.db.add(cart)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            return None
        self.db.refresh(cart)
        return cart

    @persistence_guard
    def update_cart_version(self, cart_id: int, old_version: int, new_data: Dict[str, Any]) -> int:
        #update carts set ... version = old + 1 where id = :id and version = :old
        result = self.db.execute(
            update(CartModel)
            .where(CartModel.id == cart_id, CartModel.version == old_version)
            .values(**new_data)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @persistence_guard
    def delete_cart(self, cart_id: int) -> int:
        result = self.db.execute(
            delete(CartModel)
            .where(CartModel.id == cart_id)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    @persistence_guard
    def delete_expired_guest_carts(self, now: datetime) -> int:
        result = self.db.execute(
            delete(CartModel)
            .where(
                CartModel.session_id.is_not(None),
                CartModel.expires_at < now,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
