# shopcart/repos/order_repo.py
from typing import Any, Dict, List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from shopcart.data.models.order import OrderModel
from shopcart.repos.base import persistence_guard


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    @persistence_guard
    def create_order(self, order: OrderModel) -> OrderModel:
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    @persistence_guard
    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.get(OrderModel, order_id, populate_existing=True)

    @persistence_guard
    def list_for_owner(self, owner: Dict[str, Any], offset: int, limit: int) -> List[OrderModel]:
        return list(
            self.db.execute(
                select(OrderModel)
                .filter_by(**owner)
                .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
                .offset(offset)
                .limit(limit)
            ).scalars()
        )

    @persistence_guard
    def count_for_owner(self, owner: Dict[str, Any]) -> int:
        return self.db.execute(
            select(func.count()).select_from(OrderModel).filter_by(**owner)
        ).scalar_one()

    @persistence_guard
    def transition_status(self, order_id: int, from_status: str, to_status: str, **values) -> int:
        # jak przy rezerwacjach - wygrywa jeden wywolujacy
        result = self.db.execute(
            update(OrderModel)
            .where(OrderModel.id == order_id, OrderModel.status == from_status)
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount
