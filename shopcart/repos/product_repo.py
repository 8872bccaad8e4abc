# shopcart/repos/product_repo.py
from typing import Dict, Iterable

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from shopcart.data.models.product import ProductModel
from shopcart.repos.base import persistence_guard


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    @persistence_guard
    def find_by_id(self, product_id: int) -> ProductModel | None:
        return self.db.get(ProductModel, product_id, populate_existing=True)

    @persistence_guard
    def find_many(self, product_ids: Iterable[int]) -> Dict[int, ProductModel]:
        ids = set(product_ids)
        if not ids:
            return {}
        rows = self.db.execute(
            select(ProductModel)
            .where(ProductModel.id.in_(ids))
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {p.id: p for p in rows}

    @persistence_guard
    def atomic_increment(self, product_id: int, delta: int) -> ProductModel | None:
        """
        Jeden warunkowy UPDATE, nigdy odczyt-oblicz-zapis.
        UPDATE products SET inventory = inventory + :delta
        WHERE id = :id AND inventory + :delta >= 0
        Zwraca None gdy produkt nie istnieje albo stan zszedlby ponizej zera.
        """
        result = self.db.execute(
            update(ProductModel)
            .where(
                ProductModel.id == product_id,
                ProductModel.inventory + delta >= 0,
            )
            .values(inventory=ProductModel.inventory + delta)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            return None

        self.db.commit()
        return self.find_by_id(product_id)

    @persistence_guard
    def add(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.commit()
        self.db.refresh(product)
        return product
