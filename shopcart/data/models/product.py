# shopcart/data/models/product.py
from decimal import Decimal

from sqlalchemy import Column, Integer, String, Boolean, Numeric, JSON, CheckConstraint

from shopcart.data.database import Base


class ProductModel(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("inventory >= 0", name="ck_product_inventory_non_negative"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    sku = Column(String(64), nullable=False, unique=True)
    price = Column(Numeric(12, 2), nullable=False)
    image = Column(String(500), nullable=True)

    inventory = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=10)
    track_inventory = Column(Boolean, nullable=False, default=True)
    allow_backorder = Column(Boolean, nullable=False, default=False)

    status = Column(String(20), nullable=False, default="draft")  # draft, active, inactive, archived
    is_visible = Column(Boolean, nullable=False, default=True)

    # [{"id": "...", "name": "Size", "value": "M", "price": "19.99", "is_active": true}]
    variants = Column(JSON, nullable=False, default=list)

    @property
    def is_available(self) -> bool:
        return self.status == "active" and bool(self.is_visible)

    @property
    def limits_quantity(self) -> bool:
        return bool(self.track_inventory) and not self.allow_backorder

    def has_active_variant(self, variant_id: str) -> bool:
        for variant in self.variants or []:
            if str(variant.get("id")) == str(variant_id):
                return bool(variant.get("is_active", True))
        return False

    def unit_price(self, variant_id: str | None = None) -> Decimal:
        if variant_id:
            for variant in self.variants or []:
                if str(variant.get("id")) == str(variant_id) and variant.get("price") is not None:
                    return Decimal(str(variant["price"]))
        return Decimal(str(self.price))
