# shopcart/data/models/cart.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, Numeric, JSON, CheckConstraint

from shopcart.data.database import Base


def _now():
    return datetime.now(timezone.utc)


class CartModel(Base):
    """
    Jeden wiersz == jeden dokument koszyka.
    Pozycje trzymane w kolumnie JSON, zapisywane zawsze w calosci.
    """

    __tablename__ = "carts"
    __table_args__ = (
        CheckConstraint(
            "(user_id IS NULL) <> (session_id IS NULL)",
            name="ck_cart_single_owner",
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, nullable=True, unique=True, index=True)
    session_id = Column(String(255), nullable=True, unique=True, index=True)

    # [{"id", "product_id", "variant_id", "quantity", "added_at"}]
    items = Column(JSON, nullable=False, default=list)

    subtotal = Column(Numeric(12, 2), nullable=False, default=0)
    total_items = Column(Integer, nullable=False, default=0)

    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_now)
    expires_at = Column(DateTime(timezone=True), nullable=True)
