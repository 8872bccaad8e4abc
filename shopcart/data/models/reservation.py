# shopcart/data/models/reservation.py
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON

from shopcart.data.database import Base


class ReservationModel(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True)
    cart_id = Column(Integer, nullable=False, index=True)

    # [{"product_id": 1, "quantity": 2}] w kolejnosci rezerwacji
    lines = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default="reserved", index=True)  # reserved, committed, released
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
