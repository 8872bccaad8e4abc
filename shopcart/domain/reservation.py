# shopcart/domain/reservation.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, NamedTuple

RESERVED = "reserved"
COMMITTED = "committed"
RELEASED = "released"


class ReservedLine(NamedTuple):
    product_id: int
    quantity: int


@dataclass
class Reservation:
    id: int
    cart_id: int
    status: str
    lines: List[ReservedLine] = field(default_factory=list)
    created_at: datetime | None = None

    @classmethod
    def from_model(cls, model) -> "Reservation":
        return cls(
            id=model.id,
            cart_id=model.cart_id,
            status=model.status,
            lines=[ReservedLine(l["product_id"], l["quantity"]) for l in model.lines or []],
            created_at=model.created_at,
        )
