# shopcart/domain/cart.py
"""
Operacje na liscie pozycji koszyka (dokument JSON).
Funkcje nie modyfikuja wejscia, zawsze zwracaja nowa liste.
"""
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Tuple

Line = Dict[str, Any]

CENT = Decimal("0.01")


def new_line(product_id: int, quantity: int, variant_id: str | None = None) -> Line:
    return {
        "id": uuid.uuid4().hex,
        "product_id": product_id,
        "variant_id": variant_id,
        "quantity": quantity,
        "added_at": datetime.now(timezone.utc).isoformat(),
    }


def same_product(line: Line, product_id: int, variant_id: str | None) -> bool:
    return line["product_id"] == product_id and (line.get("variant_id") or None) == (variant_id or None)


def find_line(items: List[Line], item_id: str) -> Line | None:
    return next((i for i in items if i["id"] == item_id), None)


def add_line(items: List[Line], product_id: int, quantity: int, variant_id: str | None = None) -> List[Line]:
    result = [dict(i) for i in items]
    existing = next((i for i in result if same_product(i, product_id, variant_id)), None)
    if existing:
        existing["quantity"] += quantity
    else:
        result.append(new_line(product_id, quantity, variant_id))
    return result


def set_quantity(items: List[Line], item_id: str, quantity: int) -> List[Line]:
    # ilosc <= 0 usuwa pozycje, nigdy nie zapisujemy zera
    if quantity <= 0:
        return remove_line(items, item_id)
    return [dict(i, quantity=quantity) if i["id"] == item_id else dict(i) for i in items]


def remove_line(items: List[Line], item_id: str) -> List[Line]:
    return [dict(i) for i in items if i["id"] != item_id]


def merge_lines(target: List[Line], source: List[Line]) -> List[Line]:
    """Fold guest lines into the user's lines: sum overlapping pairs, copy the rest under new ids."""
    result = [dict(i) for i in target]
    for guest in source:
        existing = next(
            (i for i in result if same_product(i, guest["product_id"], guest.get("variant_id"))),
            None,
        )
        if existing:
            existing["quantity"] += guest["quantity"]
        else:
            copied = new_line(guest["product_id"], guest["quantity"], guest.get("variant_id"))
            copied["added_at"] = guest.get("added_at") or copied["added_at"]
            result.append(copied)
    return result


def compute_totals(items: List[Line], products: Dict[int, Any]) -> Tuple[Decimal, int]:
    subtotal = Decimal("0.00")
    total_items = 0
    for item in items:
        product = products.get(item["product_id"])
        if product is None:
            continue
        subtotal += product.unit_price(item.get("variant_id")) * item["quantity"]
        total_items += item["quantity"]
    return subtotal.quantize(CENT), total_items
