# shopcart/domain/schemas.py
from pydantic import BaseModel, Field, ConfigDict
from typing import List
from decimal import Decimal
from datetime import datetime

from shopcart.utils.settings import DEFAULT_CURRENCY


class AddItemIn(BaseModel):
    """Dodanie produktu do koszyka."""

    product_id: int = Field(..., gt=0, description="ID produktu (musi byc > 0)")
    quantity: int = Field(..., ge=1, description="Ilosc produktu (min. 1)")
    variant_id: str | None = Field(None, min_length=1, max_length=64)


class UpdateItemIn(BaseModel):
    """Zmiana ilosci. Ilosc <= 0 usuwa pozycje."""

    quantity: int


class MergeIn(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=255, description="Sesja goscia do scalenia")


class CheckoutIn(BaseModel):
    payment_token: str = Field(..., min_length=1)
    currency: str = Field(DEFAULT_CURRENCY, pattern=r"^[A-Za-z]{3}$")


class CartItemOut(BaseModel):
    item_id: str
    product_id: int
    variant_id: str | None = None
    quantity: int
    added_at: datetime | None = None
    name: str
    image: str | None = None
    unit_price: Decimal
    available_inventory: int | None = None
    line_total: Decimal


class CartOut(BaseModel):
    cart_id: int
    user_id: int | None = None
    session_id: str | None = None
    items: List[CartItemOut]
    subtotal: Decimal
    total_items: int
    item_count: int
    version: int
    expires_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)


class CartSummaryOut(BaseModel):
    total_items: int
    subtotal: Decimal
    item_count: int


class CartValidationOut(BaseModel):
    valid: bool
    cart: CartOut
    summary: CartSummaryOut


class OrderItemOut(BaseModel):
    product_id: int
    variant_id: str | None = None
    name: str
    unit_price: Decimal
    quantity: int
    line_total: Decimal


class OrderOut(BaseModel):
    id: int
    cart_id: int
    user_id: int | None = None
    session_id: str | None = None
    reservation_id: int | None = None
    items: List[OrderItemOut]
    subtotal: Decimal
    total: Decimal
    currency: str
    status: str
    payment_reference: str | None = None
    cancel_reason: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CancelOrderIn(BaseModel):
    reason: str | None = Field(None, max_length=500)


class PaginationOut(BaseModel):
    page: int
    limit: int
    total: int
    pages: int
    has_next: bool
    has_prev: bool


class OrderListOut(BaseModel):
    orders: List[OrderOut]
    pagination: PaginationOut
