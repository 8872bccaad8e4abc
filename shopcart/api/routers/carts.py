# shopcart/api/routers/carts.py
from fastapi import APIRouter, Depends, Header, HTTPException

from shopcart.api.deps import get_cart_service, get_identity
from shopcart.domain.identity import Identity
from shopcart.domain.schemas import (
    AddItemIn,
    CartOut,
    CartSummaryOut,
    CartValidationOut,
    MergeIn,
    UpdateItemIn,
)
from shopcart.services.cart_service import CartService

router = APIRouter(prefix="/cart", tags=["cart"])


@router.get("", response_model=CartOut)
def get_cart(
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_cart(identity)


@router.get("/summary", response_model=CartSummaryOut)
def get_cart_summary(
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.get_summary(identity)


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(
    payload: AddItemIn,
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.add_item(
        identity,
        product_id=payload.product_id,
        quantity=payload.quantity,
        variant_id=payload.variant_id,
    )


@router.put("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: str,
    payload: UpdateItemIn,
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.update_item(identity, item_id, payload.quantity)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: str,
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.remove_item(identity, item_id)


@router.delete("", response_model=CartOut)
def clear_cart(
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.clear_cart(identity)


@router.post("/merge", response_model=CartOut)
def merge_cart(
    payload: MergeIn,
    x_user_id: int | None = Header(None),
    svc: CartService = Depends(get_cart_service),
):
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return svc.merge_cart(x_user_id, payload.session_id)


@router.post("/validate", response_model=CartValidationOut)
def validate_cart(
    identity: Identity = Depends(get_identity),
    svc: CartService = Depends(get_cart_service),
):
    return svc.validate_cart_for_checkout(identity)
