# shopcart/api/routers/orders.py
from fastapi import APIRouter, Body, Depends, Query

from shopcart.api.deps import get_identity, get_order_service
from shopcart.domain.identity import Identity
from shopcart.domain.schemas import CancelOrderIn, OrderListOut, OrderOut
from shopcart.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


@router.get("", response_model=OrderListOut)
def list_orders(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    identity: Identity = Depends(get_identity),
    svc: OrderService = Depends(get_order_service),
):
    """
    Zamowienia wlasciciela, najnowsze pierwsze.
    """
    return svc.list_orders(identity, page=page, limit=limit)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    identity: Identity = Depends(get_identity),
    svc: OrderService = Depends(get_order_service),
):
    """
    Pobiera szczegoly zamowienia wlasciciela.
    """
    return svc.get_order(order_id, identity)


@router.post("/{order_id}/cancel", response_model=OrderOut)
def cancel_order(
    order_id: int,
    payload: CancelOrderIn | None = Body(None),
    identity: Identity = Depends(get_identity),
    svc: OrderService = Depends(get_order_service),
):
    return svc.cancel_order(order_id, identity, reason=payload.reason if payload else None)
