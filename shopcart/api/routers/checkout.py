# shopcart/api/routers/checkout.py
from fastapi import APIRouter, Depends

from shopcart.api.deps import get_checkout_service, get_identity
from shopcart.domain.identity import Identity
from shopcart.domain.schemas import CheckoutIn, OrderOut
from shopcart.services.checkout_service import CheckoutService

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=OrderOut, status_code=201)
def checkout(
    payload: CheckoutIn,
    identity: Identity = Depends(get_identity),
    svc: CheckoutService = Depends(get_checkout_service),
):
    """
    Rezerwuje stan, obciaza platnosc i tworzy zamowienie.
    Przy odrzuconej platnosci rezerwacja jest zwalniana.
    """
    return svc.checkout(identity, payload.payment_token, payload.currency)
