# shopcart/domain/errors.py
"""
Bledy domenowe koszyka i rezerwacji.
Kazdy blad niesie status HTTP i szczegoly do wyrenderowania dla klienta.
"""
from typing import Any, Dict, List


class CartError(Exception):
    status_code = 400

    def __init__(self, message: str, details: Dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidIdentity(CartError):
    def __init__(self, message: str = "User ID or session ID required"):
        super().__init__(message)


class ProductNotFound(CartError):
    status_code = 404

    def __init__(self, product_id: int):
        super().__init__("Product not found", {"product_id": product_id})
        self.product_id = product_id


class ProductUnavailable(CartError):
    def __init__(self, product_id: int, name: str | None = None):
        super().__init__(
            f'Product "{name}" is not available' if name else "Product is not available",
            {"product_id": product_id},
        )
        self.product_id = product_id


class VariantUnavailable(CartError):
    def __init__(self, product_id: int, variant_id: str, name: str | None = None):
        super().__init__(
            f'Variant "{variant_id}" of "{name}" is not available' if name else "Variant is not available",
            {"product_id": product_id, "variant_id": variant_id},
        )
        self.product_id = product_id
        self.variant_id = variant_id


class InsufficientInventory(CartError):
    def __init__(self, product_id: int, name: str, available: int | None, requested: int):
        if available is None:
            message = f'Insufficient inventory for "{name}"'
        else:
            message = f'Only {available} items of "{name}" available in stock'
        super().__init__(
            message,
            {
                "product_id": product_id,
                "name": name,
                "available": available,
                "requested": requested,
            },
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class ItemNotFound(CartError):
    status_code = 404

    def __init__(self, item_id: str):
        super().__init__("Cart item not found", {"item_id": item_id})
        self.item_id = item_id


class EmptyCart(CartError):
    def __init__(self):
        super().__init__("Cart is empty")


class CartValidationFailed(CartError):
    def __init__(self, reasons: List[str]):
        super().__init__(
            f"Cart validation failed: {', '.join(reasons)}",
            {"reasons": list(reasons)},
        )
        self.reasons = list(reasons)


class CartNotFound(CartError):
    status_code = 404

    def __init__(self, cart_id: int):
        super().__init__("Cart not found", {"cart_id": cart_id})


class CartVersionConflict(CartError):
    status_code = 409

    def __init__(self, cart_id: int):
        super().__init__(
            "Cart was modified by another request, try again",
            {"cart_id": cart_id},
        )
        self.cart_id = cart_id


class ReservationStateError(CartError):
    status_code = 409

    def __init__(self, reservation_id: int, status: str | None):
        super().__init__(
            f"Reservation {reservation_id} is {status or 'missing'}",
            {"reservation_id": reservation_id, "status": status},
        )
        self.reservation_id = reservation_id
        self.status = status


class PaymentFailed(CartError):
    status_code = 402

    def __init__(self, reason: str | None):
        super().__init__("Payment failed", {"reason": reason})
        self.reason = reason


class PaymentGatewayError(CartError):
    status_code = 502

    def __init__(self, message: str = "Payment provider unavailable"):
        super().__init__(message)


class OrderNotFound(CartError):
    status_code = 404

    def __init__(self, order_id: int):
        super().__init__("Order not found", {"order_id": order_id})


class OrderNotCancellable(CartError):
    def __init__(self, order_id: int, status: str):
        super().__init__(
            "Order cannot be cancelled at this stage",
            {"order_id": order_id, "status": status},
        )
        self.status = status


class PersistenceError(CartError):
    status_code = 500

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message)
