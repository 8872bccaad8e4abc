# shopcart/services/notification_service.py
import json
from datetime import datetime, timezone
from typing import Any, Dict

import redis
from redis.exceptions import RedisError

from shopcart.utils.logging import get_logger
from shopcart.utils.retry import redis_retry
from shopcart.utils.settings import NOTIFICATIONS_ENABLED, REDIS_URL

logger = get_logger(__name__)


class RedisPublisher:
    """
    Publikuje zdarzenia na kanaly redis pub/sub.
    Gateway socketowy subskrybuje kanaly i przekazuje je do pokoi klientow.
    """

    def __init__(self, url: str | None = None):
        self.redis = redis.Redis.from_url(
            url or REDIS_URL,
            decode_responses=True,
        )

    @redis_retry()
    def publish(self, channel: str, message: str) -> int:
        return self.redis.publish(channel, message)

    def close(self):
        self.redis.close()


class NullPublisher:
    def publish(self, channel: str, message: str) -> int:
        return 0

    def close(self):
        pass


def build_publisher():
    if NOTIFICATIONS_ENABLED:
        return RedisPublisher()
    return NullPublisher()


class NotificationService:
    """
    Zdarzenia realtime: stan magazynu, koszyk, zamowienia.
    Blad publikacji nigdy nie przerywa operacji biznesowej.
    """

    def __init__(self, publisher):
        self.publisher = publisher

    def _emit(self, channel: str, event: str, payload: Dict[str, Any]):
        message = json.dumps(
            {
                "event": event,
                "data": payload,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
            default=str,
        )
        try:
            self.publisher.publish(channel, message)
        except RedisError as e:
            logger.warning(f"Failed to publish {event} on {channel}: {e}")

    def inventory_updated(self, product):
        self._emit(
            f"product-{product.id}",
            "inventory-updated",
            {"product_id": product.id, "inventory": product.inventory},
        )
        if product.track_inventory and product.inventory <= product.low_stock_threshold:
            self._emit(
                f"product-{product.id}",
                "low-stock",
                {
                    "product_id": product.id,
                    "inventory": product.inventory,
                    "threshold": product.low_stock_threshold,
                },
            )

    def cart_updated(self, identity, cart: Dict[str, Any]):
        self._emit(
            identity.channel,
            "cart-updated",
            {
                "cart_id": cart["cart_id"],
                "total_items": cart["total_items"],
                "subtotal": cart["subtotal"],
            },
        )

    def order_updated(self, identity, order: Dict[str, Any]):
        self._emit(
            identity.channel,
            "order-updated",
            {"order_id": order["id"], "status": order["status"], "total": order["total"]},
        )
