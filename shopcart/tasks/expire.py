# shopcart/tasks/expire.py
from datetime import datetime, timezone

from shopcart.celery_worker import celery_app
from shopcart.data.database import SessionLocal
from shopcart.repos.cart_repo import CartRepo
from shopcart.utils.logging import get_logger

logger = get_logger(__name__)


def expire_guest_carts(db, now: datetime | None = None) -> int:
    # koszyki uzytkownikow nie maja expires_at, usuwamy tylko goscinne
    removed = CartRepo(db).delete_expired_guest_carts(now or datetime.now(timezone.utc))
    logger.info(f"Removed {removed} expired guest carts")
    return removed


@celery_app.task(name="shopcart.tasks.expire.expire_guest_carts_task")
def expire_guest_carts_task():
    logger.info("Expire guest carts task started")

    db = SessionLocal()
    try:
        return expire_guest_carts(db)
    finally:
        db.close()
