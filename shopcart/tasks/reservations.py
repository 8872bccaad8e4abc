# shopcart/tasks/reservations.py
from shopcart.celery_worker import celery_app
from shopcart.data.database import SessionLocal
from shopcart.services.inventory_service import InventoryService
from shopcart.services.notification_service import NotificationService, build_publisher
from shopcart.utils.logging import get_logger
from shopcart.utils.settings import RESERVATION_TTL_SECONDS

logger = get_logger(__name__)


@celery_app.task(name="shopcart.tasks.reservations.release_stale_reservations_task")
def release_stale_reservations_task(max_age_seconds: int = RESERVATION_TTL_SECONDS):
    """
    Rezerwacje ktore nie doczekaly sie commit/release (np. crash procesu w trakcie platnosci)
    zwracaja towar po RESERVATION_TTL_SECONDS.
    """
    logger.info("Release stale reservations task started")

    publisher = build_publisher()
    db = SessionLocal()
    try:
        released = InventoryService(db, NotificationService(publisher)).release_stale_reservations(max_age_seconds)
        logger.info(f"Released {released} stale reservations")
        return released
    finally:
        db.close()
        publisher.close()
