# shopcart/celery_worker.py
from celery import Celery

from shopcart.utils.settings import CELERY_BROKER_URL, CELERY_RESULT_BACKEND

celery_app = Celery(
    "shopcart",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
)

# taski importowane explicite, zeby Celery je zarejestrowal
celery_app.conf.imports = (
    "shopcart.tasks.expire",
    "shopcart.tasks.reservations",
)

celery_app.conf.beat_schedule = {
    "expire-guest-carts-every-minute": {
        "task": "shopcart.tasks.expire.expire_guest_carts_task",
        "schedule": 60.0,
    },
    "release-stale-reservations-every-minute": {
        "task": "shopcart.tasks.reservations.release_stale_reservations_task",
        "schedule": 60.0,
    },
}

celery_app.conf.timezone = "UTC"
