# shopcart/utils/logging.py
import logging

from shopcart.utils.settings import LOG_LEVEL

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None):
    logging.basicConfig(level=(level or LOG_LEVEL).upper(), format=_FORMAT)

    # sqlalchemy loguje kazde zapytanie na INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
