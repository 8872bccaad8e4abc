# shopcart/main.py
from shopcart.api import create_app
from shopcart.data.database import Base, engine
from shopcart.utils.logging import configure_logging, get_logger
import uvicorn

# import wszystkich modeli przed create_all
import shopcart.data.models  # noqa: F401

configure_logging()
logger = get_logger(__name__)

logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")

try:
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
except Exception as e:
    logger.error(f"Failed to create tables: {e}")
    raise


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
