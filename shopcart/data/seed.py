# shopcart/data/seed.py
from decimal import Decimal

from shopcart.data.database import Base, SessionLocal, engine
from shopcart.data.models.product import ProductModel
from shopcart.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

DEMO_PRODUCTS = [
    {"name": "Keyboard", "sku": "KB-001", "price": Decimal("199.99"), "inventory": 25},
    {"name": "Mouse", "sku": "MS-001", "price": Decimal("49.50"), "inventory": 3, "low_stock_threshold": 5},
    {"name": "Monitor", "sku": "MN-001", "price": Decimal("899.00"), "inventory": 0, "allow_backorder": True},
    {
        "name": "T-Shirt",
        "sku": "TS-001",
        "price": Decimal("19.99"),
        "inventory": 100,
        "variants": [
            {"id": "ts-s", "name": "Size", "value": "S", "is_active": True},
            {"id": "ts-xl", "name": "Size", "value": "XL", "price": "22.99", "is_active": True},
        ],
    },
    {"name": "Gift card", "sku": "GC-001", "price": Decimal("25.00"), "inventory": 0, "track_inventory": False},
]


def seed(db) -> int:
    # not forcing: only seed if empty
    if db.query(ProductModel).first():
        return 0

    for data in DEMO_PRODUCTS:
        db.add(ProductModel(status="active", is_visible=True, **data))
    db.commit()

    logger.info(f"Seeded {len(DEMO_PRODUCTS)} products")
    return len(DEMO_PRODUCTS)


if __name__ == "__main__":
    import shopcart.data.models  # noqa: F401

    configure_logging()
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed(session)
    finally:
        session.close()
