import json
import os

# przed importem shopcart - settings czyta env przy imporcie
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["NOTIFICATIONS_ENABLED"] = "false"
os.environ["PAYMENT_GATEWAY"] = "fake"
os.environ["PAYMENT_GATEWAY_URL"] = ""

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import shopcart.data.models  # noqa: F401
from shopcart.api import create_app
from shopcart.data.database import Base, get_db
from shopcart.data.models.product import ProductModel
from shopcart.repos.product_repo import ProductRepo
from shopcart.services.notification_service import NotificationService
from shopcart.services.payment_gateway import FakePaymentGateway


class RecordingPublisher:
    def __init__(self):
        self.messages = []

    def publish(self, channel, message):
        self.messages.append((channel, json.loads(message)))
        return 1

    def events(self, name):
        return [(channel, m["data"]) for channel, m in self.messages if m["event"] == name]

    def close(self):
        pass


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def notifications(publisher):
    return NotificationService(publisher)


@pytest.fixture
def gateway():
    return FakePaymentGateway()


@pytest.fixture
def make_product(db):
    counter = {"n": 0}

    def _make(**overrides):
        counter["n"] += 1
        data = {
            "name": f"Product {counter['n']}",
            "sku": f"SKU-{counter['n']:03d}",
            "price": Decimal("10.00"),
            "inventory": 10,
            "track_inventory": True,
            "allow_backorder": False,
            "status": "active",
            "is_visible": True,
            "variants": [],
        }
        data.update(overrides)
        return ProductRepo(db).add(ProductModel(**data))

    return _make


@pytest.fixture
def inventory_of(db):
    def _inventory(product_id):
        return ProductRepo(db).find_by_id(product_id).inventory

    return _inventory


@pytest.fixture
def client(session_factory, publisher, gateway):
    app = create_app(publisher=publisher, gateway=gateway)

    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as c:
        yield c
