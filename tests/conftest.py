import itertools

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from app.database import Base, build_engine, get_db, get_session_factory
from app.main import app
from app.models import Restaurant, Driver
from app.schemas.order import OrderCreate
from app.services import order_service


@pytest.fixture
def engine(tmp_path):
    # File-backed so separate sessions (background tasks, threads) see the same data
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def restaurant(db):
    restaurant = Restaurant(name="Al Sham Grill", phone="0500000001", delivery_time="30-45 minutes")
    db.add(restaurant)
    db.commit()
    db.refresh(restaurant)
    return restaurant


@pytest.fixture
def make_driver(db):
    counter = itertools.count(1)

    def _make(available=True, active=True, name=None):
        n = next(counter)
        driver = Driver(
            name=name or f"Driver {n}",
            phone=f"05500000{n:02d}",
            is_available=available,
            is_active=active
        )
        db.add(driver)
        db.commit()
        db.refresh(driver)
        return driver

    return _make


@pytest.fixture
def order_payload(restaurant):
    return {
        "customerName": "  Huda Saleh ",
        "customerPhone": "050 123 4567",
        "customerEmail": " huda@example.com ",
        "deliveryAddress": " 12 Tahlia St, Jeddah ",
        "notes": " ring twice ",
        "items": [
            {"name": "Shawarma plate", "price": 25, "quantity": 1, "notes": ""},
            {"name": "Fattoush", "price": 15, "quantity": 1, "notes": "no onions"}
        ],
        "subtotal": 40,
        "deliveryFee": 10,
        "restaurantId": restaurant.id
    }


@pytest.fixture
def make_order(db, order_payload):
    def _make(**overrides):
        return order_service.create_order(db, OrderCreate(**{**order_payload, **overrides}))

    return _make
