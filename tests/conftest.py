"""Pytest configuration and fixtures."""

import os
import tempfile

# La app crea sus tablas al importarse: que no toque grocery.db del desarrollador
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(prefix='grocery-tests-'), 'app.db')}"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from grocery_backend.database import Base, build_engine, get_db  # noqa: E402
from grocery_backend.models import Customer  # noqa: E402
from grocery_backend.services.order_rooms import OrderRoomBroadcaster, get_broadcaster  # noqa: E402


@pytest.fixture
def engine(tmp_path):
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
def make_customer(session_factory):
    def _make(phone: str = "9990001111", name: str = "Test Customer") -> int:
        session = session_factory()
        try:
            customer = Customer(phone=phone, name=name, is_activated=True, addresses=[], address_version=0)
            session.add(customer)
            session.commit()
            return customer.id
        finally:
            session.close()

    return _make


@pytest.fixture
def customer_id(make_customer) -> int:
    return make_customer()


@pytest.fixture
def broadcaster() -> OrderRoomBroadcaster:
    return OrderRoomBroadcaster(send_timeout=1.0)


@pytest.fixture
def client(session_factory, broadcaster):
    from grocery_backend.main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_broadcaster] = lambda: broadcaster
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
