"""Shared fixtures: in-memory sqlite stores and an API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("API_KEY", "test-key")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from feepay.common.db import Base, build_engine, build_session_factory
from feepay.services.order_status.service import OrderStatusStore
from feepay.services.orders.models import Order
from feepay.services.orders.service import OrderStore
from feepay.services.webhooks.service import WebhookLogStore


@pytest.fixture
def session_factory():
    engine = build_engine("sqlite://")
    Base.metadata.create_all(bind=engine)
    yield build_session_factory(engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def orders(session_factory):
    return OrderStore(session_factory)


@pytest.fixture
def statuses(session_factory):
    return OrderStatusStore(session_factory)


@pytest.fixture
def logs(session_factory):
    return WebhookLogStore(session_factory)


@pytest.fixture
def seed_order(session_factory):
    """Insert an order row directly, with a caller-chosen id."""

    def _seed(order_id: str = "O1", amount: int = 2000, status: str = "created", **extra) -> Order:
        with session_factory() as db:
            order = Order(
                id=order_id,
                school_id=extra.pop("school_id", "SCH-1"),
                student_info={"name": "Asha Rao", "id": "STU-9", "email": "asha.rao@greenwood.org"},
                gateway_name="razorpay",
                order_amount=amount,
                status=status,
                **extra,
            )
            db.add(order)
            db.commit()
            return order

    return _seed


@pytest.fixture
def client():
    from feepay.common.db import engine
    from feepay.services.api_gateway.main import app

    Base.metadata.create_all(bind=engine)
    with TestClient(app) as c:
        yield c
    Base.metadata.drop_all(bind=engine)
