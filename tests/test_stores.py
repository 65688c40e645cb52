"""Store contracts consumed by the reconciliation engine."""

import pytest

from feepay.common.errors import ConflictError, NotFoundError, ValidationError
from feepay.services.orders.schemas import OrderCreateRequest


def _request(**overrides) -> OrderCreateRequest:
    body = {
        "school_id": "SCH-1",
        "student_info": {"name": "Asha Rao", "id": "STU-9", "email": "asha.rao@greenwood.org"},
        "gateway_name": "stripe",
        "custom_order_id": "INV1",
        "order_amount": 1500,
    }
    body.update(overrides)
    return OrderCreateRequest(**body)


def test_create_and_find_order(orders):
    order = orders.create_order(_request())

    assert len(order.id) == 24
    assert order.status == "created"
    assert orders.find_order_by_id(order.id).custom_order_id == "INV1"
    assert orders.find_order_by_custom_id("INV1").id == order.id
    assert orders.find_order_by_id("missing") is None


def test_custom_order_id_is_unique(orders):
    orders.create_order(_request())

    with pytest.raises(ConflictError):
        orders.create_order(_request())


def test_orders_without_custom_id_do_not_collide(orders):
    orders.create_order(_request(custom_order_id=None))
    orders.create_order(_request(custom_order_id=None))

    _, total = orders.list_orders()
    assert total == 2


def test_list_orders_bounds(orders):
    with pytest.raises(ValidationError):
        orders.list_orders(page=0)
    with pytest.raises(ValidationError):
        orders.list_orders(limit=0)


def test_update_order_status_missing_returns_none(orders):
    assert orders.update_order_status("missing", "success") is None


def test_update_collect_id_missing_raises(orders):
    with pytest.raises(NotFoundError):
        orders.update_collect_id("missing", "C1")


def test_upsert_creates_then_updates(statuses, seed_order):
    seed_order("O1", amount=2000)

    created = statuses.upsert_order_status("O1", {"order_amount": 2000, "status": "success", "transaction_amount": 1990})
    updated = statuses.upsert_order_status("O1", {"order_amount": 9999, "status": "refunded"})

    assert updated.id == created.id
    assert updated.status == "refunded"
    assert updated.order_amount == 2000
    assert updated.transaction_amount == 1990


def test_absent_order_status(statuses, seed_order):
    seed_order("O1")

    assert statuses.find_order_status_by_order_id("O1") is None


def test_webhook_log_lifecycle(logs):
    log_id = logs.append_webhook_log({"collect_id": "O1"})
    row = logs.get_webhook_log(log_id)
    assert row.processed is False
    assert row.notes == "Webhook received"
    assert row.status is None

    logs.finalize_webhook_log(log_id, processed=True, status="success", note="done", resolved_order_id="O1")

    row = logs.get_webhook_log(log_id)
    assert (row.processed, row.status, row.notes, row.order_id) == (True, "success", "done", "O1")
    assert row.payload == {"collect_id": "O1"}


def test_webhook_logs_listed_newest_first(logs):
    first = logs.append_webhook_log({"n": 1})
    second = logs.append_webhook_log({"n": 2})

    assert [row.id for row in logs.list_webhook_logs()] == [second, first]
