"""Order-status store with create-or-update-in-place semantics."""

from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from feepay.common.logging import logger
from feepay.services.order_status.models import OrderStatus

# Columns a notification may overwrite. `order_amount` is handled separately.
UPDATABLE_FIELDS: tuple[str, ...] = (
    "transaction_amount",
    "payment_mode",
    "payment_details",
    "bank_reference",
    "payment_message",
    "status",
    "error_message",
    "payment_time",
    "gateway_payment_time",
    "gateway_response",
)


class OrderStatusStore:
    """Owns reads and writes of `order_statuses` rows."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def find_order_status_by_order_id(self, order_id: str) -> OrderStatus | None:
        with self.session_factory() as db:
            return db.execute(
                select(OrderStatus).where(OrderStatus.order_id == order_id)
            ).scalar_one_or_none()

    def _apply(self, row: OrderStatus, fields: dict[str, Any]) -> None:
        for name in UPDATABLE_FIELDS:
            if name in fields:
                setattr(row, name, fields[name])
        # The amount recorded at order creation is authoritative; gateway echoes
        # never replace a stored value.
        if row.order_amount is None and fields.get("order_amount") is not None:
            row.order_amount = fields["order_amount"]

    def upsert_order_status(self, order_id: str, fields: dict[str, Any]) -> OrderStatus:
        """Create the row for `order_id` or update the existing one in place."""

        with self.session_factory() as db:
            row = db.execute(
                select(OrderStatus).where(OrderStatus.order_id == order_id)
            ).scalar_one_or_none()
            if row is not None:
                self._apply(row, fields)
                db.commit()
                db.refresh(row)
                return row

            row = OrderStatus(order_id=order_id, status="pending")
            self._apply(row, fields)
            db.add(row)
            try:
                db.commit()
            except IntegrityError:
                # A concurrent notification created the row first.
                db.rollback()
                logger.info("order status insert raced, updating in place order_id=%s", order_id)
                row = db.execute(
                    select(OrderStatus).where(OrderStatus.order_id == order_id)
                ).scalar_one()
                self._apply(row, fields)
                db.commit()
            db.refresh(row)
            return row
