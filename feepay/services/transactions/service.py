"""Transaction reporting over orders joined to their latest outcome."""

import math
from datetime import datetime
from typing import Any

from sqlalchemy import func, select

from feepay.common.errors import ValidationError
from feepay.services.order_status.models import OrderStatus
from feepay.services.orders.models import Order

SORT_COLUMNS = {
    "created_at": Order.created_at,
    "updated_at": Order.updated_at,
    "order_amount": OrderStatus.order_amount,
    "transaction_amount": OrderStatus.transaction_amount,
    "payment_time": OrderStatus.payment_time,
    "status": OrderStatus.status,
    "school_id": Order.school_id,
}


def _row_to_dict(order: Order, status: OrderStatus | None) -> dict[str, Any]:
    return {
        "collect_id": order.collect_id,
        "order_id": order.id,
        "school_id": order.school_id,
        "gateway": order.gateway_name,
        "order_amount": status.order_amount if status else None,
        "transaction_amount": status.transaction_amount if status else None,
        "status": status.status if status else None,
        "custom_order_id": order.custom_order_id,
        "student_info": order.student_info,
        "payment_mode": status.payment_mode if status else None,
        "bank_reference": status.bank_reference if status else None,
        "payment_time": status.payment_time if status else None,
        "error_message": status.error_message if status else None,
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


class TransactionReportService:
    """Read-only aggregation for dashboards."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def list_transactions(
        self,
        page: int = 1,
        limit: int = 20,
        sort: str = "created_at",
        order: str = "desc",
        status: str | None = None,
        school_id: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> dict[str, Any]:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")
        if sort not in SORT_COLUMNS:
            raise ValidationError(f"sort must be one of: {', '.join(SORT_COLUMNS)}")

        conditions = []
        if status:
            conditions.append(OrderStatus.status == status)
        if school_id:
            conditions.append(Order.school_id == school_id)
        if start_date:
            conditions.append(Order.created_at >= start_date)
        if end_date:
            conditions.append(Order.created_at <= end_date)

        column = SORT_COLUMNS[sort]
        ordering = column.asc() if order == "asc" else column.desc()
        query = (
            select(Order, OrderStatus)
            .outerjoin(OrderStatus, OrderStatus.order_id == Order.id)
            .where(*conditions)
            .order_by(ordering, Order.id)
        )
        count_query = (
            select(func.count(Order.id))
            .select_from(Order)
            .outerjoin(OrderStatus, OrderStatus.order_id == Order.id)
            .where(*conditions)
        )
        with self.session_factory() as db:
            rows = db.execute(query.offset((page - 1) * limit).limit(limit)).all()
            total = db.execute(count_query).scalar_one()
        return {
            "transactions": [_row_to_dict(row.Order, row.OrderStatus) for row in rows],
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit),
            },
        }

    def get_transaction_status(self, custom_order_id: str) -> dict[str, Any] | None:
        with self.session_factory() as db:
            row = db.execute(
                select(Order, OrderStatus)
                .outerjoin(OrderStatus, OrderStatus.order_id == Order.id)
                .where(Order.custom_order_id == custom_order_id)
            ).first()
        if row is None:
            return None
        order, status = row.Order, row.OrderStatus
        result = _row_to_dict(order, status)
        result["order_amount"] = (
            status.order_amount if status and status.order_amount is not None else order.order_amount
        )
        result["status"] = status.status if status else order.status
        return result

    def get_transaction_stats(self) -> dict[str, Any]:
        with self.session_factory() as db:
            total_orders = db.execute(select(func.count(Order.id))).scalar_one()
            total_amount = db.execute(select(func.coalesce(func.sum(OrderStatus.transaction_amount), 0))).scalar_one()
            by_status = db.execute(
                select(OrderStatus.status, func.count(OrderStatus.id))
                .group_by(OrderStatus.status)
                .order_by(OrderStatus.status)
            ).all()
        return {
            "total_orders": total_orders,
            "total_amount": int(total_amount or 0),
            "status_stats": [{"status": s, "count": c} for s, c in by_status],
        }
