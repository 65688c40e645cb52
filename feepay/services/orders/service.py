"""Order store: creation, lookups, and the two mutable fields."""

from sqlalchemy import func, select

from feepay.common.config import settings
from feepay.common.errors import ConflictError, NotFoundError, ValidationError
from feepay.common.logging import logger
from feepay.common.metrics import orders_created_total
from feepay.common.state_machine import validate_status
from feepay.services.orders.models import Order
from feepay.services.orders.schemas import SUPPORTED_GATEWAYS

MAX_PAGE_SIZE = 100


class OrderStore:
    """Owns reads and writes of `orders` rows."""

    def __init__(self, session_factory, service_name: str = settings.service_name) -> None:
        self.session_factory = session_factory
        self.service_name = service_name

    def create_order(self, req) -> Order:
        """Insert one order, rejecting a reused `custom_order_id`."""

        if req.gateway_name not in SUPPORTED_GATEWAYS:
            raise ValidationError(f"unsupported gateway {req.gateway_name}")
        if not 0 < req.order_amount <= settings.order_amount_ceiling:
            raise ValidationError(f"order_amount must be between 1 and {settings.order_amount_ceiling}")

        with self.session_factory() as db:
            if req.custom_order_id:
                existing = db.execute(
                    select(Order).where(Order.custom_order_id == req.custom_order_id)
                ).scalar_one_or_none()
                if existing:
                    raise ConflictError(
                        f"An order with custom_order_id '{req.custom_order_id}' already exists"
                    )
            order = Order(
                school_id=req.school_id,
                trustee_id=req.trustee_id,
                student_info=req.student_info.model_dump(),
                gateway_name=req.gateway_name,
                custom_order_id=req.custom_order_id,
                order_amount=req.order_amount,
                status="created",
            )
            db.add(order)
            db.commit()
            db.refresh(order)
        orders_created_total.labels(service=self.service_name, gateway=order.gateway_name).inc()
        logger.info("order created order_id=%s school_id=%s", order.id, order.school_id)
        return order

    def find_order_by_id(self, order_id: str) -> Order | None:
        with self.session_factory() as db:
            return db.get(Order, order_id)

    def find_order_by_custom_id(self, custom_order_id: str) -> Order | None:
        with self.session_factory() as db:
            return db.execute(
                select(Order).where(Order.custom_order_id == custom_order_id)
            ).scalar_one_or_none()

    def list_orders(self, page: int = 1, limit: int = 10, school_id: str | None = None) -> tuple[list[Order], int]:
        """Return one page of orders (newest first) and the unpaged total."""

        if page < 1:
            raise ValidationError("Page must be greater than 0")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")

        query = select(Order)
        count_query = select(func.count()).select_from(Order)
        if school_id is not None:
            query = query.where(Order.school_id == school_id)
            count_query = count_query.where(Order.school_id == school_id)
        with self.session_factory() as db:
            rows = db.execute(
                query.order_by(Order.created_at.desc(), Order.id.desc()).offset((page - 1) * limit).limit(limit)
            ).scalars().all()
            total = db.execute(count_query).scalar_one()
        if school_id is not None and not rows:
            logger.warning("no orders found for school_id=%s", school_id)
        return list(rows), total

    def update_order_status(self, order_id: str, status: str, validate: bool = False) -> Order | None:
        """Set the lifecycle status; returns None when the order is missing.

        Notifications store whatever status string the gateway sent. The
        administrative path passes `validate=True` to restrict to the
        lifecycle enumeration.
        """

        if validate:
            validate_status(status)
        with self.session_factory() as db:
            order = db.get(Order, order_id)
            if order is None:
                return None
            order.status = status
            db.commit()
            db.refresh(order)
        logger.info("order status updated order_id=%s status=%s", order_id, status)
        return order

    def update_collect_id(self, order_id: str, collect_id: str) -> Order:
        """Bind the gateway correlation id to an order."""

        with self.session_factory() as db:
            order = db.get(Order, order_id)
            if order is None:
                raise NotFoundError(f"Order with ID '{order_id}' not found")
            order.collect_id = collect_id
            db.commit()
            db.refresh(order)
        logger.info("collect_id bound order_id=%s collect_id=%s", order_id, collect_id)
        return order
