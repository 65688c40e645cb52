"""Order-status persistence model (latest reconciled outcome per order)."""

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from feepay.common.db import Base, JSONType
from feepay.common.ids import new_id


class OrderStatus(Base):
    """Zero or one row per order; absent until the first notification."""

    __tablename__ = "order_statuses"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    order_id: Mapped[str] = mapped_column(ForeignKey("orders.id"), unique=True, index=True)
    order_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    transaction_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    payment_mode: Mapped[str | None] = mapped_column(String, nullable=True)
    payment_details: Mapped[str | None] = mapped_column(Text, nullable=True)
    bank_reference: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    payment_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String, index=True, default="pending")
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), index=True, nullable=True)
    # Set only from notifications that carried their own time.
    gateway_payment_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    gateway_response: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
