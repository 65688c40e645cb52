"""Order persistence model.

One row per school-fee payment request. `status` and `collect_id` are the
only columns mutated after creation.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from feepay.common.db import Base, JSONType
from feepay.common.ids import new_id


class Order(Base):
    """Payment request created by the initiation flow."""

    __tablename__ = "orders"
    __table_args__ = (CheckConstraint("order_amount > 0", name="ck_orders_amount_positive"),)

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    school_id: Mapped[str] = mapped_column(String, index=True)
    trustee_id: Mapped[str | None] = mapped_column(String, nullable=True)
    student_info: Mapped[dict] = mapped_column(JSONType)
    gateway_name: Mapped[str] = mapped_column(String)
    custom_order_id: Mapped[str | None] = mapped_column(String, unique=True, index=True, nullable=True)
    order_amount: Mapped[int] = mapped_column(Integer)
    # Gateway-assigned correlation id, bound after initiation.
    collect_id: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    status: Mapped[str] = mapped_column(String, index=True, default="created")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
