"""Webhook audit log model.

Append-only: rows are inserted unprocessed on receipt and only ever updated
once, to record the outcome.
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from feepay.common.db import Base, JSONType
from feepay.common.ids import new_id


class WebhookLog(Base):
    """One inbound gateway notification, successful or not."""

    __tablename__ = "webhook_logs"

    id: Mapped[str] = mapped_column(String(24), primary_key=True, default=new_id)
    payload: Mapped[dict] = mapped_column(JSONType)
    received_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), index=True)
    processed: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    order_id: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    status: Mapped[str | None] = mapped_column(String, index=True, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
