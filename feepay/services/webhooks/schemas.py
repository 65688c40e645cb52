"""Webhook endpoint response and audit log schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class WebhookResponse(BaseModel):
    """Small result returned to the gateway; always sent with HTTP 200."""

    success: bool
    message: str


class WebhookLogResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    payload: dict | None
    received_at: datetime
    processed: bool
    notes: str | None
    order_id: str | None
    status: str | None
    error_message: str | None
