"""API schemas for payment initiation and status endpoints."""

from datetime import datetime

from pydantic import BaseModel


class PaymentCreateResponse(BaseModel):
    success: bool
    payment_url: str
    order_id: str
    collect_id: str | None = None


class PaymentStatusResponse(BaseModel):
    order_id: str
    custom_order_id: str | None
    school_id: str
    student_info: dict
    order_amount: int | None
    transaction_amount: int | None
    status: str
    payment_mode: str | None
    bank_reference: str | None
    payment_time: datetime | None
    error_message: str | None
