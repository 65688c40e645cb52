"""API request/response schemas for order endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from feepay.common.config import settings

SUPPORTED_GATEWAYS: tuple[str, ...] = ("razorpay", "stripe", "paypal")


class StudentInfo(BaseModel):
    name: str = Field(min_length=1)
    id: str = Field(min_length=1)
    email: EmailStr


class OrderCreateRequest(BaseModel):
    """Order creation payload accepted from school administrators."""

    school_id: str = Field(min_length=1)
    trustee_id: str | None = None
    student_info: StudentInfo
    gateway_name: str
    custom_order_id: str | None = Field(default=None, pattern=r"^[A-Za-z0-9]+$")
    order_amount: int = Field(gt=0)

    @field_validator("gateway_name")
    @classmethod
    def _known_gateway(cls, value: str) -> str:
        if value not in SUPPORTED_GATEWAYS:
            raise ValueError(
                f"Unsupported payment gateway. Supported gateways are: {', '.join(SUPPORTED_GATEWAYS)}"
            )
        return value

    @field_validator("order_amount")
    @classmethod
    def _under_ceiling(cls, value: int) -> int:
        if value > settings.order_amount_ceiling:
            raise ValueError(f"Order amount cannot exceed {settings.order_amount_ceiling:,}")
        return value


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    school_id: str
    trustee_id: str | None
    student_info: dict
    gateway_name: str
    custom_order_id: str | None
    order_amount: int
    collect_id: str | None
    status: str
    created_at: datetime | None
    updated_at: datetime | None


class OrderPage(BaseModel):
    data: list[OrderResponse]
    total: int


class CollectIdUpdate(BaseModel):
    collect_id: str = Field(min_length=1, alias="collectId")

    model_config = ConfigDict(populate_by_name=True)


class StatusUpdate(BaseModel):
    status: str = Field(min_length=1)
