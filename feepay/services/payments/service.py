"""Payment initiation against the external gateway.

One outbound attempt per request; failures are reported to the caller and
never retried here.
"""

from typing import Any

import httpx
from jose import jwt

from feepay.common.config import settings
from feepay.common.errors import GatewayError, NotFoundError
from feepay.common.logging import logger
from feepay.common.metrics import payment_initiations_total


class PaymentGatewayClient:
    """Signs and posts create-payment requests to the gateway."""

    def __init__(
        self,
        url: str = settings.payment_gateway_url,
        api_key: str = settings.payment_api_key,
        timeout_seconds: float = settings.payment_gateway_timeout_seconds,
    ) -> None:
        self.url = url
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds

    def create_payment(self, payload: dict[str, Any]) -> dict[str, Any]:
        token = jwt.encode(payload, self.api_key, algorithm="HS256")
        try:
            with httpx.Client(timeout=self.timeout_seconds) as client:
                resp = client.post(self.url, json={**payload, "token": token})
        except httpx.HTTPError as exc:
            raise GatewayError(f"payment gateway unreachable: {exc}") from exc
        if resp.status_code >= 400:
            raise GatewayError(f"payment gateway rejected request (status={resp.status_code})")
        try:
            body = resp.json()
        except ValueError as exc:
            raise GatewayError("payment gateway response is not JSON") from exc
        if not isinstance(body, dict) or not body.get("payment_url"):
            raise GatewayError("payment gateway response missing payment_url")
        return body


class PaymentsService:
    """Creates orders, starts gateway payments and reports merged status."""

    def __init__(self, orders, statuses, gateway: PaymentGatewayClient, service_name: str = settings.service_name) -> None:
        self.orders = orders
        self.statuses = statuses
        self.gateway = gateway
        self.service_name = service_name

    def create_payment(self, req) -> dict[str, Any]:
        """Create the order, call the gateway once, bind the correlation id."""

        order = self.orders.create_order(req)
        payload = {
            "amount": order.order_amount,
            "currency": settings.payment_currency,
            "order_id": order.id,
            "customer_name": req.student_info.name,
            "customer_email": req.student_info.email,
            "customer_phone": req.student_info.id,
            "return_url": f"{settings.frontend_url}/payment-success",
            "webhook_url": f"{settings.backend_url}/webhook",
            "pg_key": settings.payment_pg_key,
            "school_id": order.school_id,
            "custom_order_id": order.custom_order_id or order.id,
        }
        try:
            body = self.gateway.create_payment(payload)
        except GatewayError:
            payment_initiations_total.labels(service=self.service_name, result="failed").inc()
            logger.exception("payment initiation failed order_id=%s", order.id)
            raise
        collect_id = body.get("collect_id")
        if collect_id:
            self.orders.update_collect_id(order.id, str(collect_id))
        payment_initiations_total.labels(service=self.service_name, result="created").inc()
        return {
            "success": True,
            "payment_url": body["payment_url"],
            "order_id": order.id,
            "collect_id": collect_id,
        }

    def get_payment_status(self, order_id: str) -> dict[str, Any]:
        """Order fields merged with the latest reconciled outcome, if any."""

        order = self.orders.find_order_by_id(order_id)
        if order is None:
            raise NotFoundError(f"Order with ID '{order_id}' not found")
        status_row = self.statuses.find_order_status_by_order_id(order.id)
        return {
            "order_id": order.id,
            "custom_order_id": order.custom_order_id,
            "school_id": order.school_id,
            "student_info": order.student_info,
            "order_amount": (status_row.order_amount if status_row and status_row.order_amount is not None
                             else order.order_amount),
            "transaction_amount": status_row.transaction_amount if status_row else None,
            "status": status_row.status if status_row else order.status,
            "payment_mode": status_row.payment_mode if status_row else None,
            "bank_reference": status_row.bank_reference if status_row else None,
            "payment_time": status_row.payment_time if status_row else None,
            "error_message": status_row.error_message if status_row else None,
        }
