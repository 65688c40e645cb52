"""Public HTTP surface of the fee payment service.

Everything except the gateway webhook requires the `x-api-key` header. The
webhook itself is unauthenticated unless `WEBHOOK_SECRET` is configured, in
which case the body must carry a valid HMAC signature.
"""

import json
from datetime import datetime
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Request
from starlette.concurrency import run_in_threadpool

from feepay.common.config import settings
from feepay.common.db import SessionLocal
from feepay.common.errors import ConflictError, GatewayError, NotFoundError, ValidationError
from feepay.common.logging import configure_logging, logger, trace_id_ctx
from feepay.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from feepay.common.startup import log_startup_config
from feepay.common.tracing import instrument_app, setup_tracing
from feepay.services.order_status.service import OrderStatusStore
from feepay.services.orders.schemas import (
    CollectIdUpdate,
    OrderCreateRequest,
    OrderPage,
    OrderResponse,
    StatusUpdate,
)
from feepay.services.orders.service import OrderStore
from feepay.services.payments.schemas import PaymentCreateResponse, PaymentStatusResponse
from feepay.services.payments.service import PaymentGatewayClient, PaymentsService
from feepay.services.transactions.service import TransactionReportService
from feepay.services.webhooks.extraction import build_rules
from feepay.services.webhooks.reconciler import ReconciliationEngine
from feepay.services.webhooks.schemas import WebhookLogResponse, WebhookResponse
from feepay.services.webhooks.service import WebhookLogStore
from feepay.services.webhooks.signature import verify_signature

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "DATABASE_URL",
        "API_KEY",
        "WEBHOOK_SECRET",
        "ENFORCE_STATUS_MONOTONICITY",
        "PAYMENT_GATEWAY_URL",
        "TRACING_ENABLED",
    ],
    settings,
)

orders = OrderStore(SessionLocal)
statuses = OrderStatusStore(SessionLocal)
webhook_logs = WebhookLogStore(SessionLocal)
reconciler = ReconciliationEngine(
    orders,
    statuses,
    webhook_logs,
    rules=build_rules(settings.webhook_field_aliases),
    enforce_monotonic=settings.enforce_status_monotonicity,
)
payments = PaymentsService(orders, statuses, PaymentGatewayClient())
transactions = TransactionReportService(SessionLocal)

app = FastAPI(title="FeePay Payments API")
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def enforce_api_key(x_api_key: str | None) -> None:
    """Reject requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def _domain_error(exc: ValueError) -> HTTPException:
    """Map store/service errors to HTTP status codes."""

    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, ConflictError):
        return HTTPException(status_code=409, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


# --- gateway notifications ---------------------------------------------------


async def _handle_webhook(request: Request, x_trace_id: str | None) -> WebhookResponse:
    trace_id_ctx.set(x_trace_id or str(uuid4()))
    body = await request.body()
    if settings.webhook_secret:
        signature = request.headers.get(settings.webhook_signature_header)
        if not verify_signature(body, signature, settings.webhook_secret):
            logger.warning("webhook signature rejected")
            raise HTTPException(status_code=401, detail="invalid signature")
    try:
        payload = json.loads(body) if body else {}
    except ValueError:
        payload = {"raw_body": body.decode("utf-8", errors="replace")}
    # Store I/O is blocking; keep it off the event loop.
    outcome = await run_in_threadpool(reconciler.ingest, payload)
    return WebhookResponse(**outcome.to_response())


@app.post("/webhook", response_model=WebhookResponse)
async def webhook(request: Request, x_trace_id: str | None = Header(default=None)):
    """Gateway callback URL handed out at payment initiation."""

    return await _handle_webhook(request, x_trace_id)


@app.post("/webhooks/webhook", response_model=WebhookResponse)
async def webhook_legacy(request: Request, x_trace_id: str | None = Header(default=None)):
    """Older callback path still configured on some gateway accounts."""

    return await _handle_webhook(request, x_trace_id)


@app.get("/webhooks/logs", response_model=list[WebhookLogResponse])
def get_webhook_logs(x_api_key: str | None = Header(default=None)):
    """Full audit trail, most recent first."""

    enforce_api_key(x_api_key)
    return webhook_logs.list_webhook_logs()


@app.get("/webhooks/logs/{log_id}", response_model=WebhookLogResponse)
def get_webhook_log(log_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    row = webhook_logs.get_webhook_log(log_id)
    if row is None:
        raise HTTPException(status_code=404, detail="webhook log not found")
    return row


# --- orders ------------------------------------------------------------------


@app.post("/orders", response_model=OrderResponse, status_code=201)
def create_order(req: OrderCreateRequest, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    try:
        return orders.create_order(req)
    except ValueError as exc:
        raise _domain_error(exc) from exc


@app.get("/orders", response_model=OrderPage)
def list_orders(page: int = 1, limit: int = 10, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    try:
        rows, total = orders.list_orders(page=page, limit=limit)
    except ValueError as exc:
        raise _domain_error(exc) from exc
    return {"data": [OrderResponse.model_validate(row) for row in rows], "total": total}


@app.get("/orders/school/{school_id}", response_model=OrderPage)
def list_orders_for_school(
    school_id: str,
    page: int = 1,
    limit: int = 10,
    x_api_key: str | None = Header(default=None),
):
    enforce_api_key(x_api_key)
    try:
        rows, total = orders.list_orders(page=page, limit=limit, school_id=school_id)
    except ValueError as exc:
        raise _domain_error(exc) from exc
    return {"data": [OrderResponse.model_validate(row) for row in rows], "total": total}


@app.get("/orders/custom/{custom_order_id}", response_model=OrderResponse)
def get_order_by_custom_id(custom_order_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    order = orders.find_order_by_custom_id(custom_order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order with custom ID '{custom_order_id}' not found")
    return order


@app.get("/orders/{order_id}", response_model=OrderResponse)
def get_order(order_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    order = orders.find_order_by_id(order_id)
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order with ID '{order_id}' not found")
    return order


@app.post("/orders/{order_id}/collect-id", response_model=OrderResponse)
def update_collect_id(order_id: str, req: CollectIdUpdate, x_api_key: str | None = Header(default=None)):
    """Administrative bind of the gateway correlation id."""

    enforce_api_key(x_api_key)
    try:
        return orders.update_collect_id(order_id, req.collect_id)
    except ValueError as exc:
        raise _domain_error(exc) from exc


@app.post("/orders/{order_id}/status", response_model=OrderResponse)
def update_order_status(order_id: str, req: StatusUpdate, x_api_key: str | None = Header(default=None)):
    """Administrative status change, restricted to the lifecycle statuses."""

    enforce_api_key(x_api_key)
    try:
        order = orders.update_order_status(order_id, req.status, validate=True)
    except ValueError as exc:
        raise _domain_error(exc) from exc
    if order is None:
        raise HTTPException(status_code=404, detail=f"Order with ID '{order_id}' not found")
    return order


# --- payments ----------------------------------------------------------------


@app.post("/payments/create-payment", response_model=PaymentCreateResponse)
def create_payment(req: OrderCreateRequest, x_api_key: str | None = Header(default=None)):
    """Create an order and start a gateway payment for it."""

    enforce_api_key(x_api_key)
    try:
        return payments.create_payment(req)
    except GatewayError as exc:
        raise HTTPException(status_code=502, detail="Payment creation failed") from exc
    except ValueError as exc:
        raise _domain_error(exc) from exc


@app.get("/payments/status/{order_id}", response_model=PaymentStatusResponse)
def get_payment_status(order_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    try:
        return payments.get_payment_status(order_id)
    except ValueError as exc:
        raise _domain_error(exc) from exc


# --- transactions ------------------------------------------------------------


@app.get("/transactions")
def list_transactions(
    page: int = 1,
    limit: int = 20,
    sort: str = "created_at",
    order: str = "desc",
    status: str | None = None,
    school_id: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    x_api_key: str | None = Header(default=None),
):
    enforce_api_key(x_api_key)
    try:
        return transactions.list_transactions(
            page=page,
            limit=limit,
            sort=sort,
            order=order,
            status=status,
            school_id=school_id,
            start_date=start_date,
            end_date=end_date,
        )
    except ValueError as exc:
        raise _domain_error(exc) from exc


@app.get("/transactions/stats")
def transaction_stats(x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    return transactions.get_transaction_stats()


@app.get("/transactions/school/{school_id}")
def list_school_transactions(
    school_id: str,
    page: int = 1,
    limit: int = 20,
    sort: str = "created_at",
    order: str = "desc",
    status: str | None = None,
    x_api_key: str | None = Header(default=None),
):
    enforce_api_key(x_api_key)
    try:
        return transactions.list_transactions(
            page=page, limit=limit, sort=sort, order=order, status=status, school_id=school_id
        )
    except ValueError as exc:
        raise _domain_error(exc) from exc


@app.get("/transactions/status/{custom_order_id}")
def transaction_status(custom_order_id: str, x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    result = transactions.get_transaction_status(custom_order_id)
    if result is None:
        raise HTTPException(status_code=404, detail="transaction not found")
    return result
