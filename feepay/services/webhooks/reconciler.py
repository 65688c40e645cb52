"""Gateway notification reconciliation.

Every notification is written to the audit log before it is interpreted,
then matched to its order by id. Order status and the order-status record
are updated in place, so redelivery of the same notification converges to
the same state. The engine never raises: failures become a negative outcome
and the audit row records why.
"""

import json
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Mapping

from feepay.common.config import settings
from feepay.common.logging import logger, order_id_ctx, webhook_log_id_ctx
from feepay.common.metrics import (
    stale_notifications_total,
    webhook_log_write_failures_total,
    webhook_processing_seconds,
    webhooks_received_total,
)
from feepay.common.state_machine import is_regression
from feepay.services.webhooks.extraction import DEFAULT_FIELD_RULES, FieldRule, extract

SUCCESS_NOTE = "Webhook processed successfully"
TEXT_FIELDS = ("payment_mode", "payment_details", "bank_reference", "payment_message", "error_message")


@dataclass(frozen=True)
class IngestOutcome:
    success: bool
    message: str
    log_id: str | None = None
    order_id: str | None = None
    audit_logged: bool = True
    kind: str = "success"

    def to_response(self) -> dict[str, Any]:
        return {"success": self.success, "message": self.message}


def parse_payment_time(value: Any) -> datetime | None:
    """Parse ISO-8601 strings or UNIX epoch seconds/milliseconds to aware UTC."""

    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e12 else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        text = value.strip()
        if text.replace(".", "", 1).isdigit():
            return parse_payment_time(float(text))
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    return as_utc(parsed)


def as_utc(value: datetime) -> datetime:
    # sqlite hands back naive datetimes; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _coerce_amount(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(round(float(value)))
    except (OverflowError, TypeError, ValueError):
        logger.warning("unparseable amount in notification value=%r", value)
        return None


def _coerce_text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (Mapping, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


class ReconciliationEngine:
    """Applies inbound gateway notifications to orders and order statuses.

    Stores are passed in so that workers, tests and scripts can share the
    same engine against any database. With `enforce_monotonic` set, a
    notification older than the stored outcome (by gateway payment time, or
    by lifecycle rank when either side has no gateway time) is recorded and
    ignored; without it the last notification to arrive wins.
    """

    def __init__(
        self,
        orders,
        statuses,
        logs,
        rules: tuple[FieldRule, ...] = DEFAULT_FIELD_RULES,
        enforce_monotonic: bool = False,
        service_name: str = settings.service_name,
    ) -> None:
        self.orders = orders
        self.statuses = statuses
        self.logs = logs
        self.rules = rules
        self.enforce_monotonic = enforce_monotonic
        self.service_name = service_name

    def ingest(self, payload: Any) -> IngestOutcome:
        """Log, correlate and apply one notification."""

        start = perf_counter()
        log_id = self._append_log(payload)
        try:
            outcome = self._reconcile(payload, log_id)
        except Exception as exc:
            logger.exception("webhook processing failed: %s", exc)
            self._finalize(
                log_id,
                status="error",
                note="Webhook processing failed",
                error_message=str(exc),
            )
            outcome = IngestOutcome(False, "Webhook processing failed", log_id=log_id, kind="error")

        if log_id is None:
            outcome = replace(outcome, audit_logged=False, message=f"{outcome.message} (audit log unavailable)")
        webhooks_received_total.labels(service=self.service_name, outcome=outcome.kind).inc()
        webhook_processing_seconds.labels(service=self.service_name).observe(max(0.0, perf_counter() - start))
        return outcome

    def _append_log(self, payload: Any) -> str | None:
        try:
            log_id = self.logs.append_webhook_log(payload if isinstance(payload, Mapping) else {"body": payload})
        except Exception as exc:
            logger.exception("webhook audit log append failed: %s", exc)
            webhook_log_write_failures_total.labels(service=self.service_name, stage="append").inc()
            return None
        webhook_log_id_ctx.set(log_id)
        return log_id

    def _finalize(
        self,
        log_id: str | None,
        status: str,
        note: str,
        order_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        if log_id is None:
            return
        try:
            self.logs.finalize_webhook_log(
                log_id,
                processed=True,
                status=status,
                note=note,
                resolved_order_id=order_id,
                error_message=error_message,
            )
        except Exception as exc:
            logger.exception("webhook audit log finalize failed log_id=%s: %s", log_id, exc)
            webhook_log_write_failures_total.labels(service=self.service_name, stage="finalize").inc()

    def _reject(self, log_id, kind: str, note: str, message: str, order_id=None, error_message=None) -> IngestOutcome:
        logger.warning("webhook rejected kind=%s note=%s", kind, note)
        self._finalize(log_id, status="error", note=note, order_id=order_id, error_message=error_message)
        return IngestOutcome(False, message, log_id=log_id, order_id=order_id, kind=kind)

    def _stale_reason(self, existing, status: str | None, payload_time: datetime | None) -> str | None:
        if payload_time is not None and existing.gateway_payment_time is not None:
            stored = as_utc(existing.gateway_payment_time)
            if payload_time < stored:
                return f"payment_time {payload_time.isoformat()} is older than stored {stored.isoformat()}"
            return None
        if is_regression(existing.status, status):
            return f"status {status} would regress stored status {existing.status}"
        return None

    def _reconcile(self, payload: Any, log_id: str | None) -> IngestOutcome:
        if not isinstance(payload, Mapping):
            return self._reject(log_id, "malformed", "Payload is not a JSON object", "Invalid payload")

        fields = extract(payload, self.rules)
        raw_order_id = fields.get("order_id")
        if raw_order_id is None:
            return self._reject(log_id, "malformed", "No order ID found in payload", "No order ID found")
        order_id = str(raw_order_id)
        order_id_ctx.set(order_id)

        order = self.orders.find_order_by_id(order_id)
        if order is None:
            return self._reject(log_id, "unmatched", "Order not found", "Order not found", order_id=order_id)

        status = None if fields.get("status") is None else str(fields["status"])
        payload_time = parse_payment_time(fields.get("payment_time"))
        if fields.get("payment_time") is not None and payload_time is None:
            logger.warning("unparseable payment_time value=%r", fields.get("payment_time"))

        if self.enforce_monotonic:
            existing = self.statuses.find_order_status_by_order_id(order.id)
            reason = None if existing is None else self._stale_reason(existing, status, payload_time)
            if reason:
                stale_notifications_total.labels(service=self.service_name).inc()
                return self._reject(
                    log_id,
                    "stale",
                    "Stale notification ignored",
                    "Stale notification ignored",
                    order_id=order.id,
                    error_message=reason,
                )

        # Everything is coerced before the first write.
        update: dict[str, Any] = {
            "order_amount": order.order_amount,
            "payment_time": payload_time or datetime.now(timezone.utc),
            "gateway_response": dict(payload),
        }
        if payload_time is not None:
            update["gateway_payment_time"] = payload_time
        if status is not None:
            update["status"] = status
        amount = _coerce_amount(fields.get("transaction_amount"))
        if amount is not None:
            update["transaction_amount"] = amount
        for name in TEXT_FIELDS:
            value = _coerce_text(fields.get(name))
            if value is not None:
                update[name] = value

        if status is not None:
            if self.orders.update_order_status(order.id, status) is None:
                return self._reject(log_id, "unmatched", "Order not found", "Order not found", order_id=order_id)
        self.statuses.upsert_order_status(order.id, update)

        self._finalize(log_id, status="success", note=SUCCESS_NOTE, order_id=order.id)
        logger.info("webhook reconciled order_id=%s status=%s", order.id, status)
        return IngestOutcome(True, SUCCESS_NOTE, log_id=log_id, order_id=order.id)
