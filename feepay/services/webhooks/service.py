"""Webhook audit log store."""

from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select, update

from feepay.services.webhooks.models import WebhookLog


class WebhookLogStore:
    """Appends and finalizes `webhook_logs` rows; never deletes."""

    def __init__(self, session_factory) -> None:
        self.session_factory = session_factory

    def append_webhook_log(self, payload: Any) -> str:
        """Persist a raw payload as received and return the new log id."""

        with self.session_factory() as db:
            row = WebhookLog(
                payload=payload,
                received_at=datetime.now(timezone.utc),
                processed=False,
                notes="Webhook received",
            )
            db.add(row)
            db.commit()
            return row.id

    def finalize_webhook_log(
        self,
        log_id: str,
        processed: bool,
        status: str,
        note: str,
        resolved_order_id: str | None = None,
        error_message: str | None = None,
    ) -> None:
        """Attach the processing outcome to a previously appended row."""

        values: dict[str, Any] = {"processed": processed, "status": status, "notes": note}
        if resolved_order_id is not None:
            values["order_id"] = resolved_order_id
        if error_message is not None:
            values["error_message"] = error_message
        with self.session_factory() as db:
            db.execute(update(WebhookLog).where(WebhookLog.id == log_id).values(**values))
            db.commit()

    def get_webhook_log(self, log_id: str) -> WebhookLog | None:
        with self.session_factory() as db:
            return db.get(WebhookLog, log_id)

    def list_webhook_logs(self) -> list[WebhookLog]:
        """All log rows, most recently received first."""

        with self.session_factory() as db:
            rows = db.execute(
                select(WebhookLog).order_by(WebhookLog.received_at.desc(), WebhookLog.id.desc())
            ).scalars().all()
            return list(rows)
