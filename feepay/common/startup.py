"""Startup-time helpers for safe config logging."""

import os
from typing import Any

from feepay.common.config import CommonSettings
from feepay.common.logging import logger

SECRET_MARKERS = ("KEY", "SECRET", "PASSWORD", "TOKEN", "DATABASE_URL")


def _safe_env(name: str) -> str:
    """Return env value with simple redaction for secret-like variable names."""

    value = os.getenv(name)
    if value is None:
        return "<unset>"
    if any(marker in name for marker in SECRET_MARKERS):
        return "<redacted>"
    return value


def reconciliation_summary(config: CommonSettings) -> dict[str, Any]:
    """Effective webhook handling, as parsed rather than as raw env text."""

    return {
        "reconciliation_mode": "monotonic" if config.enforce_status_monotonicity else "last_write_wins",
        "webhook_signature_required": bool(config.webhook_secret),
        "webhook_alias_overrides": sorted(config.webhook_field_aliases),
    }


def log_startup_config(service_name: str, keys: list[str], config: CommonSettings | None = None) -> None:
    """Log selected startup config keys for quick troubleshooting."""

    summary: dict[str, Any] = {"service": service_name}
    for key in keys:
        summary[key] = _safe_env(key)
    if config is not None:
        summary.update(reconciliation_summary(config))
    logger.info("startup_config=%s", summary)
