"""Central environment-driven settings for the fee payment service.

Loaded once per process at import time. Every key maps to an upper-case
environment variable (see `.env.example`).
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class CommonSettings(BaseSettings):
    """Typed view of runtime configuration from environment variables."""

    service_name: str = "feepay-api"
    log_level: str = "INFO"
    database_url: str
    api_key: str
    webhook_secret: str | None = None
    webhook_signature_header: str = "x-webhook-signature"
    # False keeps the legacy last-write-wins behaviour for late notifications.
    enforce_status_monotonicity: bool = False
    webhook_field_aliases: dict[str, list[str]] = {}
    payment_gateway_url: str = "https://api.payment-gateway.com/create-payment"
    payment_gateway_timeout_seconds: float = 10.0
    payment_api_key: str = ""
    payment_pg_key: str = ""
    payment_currency: str = "INR"
    backend_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:5173"
    order_amount_ceiling: int = 1_000_000
    tracing_enabled: bool = True
    otel_exporter_otlp_endpoint: str = "http://otel-collector:4318/v1/traces"
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = CommonSettings()
