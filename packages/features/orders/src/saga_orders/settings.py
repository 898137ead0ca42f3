"""Process configuration for the order saga."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from saga_outbox_core.retry import RetryPolicy


class OrderSagaSettings(BaseSettings):
    """Read from the environment (case-insensitive) and an optional ``.env``."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Tables and bus
    orders_table_name: str = "orders"
    transactions_table_name: str = "transactions"
    integration_events_table_name: str = "integration_events"
    integration_events_event_bus: str = "default"
    integration_events_source: str = "order-saga"
    aws_region: str = "us-east-1"
    database_url: str = "sqlite+aiosqlite:///./saga.db"
    eventbridge_endpoint_url: str | None = None
    eventbridge_connect_timeout: float = Field(default=5.0, gt=0)
    eventbridge_read_timeout: float = Field(default=10.0, gt=0)
    eventbridge_max_attempts: int = Field(default=2, ge=1)

    # Publisher
    publish_max_attempts: int = Field(default=5, ge=1)
    publish_base_delay: float = Field(default=1.0, ge=0)
    publish_max_delay: float = Field(default=5.0, ge=0)
    publish_max_concurrency: int = Field(default=10, ge=1)

    credit_approval_rate: float = Field(default=0.5, ge=0, le=1)
    log_level: str = "INFO"

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.publish_max_attempts,
            base_delay=self.publish_base_delay,
            max_delay=self.publish_max_delay,
        )
