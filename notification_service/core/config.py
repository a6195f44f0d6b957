from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from order_events.schemas import EventType


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_client_id: str = "notification-service"
    order_events_topic: str = "order-events"
    consumer_group_id: str = "notification-service-group"
    auto_offset_reset: str = "latest"
    session_timeout_ms: int = 30_000
    heartbeat_interval_ms: int = 3_000
    max_poll_interval_ms: int = 300_000
    poll_timeout_ms: int = 1_000
    max_partition_fetch_bytes: int = 1_048_576

    dedup_cache_size: int = 1000
    handled_event_types: list[EventType] = [EventType.ORDER_CREATED]
    redeliver_on_total_failure: bool = False
    stale_event_minutes: int = 60

    email_failure_rate: float = 0.05
    sms_failure_rate: float = 0.03
    email_latency_ms: tuple[int, int] = (100, 500)
    sms_latency_ms: tuple[int, int] = (50, 250)
    default_sms_recipient: str = "+1234567890"

    service_name: str = "notification-service"
    log_level: str = "INFO"

    @field_validator("email_failure_rate", "sms_failure_rate")
    @classmethod
    def validate_failure_rate(cls, v: float) -> float:
        if not 0.0 <= v <= 1.0:
            raise ValueError("Failure rate must be between 0 and 1")
        return v

    @field_validator("dedup_cache_size")
    @classmethod
    def validate_dedup_cache_size(cls, v: int) -> int:
        if v < 2:
            raise ValueError("Dedup cache must hold at least 2 entries")
        return v


settings = Settings()
