from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Message bus
    kafka_bootstrap_servers: str = "kafka1:19092"
    kafka_topic_separator: str = "."
    kafka_consume_from: str = "latest"  # earliest|latest
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_db: int = 0

    # Series store
    clickhouse_host: str = "clickhouse"
    clickhouse_port: int = 8123
    clickhouse_db: str = "analytics"
    clickhouse_user: str = "admin"
    clickhouse_password: str = "admin"
    clickhouse_metrics_table: str = "device_metrics"

    # Device message measurement
    measurement_id: str = "quantity"
    measurement_name: str = "Device message quantity"
    device_topic_pattern: str = "device/**"
    message_count_metric: str = "message-count"

    # Dimension defaults
    realtime_default_interval_seconds: float = 1.0
    aggregate_default_bucket: str = "1h"
    aggregate_default_format: str = "%m-%d %H:00"
    aggregate_default_limit: int = 1
    aggregate_default_lookback_hours: int = 24

    # Recorder
    recorder_flush_interval_seconds: float = 10.0

    # Logging
    app_log_level: str = "INFO"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "authorization",
        "cookie",
    ]

    otel_service_name: str = "measurements"
    app_environment: str = "production"


settings = Settings()
