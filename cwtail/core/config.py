from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # CloudWatch
    cloudwatch_region: str = "us-east-1"
    cloudwatch_connect_timeout_seconds: float = 10.0
    cloudwatch_read_timeout_seconds: float = 30.0
    cloudwatch_max_attempts: int = 1  # no SDK-level retry of a rejected query

    # Query
    metric_name: str = "scheduled-charge-due-or-cdq-lte-30|updated"
    metric_namespace: str = "PlaidCron"
    metric_lookback: str = "-12h"
    split_parallelism: int = Field(default=2, ge=2)  # 1 would resend the rejected query

    # Tailing
    tail_enabled: bool = False
    tail_interval_seconds: float = 60.0  # CloudWatch publishes once a minute

    # Metrics
    metrics_port: int | None = None  # disabled unless set

    # Logging
    app_log_level: str = "WARNING"
    app_log_redaction_patterns: list[str] = [
        "password",
        "token",
        "secret",
        "key",
        "authorization",
        "credential",
    ]
    app_log_file: str | None = None  # stdout is owned by the chart

    otel_service_name: str = "cwtail"
    app_environment: str = "production"


settings = Settings()
