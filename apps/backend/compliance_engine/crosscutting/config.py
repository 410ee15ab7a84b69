"""
Name: Engine Settings

Responsibilities:
  - Typed environment configuration (pydantic-settings)
  - Dispatcher batch sizing and claim timeout
  - Detector thresholds, tunable per environment without a deploy

Collaborators:
  - container.py: DetectorConfig and dispatcher wiring
  - api/main.py, worker/worker.py, scripts/run_dispatch.py: DB, Redis, CORS

Notes:
  - Invalid combinations (critical < outlier threshold, batch > max batch)
    fail at startup, never mid-run
"""

from functools import lru_cache

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        database_url: PostgreSQL connection string
        app_env: Application environment (development/test/production)
        allowed_origins: Comma-separated CORS origins ("*" allows any origin)
        cors_allow_credentials: Allow cookies cross-origin (default: False)
        redis_url: Redis connection string for the async dispatch queue (optional)
        log_level: Logging level (default: INFO)
        log_json: Emit JSON logs (default: True)
        dispatch_batch_size: Events fetched per invocation (default: 50)
        dispatch_max_batch_size: Upper bound accepted from callers (default: 500)
        claim_timeout_seconds: Age after which in_progress claims are reverted
        price_window_days: Trailing window for the price baseline (default: 30)
        price_sample_limit: Maximum baseline samples (default: 100)
        price_min_samples: Minimum samples before flagging (default: 10)
        price_outlier_threshold: Deviation that flags an outlier (default: 2.0)
        price_critical_threshold: Deviation that escalates to critical (default: 3.0)
        contact_excerpt_chars: Characters of message kept in findings (default: 100)
        sanctions_due_hours: Deadline for sanctions alert tasks (default: 24)
        empty_leg_window_hours: Departure window for open requests (default: 72)
        empty_leg_max_distance_nm: Max distance to propose a match (default: 300)
        empty_leg_candidate_limit: Open requests considered (default: 10)
        sla_response_hours: Maximum hours between request and quote (default: 24)
        task_default_assignee: Assignee for created tasks (default: admin)
    """

    # Required (no defaults)
    database_url: str

    # Environment
    app_env: str = "development"

    # CORS configuration (manual runs from operational tooling)
    allowed_origins: str = "*"
    cors_allow_credentials: bool = False

    # Redis
    redis_url: str = ""
    dispatch_queue_name: str = "compliance"

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    # Database - Connection Pool
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_statement_timeout_ms: int = 30000  # 30 seconds

    # Dispatcher
    dispatch_batch_size: int = 50
    dispatch_max_batch_size: int = 500
    claim_timeout_seconds: int = 900

    # Detector: price outlier
    price_window_days: int = 30
    price_sample_limit: int = 100
    price_min_samples: int = 10
    price_outlier_threshold: float = 2.0
    price_critical_threshold: float = 3.0

    # Detector: contact leak
    contact_excerpt_chars: int = 100

    # Detector: sanctions
    sanctions_due_hours: int = 24

    # Detector: empty leg
    empty_leg_window_hours: int = 72
    empty_leg_max_distance_nm: float = 300.0
    empty_leg_candidate_limit: int = 10

    # Detector: slow response
    sla_response_hours: float = 24.0

    # Tasks
    task_default_assignee: str = "admin"

    @field_validator("dispatch_batch_size", "dispatch_max_batch_size")
    @classmethod
    def batch_size_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("batch sizes must be greater than 0")
        return v

    @field_validator("claim_timeout_seconds")
    @classmethod
    def claim_timeout_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("claim_timeout_seconds must be greater than 0")
        return v

    @field_validator("price_min_samples", "price_sample_limit", "price_window_days")
    @classmethod
    def price_window_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("price window parameters must be greater than 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_valid(cls, v: str) -> str:
        level = (v or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(
                "log_level must be DEBUG, INFO, WARNING, ERROR or CRITICAL"
            )
        return level

    @model_validator(mode="after")
    def validate_thresholds(self):
        if self.price_outlier_threshold <= 0:
            raise ValueError("price_outlier_threshold must be greater than 0")
        if self.price_critical_threshold < self.price_outlier_threshold:
            raise ValueError(
                f"price_critical_threshold ({self.price_critical_threshold}) must be "
                f">= price_outlier_threshold ({self.price_outlier_threshold})"
            )
        if self.price_min_samples > self.price_sample_limit:
            raise ValueError("price_min_samples must be <= price_sample_limit")
        if self.dispatch_batch_size > self.dispatch_max_batch_size:
            raise ValueError("dispatch_batch_size must be <= dispatch_max_batch_size")
        return self

    def get_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated origins into a list."""
        return [
            origin.strip()
            for origin in self.allowed_origins.split(",")
            if origin.strip()
        ]

    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache
def get_settings() -> Settings:
    """Settings del proceso (cacheadas; tests llaman cache_clear())."""
    return Settings()
