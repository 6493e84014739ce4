"""Centralized operator settings using pydantic-settings.

This module provides a single source of truth for all operator configuration
loaded from environment variables. Uses pydantic for automatic validation,
type coercion, and documentation.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from argocd_operator.constants import DEFAULT_RESYNC_INTERVAL


class Settings(BaseSettings):
    """Operator configuration loaded from environment variables.

    All settings have sensible defaults for production use. Override via
    environment variables as documented per field.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging configuration
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )
    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Enable JSON formatted logging for structured log aggregation",
    )
    correlation_ids: bool = Field(
        default=True,
        validation_alias="CORRELATION_IDS",
        description="Enable correlation IDs in logs for request tracing",
    )

    # Namespace watching. None means the variable is unset.
    namespaces: str | None = Field(
        default=None,
        validation_alias="WATCH_NAMESPACE",
        description="Comma-separated list of namespaces to watch (unset or empty = all namespaces)",
    )
    label_selector: str = Field(
        default="",
        validation_alias="ARGOCD_LABEL_SELECTOR",
        description="Only reconcile ArgoCD resources matching these key=value labels",
    )

    # Feature switches
    disable_dex: bool = Field(
        default=False,
        validation_alias="DISABLE_DEX",
        description="Disable Dex as an SSO provider operator-wide",
    )

    # Reconciliation behavior
    max_concurrent_reconciles: int = Field(
        default=10,
        ge=1,
        validation_alias="MAX_CONCURRENT_RECONCILES",
        description="Maximum number of ArgoCD resources reconciled in parallel",
    )
    resync_interval_seconds: float = Field(
        default=DEFAULT_RESYNC_INTERVAL,
        gt=0,
        validation_alias="RESYNC_INTERVAL_SECONDS",
        description="Interval between periodic drift-correcting resyncs",
    )

    # Metrics and observability
    metrics_enabled: bool = Field(
        default=True,
        validation_alias="METRICS_ENABLED",
        description="Serve Prometheus metrics",
    )
    metrics_port: int = Field(
        default=8081,
        validation_alias="METRICS_PORT",
        description="Port for Prometheus metrics endpoint",
    )
    metrics_host: str = Field(
        default="0.0.0.0",
        validation_alias="METRICS_HOST",
        description="Host address to bind metrics server",
    )


# Global settings instance - initialized once at module import
settings = Settings()
