"""
Prometheus metrics for the Argo CD operator.

This module provides metrics for reconcile cycles, drift corrections and
component status, plus a small HTTP server exposing them for scraping.
"""

import logging
import time
from collections.abc import Iterator
from contextlib import contextmanager

import kopf

# aiohttp is provided transitively by kopf; reuse it for the metrics endpoint
from aiohttp.web import (
    Application,
    AppRunner,
    Request,
    Response,
    TCPSite,
)
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

logger = logging.getLogger(__name__)

# Global metrics registry
_metrics_registry: CollectorRegistry | None = None

RECONCILIATION_TOTAL = Counter(
    "argocd_operator_reconciliation_total",
    "Total number of reconciliation attempts",
    ["namespace", "name", "result"],
    registry=None,
)

RECONCILIATION_DURATION = Histogram(
    "argocd_operator_reconciliation_duration_seconds",
    "Time spent on reconciliation cycles",
    ["namespace", "trigger"],
    buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
    registry=None,
)

RECONCILIATION_ERRORS = Counter(
    "argocd_operator_reconciliation_errors_total",
    "Total number of reconciliation errors",
    ["namespace", "error_type", "retryable"],
    registry=None,
)

DRIFT_ACTIONS = Counter(
    "argocd_operator_drift_actions_total",
    "Corrective writes issued against managed objects",
    ["kind", "action"],
    registry=None,
)

STRUCTURAL_DRIFT = Counter(
    "argocd_operator_structural_drift_total",
    "Managed objects found with an immutable field that differs from the desired value",
    ["kind"],
    registry=None,
)

COMPONENT_STATUS = Gauge(
    "argocd_operator_component_status",
    "Current status of each ArgoCD component (1 for the active status value)",
    ["namespace", "name", "component", "status"],
    registry=None,
)

ALL_METRICS = (
    RECONCILIATION_TOTAL,
    RECONCILIATION_DURATION,
    RECONCILIATION_ERRORS,
    DRIFT_ACTIONS,
    STRUCTURAL_DRIFT,
    COMPONENT_STATUS,
)


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the global metrics registry."""
    global _metrics_registry

    if _metrics_registry is None:
        _metrics_registry = CollectorRegistry()
        for metric in ALL_METRICS:
            _metrics_registry.register(metric)

    return _metrics_registry


class MetricsCollector:
    """Collects and manages metrics for the Argo CD operator."""

    def __init__(self):
        self.registry = get_metrics_registry()

    @contextmanager
    def track_reconciliation(
        self, namespace: str, name: str, trigger: str = "reconcile"
    ) -> Iterator[None]:
        """
        Context manager to track a reconcile cycle.

        Args:
            namespace: Namespace of the ArgoCD resource
            name: Name of the ArgoCD resource
            trigger: What started the cycle (create, update, resume, resync)
        """
        start_time = time.monotonic()
        result = "unknown"

        try:
            yield
            result = "success"
        except Exception as e:
            result = "error"
            # Operator errors reach here already converted to kopf errors
            retryable = isinstance(e, kopf.TemporaryError) or getattr(
                e, "retryable", False
            )
            cause = None
            if isinstance(e, kopf.TemporaryError | kopf.PermanentError):
                cause = e.__cause__
            RECONCILIATION_ERRORS.labels(
                namespace=namespace,
                error_type=type(cause or e).__name__,
                retryable="true" if retryable else "false",
            ).inc()
            raise
        finally:
            RECONCILIATION_TOTAL.labels(
                namespace=namespace, name=name, result=result
            ).inc()
            RECONCILIATION_DURATION.labels(
                namespace=namespace, trigger=trigger
            ).observe(time.monotonic() - start_time)

    def record_drift_action(self, kind: str, action: str) -> None:
        DRIFT_ACTIONS.labels(kind=kind, action=action).inc()

    def record_structural_drift(self, kind: str) -> None:
        STRUCTURAL_DRIFT.labels(kind=kind).inc()

    def update_component_status(
        self,
        namespace: str,
        name: str,
        component: str,
        status: str,
        known_values: tuple[str, ...],
    ) -> None:
        """
        Set the status gauge so exactly one value is active per component.

        Args:
            namespace: Namespace of the ArgoCD resource
            name: Name of the ArgoCD resource
            component: Status field name
            status: Current value
            known_values: Every value the component can report
        """
        for value in known_values:
            COMPONENT_STATUS.labels(
                namespace=namespace, name=name, component=component, status=value
            ).set(1 if value == status else 0)


class MetricsServer:
    """HTTP server for exposing Prometheus metrics."""

    def __init__(self, port: int = 8081, host: str = "0.0.0.0"):
        self.port = port
        self.host = host
        self.app = Application()
        self.runner: AppRunner | None = None
        self.site: TCPSite | None = None
        self.app.router.add_get("/metrics", self._metrics_handler)
        self.app.router.add_get("/healthz", self._healthz_handler)

    async def _metrics_handler(self, request: Request) -> Response:
        """Handle /metrics endpoint for Prometheus scraping."""
        metrics_data = generate_latest(get_metrics_registry())
        return Response(body=metrics_data, headers={"Content-Type": CONTENT_TYPE_LATEST})

    async def _healthz_handler(self, request: Request) -> Response:
        return Response(text="ok")

    async def start(self) -> None:
        """Start the metrics server."""
        self.runner = AppRunner(self.app)
        await self.runner.setup()

        self.site = TCPSite(self.runner, self.host, self.port)
        await self.site.start()

        logger.info(f"Metrics server started on {self.host}:{self.port}")

    async def stop(self) -> None:
        """Stop the metrics server."""
        if self.site:
            await self.site.stop()
            self.site = None

        if self.runner:
            await self.runner.cleanup()
            self.runner = None

        logger.info("Metrics server stopped")


# Global metrics collector instance
metrics_collector = MetricsCollector()
