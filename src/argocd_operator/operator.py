#!/usr/bin/env python3
"""
Argo CD Operator - Main entry point for the Kopf-based Argo CD operator.

The operator keeps the objects backing each ArgoCD resource (Redis RBAC,
SSO provider, server exposure, notifications and ApplicationSet
controllers) in line with the resource spec, corrects drift introduced
outside the operator and reports component health in the resource status.

Usage:
    python -m argocd_operator.operator
    # Or with kopf directly:
    kopf run -m argocd_operator.operator --all-namespaces

Environment Variables:
    WATCH_NAMESPACE: Comma-separated list of namespaces to watch (unset = all)
    ARGOCD_LABEL_SELECTOR: Only handle ArgoCD resources carrying these labels
    DISABLE_DEX: Disable Dex as an SSO provider
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import logging
import sys
import threading

import kopf

from argocd_operator.capabilities import inspect_cluster
from argocd_operator.errors import ConfigurationError

# Importing the handler module registers its decorators with kopf
from argocd_operator.handlers import argocd  # noqa: F401
from argocd_operator.handlers.argocd import label_selector
from argocd_operator.observability.logging import setup_structured_logging
from argocd_operator.observability.metrics import MetricsServer
from argocd_operator.settings import settings as operator_settings
from argocd_operator.utils.kubernetes import build_object_stores, get_kubernetes_client
from argocd_operator.utils.scope import resolve_namespace_scope

LIVENESS_ENDPOINT = "http://0.0.0.0:8080/healthz"


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


@kopf.on.startup()
async def startup_handler(
    settings: kopf.OperatorSettings, memo: kopf.Memo, **_
) -> None:
    """
    Operator startup configuration.

    Runs once before any handler and prepares the process-wide state every
    reconcile cycle reads:
    - Kubernetes client and the object store per managed kind
    - Cluster capabilities (read-only after this point)
    - The cancellation event checked between component steps
    - Worker pool size and the metrics endpoint
    """
    logging.info("Starting Argo CD Operator...")

    # Fail fast on a malformed selector rather than on the first event
    selector = label_selector()
    if selector:
        logging.info(f"Handling ArgoCD resources matching {selector}")

    settings.watching.reconnect_backoff = 1.0
    settings.execution.max_workers = operator_settings.max_concurrent_reconciles
    logging.info(
        f"Reconcile worker pool size: {operator_settings.max_concurrent_reconciles}"
    )

    api_client = get_kubernetes_client()
    capabilities = inspect_cluster(api_client, dex_disabled=operator_settings.disable_dex)

    memo.api_client = api_client
    memo.capabilities = capabilities
    memo.stores = build_object_stores(api_client, capabilities)
    memo.cancel_event = threading.Event()
    memo.metrics_server = None

    if operator_settings.metrics_enabled:
        try:
            metrics_server = MetricsServer(
                port=operator_settings.metrics_port, host=operator_settings.metrics_host
            )
            await metrics_server.start()
            memo.metrics_server = metrics_server
        except OSError as e:
            logging.error(f"Failed to start metrics server: {e}")
            logging.warning("Continuing without metrics server")


@kopf.on.cleanup()
async def cleanup_handler(memo: kopf.Memo, **_) -> None:
    """
    Operator cleanup handler.

    Signals in-flight reconcile cycles to stop at their next component
    boundary and stops the metrics server.
    """
    logging.info("Shutting down Argo CD Operator...")

    cancel_event = getattr(memo, "cancel_event", None)
    if cancel_event is not None:
        cancel_event.set()

    metrics_server = getattr(memo, "metrics_server", None)
    if metrics_server is not None:
        await metrics_server.stop()


@kopf.on.probe(id="healthz")
def health_check(memo: kopf.Memo, **_) -> dict[str, str]:
    """Liveness probe; reports whether startup finished wiring the operator."""
    ready = getattr(memo, "capabilities", None) is not None
    return {
        "status": "healthy" if ready else "starting",
        "operator": "argocd-operator",
    }


def main() -> None:
    """
    Main entry point for the operator.

    This function:
    1. Configures logging
    2. Resolves the namespace scope
    3. Runs the kopf operator namespaced or cluster-wide
    """
    configure_logging()

    try:
        watched_namespaces = resolve_namespace_scope(operator_settings.namespaces)
    except ConfigurationError as e:
        logging.error(str(e))
        sys.exit(2)

    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(sorted(watched_namespaces))}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")

    try:
        if watched_namespaces:
            kopf.run(
                namespaces=sorted(watched_namespaces),
                liveness_endpoint=LIVENESS_ENDPOINT,
            )
        else:
            kopf.run(clusterwide=True, liveness_endpoint=LIVENESS_ENDPOINT)
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
