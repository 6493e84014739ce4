"""
ArgoCD sub-components in reconcile order.
"""

from .base import ComponentReconciler, ComponentResult, fetch_observed
from .controllers import ApplicationSetComponent, NotificationsComponent
from .redis import RedisComponent
from .server import ServerComponent
from .sso import (
    SSOComponent,
    dex_configured,
    evaluate_sso_config,
    keycloak_configured,
)


def default_components() -> list[ComponentReconciler]:
    """Components in the fixed order they are converged and reported."""
    return [
        RedisComponent(),
        SSOComponent(),
        ServerComponent(),
        NotificationsComponent(),
        ApplicationSetComponent(),
    ]


__all__ = [
    "ComponentReconciler",
    "ComponentResult",
    "fetch_observed",
    "RedisComponent",
    "SSOComponent",
    "ServerComponent",
    "NotificationsComponent",
    "ApplicationSetComponent",
    "default_components",
    "dex_configured",
    "evaluate_sso_config",
    "keycloak_configured",
]
