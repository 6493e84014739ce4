"""
Desired-state synthesizers.

Every builder is a pure function ``(ArgoCD, CapabilityContext) -> DesiredObject``
and performs no I/O.
"""

from .exposure import build_server_ingress, build_server_route
from .metadata import DesiredObject, common_labels, object_name, owner_annotations
from .redis import (
    build_redis_role,
    build_redis_role_binding,
    build_redis_service_account,
    redis_role_name,
)
from .workloads import (
    build_applicationset_deployment,
    build_dex_deployment,
    build_keycloak_workload,
    build_notifications_deployment,
)

__all__ = [
    "DesiredObject",
    "common_labels",
    "object_name",
    "owner_annotations",
    "build_redis_service_account",
    "build_redis_role",
    "build_redis_role_binding",
    "redis_role_name",
    "build_dex_deployment",
    "build_keycloak_workload",
    "build_notifications_deployment",
    "build_applicationset_deployment",
    "build_server_ingress",
    "build_server_route",
]
