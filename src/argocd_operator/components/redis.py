"""Redis service account, role and role binding."""

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    KIND_ROLE,
    KIND_ROLE_BINDING,
    SUFFIX_REDIS,
    SUFFIX_REDIS_HA,
)
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.observability.logging import OperatorLogger
from argocd_operator.resources import (
    DesiredObject,
    build_redis_role,
    build_redis_role_binding,
    build_redis_service_account,
    object_name,
)
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.drift import resolve_path
from argocd_operator.services.status import StatusView

from .base import ComponentReconciler, fetch_observed

logger = OperatorLogger(__name__)


class RedisComponent(ComponentReconciler):
    name = "redis"

    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        return [
            build_redis_service_account(cr, capabilities),
            build_redis_role(cr, capabilities),
            build_redis_role_binding(cr, capabilities),
        ]

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        keys = super().managed_keys(cr, capabilities)
        # The role for the other HA mode is removed when the mode flips
        for suffix in (SUFFIX_REDIS, SUFFIX_REDIS_HA):
            key = (KIND_ROLE, object_name(cr, suffix))
            if key not in keys:
                keys.append(key)
        return keys

    def retain_undesired(
        self, cr: ArgoCD, ctx: ReconcileContext, kind: str, name: str
    ) -> bool:
        # A role stays while the existing binding still grants it
        if kind != KIND_ROLE:
            return False
        binding = fetch_observed(
            ctx,
            KIND_ROLE_BINDING,
            build_redis_role_binding(cr, ctx.capabilities).name,
            cr.namespace,
        )
        if resolve_path(binding, ("role_ref", "name")) != name:
            return False
        logger.warning(
            f"Keeping Role {cr.namespace}/{name}: RoleBinding still references it"
        )
        return True

    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        # Redis RBAC has no status field of its own
        return None
