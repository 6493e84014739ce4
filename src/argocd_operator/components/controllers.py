"""Optional controllers: notifications and ApplicationSet."""

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    COMPONENT_APPLICATIONSET,
    COMPONENT_NOTIFICATIONS,
    KIND_DEPLOYMENT,
    STATUS_APPLICATIONSET,
    STATUS_NOTIFICATIONS,
)
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources import (
    DesiredObject,
    build_applicationset_deployment,
    build_notifications_deployment,
    object_name,
)
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.status import (
    STATUS_NONE,
    ComponentStatus,
    StatusView,
    workload_status,
)

from .base import ComponentReconciler, fetch_observed


class NotificationsComponent(ComponentReconciler):
    """Notifications controller. Reports an empty status when not installed."""

    name = "notifications"
    status_fields = (STATUS_NOTIFICATIONS,)

    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        if not cr.spec.notifications.enabled:
            return []
        return [build_notifications_deployment(cr, capabilities)]

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        return [(KIND_DEPLOYMENT, object_name(cr, COMPONENT_NOTIFICATIONS))]

    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        status = STATUS_NONE
        if cr.spec.notifications.enabled:
            deployment = fetch_observed(
                ctx,
                KIND_DEPLOYMENT,
                object_name(cr, COMPONENT_NOTIFICATIONS),
                cr.namespace,
            )
            if deployment is not None:
                status = workload_status(deployment).value
        view.set(STATUS_NOTIFICATIONS, status)


class ApplicationSetComponent(ComponentReconciler):
    """ApplicationSet controller. Reports Unknown when not installed."""

    name = "applicationset"
    status_fields = (STATUS_APPLICATIONSET,)

    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        if cr.spec.application_set is None:
            return []
        return [build_applicationset_deployment(cr, capabilities)]

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        return [(KIND_DEPLOYMENT, object_name(cr, COMPONENT_APPLICATIONSET))]

    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        status = ComponentStatus.UNKNOWN
        if cr.spec.application_set is not None:
            status = workload_status(
                fetch_observed(
                    ctx,
                    KIND_DEPLOYMENT,
                    object_name(cr, COMPONENT_APPLICATIONSET),
                    cr.namespace,
                )
            )
        view.set(STATUS_APPLICATIONSET, status.value)
