"""Server exposure through an OpenShift Route or an Ingress."""

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    COMPONENT_SERVER,
    KIND_INGRESS,
    KIND_ROUTE,
    STATUS_HOST,
    STATUS_PHASE,
)
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources import (
    DesiredObject,
    build_server_ingress,
    build_server_route,
    object_name,
)
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.status import (
    ComponentStatus,
    StatusView,
    ingress_status_host,
    route_host,
)

from .base import ComponentReconciler, fetch_observed


class ServerComponent(ComponentReconciler):
    name = "server"
    status_fields = (STATUS_HOST, STATUS_PHASE)

    def _route_active(self, cr: ArgoCD, capabilities: CapabilityContext) -> bool:
        return cr.spec.server.route.enabled and capabilities.route_api

    def _ingress_active(self, cr: ArgoCD, capabilities: CapabilityContext) -> bool:
        return cr.spec.server.ingress.enabled and capabilities.ingress_api

    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        objects = []
        if self._route_active(cr, capabilities):
            objects.append(build_server_route(cr, capabilities))
        if self._ingress_active(cr, capabilities):
            objects.append(build_server_ingress(cr, capabilities))
        return objects

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        name = object_name(cr, COMPONENT_SERVER)
        return [(KIND_ROUTE, name), (KIND_INGRESS, name)]

    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        """
        Resolve the externally reachable host.

        An admitted route wins over the ingress. Phase becomes Available once
        a host resolves and otherwise keeps its previous value.
        """
        name = object_name(cr, COMPONENT_SERVER)
        host = ""

        if self._route_active(cr, ctx.capabilities):
            host = route_host(fetch_observed(ctx, KIND_ROUTE, name, cr.namespace))
        if not host and self._ingress_active(cr, ctx.capabilities):
            host = ingress_status_host(
                fetch_observed(ctx, KIND_INGRESS, name, cr.namespace)
            )

        view.set(STATUS_HOST, host)
        if host:
            view.set(STATUS_PHASE, ComponentStatus.AVAILABLE.value)
        elif not view.get(STATUS_PHASE):
            view.set(STATUS_PHASE, ComponentStatus.PENDING.value)
