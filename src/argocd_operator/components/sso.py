"""
Single sign-on: configuration exclusivity check and provider workload.

Dex and Keycloak are mutually exclusive. The exclusivity check runs before
any component converges; when both are configured neither provider is
touched and ``ssoConfig`` reports Failed until the ArgoCD spec is fixed.
"""

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    COMPONENT_DEX,
    COMPONENT_KEYCLOAK,
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
    SSO_PROVIDER_DEX,
    SSO_PROVIDER_KEYCLOAK,
    STATUS_SSO,
)
from argocd_operator.errors import MultipleSSOConfiguredError
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources import (
    DesiredObject,
    build_dex_deployment,
    build_keycloak_workload,
    object_name,
)
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.status import ComponentStatus, StatusView, workload_status

from .base import ComponentReconciler, fetch_observed


def dex_configured(cr: ArgoCD, capabilities: CapabilityContext) -> bool:
    """Dex is requested explicitly or through its legacy settings."""
    if capabilities.dex_disabled:
        return False
    spec = cr.spec
    if spec.sso and spec.sso.provider == SSO_PROVIDER_DEX:
        return True
    dex = spec.dex_spec
    return bool(dex and (dex.open_shift_oauth or dex.config))


def keycloak_configured(cr: ArgoCD) -> bool:
    return bool(cr.spec.sso and cr.spec.sso.provider == SSO_PROVIDER_KEYCLOAK)


def evaluate_sso_config(
    cr: ArgoCD, capabilities: CapabilityContext
) -> tuple[ComponentStatus, MultipleSSOConfiguredError | None]:
    """
    Classify the SSO configuration of a resource.

    Returns:
        (SUCCESS, None) for exactly one provider, (UNKNOWN, None) for none,
        and (FAILED, error) when both Dex and Keycloak are configured.
    """
    dex = dex_configured(cr, capabilities)
    keycloak = keycloak_configured(cr)

    if dex and keycloak:
        return ComponentStatus.FAILED, MultipleSSOConfiguredError(cr.name, cr.namespace)
    if dex or keycloak:
        return ComponentStatus.SUCCESS, None
    return ComponentStatus.UNKNOWN, None


class SSOComponent(ComponentReconciler):
    """The configured SSO provider's workload."""

    name = "sso"
    status_fields = (STATUS_SSO,)
    requires_valid_sso = True

    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        if keycloak_configured(cr):
            return [build_keycloak_workload(cr, capabilities)]
        if dex_configured(cr, capabilities):
            return [build_dex_deployment(cr, capabilities)]
        return []

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        keycloak = object_name(cr, COMPONENT_KEYCLOAK)
        return [
            (KIND_DEPLOYMENT, object_name(cr, COMPONENT_DEX)),
            (KIND_DEPLOYMENT, keycloak),
            (KIND_DEPLOYMENT_CONFIG, keycloak),
        ]

    def _observed_provider(self, cr: ArgoCD, ctx: ReconcileContext):
        if keycloak_configured(cr):
            kind = KIND_DEPLOYMENT_CONFIG if ctx.capabilities.template_api else KIND_DEPLOYMENT
            return fetch_observed(ctx, kind, object_name(cr, COMPONENT_KEYCLOAK), cr.namespace)
        if dex_configured(cr, ctx.capabilities):
            return fetch_observed(
                ctx, KIND_DEPLOYMENT, object_name(cr, COMPONENT_DEX), cr.namespace
            )
        return None

    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        view.set(STATUS_SSO, workload_status(self._observed_provider(cr, ctx)).value)
