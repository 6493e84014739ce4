"""
Base class for ArgoCD sub-components.

A component groups the objects that implement one feature (Redis RBAC,
SSO provider, server exposure, ...) together with the status fields that
describe it. Convergence and status computation are separate steps so the
pipeline can converge everything first and report afterwards.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.errors import NotFoundError, StructuralDriftError
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources.metadata import DesiredObject
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.drift import ReconcileOutcome
from argocd_operator.services.status import StatusView


@dataclass
class ComponentResult:
    """Outcomes of converging one component."""

    component: str
    outcomes: list[ReconcileOutcome] = field(default_factory=list)
    drift_errors: list[StructuralDriftError] = field(default_factory=list)


class ComponentReconciler(ABC):
    """
    One feature of an ArgoCD instance.

    Subclasses declare:
        name: Component identifier used in logs and status ownership
        status_fields: Status fields this component may write
        requires_valid_sso: Skip the component when SSO configuration conflicts
    """

    name: str = ""
    status_fields: tuple[str, ...] = ()
    requires_valid_sso: bool = False

    @abstractmethod
    def desired_objects(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[DesiredObject]:
        """Objects that should exist for the current spec."""

    def managed_keys(
        self, cr: ArgoCD, capabilities: CapabilityContext
    ) -> list[tuple[str, str]]:
        """Every (kind, name) this component can own, desired or not."""
        return [(d.kind, d.name) for d in self.desired_objects(cr, capabilities)]

    def converge(self, cr: ArgoCD, ctx: ReconcileContext) -> ComponentResult:
        """
        Drive this component's objects toward the desired state.

        Objects that are no longer desired are deleted. A structural drift
        on one object is recorded and does not stop its siblings. Shutdown is
        checked before each object.
        """
        result = ComponentResult(component=self.name)
        desired = self.desired_objects(cr, ctx.capabilities)
        wanted = {(obj.kind, obj.name) for obj in desired}

        for obj in desired:
            ctx.check_cancelled()
            try:
                result.outcomes.append(ctx.drift_reconciler(obj.kind).reconcile(obj))
            except StructuralDriftError as e:
                result.drift_errors.append(e)

        for kind, name in self.managed_keys(cr, ctx.capabilities):
            if (kind, name) in wanted or kind not in ctx.stores:
                continue
            ctx.check_cancelled()
            if self.retain_undesired(cr, ctx, kind, name):
                continue
            result.outcomes.append(ctx.drift_reconciler(kind).delete(name, cr.namespace))

        return result

    def retain_undesired(
        self, cr: ArgoCD, ctx: ReconcileContext, kind: str, name: str
    ) -> bool:
        """Whether an object that is no longer desired must stay for now."""
        return False

    @abstractmethod
    def compute_status(self, cr: ArgoCD, ctx: ReconcileContext, view: StatusView) -> None:
        """Write this component's status fields from spec and observed state."""


def fetch_observed(ctx: ReconcileContext, kind: str, name: str, namespace: str) -> Any:
    """Observed object, or None when it does not exist or its API is absent."""
    if kind not in ctx.stores:
        return None
    try:
        return ctx.store(kind).get(name, namespace)
    except NotFoundError:
        return None
