"""
ArgoCD reconciliation pipeline.

One cycle:
1. evaluate SSO exclusivity and record ``ssoConfig``
2. converge every component in fixed order, checking for shutdown between
   components and skipping SSO-dependent components on conflict
3. compute every component's status from spec and observed state
4. summarize the cycle in the ``Reconciled`` condition

Structural drift and configuration conflicts are reported through status
and do not fail the cycle. Conflicts and platform errors propagate so kopf
retries the whole cycle.
"""

from dataclasses import dataclass, field

from ..components import ComponentReconciler, default_components, evaluate_sso_config
from ..constants import (
    CONDITION_FALSE,
    CONDITION_RECONCILED,
    REASON_MULTIPLE_SSO,
    REASON_STRUCTURAL_DRIFT,
    STATUS_SSO_CONFIG,
)
from ..errors import ConfigurationConflictError, StructuralDriftError
from ..models.argocd import ArgoCD
from ..observability.metrics import metrics_collector
from .base_reconciler import BaseReconciler
from .context import ReconcileContext
from .drift import ReconcileOutcome
from .status import STATUS_NONE, ComponentStatus, CompositeStatus

SSO_CONFIG_OWNER = "sso-config"


@dataclass
class ReconcileReport:
    """What one reconcile cycle did."""

    outcomes: list[ReconcileOutcome] = field(default_factory=list)
    drift_errors: list[StructuralDriftError] = field(default_factory=list)
    config_errors: list[ConfigurationConflictError] = field(default_factory=list)
    skipped_components: list[str] = field(default_factory=list)

    @property
    def mutations(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.mutated)

    @property
    def healthy(self) -> bool:
        return not self.drift_errors and not self.config_errors


class ArgoCDReconciler(BaseReconciler):
    """
    Reconciles an ArgoCD resource and aggregates its composite status.

    Args:
        components: Components in reconcile order; defaults to the full set
    """

    def __init__(self, components: list[ComponentReconciler] | None = None):
        super().__init__()
        self.components = components if components is not None else default_components()

    def do_reconcile(
        self, cr: ArgoCD, status: CompositeStatus, ctx: ReconcileContext
    ) -> ReconcileReport:
        report = ReconcileReport()

        sso_config, sso_error = evaluate_sso_config(cr, ctx.capabilities)
        status.view(SSO_CONFIG_OWNER, (STATUS_SSO_CONFIG,)).set(
            STATUS_SSO_CONFIG, sso_config.value
        )
        if sso_error is not None:
            self.logger.warning(str(sso_error).split("\n", 1)[0])
            report.config_errors.append(sso_error)

        for component in self.components:
            ctx.check_cancelled()
            if component.requires_valid_sso and sso_error is not None:
                report.skipped_components.append(component.name)
                continue

            result = component.converge(cr, ctx)
            report.outcomes.extend(result.outcomes)
            report.drift_errors.extend(result.drift_errors)

        ctx.check_cancelled()
        for component in self.components:
            if component.name in report.skipped_components:
                continue
            view = status.view(component.name, component.status_fields)
            component.compute_status(cr, ctx, view)
            self._export_status(cr, component, status)

        self._summarize(cr, status, report)
        return report

    def _export_status(
        self, cr: ArgoCD, component: ComponentReconciler, status: CompositeStatus
    ) -> None:
        known = (STATUS_NONE, *(value.value for value in ComponentStatus))
        for status_field in component.status_fields:
            value = status.get(status_field)
            if value in known:
                metrics_collector.update_component_status(
                    cr.namespace, cr.name, status_field, value, known
                )

    def _summarize(
        self, cr: ArgoCD, status: CompositeStatus, report: ReconcileReport
    ) -> None:
        if report.healthy:
            self.set_reconciled(
                status, "All components converged", cr.generation
            )
            return

        messages = [str(e).split("\n", 1)[0] for e in report.config_errors]
        messages.extend(str(e).split("\n", 1)[0] for e in report.drift_errors)
        reason = REASON_MULTIPLE_SSO if report.config_errors else REASON_STRUCTURAL_DRIFT
        self.set_condition(
            status,
            CONDITION_RECONCILED,
            CONDITION_FALSE,
            reason,
            "; ".join(messages),
            cr.generation,
        )
