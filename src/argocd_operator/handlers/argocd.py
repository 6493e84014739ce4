"""
ArgoCD handlers - drive ArgoCD resources toward their desired state.

Create, resume and update events run a full reconcile cycle, and a
periodic timer repeats the cycle so drift introduced outside the operator
is corrected without waiting for a spec change.

Handlers are synchronous; kopf runs them in its thread pool, bounded by
``settings.execution.max_workers``, and never runs two handlers for the
same resource at once.
"""

import logging
from functools import cache
from typing import Any

import kopf

from argocd_operator.constants import ARGOCD_GROUP, ARGOCD_PLURAL, ARGOCD_VERSION
from argocd_operator.errors import ValidationError
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.services.argocd_reconciler import ArgoCDReconciler
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.status import CompositeStatus
from argocd_operator.settings import settings as operator_settings
from argocd_operator.utils.scope import matches_selector, parse_label_selector

logger = logging.getLogger(__name__)

reconciler = ArgoCDReconciler()


@cache
def label_selector() -> dict[str, str]:
    return parse_label_selector(operator_settings.label_selector)


def is_selected(labels: Any, **_) -> bool:
    """kopf filter: only resources matching ARGOCD_LABEL_SELECTOR are handled."""
    return matches_selector(labels, label_selector())


def run_reconcile_cycle(
    body: Any, patch: Any, memo: Any, trigger: str
) -> None:
    """
    Reconcile one ArgoCD resource and stage its status patch.

    The status patch is staged even when the cycle fails so the failure
    condition reaches the resource. A spec that does not validate fails
    the cycle permanently with Reconciled=False.

    Args:
        body: Resource body as delivered by kopf
        patch: kopf patch object; status changes are written here
        memo: Operator memo with capabilities, stores and cancel_event
        trigger: Event that started the cycle
    """
    status = CompositeStatus(dict(body.get("status") or {}))
    ctx = ReconcileContext(
        capabilities=memo.capabilities,
        stores=memo.stores,
        cancel_event=memo.cancel_event,
    )

    try:
        try:
            cr = ArgoCD.from_body(body)
        except ValidationError as e:
            reconciler.reject(ArgoCD.from_metadata(body), status, e, trigger=trigger)
        report = reconciler.reconcile(cr, status, ctx, trigger=trigger)
    finally:
        for key, value in status.changed_fields().items():
            patch.status[key] = value

    if report.mutations:
        logger.info(
            f"ArgoCD {cr.namespace}/{cr.name}: {report.mutations} object(s) changed"
        )


@kopf.on.create(
    ARGOCD_PLURAL, group=ARGOCD_GROUP, version=ARGOCD_VERSION, when=is_selected
)
def on_argocd_create(body: Any, patch: kopf.Patch, memo: kopf.Memo, **_) -> None:
    run_reconcile_cycle(body, patch, memo, trigger="create")


@kopf.on.resume(
    ARGOCD_PLURAL, group=ARGOCD_GROUP, version=ARGOCD_VERSION, when=is_selected
)
def on_argocd_resume(body: Any, patch: kopf.Patch, memo: kopf.Memo, **_) -> None:
    run_reconcile_cycle(body, patch, memo, trigger="resume")


@kopf.on.update(
    ARGOCD_PLURAL, group=ARGOCD_GROUP, version=ARGOCD_VERSION, when=is_selected
)
def on_argocd_update(body: Any, patch: kopf.Patch, memo: kopf.Memo, **_) -> None:
    run_reconcile_cycle(body, patch, memo, trigger="update")


@kopf.timer(
    ARGOCD_PLURAL,
    group=ARGOCD_GROUP,
    version=ARGOCD_VERSION,
    interval=operator_settings.resync_interval_seconds,
    idle=operator_settings.resync_interval_seconds,
    when=is_selected,
)
def resync_argocd(body: Any, patch: kopf.Patch, memo: kopf.Memo, **_) -> None:
    """Periodic resync that restores drifted objects and refreshes status."""
    run_reconcile_cycle(body, patch, memo, trigger="resync")
