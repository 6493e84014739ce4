"""
Base reconciler class providing common patterns for resource reconciliation.

This module defines the BaseReconciler class that implements standard
patterns for condition management, error handling, and metrics tracking
around a single reconcile cycle.
"""

import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, NoReturn

from kubernetes.client.rest import ApiException

from ..constants import (
    CONDITION_FALSE,
    CONDITION_RECONCILED,
    CONDITION_TRUE,
    REASON_SUCCESS,
    STATUS_CONDITIONS,
)
from ..errors import (
    KubernetesAPIError,
    OperatorError,
    StatusOwnershipError,
    TemporaryError,
)
from ..models.argocd import ArgoCD
from ..observability.logging import OperatorLogger
from ..observability.metrics import metrics_collector
from .context import ReconcileContext
from .status import CompositeStatus


class BaseReconciler(ABC):
    """
    Base class for resource reconcilers.

    Provides common patterns for:
    - Status conditions with observedGeneration tracking
    - Mapping of operator errors onto kopf retry semantics
    - Logging and metrics for every cycle
    """

    resource_type = "argocd"

    def __init__(self):
        self.logger = OperatorLogger(self.__class__.__name__)

    def reconcile(
        self,
        cr: ArgoCD,
        status: CompositeStatus,
        ctx: ReconcileContext,
        trigger: str = "reconcile",
    ) -> Any:
        """
        Run one reconcile cycle with logging, metrics and error mapping.

        Args:
            cr: Resource being reconciled
            status: Working copy of the resource status
            ctx: Reconcile context for this cycle
            trigger: What started the cycle, for metrics

        Returns:
            Whatever do_reconcile returns

        Raises:
            kopf.TemporaryError: Retryable failure, kopf re-queues the resource
            kopf.PermanentError: Failure that needs a spec or cluster change
        """
        start_time = time.monotonic()
        self.logger.log_reconciliation_start(
            resource_type=self.resource_type,
            resource_name=cr.name,
            namespace=cr.namespace,
        )

        with metrics_collector.track_reconciliation(
            namespace=cr.namespace, name=cr.name, trigger=trigger
        ):
            try:
                result = self.do_reconcile(cr, status, ctx)

            except StatusOwnershipError:
                # Programming error; let kopf surface it unchanged
                raise

            except OperatorError as e:
                self._record_failure(cr, status, e, start_time)
                raise e.as_kopf_error() from e

            except ApiException as e:
                error = KubernetesAPIError(
                    message=str(e.reason),
                    reason=e.reason,
                    status=e.status,
                    retryable=e.status is not None and e.status >= 500,
                    cause=e,
                )
                self._record_failure(cr, status, error, start_time)
                raise error.as_kopf_error() from e

            except Exception as e:
                # Wrap unexpected errors as temporary to allow retry
                error = TemporaryError(f"Unexpected error during reconciliation: {e}")
                self._record_failure(cr, status, error, start_time)
                raise error.as_kopf_error() from e

        self.logger.log_reconciliation_success(
            resource_type=self.resource_type,
            resource_name=cr.name,
            namespace=cr.namespace,
            duration=time.monotonic() - start_time,
        )
        return result

    def reject(
        self,
        cr: ArgoCD,
        status: CompositeStatus,
        error: OperatorError,
        trigger: str = "reconcile",
    ) -> NoReturn:
        """
        Fail a cycle that cannot start, recording the failure in status.

        Used when the resource itself is unusable, e.g. its spec does not
        validate, so do_reconcile is never reached.
        """
        start_time = time.monotonic()
        with metrics_collector.track_reconciliation(
            namespace=cr.namespace, name=cr.name, trigger=trigger
        ):
            self._record_failure(cr, status, error, start_time)
            raise error.as_kopf_error() from error

    @abstractmethod
    def do_reconcile(
        self, cr: ArgoCD, status: CompositeStatus, ctx: ReconcileContext
    ) -> Any:
        """Perform the resource-specific reconcile cycle."""

    def _record_failure(
        self,
        cr: ArgoCD,
        status: CompositeStatus,
        error: OperatorError,
        start_time: float,
    ) -> None:
        self.logger.log_reconciliation_error(
            resource_type=self.resource_type,
            resource_name=cr.name,
            namespace=cr.namespace,
            error=error,
            duration=time.monotonic() - start_time,
        )
        self.set_condition(
            status,
            CONDITION_RECONCILED,
            CONDITION_FALSE,
            type(error).__name__,
            str(error).split("\n", 1)[0],
            cr.generation,
        )

    def set_reconciled(
        self, status: CompositeStatus, message: str, generation: int | None
    ) -> None:
        self.set_condition(
            status,
            CONDITION_RECONCILED,
            CONDITION_TRUE,
            REASON_SUCCESS,
            message,
            generation,
        )

    def set_condition(
        self,
        status: CompositeStatus,
        condition_type: str,
        condition_status: str,
        reason: str,
        message: str,
        generation: int | None = None,
    ) -> None:
        """
        Add or update a status condition.

        lastTransitionTime only moves when the condition status changes,
        so repeated cycles with the same outcome leave status untouched.
        """
        conditions: list[dict[str, Any]] = [
            c for c in status.get(STATUS_CONDITIONS) or [] if isinstance(c, dict)
        ]
        previous = get_condition(conditions, condition_type)

        transition_time = datetime.now(UTC).isoformat()
        if previous and previous.get("status") == condition_status:
            transition_time = previous.get("lastTransitionTime", transition_time)

        condition = {
            "type": condition_type,
            "status": condition_status,
            "reason": reason,
            "message": message,
            "lastTransitionTime": transition_time,
        }
        if generation is not None:
            condition["observedGeneration"] = generation

        # Replace in place to keep the list order stable across cycles
        updated = [condition if c is previous else c for c in conditions]
        if previous is None:
            updated.append(condition)
        status.set(STATUS_CONDITIONS, updated)


def get_condition(
    conditions: list[dict[str, Any]], condition_type: str
) -> dict[str, Any] | None:
    """Return the condition of the given type, if present."""
    for condition in conditions:
        if condition.get("type") == condition_type:
            return condition
    return None
