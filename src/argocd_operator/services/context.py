"""
Per-cycle reconcile context.
"""

import threading
from collections.abc import Mapping

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.errors import ConfigurationError, ReconciliationCancelled
from argocd_operator.services.drift import DriftReconciler
from argocd_operator.utils.kubernetes import ObjectStore


class ReconcileContext:
    """
    Everything a reconcile cycle needs besides the resource itself.

    Args:
        capabilities: Cluster capabilities resolved at startup
        stores: Object store per kind
        cancel_event: Set when the operator shuts down
    """

    def __init__(
        self,
        capabilities: CapabilityContext,
        stores: Mapping[str, ObjectStore],
        cancel_event: threading.Event | None = None,
    ):
        self.capabilities = capabilities
        self.stores = stores
        self.cancel_event = cancel_event or threading.Event()
        self._reconcilers: dict[str, DriftReconciler] = {}

    def store(self, kind: str) -> ObjectStore:
        try:
            return self.stores[kind]
        except KeyError:
            raise ConfigurationError(
                f"No object store for kind {kind}; the cluster does not serve its API"
            ) from None

    def drift_reconciler(self, kind: str) -> DriftReconciler:
        if kind not in self._reconcilers:
            self._reconcilers[kind] = DriftReconciler(self.store(kind))
        return self._reconcilers[kind]

    def check_cancelled(self) -> None:
        """Raise ReconciliationCancelled if shutdown was requested."""
        if self.cancel_event.is_set():
            raise ReconciliationCancelled()
