"""
Field-level drift detection and correction for managed objects.

Each managed kind declares the fields the operator owns. The reconciler
compares only those fields between the desired object and the observed one,
copies the desired values of mismatched fields onto the observed object and
writes it back. Foreign fields, including server-populated ones, are never
compared and never overwritten.

Fields marked structural are immutable once the object exists (a
RoleBinding's roleRef, a Deployment's selector). A mismatch there is not
corrected; StructuralDriftError is raised instead and the object is left
as it is.
"""

import copy
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Literal

from kubernetes.utils import parse_quantity

from argocd_operator.constants import (
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
    KIND_INGRESS,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_ROUTE,
    KIND_SERVICE_ACCOUNT,
)
from argocd_operator.errors import NotFoundError, StructuralDriftError
from argocd_operator.observability.logging import OperatorLogger
from argocd_operator.observability.metrics import metrics_collector
from argocd_operator.resources.metadata import DesiredObject
from argocd_operator.utils.kubernetes import ObjectStore

logger = OperatorLogger(__name__)


@dataclass(frozen=True)
class ManagedField:
    """
    A field path the operator owns on a kind.

    Path segments are attribute names for client models, keys for mappings
    and integers for list positions. ``subset`` mode only requires the
    desired entries of a mapping to be present, so labels or annotations
    added by other controllers are left alone. ``quantity`` mode compares
    resource requirements by value, so "0.5" equals the server's "500m".
    """

    path: tuple[str | int, ...]
    structural: bool = False
    mode: Literal["exact", "subset", "quantity"] = "exact"

    @property
    def dotted(self) -> str:
        return ".".join(str(part) for part in self.path)


LABELS = (
    ManagedField(("metadata", "labels"), mode="subset"),
    ManagedField(("metadata", "annotations"), mode="subset"),
)

MANAGED_FIELDS: dict[str, tuple[ManagedField, ...]] = {
    KIND_SERVICE_ACCOUNT: LABELS,
    KIND_ROLE: (*LABELS, ManagedField(("rules",))),
    KIND_ROLE_BINDING: (
        *LABELS,
        ManagedField(("role_ref",), structural=True),
        ManagedField(("subjects",)),
    ),
    KIND_DEPLOYMENT: (
        *LABELS,
        ManagedField(("spec", "selector"), structural=True),
        ManagedField(("spec", "replicas")),
        ManagedField(("spec", "template", "spec", "containers", 0, "image")),
        ManagedField(("spec", "template", "spec", "containers", 0, "command")),
        ManagedField(
            ("spec", "template", "spec", "containers", 0, "resources"), mode="quantity"
        ),
    ),
    KIND_INGRESS: (
        *LABELS,
        ManagedField(("spec", "ingress_class_name")),
        ManagedField(("spec", "rules")),
        ManagedField(("spec", "tls")),
    ),
    KIND_ROUTE: (
        *LABELS,
        ManagedField(("spec", "host")),
        ManagedField(("spec", "to")),
        ManagedField(("spec", "port")),
        ManagedField(("spec", "tls")),
    ),
    KIND_DEPLOYMENT_CONFIG: (
        *LABELS,
        ManagedField(("spec", "replicas")),
        ManagedField(("spec", "template", "spec", "containers", 0, "image")),
        ManagedField(
            ("spec", "template", "spec", "containers", 0, "resources"), mode="quantity"
        ),
    ),
}


def resolve_path(obj: Any, path: tuple[str | int, ...]) -> Any:
    """Follow a path through models, mappings and lists; None when absent."""
    current = obj
    for part in path:
        if current is None:
            return None
        if isinstance(part, int):
            if not isinstance(current, list) or part >= len(current):
                return None
            current = current[part]
        elif isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, part, None)
    return current


def assign_path(obj: Any, path: tuple[str | int, ...], value: Any) -> None:
    """Set the value at a path; intermediate mappings are created for dicts."""
    parent = obj
    for part in path[:-1]:
        if isinstance(part, int):
            child = parent[part]
        elif isinstance(parent, dict):
            child = parent.get(part)
            if child is None:
                child = parent[part] = {}
        else:
            child = getattr(parent, part)
        parent = child

    last = path[-1]
    if isinstance(last, int) or isinstance(parent, dict):
        parent[last] = value
    else:
        setattr(parent, last, value)


def normalize(value: Any) -> Any:
    """
    Reduce a value to plain data for comparison.

    Client models become dicts and unset (None) entries are dropped, so a
    field the server omits compares equal to one the desired object leaves
    unset.
    """
    if hasattr(value, "to_dict") and not isinstance(value, Mapping):
        value = value.to_dict()
    if isinstance(value, Mapping):
        return {
            key: normalize(item) for key, item in value.items() if item is not None
        }
    if isinstance(value, list):
        return [normalize(item) for item in value]
    return value


def _comparable(value: Any) -> Any:
    # An empty list or mapping is how the server reports an omitted field
    value = normalize(value)
    return None if value in ([], {}) else value


def _quantities(value: Any) -> Any:
    value = _comparable(value)
    if not isinstance(value, dict):
        return value
    parsed = {}
    for section, amounts in value.items():
        if isinstance(amounts, Mapping):
            amounts = {key: _quantity(amount) for key, amount in amounts.items()}
        parsed[section] = amounts
    return parsed


def _quantity(amount: Any) -> Any:
    try:
        return parse_quantity(amount)
    except (TypeError, ValueError):
        return amount


@dataclass(frozen=True)
class FieldComparison:
    path: str
    existing: Any
    desired: Any
    mismatch: bool
    structural: bool = False


@dataclass(frozen=True)
class FieldComparisonResult:
    """Ordered comparison of every managed field of one object."""

    comparisons: tuple[FieldComparison, ...]

    @property
    def mismatches(self) -> list[FieldComparison]:
        return [c for c in self.comparisons if c.mismatch]

    @property
    def structural_mismatches(self) -> list[FieldComparison]:
        return [c for c in self.comparisons if c.mismatch and c.structural]

    @property
    def has_drift(self) -> bool:
        return any(c.mismatch for c in self.comparisons)


def compare_fields(
    existing: Any, desired: Any, fields: tuple[ManagedField, ...]
) -> FieldComparisonResult:
    """
    Compare the managed fields of an observed object with the desired one.

    A desired value of None means the field is not managed for this object
    and never counts as a mismatch.
    """
    comparisons = []
    for managed in fields:
        desired_value = resolve_path(desired, managed.path)
        existing_value = resolve_path(existing, managed.path)

        if desired_value is None:
            mismatch = False
        elif managed.mode == "subset":
            observed = existing_value or {}
            mismatch = any(
                observed.get(key) != value for key, value in desired_value.items()
            )
        elif managed.mode == "quantity":
            mismatch = _quantities(existing_value) != _quantities(desired_value)
        else:
            mismatch = _comparable(existing_value) != _comparable(desired_value)

        comparisons.append(
            FieldComparison(
                path=managed.dotted,
                existing=existing_value,
                desired=desired_value,
                mismatch=mismatch,
                structural=managed.structural,
            )
        )
    return FieldComparisonResult(tuple(comparisons))


class ReconcileAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    DELETED = "deleted"
    ABSENT = "absent"


MUTATING_ACTIONS = frozenset(
    {ReconcileAction.CREATED, ReconcileAction.UPDATED, ReconcileAction.DELETED}
)


@dataclass(frozen=True)
class ReconcileOutcome:
    kind: str
    name: str
    namespace: str | None
    action: ReconcileAction
    changed_fields: tuple[str, ...] = field(default_factory=tuple)

    @property
    def mutated(self) -> bool:
        return self.action in MUTATING_ACTIONS


class DriftReconciler:
    """
    Converges objects of one kind toward their desired state.

    Args:
        store: Object store for the kind
        fields: Managed fields; defaults to the table entry for the kind
    """

    def __init__(self, store: ObjectStore, fields: tuple[ManagedField, ...] | None = None):
        self.store = store
        self.kind = store.kind
        self.fields = fields if fields is not None else MANAGED_FIELDS[store.kind]

    def reconcile(self, desired: DesiredObject) -> ReconcileOutcome:
        """
        Create, correct or leave alone the object described by ``desired``.

        Returns:
            Outcome describing the action taken

        Raises:
            StructuralDriftError: An immutable field differs; nothing was written
            ConflictError: The object changed between fetch and write
        """
        name, namespace = desired.name, desired.namespace

        try:
            existing = self.store.get(name, namespace)
        except NotFoundError:
            self.store.create(desired.body)
            logger.log_drift_correction(self.kind, name, namespace, ReconcileAction.CREATED)
            metrics_collector.record_drift_action(self.kind, ReconcileAction.CREATED)
            return ReconcileOutcome(self.kind, name, namespace, ReconcileAction.CREATED)

        result = compare_fields(existing, desired.body, self.fields)

        # Immutable fields are checked before anything is written
        for comparison in result.structural_mismatches:
            error = StructuralDriftError(
                kind=self.kind,
                name=name,
                namespace=namespace,
                field=comparison.path,
                existing=normalize(comparison.existing),
                desired=normalize(comparison.desired),
            )
            logger.log_structural_drift(error)
            metrics_collector.record_structural_drift(self.kind)
            raise error

        if not result.has_drift:
            logger.debug(f"{self.kind} {namespace}/{name} is up to date")
            return ReconcileOutcome(self.kind, name, namespace, ReconcileAction.UNCHANGED)

        corrected = copy.deepcopy(existing)
        changed = []
        for managed, comparison in zip(self.fields, result.comparisons, strict=True):
            if not comparison.mismatch:
                continue
            value = copy.deepcopy(comparison.desired)
            if managed.mode == "subset":
                merged = dict(comparison.existing or {})
                merged.update(value)
                value = merged
            assign_path(corrected, managed.path, value)
            changed.append(comparison.path)

        self.store.replace(corrected)
        logger.log_drift_correction(
            self.kind, name, namespace, ReconcileAction.UPDATED, fields=changed
        )
        metrics_collector.record_drift_action(self.kind, ReconcileAction.UPDATED)
        return ReconcileOutcome(
            self.kind, name, namespace, ReconcileAction.UPDATED, tuple(changed)
        )

    def delete(self, name: str, namespace: str) -> ReconcileOutcome:
        """Delete an object if present. Absence counts as success."""
        try:
            self.store.delete(name, namespace)
        except NotFoundError:
            return ReconcileOutcome(self.kind, name, namespace, ReconcileAction.ABSENT)

        logger.log_drift_correction(self.kind, name, namespace, ReconcileAction.DELETED)
        metrics_collector.record_drift_action(self.kind, ReconcileAction.DELETED)
        return ReconcileOutcome(self.kind, name, namespace, ReconcileAction.DELETED)
