"""
Unit tests for field-level drift detection and correction.

Covers the create path, idempotence, restoration of mutable fields and
the refusal to rewrite structural fields such as a binding's roleRef.
"""

import pytest
from kubernetes import client

from argocd_operator.constants import (
    KIND_ROLE_BINDING,
    KIND_SERVICE_ACCOUNT,
    LABEL_COMPONENT,
    LABEL_MANAGED_BY,
)
from argocd_operator.errors import ConflictError, StructuralDriftError
from argocd_operator.resources import (
    build_redis_role_binding,
    build_redis_service_account,
)
from argocd_operator.services.drift import (
    DriftReconciler,
    ManagedField,
    ReconcileAction,
    compare_fields,
)
from tests.fixtures.object_store import FakeObjectStore


class TestDriftReconcilerCreate:
    """Objects that do not exist yet are created from the desired body."""

    def test_missing_object_is_created(self, make_argocd, capabilities):
        """Test NotFound on fetch leads to a create, not an error."""
        cr = make_argocd()
        store = FakeObjectStore(KIND_SERVICE_ACCOUNT)
        desired = build_redis_service_account(cr, capabilities)

        outcome = DriftReconciler(store).reconcile(desired)

        assert outcome.action == ReconcileAction.CREATED
        assert outcome.mutated
        assert store.peek("example-argocd-redis", "argocd").metadata.labels == (
            desired.body.metadata.labels
        )

    def test_second_reconcile_is_noop(self, make_argocd, capabilities):
        """Test reconciling an unchanged object issues no further writes."""
        cr = make_argocd()
        store = FakeObjectStore(KIND_ROLE_BINDING)
        reconciler = DriftReconciler(store)
        desired = build_redis_role_binding(cr, capabilities)

        reconciler.reconcile(desired)
        outcome = reconciler.reconcile(desired)

        assert outcome.action == ReconcileAction.UNCHANGED
        assert not outcome.mutated
        assert store.writes == [("create", "example-argocd-redis")]


class TestDriftCorrection:
    """External edits to mutable managed fields are reverted."""

    @pytest.fixture
    def binding_store(self, make_argocd, capabilities):
        cr = make_argocd()
        store = FakeObjectStore(KIND_ROLE_BINDING)
        desired = build_redis_role_binding(cr, capabilities)
        DriftReconciler(store).reconcile(desired)
        return store, desired

    def test_label_drift_is_restored(self, binding_store):
        """Test a tampered managed label is reset while foreign labels survive."""
        store, desired = binding_store
        live = store.peek(desired.name, desired.namespace)
        live.metadata.labels[LABEL_COMPONENT] = "tampered"
        live.metadata.labels["team"] = "platform"

        outcome = DriftReconciler(store).reconcile(desired)

        assert outcome.action == ReconcileAction.UPDATED
        assert "metadata.labels" in outcome.changed_fields
        labels = store.peek(desired.name, desired.namespace).metadata.labels
        assert labels[LABEL_COMPONENT] == "redis"
        assert labels["team"] == "platform"

    def test_removed_label_is_restored(self, binding_store):
        """Test a label deleted by another actor is put back."""
        store, desired = binding_store
        del store.peek(desired.name, desired.namespace).metadata.labels[LABEL_MANAGED_BY]

        DriftReconciler(store).reconcile(desired)

        labels = store.peek(desired.name, desired.namespace).metadata.labels
        assert labels[LABEL_MANAGED_BY] == "argocd-operator"

    def test_subject_drift_is_restored(self, binding_store):
        """Test subjects pointed at another account are reset."""
        store, desired = binding_store
        store.peek(desired.name, desired.namespace).subjects = [
            client.RbacV1Subject(kind="ServiceAccount", name="intruder", namespace="argocd")
        ]

        outcome = DriftReconciler(store).reconcile(desired)

        assert outcome.changed_fields == ("subjects",)
        subjects = store.peek(desired.name, desired.namespace).subjects
        assert [s.name for s in subjects] == ["example-argocd-redis"]

    def test_unmanaged_fields_are_left_alone(self, binding_store):
        """Test server-populated metadata does not count as drift."""
        store, desired = binding_store
        live = store.peek(desired.name, desired.namespace)
        live.metadata.resource_version = "4242"
        live.metadata.uid = "server-assigned"

        outcome = DriftReconciler(store).reconcile(desired)

        assert outcome.action == ReconcileAction.UNCHANGED

    def test_conflict_on_write_propagates(self, binding_store):
        """Test a stale write surfaces as ConflictError for a full retry."""
        store, desired = binding_store
        store.peek(desired.name, desired.namespace).subjects = []
        store.conflict_on_write = True

        with pytest.raises(ConflictError):
            DriftReconciler(store).reconcile(desired)


class TestStructuralDrift:
    """Immutable fields are reported, never rewritten."""

    def test_role_ref_drift_raises_and_leaves_object(self, make_argocd, capabilities):
        """Test a repointed roleRef yields StructuralDriftError and no write."""
        cr = make_argocd()
        store = FakeObjectStore(KIND_ROLE_BINDING)
        desired = build_redis_role_binding(cr, capabilities)
        DriftReconciler(store).reconcile(desired)

        live = store.peek(desired.name, desired.namespace)
        live.role_ref.name = "cluster-admin-ish"
        live.metadata.labels[LABEL_COMPONENT] = "tampered"

        with pytest.raises(StructuralDriftError) as exc_info:
            DriftReconciler(store).reconcile(desired)

        error = exc_info.value
        assert error.field == "role_ref"
        assert error.kind == KIND_ROLE_BINDING
        assert error.existing["name"] == "cluster-admin-ish"
        assert error.desired["name"] == "example-argocd-redis"
        assert not error.retryable

        # Nothing was written, not even the label fix
        assert store.writes == [("create", "example-argocd-redis")]
        live = store.peek(desired.name, desired.namespace)
        assert live.role_ref.name == "cluster-admin-ish"
        assert live.metadata.labels[LABEL_COMPONENT] == "tampered"

    def test_error_message_names_remedy(self, make_argocd, capabilities):
        """Test the error tells the user to delete the object."""
        cr = make_argocd()
        store = FakeObjectStore(KIND_ROLE_BINDING)
        desired = build_redis_role_binding(cr, capabilities)
        DriftReconciler(store).reconcile(desired)
        store.peek(desired.name, desired.namespace).role_ref.name = "other"

        with pytest.raises(StructuralDriftError) as exc_info:
            DriftReconciler(store).reconcile(desired)

        assert "Delete RoleBinding argocd/example-argocd-redis" in str(exc_info.value)


class TestDelete:
    """Deleting managed objects is idempotent."""

    def test_delete_absent_object_succeeds(self):
        """Test deleting an object that does not exist reports ABSENT."""
        store = FakeObjectStore(KIND_SERVICE_ACCOUNT)

        outcome = DriftReconciler(store).delete("example-argocd-redis", "argocd")

        assert outcome.action == ReconcileAction.ABSENT
        assert not outcome.mutated

    def test_delete_twice(self, make_argocd, capabilities):
        """Test the first delete removes the object and the second is a no-op."""
        cr = make_argocd()
        store = FakeObjectStore(KIND_SERVICE_ACCOUNT)
        reconciler = DriftReconciler(store)
        reconciler.reconcile(build_redis_service_account(cr, capabilities))

        first = reconciler.delete("example-argocd-redis", "argocd")
        second = reconciler.delete("example-argocd-redis", "argocd")

        assert first.action == ReconcileAction.DELETED
        assert second.action == ReconcileAction.ABSENT
        assert store.objects == {}


class TestCompareFields:
    """Generic comparison over declared field paths."""

    def test_subset_mode_ignores_extra_keys(self):
        """Test extra entries on the observed mapping are not drift."""
        fields = (ManagedField(("metadata", "labels"), mode="subset"),)
        existing = {"metadata": {"labels": {"a": "1", "b": "2"}}}
        desired = {"metadata": {"labels": {"a": "1"}}}

        assert not compare_fields(existing, desired, fields).has_drift

    def test_subset_mode_detects_changed_value(self):
        """Test a differing desired entry is drift."""
        fields = (ManagedField(("metadata", "labels"), mode="subset"),)
        existing = {"metadata": {"labels": {"a": "2"}}}
        desired = {"metadata": {"labels": {"a": "1"}}}

        result = compare_fields(existing, desired, fields)

        assert [m.path for m in result.mismatches] == ["metadata.labels"]

    def test_unset_desired_value_is_not_managed(self):
        """Test a field the desired object leaves unset is never compared."""
        fields = (ManagedField(("spec", "tls")),)
        existing = {"spec": {"tls": {"termination": "edge"}}}
        desired = {"spec": {}}

        assert not compare_fields(existing, desired, fields).has_drift

    def test_empty_list_equals_missing(self):
        """Test an empty desired list matches a field the server omitted."""
        fields = (ManagedField(("rules",)),)

        assert not compare_fields({}, {"rules": []}, fields).has_drift

    def test_list_positions_in_path(self):
        """Test integer path segments index into lists."""
        fields = (ManagedField(("containers", 0, "image")),)
        existing = {"containers": [{"image": "a:1"}]}
        desired = {"containers": [{"image": "a:2"}]}

        result = compare_fields(existing, desired, fields)

        assert result.mismatches[0].existing == "a:1"
        assert result.mismatches[0].desired == "a:2"

    def test_structural_mismatch_flagged(self):
        """Test structural fields are reported separately."""
        fields = (ManagedField(("roleRef",), structural=True), ManagedField(("subjects",)))
        existing = {"roleRef": {"name": "x"}, "subjects": [{"name": "s"}]}
        desired = {"roleRef": {"name": "y"}, "subjects": [{"name": "s"}]}

        result = compare_fields(existing, desired, fields)

        assert [m.path for m in result.structural_mismatches] == ["roleRef"]

    def test_quantity_mode_compares_by_value(self):
        """Test server-canonicalized quantities are not drift."""
        fields = (ManagedField(("resources",), mode="quantity"),)
        existing = client.V1ResourceRequirements(
            limits={"cpu": "500m", "memory": "1Gi"}, requests={"cpu": "250m"}
        )
        desired = {
            "resources": {
                "limits": {"cpu": "0.5", "memory": "1073741824"},
                "requests": {"cpu": "0.25"},
            }
        }

        result = compare_fields({"resources": existing}, desired, fields)

        assert not result.has_drift

    def test_quantity_mode_detects_changed_amount(self):
        fields = (ManagedField(("resources",), mode="quantity"),)
        existing = {"resources": {"limits": {"cpu": "500m"}}}
        desired = {"resources": {"limits": {"cpu": "1"}}}

        assert compare_fields(existing, desired, fields).has_drift
