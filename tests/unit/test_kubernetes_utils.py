"""Unit tests for Kubernetes object stores and API error translation."""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client.rest import ApiException

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
    KIND_INGRESS,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_ROUTE,
    KIND_SERVICE_ACCOUNT,
)
from argocd_operator.errors import (
    ConflictError,
    KubernetesAPIError,
    NotFoundError,
    TransientPlatformError,
)
from argocd_operator.services.argocd_reconciler import ArgoCDReconciler
from argocd_operator.services.context import ReconcileContext
from argocd_operator.services.status import CompositeStatus
from argocd_operator.utils.kubernetes import (
    CustomObjectStore,
    TypedObjectStore,
    build_object_stores,
    translate_api_exception,
)


class TestTranslateApiException:
    """ApiException status codes map onto the operator error taxonomy."""

    def test_not_found(self):
        error = translate_api_exception(
            ApiException(status=404, reason="Not Found"), "Role", "r", "ns"
        )

        assert isinstance(error, NotFoundError)
        assert error.status == 404

    def test_conflict(self):
        error = translate_api_exception(
            ApiException(status=409, reason="Conflict"), "Role", "r", "ns"
        )

        assert isinstance(error, ConflictError)
        assert error.retryable

    @pytest.mark.parametrize("status", [429, 500, 503])
    def test_transient(self, status):
        """Throttling and server errors are retryable platform errors."""
        error = translate_api_exception(
            ApiException(status=status, reason="Unavailable"), "Role", "r", "ns"
        )

        assert isinstance(error, TransientPlatformError)
        assert error.retryable

    @pytest.mark.parametrize("status", [401, 403, 422])
    def test_permanent(self, status):
        """Auth and validation failures are not retried."""
        error = translate_api_exception(
            ApiException(status=status, reason="Denied"), "Role", "r", "ns"
        )

        assert type(error) is KubernetesAPIError
        assert not error.retryable
        assert "Role ns/r" in str(error)


class TestTypedObjectStore:
    """Typed stores dispatch to the matching kubernetes client methods."""

    def test_get_uses_read_method(self):
        """Test get calls read_namespaced_<suffix>."""
        api = MagicMock()
        store = TypedObjectStore(KIND_SERVICE_ACCOUNT, api, "service_account")

        store.get("example-argocd-redis", "argocd")

        api.read_namespaced_service_account.assert_called_once_with(
            namespace="argocd", name="example-argocd-redis"
        )

    def test_replace_passes_name_and_body(self):
        """Test replace sends the full body under its own name."""
        api = MagicMock()
        store = TypedObjectStore(KIND_ROLE_BINDING, api, "role_binding")
        body = {"metadata": {"name": "example-argocd-redis", "namespace": "argocd"}}

        store.replace(body)

        api.replace_namespaced_role_binding.assert_called_once_with(
            namespace="argocd", name="example-argocd-redis", body=body
        )

    def test_delete_uses_background_propagation(self):
        """Test delete requests background garbage collection."""
        api = MagicMock()
        store = TypedObjectStore(KIND_SERVICE_ACCOUNT, api, "service_account")

        store.delete("example-argocd-redis", "argocd")

        options = api.delete_namespaced_service_account.call_args.kwargs["body"]
        assert options.propagation_policy == "Background"

    def test_create_sends_body_only(self):
        """Test create addresses the namespace and carries the name in the body."""
        api = MagicMock()
        store = TypedObjectStore(KIND_ROLE_BINDING, api, "role_binding")
        body = {"metadata": {"name": "example-argocd-redis", "namespace": "argocd"}}

        store.create(body)

        api.create_namespaced_role_binding.assert_called_once_with(
            namespace="argocd", body=body
        )

    def test_not_found_is_translated(self):
        """Test a 404 from the client surfaces as NotFoundError."""
        api = MagicMock()
        api.read_namespaced_service_account.side_effect = ApiException(status=404)
        store = TypedObjectStore(KIND_SERVICE_ACCOUNT, api, "service_account")

        with pytest.raises(NotFoundError) as exc_info:
            store.get("missing", "argocd")

        assert exc_info.value.name == "missing"
        assert isinstance(exc_info.value.__cause__, ApiException)


class TestCustomObjectStore:
    """Custom object stores address resources by group, version and plural."""

    def test_get_route(self):
        api = MagicMock()
        store = CustomObjectStore(KIND_ROUTE, api, "route.openshift.io", "v1", "routes")

        store.get("example-argocd-server", "argocd")

        api.get_namespaced_custom_object.assert_called_once_with(
            group="route.openshift.io",
            version="v1",
            namespace="argocd",
            plural="routes",
            name="example-argocd-server",
        )

    def test_conflict_is_translated(self):
        api = MagicMock()
        api.replace_namespaced_custom_object.side_effect = ApiException(status=409)
        store = CustomObjectStore(KIND_ROUTE, api, "route.openshift.io", "v1", "routes")

        with pytest.raises(ConflictError):
            store.replace({"metadata": {"name": "r", "namespace": "argocd"}})

    def test_delete_route(self):
        api = MagicMock()
        store = CustomObjectStore(KIND_ROUTE, api, "route.openshift.io", "v1", "routes")

        store.delete("example-argocd-server", "argocd")

        api.delete_namespaced_custom_object.assert_called_once_with(
            group="route.openshift.io",
            version="v1",
            namespace="argocd",
            plural="routes",
            name="example-argocd-server",
        )

    def test_not_found_names_the_object(self):
        api = MagicMock()
        api.get_namespaced_custom_object.side_effect = ApiException(status=404)
        store = CustomObjectStore(KIND_ROUTE, api, "route.openshift.io", "v1", "routes")

        with pytest.raises(NotFoundError) as exc_info:
            store.get("example-argocd-server", "argocd")

        assert exc_info.value.name == "example-argocd-server"


class TestBuildObjectStores:
    """Stores for OpenShift kinds depend on capabilities."""

    @patch("argocd_operator.utils.kubernetes.client")
    def test_plain_kubernetes(self, mock_client):
        """Test no Route or DeploymentConfig store without their APIs."""
        stores = build_object_stores(MagicMock(), CapabilityContext())

        assert KIND_ROUTE not in stores
        assert KIND_DEPLOYMENT_CONFIG not in stores
        assert KIND_SERVICE_ACCOUNT in stores

    @patch("argocd_operator.utils.kubernetes.client")
    def test_openshift(self, mock_client):
        """Test Route and DeploymentConfig stores exist on OpenShift."""
        stores = build_object_stores(
            MagicMock(), CapabilityContext(route_api=True, template_api=True)
        )

        assert isinstance(stores[KIND_ROUTE], CustomObjectStore)
        assert stores[KIND_DEPLOYMENT_CONFIG].plural == "deploymentconfigs"


class TestCycleAgainstClientStores:
    """A full cycle runs on stores backed by kubernetes client APIs."""

    def test_first_cycle_creates_through_client(self, make_argocd):
        """Test every read 404s and the cycle creates the objects."""
        api = MagicMock()
        for method in (
            "read_namespaced_service_account",
            "read_namespaced_role",
            "read_namespaced_role_binding",
            "read_namespaced_deployment",
            "read_namespaced_ingress",
        ):
            getattr(api, method).side_effect = ApiException(status=404)
        stores = {
            KIND_SERVICE_ACCOUNT: TypedObjectStore(
                KIND_SERVICE_ACCOUNT, api, "service_account"
            ),
            KIND_ROLE: TypedObjectStore(KIND_ROLE, api, "role"),
            KIND_ROLE_BINDING: TypedObjectStore(KIND_ROLE_BINDING, api, "role_binding"),
            KIND_DEPLOYMENT: TypedObjectStore(KIND_DEPLOYMENT, api, "deployment"),
            KIND_INGRESS: TypedObjectStore(KIND_INGRESS, api, "ingress"),
        }
        ctx = ReconcileContext(capabilities=CapabilityContext(), stores=stores)
        cr = make_argocd()

        report = ArgoCDReconciler().reconcile(cr, CompositeStatus(cr.status), ctx)

        assert report.healthy
        api.create_namespaced_service_account.assert_called_once()
        api.create_namespaced_role_binding.assert_called_once()
