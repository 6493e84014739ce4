"""
Kubernetes utilities for the Argo CD operator.

This module provides the client bootstrap and the object stores the drift
reconciler talks to. A store wraps one resource kind and translates
ApiException into the operator error taxonomy, so callers only ever see
NotFoundError, ConflictError, TransientPlatformError or KubernetesAPIError.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any

from kubernetes import client, config
from kubernetes.client.rest import ApiException

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    APPS_OPENSHIFT_API_GROUP,
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
    KIND_INGRESS,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_ROUTE,
    KIND_SERVICE_ACCOUNT,
    ROUTE_API_GROUP,
)
from argocd_operator.errors import (
    ConflictError,
    KubernetesAPIError,
    NotFoundError,
    OperatorError,
    TransientPlatformError,
)

logger = logging.getLogger(__name__)

# Status codes whose meaning does not change on retry
STATUS_REASONS = {401: "Unauthorized", 403: "Forbidden", 422: "Invalid"}


def get_kubernetes_client() -> client.ApiClient:
    """
    Get configured Kubernetes API client.

    Tries in-cluster configuration first and falls back to the local
    kubeconfig for development.

    Returns:
        Configured Kubernetes API client
    """
    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        try:
            config.load_kube_config()
            logger.debug("Loaded kubeconfig from local environment")
        except config.ConfigException as e:
            logger.error(f"Failed to load Kubernetes configuration: {e}")
            raise

    return client.ApiClient()


def translate_api_exception(
    error: ApiException, kind: str, name: str, namespace: str | None
) -> OperatorError:
    """
    Map an ApiException to the operator error taxonomy.

    Args:
        error: Exception raised by the kubernetes client
        kind: Kind of the object the call targeted
        name: Name of the object
        namespace: Namespace of the object

    Returns:
        The matching OperatorError (not raised)
    """
    status = error.status or 0
    if status == 404:
        return NotFoundError(kind, name, namespace)
    if status == 409:
        return ConflictError(kind, name, namespace)

    location = f"{namespace}/{name}" if namespace else name
    message = f"{kind} {location}: {error.reason}"
    if status == 429 or status >= 500:
        return TransientPlatformError(message, status=status, cause=error)
    return KubernetesAPIError(
        message,
        reason=STATUS_REASONS.get(status, error.reason),
        status=status,
        cause=error,
    )


def object_metadata(obj: Any, key: str) -> Any:
    """Read a metadata field from a client model or a raw mapping."""
    if isinstance(obj, Mapping):
        return obj.get("metadata", {}).get(key)
    return getattr(obj.metadata, key)


class ObjectStore(ABC):
    """Read/write access to one kind of namespaced object."""

    def __init__(self, kind: str):
        self.kind = kind

    @abstractmethod
    def get(self, name: str, namespace: str) -> Any:
        """Fetch an object. Raises NotFoundError when absent."""

    @abstractmethod
    def create(self, body: Any) -> Any:
        """Create an object from a full body."""

    @abstractmethod
    def replace(self, body: Any) -> Any:
        """Replace an object; the body carries resourceVersion for concurrency."""

    @abstractmethod
    def delete(self, name: str, namespace: str) -> None:
        """Delete an object. Raises NotFoundError when absent."""


class TypedObjectStore(ObjectStore):
    """
    Store backed by a typed kubernetes API class.

    The API methods are looked up by suffix, e.g. suffix ``role_binding``
    uses ``read_namespaced_role_binding`` and friends.
    """

    def __init__(self, kind: str, api: Any, suffix: str):
        super().__init__(kind)
        self.api = api
        self.suffix = suffix

    def _call(self, verb: str, obj_name: str, namespace: str, **kwargs) -> Any:
        method = getattr(self.api, f"{verb}_namespaced_{self.suffix}")
        try:
            return method(namespace=namespace, **kwargs)
        except ApiException as e:
            raise translate_api_exception(e, self.kind, obj_name, namespace) from e

    def get(self, name: str, namespace: str) -> Any:
        return self._call("read", name, namespace, name=name)

    def create(self, body: Any) -> Any:
        name = object_metadata(body, "name")
        return self._call("create", name, object_metadata(body, "namespace"), body=body)

    def replace(self, body: Any) -> Any:
        name = object_metadata(body, "name")
        return self._call(
            "replace", name, object_metadata(body, "namespace"), name=name, body=body
        )

    def delete(self, name: str, namespace: str) -> None:
        self._call(
            "delete",
            name,
            namespace,
            name=name,
            body=client.V1DeleteOptions(propagation_policy="Background"),
        )


class CustomObjectStore(ObjectStore):
    """Store for custom resources addressed by group, version and plural."""

    def __init__(
        self,
        kind: str,
        api: client.CustomObjectsApi,
        group: str,
        version: str,
        plural: str,
    ):
        super().__init__(kind)
        self.api = api
        self.group = group
        self.version = version
        self.plural = plural

    def _call(self, verb: str, obj_name: str, namespace: str, **kwargs) -> Any:
        method = getattr(self.api, f"{verb}_namespaced_custom_object")
        try:
            return method(
                group=self.group,
                version=self.version,
                namespace=namespace,
                plural=self.plural,
                **kwargs,
            )
        except ApiException as e:
            raise translate_api_exception(e, self.kind, obj_name, namespace) from e

    def get(self, name: str, namespace: str) -> Any:
        return self._call("get", name, namespace, name=name)

    def create(self, body: Any) -> Any:
        name = object_metadata(body, "name")
        return self._call("create", name, object_metadata(body, "namespace"), body=body)

    def replace(self, body: Any) -> Any:
        name = object_metadata(body, "name")
        return self._call(
            "replace", name, object_metadata(body, "namespace"), name=name, body=body
        )

    def delete(self, name: str, namespace: str) -> None:
        self._call("delete", name, namespace, name=name)


def build_object_stores(
    api_client: client.ApiClient, capabilities: CapabilityContext
) -> dict[str, ObjectStore]:
    """
    Create one store per managed kind.

    Route and DeploymentConfig stores exist only when the cluster serves
    the corresponding OpenShift API.
    """
    core = client.CoreV1Api(api_client)
    rbac = client.RbacAuthorizationV1Api(api_client)
    apps = client.AppsV1Api(api_client)
    networking = client.NetworkingV1Api(api_client)
    custom = client.CustomObjectsApi(api_client)

    stores: dict[str, ObjectStore] = {
        KIND_SERVICE_ACCOUNT: TypedObjectStore(
            KIND_SERVICE_ACCOUNT, core, "service_account"
        ),
        KIND_ROLE: TypedObjectStore(KIND_ROLE, rbac, "role"),
        KIND_ROLE_BINDING: TypedObjectStore(KIND_ROLE_BINDING, rbac, "role_binding"),
        KIND_DEPLOYMENT: TypedObjectStore(KIND_DEPLOYMENT, apps, "deployment"),
        KIND_INGRESS: TypedObjectStore(KIND_INGRESS, networking, "ingress"),
    }
    if capabilities.route_api:
        stores[KIND_ROUTE] = CustomObjectStore(
            KIND_ROUTE, custom, ROUTE_API_GROUP, "v1", "routes"
        )
    if capabilities.template_api:
        stores[KIND_DEPLOYMENT_CONFIG] = CustomObjectStore(
            KIND_DEPLOYMENT_CONFIG,
            custom,
            APPS_OPENSHIFT_API_GROUP,
            "v1",
            "deploymentconfigs",
        )
    return stores
