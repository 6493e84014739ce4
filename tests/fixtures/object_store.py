"""
In-memory object store for unit tests.

FakeObjectStore keeps objects per (namespace, name) and records every
write, so tests can assert on idempotence without a cluster.
"""

import copy
from typing import Any

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
from argocd_operator.errors import ConflictError, NotFoundError
from argocd_operator.utils.kubernetes import ObjectStore, object_metadata

BUILTIN_KINDS = (
    KIND_SERVICE_ACCOUNT,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_DEPLOYMENT,
    KIND_INGRESS,
)


class FakeObjectStore(ObjectStore):
    """In-memory object store for one kind."""

    def __init__(self, kind: str):
        super().__init__(kind)
        self.objects: dict[tuple[str, str], Any] = {}
        self.writes: list[tuple[str, str]] = []
        self.conflict_on_write = False

    def peek(self, name: str, namespace: str) -> Any:
        """Return the stored object itself, for simulating external edits."""
        return self.objects[(namespace, name)]

    def get(self, name: str, namespace: str) -> Any:
        try:
            return copy.deepcopy(self.objects[(namespace, name)])
        except KeyError:
            raise NotFoundError(self.kind, name, namespace) from None

    def create(self, body: Any) -> Any:
        key = self._key(body)
        if self.conflict_on_write or key in self.objects:
            raise ConflictError(self.kind, key[1], key[0])
        self.objects[key] = copy.deepcopy(body)
        self.writes.append(("create", key[1]))
        return body

    def replace(self, body: Any) -> Any:
        key = self._key(body)
        if self.conflict_on_write:
            raise ConflictError(self.kind, key[1], key[0])
        if key not in self.objects:
            raise NotFoundError(self.kind, key[1], key[0])
        self.objects[key] = copy.deepcopy(body)
        self.writes.append(("replace", key[1]))
        return body

    def delete(self, name: str, namespace: str) -> None:
        if (namespace, name) not in self.objects:
            raise NotFoundError(self.kind, name, namespace)
        del self.objects[(namespace, name)]
        self.writes.append(("delete", name))

    @staticmethod
    def _key(body: Any) -> tuple[str, str]:
        return object_metadata(body, "namespace"), object_metadata(body, "name")


def build_stores(capabilities: CapabilityContext) -> dict[str, FakeObjectStore]:
    kinds = list(BUILTIN_KINDS)
    if capabilities.route_api:
        kinds.append(KIND_ROUTE)
    if capabilities.template_api:
        kinds.append(KIND_DEPLOYMENT_CONFIG)
    return {kind: FakeObjectStore(kind) for kind in kinds}
