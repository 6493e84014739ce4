"""Shared fixtures for unit tests."""

from typing import Any

import pytest

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.services.context import ReconcileContext
from tests.fixtures.argocd_resources import MINIMAL_ARGOCD, argocd_body
from tests.fixtures.object_store import build_stores


@pytest.fixture
def capabilities():
    """Plain Kubernetes cluster: ingress API only."""
    return CapabilityContext()


@pytest.fixture
def openshift_capabilities():
    """OpenShift cluster with routes and templates."""
    return CapabilityContext(route_api=True, ingress_api=True, template_api=True)


@pytest.fixture
def make_context():
    """Factory for a ReconcileContext backed by fake stores."""

    def _make(capabilities: CapabilityContext | None = None) -> ReconcileContext:
        capabilities = capabilities or CapabilityContext()
        return ReconcileContext(
            capabilities=capabilities, stores=build_stores(capabilities)
        )

    return _make


@pytest.fixture
def ctx(make_context, capabilities):
    return make_context(capabilities)


@pytest.fixture
def count_writes():
    """Total writes issued against every store of a context."""

    def _count(ctx: ReconcileContext) -> int:
        return sum(len(store.writes) for store in ctx.stores.values())

    return _count


@pytest.fixture
def make_argocd():
    """Factory for ArgoCD models built from the sample resources."""

    def _make(
        spec: dict[str, Any] | None = None,
        status: dict[str, Any] | None = None,
        base: dict[str, Any] = MINIMAL_ARGOCD,
        **metadata: Any,
    ) -> ArgoCD:
        return ArgoCD.from_body(argocd_body(base, spec=spec, status=status, **metadata))

    return _make
