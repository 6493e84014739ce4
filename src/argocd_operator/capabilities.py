"""
Cluster capability detection.

The operator adapts the objects it creates to the APIs the cluster offers
(OpenShift routes and templates, the ingress API, the Prometheus operator).
Detection happens once at startup; the resulting CapabilityContext is
immutable and handed to every reconcile cycle.
"""

import logging
from dataclasses import dataclass

from kubernetes import client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from argocd_operator.constants import (
    INGRESS_API_GROUP,
    PROMETHEUS_API_GROUP,
    ROUTE_API_GROUP,
    TEMPLATE_API_GROUP,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapabilityContext:
    """Optional platform features and operator-wide switches."""

    route_api: bool = False
    ingress_api: bool = True
    template_api: bool = False
    prometheus_api: bool = False
    dex_disabled: bool = False

    @classmethod
    def from_api_groups(
        cls, groups: set[str], dex_disabled: bool = False
    ) -> "CapabilityContext":
        """Build a context from the set of API group names served by the cluster."""
        return cls(
            route_api=ROUTE_API_GROUP in groups,
            ingress_api=INGRESS_API_GROUP in groups,
            template_api=TEMPLATE_API_GROUP in groups,
            prometheus_api=PROMETHEUS_API_GROUP in groups,
            dex_disabled=dex_disabled,
        )


def inspect_cluster(
    api_client: client.ApiClient, dex_disabled: bool = False
) -> CapabilityContext:
    """
    Probe the API server for optional API groups.

    Args:
        api_client: Configured Kubernetes API client
        dex_disabled: Operator-wide switch disabling Dex

    Returns:
        Capability context describing the cluster. When discovery fails
        the context reports only the core ingress API.
    """
    try:
        group_list = client.ApisApi(api_client).get_api_versions()
    except ApiException as e:
        logger.warning(
            f"API discovery failed ({e.status} {e.reason}), assuming no optional APIs"
        )
        return CapabilityContext(dex_disabled=dex_disabled)
    except HTTPError as e:
        logger.warning(f"API server unreachable ({e}), assuming no optional APIs")
        return CapabilityContext(dex_disabled=dex_disabled)

    groups = {group.name for group in group_list.groups or []}
    capabilities = CapabilityContext.from_api_groups(groups, dex_disabled=dex_disabled)

    logger.info(
        f"Cluster capabilities: route={capabilities.route_api} "
        f"ingress={capabilities.ingress_api} template={capabilities.template_api} "
        f"prometheus={capabilities.prometheus_api} dex_disabled={dex_disabled}"
    )
    return capabilities
