"""
Redis RBAC objects: service account, role and role binding.

HA mode switches the binding to the ``-redis-ha`` role, which additionally
allows reading endpoints for sentinel discovery. Subjects and labels do
not change with HA.
"""

from kubernetes import client

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    COMPONENT_REDIS,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_SERVICE_ACCOUNT,
    RBAC_API_GROUP,
    SUFFIX_REDIS,
    SUFFIX_REDIS_HA,
)
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources.metadata import DesiredObject, object_meta, object_name


def redis_service_account_name(cr: ArgoCD) -> str:
    return object_name(cr, SUFFIX_REDIS)


def redis_role_name(cr: ArgoCD) -> str:
    """Role bound by the Redis binding; depends on HA mode."""
    suffix = SUFFIX_REDIS_HA if cr.spec.ha.enabled else SUFFIX_REDIS
    return object_name(cr, suffix)


def redis_role_rules(ha_enabled: bool, route_api: bool) -> list[client.V1PolicyRule]:
    rules = []
    if ha_enabled:
        rules.append(
            client.V1PolicyRule(api_groups=[""], resources=["endpoints"], verbs=["get"])
        )
    if route_api:
        # OpenShift requires explicit use of the restricted SCC
        rules.append(
            client.V1PolicyRule(
                api_groups=["security.openshift.io"],
                resources=["securitycontextconstraints"],
                resource_names=["restricted"],
                verbs=["use"],
            )
        )
    return rules


def build_redis_service_account(
    cr: ArgoCD, capabilities: CapabilityContext
) -> DesiredObject:
    name = redis_service_account_name(cr)
    return DesiredObject(
        kind=KIND_SERVICE_ACCOUNT,
        body=client.V1ServiceAccount(
            api_version="v1",
            kind=KIND_SERVICE_ACCOUNT,
            metadata=object_meta(cr, name, COMPONENT_REDIS),
        ),
    )


def build_redis_role(cr: ArgoCD, capabilities: CapabilityContext) -> DesiredObject:
    name = redis_role_name(cr)
    return DesiredObject(
        kind=KIND_ROLE,
        body=client.V1Role(
            api_version=f"{RBAC_API_GROUP}/v1",
            kind=KIND_ROLE,
            metadata=object_meta(cr, name, COMPONENT_REDIS),
            rules=redis_role_rules(cr.spec.ha.enabled, capabilities.route_api),
        ),
    )


def build_redis_role_binding(
    cr: ArgoCD, capabilities: CapabilityContext
) -> DesiredObject:
    """
    Role binding granting the Redis service account its role.

    The binding keeps the ``-redis`` name in both modes; only its roleRef
    target follows the HA switch.
    """
    name = object_name(cr, SUFFIX_REDIS)
    return DesiredObject(
        kind=KIND_ROLE_BINDING,
        body=client.V1RoleBinding(
            api_version=f"{RBAC_API_GROUP}/v1",
            kind=KIND_ROLE_BINDING,
            metadata=object_meta(cr, name, COMPONENT_REDIS),
            role_ref=client.V1RoleRef(
                api_group=RBAC_API_GROUP,
                kind=KIND_ROLE,
                name=redis_role_name(cr),
            ),
            subjects=[
                client.RbacV1Subject(
                    kind=KIND_SERVICE_ACCOUNT,
                    name=redis_service_account_name(cr),
                    namespace=cr.namespace,
                )
            ],
        ),
    )
