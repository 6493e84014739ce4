"""
Workload synthesizers for the optional Argo CD components.

Each builder returns a single DesiredObject. Keycloak is rendered as an
OpenShift DeploymentConfig when the template API is available, otherwise
every component is a plain apps/v1 Deployment.
"""

from typing import Any

from kubernetes import client

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    APPS_OPENSHIFT_API_GROUP,
    COMPONENT_APPLICATIONSET,
    COMPONENT_DEX,
    COMPONENT_KEYCLOAK,
    COMPONENT_NOTIFICATIONS,
    DEFAULT_ARGOCD_IMAGE,
    DEFAULT_ARGOCD_VERSION,
    DEFAULT_DEX_IMAGE,
    DEFAULT_DEX_VERSION,
    DEFAULT_KEYCLOAK_IMAGE,
    DEFAULT_KEYCLOAK_VERSION,
    DEX_HTTP_PORT,
    KEYCLOAK_HTTP_PORT,
    KIND_DEPLOYMENT,
    KIND_DEPLOYMENT_CONFIG,
)
from argocd_operator.models.argocd import (
    ApplicationSetSpec,
    ArgoCD,
    ResourceRequirements,
)
from argocd_operator.resources.metadata import (
    DesiredObject,
    common_labels,
    custom_object_meta,
    image_reference,
    object_meta,
    object_name,
    selector_labels,
)


def argocd_image(cr: ArgoCD, image: str | None, version: str | None) -> str:
    """Argo CD image with component override, then instance override, then default."""
    return image_reference(
        image or cr.spec.image or DEFAULT_ARGOCD_IMAGE,
        version or cr.spec.version or DEFAULT_ARGOCD_VERSION,
    )


def _resources(
    requirements: ResourceRequirements | None,
) -> client.V1ResourceRequirements | None:
    if requirements is None:
        return None
    return client.V1ResourceRequirements(
        requests=requirements.requests or None,
        limits=requirements.limits or None,
    )


def build_deployment(
    cr: ArgoCD,
    component: str,
    image: str,
    command: list[str],
    replicas: int = 1,
    ports: list[int] | None = None,
    resources: ResourceRequirements | None = None,
    env: dict[str, str] | None = None,
) -> DesiredObject:
    """
    Build a single-container Deployment for a component.

    Args:
        cr: Owning ArgoCD resource
        component: Component name; the Deployment is named ``<instance>-<component>``
        image: Fully qualified container image
        command: Container command
        replicas: Desired replica count
        ports: Container ports to expose
        resources: Optional resource requirements
        env: Extra environment variables

    Returns:
        The desired Deployment
    """
    name = object_name(cr, component)
    container = client.V1Container(
        name=component,
        image=image,
        image_pull_policy="Always",
        command=command,
        ports=[client.V1ContainerPort(container_port=port) for port in ports or []]
        or None,
        env=[client.V1EnvVar(name=key, value=value) for key, value in (env or {}).items()]
        or None,
        resources=_resources(resources),
    )

    return DesiredObject(
        kind=KIND_DEPLOYMENT,
        body=client.V1Deployment(
            api_version="apps/v1",
            kind=KIND_DEPLOYMENT,
            metadata=object_meta(cr, name, component),
            spec=client.V1DeploymentSpec(
                replicas=replicas,
                selector=client.V1LabelSelector(match_labels=selector_labels(name)),
                template=client.V1PodTemplateSpec(
                    metadata=client.V1ObjectMeta(
                        labels=common_labels(cr, name, component)
                    ),
                    spec=client.V1PodSpec(containers=[container]),
                ),
            ),
        ),
    )


def build_notifications_deployment(
    cr: ArgoCD, capabilities: CapabilityContext
) -> DesiredObject:
    spec = cr.spec.notifications
    return build_deployment(
        cr,
        COMPONENT_NOTIFICATIONS,
        image=argocd_image(cr, spec.image, spec.version),
        command=[
            "argocd-notifications",
            "--loglevel",
            "info",
            "--argocd-repo-server",
            f"{object_name(cr, 'repo-server')}.{cr.namespace}.svc.cluster.local:8081",
        ],
        replicas=spec.replicas if spec.replicas is not None else 1,
        resources=spec.resources,
    )


def build_applicationset_deployment(
    cr: ArgoCD, capabilities: CapabilityContext
) -> DesiredObject:
    spec = cr.spec.application_set or ApplicationSetSpec()
    return build_deployment(
        cr,
        COMPONENT_APPLICATIONSET,
        image=argocd_image(cr, spec.image, spec.version),
        command=[
            "entrypoint.sh",
            "argocd-applicationset-controller",
            "--argocd-repo-server",
            f"{object_name(cr, 'repo-server')}.{cr.namespace}.svc.cluster.local:8081",
        ],
        replicas=spec.replicas if spec.replicas is not None else 1,
        ports=[7000, 8080],
        resources=spec.resources,
        env={"NAMESPACE": cr.namespace},
    )


def build_dex_deployment(cr: ArgoCD, capabilities: CapabilityContext) -> DesiredObject:
    dex = cr.spec.dex_spec
    return build_deployment(
        cr,
        COMPONENT_DEX,
        image=image_reference(
            (dex.image if dex else None) or DEFAULT_DEX_IMAGE,
            (dex.version if dex else None) or DEFAULT_DEX_VERSION,
        ),
        command=["/shared/argocd-dex", "rundex"],
        ports=[DEX_HTTP_PORT, DEX_HTTP_PORT + 1],
        resources=dex.resources if dex else None,
    )


def _keycloak_settings(cr: ArgoCD) -> tuple[str, ResourceRequirements | None]:
    keycloak = cr.spec.sso.keycloak if cr.spec.sso else None
    image = image_reference(
        (keycloak.image if keycloak else None) or DEFAULT_KEYCLOAK_IMAGE,
        (keycloak.version if keycloak else None) or DEFAULT_KEYCLOAK_VERSION,
    )
    return image, keycloak.resources if keycloak else None


def build_keycloak_workload(
    cr: ArgoCD, capabilities: CapabilityContext
) -> DesiredObject:
    """Keycloak as a DeploymentConfig on clusters with the template API."""
    image, resources = _keycloak_settings(cr)
    if not capabilities.template_api:
        return build_deployment(
            cr,
            COMPONENT_KEYCLOAK,
            image=image,
            command=["/opt/keycloak/bin/kc.sh", "start-dev"],
            ports=[KEYCLOAK_HTTP_PORT],
            resources=resources,
        )

    name = object_name(cr, COMPONENT_KEYCLOAK)
    container: dict[str, Any] = {
        "name": COMPONENT_KEYCLOAK,
        "image": image,
        "ports": [{"containerPort": KEYCLOAK_HTTP_PORT}],
    }
    if resources is not None:
        container["resources"] = resources.model_dump(exclude_defaults=True)

    return DesiredObject(
        kind=KIND_DEPLOYMENT_CONFIG,
        body={
            "apiVersion": f"{APPS_OPENSHIFT_API_GROUP}/v1",
            "kind": KIND_DEPLOYMENT_CONFIG,
            "metadata": custom_object_meta(cr, name, COMPONENT_KEYCLOAK),
            "spec": {
                "replicas": 1,
                "selector": selector_labels(name),
                "strategy": {"type": "Recreate"},
                "template": {
                    "metadata": {"labels": common_labels(cr, name, COMPONENT_KEYCLOAK)},
                    "spec": {"containers": [container]},
                },
                "triggers": [{"type": "ConfigChange"}],
            },
        },
    )
