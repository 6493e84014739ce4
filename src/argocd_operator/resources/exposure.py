"""
Server exposure: Ingress and OpenShift Route for the Argo CD API server.
"""

from typing import Any

from kubernetes import client

from argocd_operator.capabilities import CapabilityContext
from argocd_operator.constants import (
    COMPONENT_SERVER,
    KIND_INGRESS,
    KIND_ROUTE,
    ROUTE_API_GROUP,
    SERVER_HTTP_PORT,
    SERVER_HTTPS_PORT,
)
from argocd_operator.models.argocd import ArgoCD
from argocd_operator.resources.metadata import (
    DesiredObject,
    custom_object_meta,
    object_meta,
    object_name,
)


def server_service_name(cr: ArgoCD) -> str:
    return object_name(cr, COMPONENT_SERVER)


def server_hostname(cr: ArgoCD) -> str:
    """Configured host, or ``<instance>`` as a cluster-local default."""
    return cr.spec.server.host or cr.name


def build_server_ingress(cr: ArgoCD, capabilities: CapabilityContext) -> DesiredObject:
    """
    Ingress routing the server host to the server service.

    TLS entries from the resource spec are passed through; annotations are
    merged with the ownership annotations.
    """
    ingress_spec = cr.spec.server.ingress
    name = object_name(cr, COMPONENT_SERVER)
    host = server_hostname(cr)
    port = SERVER_HTTP_PORT if cr.spec.server.insecure else SERVER_HTTPS_PORT

    tls = None
    if ingress_spec.tls:
        tls = [
            client.V1IngressTLS(
                hosts=entry.get("hosts") or [host],
                secret_name=entry.get("secretName"),
            )
            for entry in ingress_spec.tls
        ]

    return DesiredObject(
        kind=KIND_INGRESS,
        body=client.V1Ingress(
            api_version="networking.k8s.io/v1",
            kind=KIND_INGRESS,
            metadata=object_meta(
                cr, name, COMPONENT_SERVER, annotations=ingress_spec.annotations
            ),
            spec=client.V1IngressSpec(
                ingress_class_name=ingress_spec.ingress_class_name,
                rules=[
                    client.V1IngressRule(
                        host=host,
                        http=client.V1HTTPIngressRuleValue(
                            paths=[
                                client.V1HTTPIngressPath(
                                    path=ingress_spec.path,
                                    path_type="ImplementationSpecific",
                                    backend=client.V1IngressBackend(
                                        service=client.V1IngressServiceBackend(
                                            name=server_service_name(cr),
                                            port=client.V1ServiceBackendPort(
                                                number=port
                                            ),
                                        )
                                    ),
                                )
                            ]
                        ),
                    )
                ],
                tls=tls,
            ),
        ),
    )


def build_server_route(cr: ArgoCD, capabilities: CapabilityContext) -> DesiredObject:
    route_spec = cr.spec.server.route
    name = object_name(cr, COMPONENT_SERVER)

    tls: dict[str, Any] = route_spec.tls or {
        "termination": "edge" if cr.spec.server.insecure else "passthrough",
        "insecureEdgeTerminationPolicy": "Redirect",
    }
    spec: dict[str, Any] = {
        "to": {"kind": "Service", "name": server_service_name(cr), "weight": 100},
        "port": {"targetPort": "http" if cr.spec.server.insecure else "https"},
        "tls": tls,
        "wildcardPolicy": "None",
    }
    if cr.spec.server.host:
        spec["host"] = cr.spec.server.host

    return DesiredObject(
        kind=KIND_ROUTE,
        body={
            "apiVersion": f"{ROUTE_API_GROUP}/v1",
            "kind": KIND_ROUTE,
            "metadata": custom_object_meta(
                cr, name, COMPONENT_SERVER, annotations=route_spec.annotations
            ),
            "spec": spec,
        },
    )
