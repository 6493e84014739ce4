"""
Naming, labelling and ownership helpers shared by all synthesizers.
"""

from dataclasses import dataclass
from typing import Any

from kubernetes import client

from argocd_operator.constants import (
    ANNOTATION_OWNER_NAME,
    ANNOTATION_OWNER_NAMESPACE,
    LABEL_COMPONENT,
    LABEL_INSTANCE,
    LABEL_MANAGED_BY,
    LABEL_NAME,
    LABEL_PART_OF,
    MANAGED_BY_VALUE,
    PART_OF_VALUE,
)
from argocd_operator.models.argocd import ArgoCD


@dataclass(frozen=True)
class DesiredObject:
    """A fully specified object the operator wants to exist.

    ``body`` is a kubernetes client model for built-in kinds or a plain
    mapping for custom objects such as routes.
    """

    kind: str
    body: Any

    @property
    def name(self) -> str:
        return _metadata_value(self.body, "name")

    @property
    def namespace(self) -> str | None:
        return _metadata_value(self.body, "namespace")


def _metadata_value(body: Any, key: str) -> Any:
    if isinstance(body, dict):
        return body.get("metadata", {}).get(key)
    return getattr(body.metadata, key)


def object_name(cr: ArgoCD, suffix: str) -> str:
    """Name of a child object: ``<instance>-<suffix>``."""
    return f"{cr.name}-{suffix}"


def common_labels(cr: ArgoCD, name: str, component: str) -> dict[str, str]:
    """Label set carried by every managed object."""
    return {
        LABEL_NAME: name,
        LABEL_PART_OF: PART_OF_VALUE,
        LABEL_INSTANCE: cr.name,
        LABEL_MANAGED_BY: MANAGED_BY_VALUE,
        LABEL_COMPONENT: component,
    }


def selector_labels(name: str) -> dict[str, str]:
    """Pod selector for workloads. Kept minimal since selectors are immutable."""
    return {LABEL_NAME: name}


def owner_annotations(cr: ArgoCD) -> dict[str, str]:
    return {
        ANNOTATION_OWNER_NAME: cr.name,
        ANNOTATION_OWNER_NAMESPACE: cr.namespace,
    }


def owner_references(cr: ArgoCD) -> list[client.V1OwnerReference] | None:
    """Controller owner reference so garbage collection removes children."""
    if not cr.uid:
        return None
    return [
        client.V1OwnerReference(
            api_version=cr.api_version,
            kind=cr.kind,
            name=cr.name,
            uid=cr.uid,
            controller=True,
            block_owner_deletion=True,
        )
    ]


def object_meta(
    cr: ArgoCD,
    name: str,
    component: str,
    annotations: dict[str, str] | None = None,
) -> client.V1ObjectMeta:
    """Metadata for a built-in kind."""
    merged = dict(annotations or {})
    merged.update(owner_annotations(cr))
    return client.V1ObjectMeta(
        name=name,
        namespace=cr.namespace,
        labels=common_labels(cr, name, component),
        annotations=merged,
        owner_references=owner_references(cr),
    )


def custom_object_meta(
    cr: ArgoCD,
    name: str,
    component: str,
    annotations: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Metadata mapping for a custom object."""
    merged = dict(annotations or {})
    merged.update(owner_annotations(cr))
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": cr.namespace,
        "labels": common_labels(cr, name, component),
        "annotations": merged,
    }
    if cr.uid:
        metadata["ownerReferences"] = [
            {
                "apiVersion": cr.api_version,
                "kind": cr.kind,
                "name": cr.name,
                "uid": cr.uid,
                "controller": True,
                "blockOwnerDeletion": True,
            }
        ]
    return metadata


def image_reference(image: str, version: str) -> str:
    """Join image and tag, accepting digests as the version."""
    if version.startswith("sha256:"):
        return f"{image}@{version}"
    return f"{image}:{version}"
