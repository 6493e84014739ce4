"""
Pydantic models for ArgoCD custom resources.

Only the fields the operator acts on are modelled. Everything else in the
resource is ignored so that newer CRD versions keep parsing.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from argocd_operator.constants import (
    ARGOCD_GROUP,
    ARGOCD_KIND,
    ARGOCD_VERSION,
)
from argocd_operator.errors import ValidationError

LENIENT = {"populate_by_name": True, "extra": "ignore"}


class ResourceRequirements(BaseModel):
    """Resource requirements for a component's pods."""

    model_config = LENIENT

    requests: dict[str, str] = Field(default_factory=dict)
    limits: dict[str, str] = Field(default_factory=dict)


class HASpec(BaseModel):
    """High availability settings."""

    model_config = LENIENT

    enabled: bool = Field(False, description="Run Redis in HA mode")


class KeycloakSpec(BaseModel):
    model_config = LENIENT

    image: str | None = None
    version: str | None = None
    resources: ResourceRequirements | None = None


class DexSpec(BaseModel):
    """Dex configuration (legacy top-level location or under spec.sso)."""

    model_config = LENIENT

    open_shift_oauth: bool = Field(
        False, alias="openShiftOAuth", description="Use OpenShift as the Dex connector"
    )
    config: str | None = Field(None, description="Raw Dex configuration")
    image: str | None = None
    version: str | None = None
    resources: ResourceRequirements | None = None


class SSOSpec(BaseModel):
    """Single sign-on provider selection."""

    model_config = LENIENT

    provider: Literal["keycloak", "dex"] | None = Field(
        None, description="SSO provider to install"
    )
    keycloak: KeycloakSpec | None = None
    dex: DexSpec | None = None


class NotificationsSpec(BaseModel):
    model_config = LENIENT

    enabled: bool = False
    replicas: int | None = Field(None, ge=0)
    image: str | None = None
    version: str | None = None
    resources: ResourceRequirements | None = None


class ApplicationSetSpec(BaseModel):
    model_config = LENIENT

    replicas: int | None = Field(None, ge=0)
    image: str | None = None
    version: str | None = None
    resources: ResourceRequirements | None = None


class RouteSpec(BaseModel):
    model_config = LENIENT

    enabled: bool = False
    annotations: dict[str, str] = Field(default_factory=dict)
    tls: dict[str, Any] | None = None


class IngressSpec(BaseModel):
    model_config = LENIENT

    enabled: bool = False
    ingress_class_name: str | None = Field(None, alias="ingressClassName")
    path: str = "/"
    annotations: dict[str, str] = Field(default_factory=dict)
    tls: list[dict[str, Any]] | None = None


class ServerSpec(BaseModel):
    """Argo CD API server exposure."""

    model_config = LENIENT

    host: str | None = Field(None, description="Hostname for route and ingress")
    route: RouteSpec = Field(default_factory=RouteSpec)
    ingress: IngressSpec = Field(default_factory=IngressSpec)
    insecure: bool = False


class ArgoCDSpec(BaseModel):
    """Desired configuration of an Argo CD instance."""

    model_config = LENIENT

    image: str | None = None
    version: str | None = None
    ha: HASpec = Field(default_factory=HASpec)
    sso: SSOSpec | None = None
    dex: DexSpec | None = None
    notifications: NotificationsSpec = Field(default_factory=NotificationsSpec)
    application_set: ApplicationSetSpec | None = Field(None, alias="applicationSet")
    server: ServerSpec = Field(default_factory=ServerSpec)

    @property
    def dex_spec(self) -> DexSpec | None:
        """Dex settings from spec.sso.dex, falling back to the legacy spec.dex."""
        if self.sso and self.sso.dex:
            return self.sso.dex
        return self.dex


class ArgoCD(BaseModel):
    """
    Complete ArgoCD custom resource.

    Status is kept as a plain mapping; CompositeStatus owns its semantics.
    """

    model_config = LENIENT

    api_version: str = Field(f"{ARGOCD_GROUP}/{ARGOCD_VERSION}", alias="apiVersion")
    kind: str = ARGOCD_KIND
    metadata: dict[str, Any] = Field(default_factory=dict)
    spec: ArgoCDSpec = Field(default_factory=ArgoCDSpec)
    status: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_body(cls, body: Any) -> "ArgoCD":
        """
        Build the model from a kopf body or any mapping.

        Raises:
            ValidationError: The spec holds a value the operator cannot act on
        """
        try:
            return cls.model_validate(_document(body, dict(body.get("spec") or {})))
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"])
            raise ValidationError(first["msg"], field=field) from e

    @classmethod
    def from_metadata(cls, body: Any) -> "ArgoCD":
        """Identity and status only, for reporting a spec that does not parse."""
        return cls.model_validate(_document(body, {}))

    @property
    def name(self) -> str:
        return self.metadata.get("name", "")

    @property
    def namespace(self) -> str:
        return self.metadata.get("namespace", "")

    @property
    def uid(self) -> str | None:
        return self.metadata.get("uid")

    @property
    def generation(self) -> int | None:
        return self.metadata.get("generation")


def _document(body: Any, spec: dict[str, Any]) -> dict[str, Any]:
    return {
        "apiVersion": body.get("apiVersion", f"{ARGOCD_GROUP}/{ARGOCD_VERSION}"),
        "kind": body.get("kind", ARGOCD_KIND),
        "metadata": dict(body.get("metadata") or {}),
        "spec": spec,
        "status": dict(body.get("status") or {}),
    }
