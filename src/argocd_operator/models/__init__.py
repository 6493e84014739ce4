"""
Models package - Pydantic models for type-safe resource handling.
"""

from .argocd import (
    ApplicationSetSpec,
    ArgoCD,
    ArgoCDSpec,
    DexSpec,
    HASpec,
    IngressSpec,
    KeycloakSpec,
    NotificationsSpec,
    ResourceRequirements,
    RouteSpec,
    ServerSpec,
    SSOSpec,
)

__all__ = [
    "ApplicationSetSpec",
    "ArgoCD",
    "ArgoCDSpec",
    "DexSpec",
    "HASpec",
    "IngressSpec",
    "KeycloakSpec",
    "NotificationsSpec",
    "ResourceRequirements",
    "RouteSpec",
    "ServerSpec",
    "SSOSpec",
]
