"""
Constants used throughout the Argo CD operator.

This module defines all constant values used by the operator including:
- Custom resource coordinates
- Resource labels and annotations
- Component names and object name suffixes
- Status values and condition types
"""

# Custom resource coordinates
ARGOCD_GROUP = "argoproj.io"
ARGOCD_VERSION = "v1beta1"
ARGOCD_PLURAL = "argocds"
ARGOCD_KIND = "ArgoCD"

# Label constants for resource identification and management
LABEL_NAME = "app.kubernetes.io/name"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_MANAGED_BY = "app.kubernetes.io/managed-by"
LABEL_COMPONENT = "app.kubernetes.io/component"

PART_OF_VALUE = "argocd"
MANAGED_BY_VALUE = "argocd-operator"

# Annotations recording the owning ArgoCD instance
ANNOTATION_OWNER_NAME = "argocds.argoproj.io/name"
ANNOTATION_OWNER_NAMESPACE = "argocds.argoproj.io/namespace"

# Component names (also used as the app.kubernetes.io/component label)
COMPONENT_REDIS = "redis"
COMPONENT_DEX = "dex-server"
COMPONENT_KEYCLOAK = "keycloak"
COMPONENT_SERVER = "server"
COMPONENT_NOTIFICATIONS = "notifications-controller"
COMPONENT_APPLICATIONSET = "applicationset-controller"

# Object name suffixes appended to the instance name
SUFFIX_REDIS = "redis"
SUFFIX_REDIS_HA = "redis-ha"

# Supported SSO providers
SSO_PROVIDER_DEX = "dex"
SSO_PROVIDER_KEYCLOAK = "keycloak"

# Managed object kinds
KIND_SERVICE_ACCOUNT = "ServiceAccount"
KIND_ROLE = "Role"
KIND_ROLE_BINDING = "RoleBinding"
KIND_DEPLOYMENT = "Deployment"
KIND_DEPLOYMENT_CONFIG = "DeploymentConfig"
KIND_INGRESS = "Ingress"
KIND_ROUTE = "Route"

# API groups probed at startup
ROUTE_API_GROUP = "route.openshift.io"
TEMPLATE_API_GROUP = "template.openshift.io"
APPS_OPENSHIFT_API_GROUP = "apps.openshift.io"
PROMETHEUS_API_GROUP = "monitoring.coreos.com"
INGRESS_API_GROUP = "networking.k8s.io"
RBAC_API_GROUP = "rbac.authorization.k8s.io"

# Status field names written to the ArgoCD status sub-resource
STATUS_PHASE = "phase"
STATUS_HOST = "host"
STATUS_SSO = "sso"
STATUS_SSO_CONFIG = "ssoConfig"
STATUS_NOTIFICATIONS = "notificationsController"
STATUS_APPLICATIONSET = "applicationSetController"
STATUS_CONDITIONS = "conditions"

# Condition type constants (following Kubernetes conventions)
CONDITION_RECONCILED = "Reconciled"

# Condition status constants
CONDITION_TRUE = "True"
CONDITION_FALSE = "False"

# Condition reasons
REASON_SUCCESS = "Success"
REASON_STRUCTURAL_DRIFT = "StructuralDrift"
REASON_MULTIPLE_SSO = "MultipleSSOConfigured"

# Default images
DEFAULT_ARGOCD_IMAGE = "quay.io/argoproj/argocd"
DEFAULT_ARGOCD_VERSION = "v2.10.4"
DEFAULT_DEX_IMAGE = "ghcr.io/dexidp/dex"
DEFAULT_DEX_VERSION = "v2.38.0"
DEFAULT_KEYCLOAK_IMAGE = "quay.io/keycloak/keycloak"
DEFAULT_KEYCLOAK_VERSION = "24.0.2"

# Ports
DEX_HTTP_PORT = 5556
KEYCLOAK_HTTP_PORT = 8080
SERVER_HTTP_PORT = 80
SERVER_HTTPS_PORT = 443

# Reconciliation timing defaults (seconds)
DEFAULT_RESYNC_INTERVAL = 180
CONFLICT_RETRY_DELAY = 5
