"""
Operator error hierarchy with categorization and retry logic.

This module defines the error types used throughout the Argo CD operator,
providing clear categorization and integration with kopf's retry mechanisms.
"""

from typing import Any

import kopf

from argocd_operator.constants import CONFLICT_RETRY_DELAY


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Provides categorization, retry behavior, and user guidance for resolution.
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (validation, api, configuration, drift)
            retryable: Whether kopf should retry this operation
            delay: Suggested retry delay in seconds
            user_action: What user should do to resolve the issue
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self):
        """Convert to appropriate kopf exception type."""
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        else:
            return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        """Enhanced string representation with user guidance."""
        base_msg = super().__str__()
        if self.user_action:
            return f"{base_msg}\nAction required: {self.user_action}"
        return base_msg


class TemporaryError(OperatorError):
    """Temporary error that should be retried."""

    def __init__(self, message: str, delay: int = 30, user_action: str | None = None):
        super().__init__(
            message=message,
            category="temporary",
            retryable=True,
            delay=delay,
            user_action=user_action
            or "Wait for automatic retry or check system status",
        )


class ValidationError(OperatorError):
    """Error in resource specification validation."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        action = user_action or "Check resource specification and fix validation errors"
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(
            message=message, category="validation", retryable=False, user_action=action
        )


class ReconciliationCancelled(OperatorError):
    """The reconcile cycle was aborted because the operator is shutting down."""

    def __init__(self, message: str = "Reconciliation cancelled by shutdown"):
        super().__init__(
            message=message,
            category="cancelled",
            retryable=True,
            delay=10,
        )


class KubernetesAPIError(OperatorError):
    """Error communicating with Kubernetes API."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        retryable: bool = True,
        cause: Exception | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"

        # Some K8s errors are not retryable
        non_retryable_reasons = {"Forbidden", "Unauthorized", "Invalid"}
        if reason in non_retryable_reasons:
            retryable = False

        super().__init__(
            message=f"Kubernetes API error: {message}",
            category="api",
            retryable=retryable,
            delay=30,
            user_action="Check RBAC permissions and cluster connectivity",
            cause=cause,
        )
        self.reason = reason
        self.status = status


class NotFoundError(KubernetesAPIError):
    """The requested object does not exist (HTTP 404).

    Reconcilers treat this as the signal to create the object, and delete
    treats it as success.
    """

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location} not found", reason="NotFound", status=404)
        self.kind = kind
        self.name = name
        self.namespace = namespace


class ConflictError(KubernetesAPIError):
    """Optimistic concurrency failure on write (HTTP 409).

    The object changed between fetch and write; the whole cycle is retried.
    """

    def __init__(self, kind: str, name: str, namespace: str | None = None):
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(
            f"{kind} {location} was modified concurrently",
            reason="Conflict",
            status=409,
        )
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.delay = CONFLICT_RETRY_DELAY


class TransientPlatformError(KubernetesAPIError):
    """Server-side or throttling failure (HTTP 5xx or 429)."""

    def __init__(self, message: str, status: int | None = None, cause: Exception | None = None):
        super().__init__(message, status=status, retryable=True, cause=cause)


class StructuralDriftError(OperatorError):
    """
    An immutable field of a managed object differs from the desired value.

    The reconciler never rewrites such a field. The object is left untouched
    and the error is reported through status until someone deletes the object
    so that the next cycle recreates it from the desired state.
    """

    def __init__(
        self,
        kind: str,
        name: str,
        namespace: str | None,
        field: str,
        existing: Any,
        desired: Any,
    ):
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(
            message=(
                f"{kind} {location} has immutable field '{field}' set to "
                f"{existing!r}, expected {desired!r}"
            ),
            category="drift",
            retryable=False,
            user_action=f"Delete {kind} {location} so the operator can recreate it",
        )
        self.kind = kind
        self.name = name
        self.namespace = namespace
        self.field = field
        self.existing = existing
        self.desired = desired


class ConfigurationError(OperatorError):
    """Error in operator or resource configuration."""

    def __init__(
        self, message: str, retryable: bool = False, user_action: str | None = None
    ):
        super().__init__(
            message=message,
            category="configuration",
            retryable=retryable,
            user_action=user_action or "Review and correct configuration",
        )


class ConfigurationConflictError(ConfigurationError):
    """The resource spec requests mutually exclusive features."""


class MultipleSSOConfiguredError(ConfigurationConflictError):
    """Both Dex and Keycloak are configured as SSO providers."""

    def __init__(self, name: str, namespace: str):
        super().__init__(
            f"ArgoCD {namespace}/{name}: multiple SSO configuration, "
            "both dex and keycloak are enabled",
            user_action="Configure exactly one SSO provider in spec.sso or spec.dex",
        )
        self.name = name
        self.namespace = namespace


class StatusOwnershipError(RuntimeError):
    """A status component wrote a field it does not own.

    This is a programming error inside the operator, never a user error.
    """
