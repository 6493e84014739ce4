"""
Error handling module for the Argo CD operator.

This module provides a comprehensive error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    ConfigurationConflictError,
    ConfigurationError,
    ConflictError,
    KubernetesAPIError,
    MultipleSSOConfiguredError,
    NotFoundError,
    OperatorError,
    ReconciliationCancelled,
    StatusOwnershipError,
    StructuralDriftError,
    TemporaryError,
    TransientPlatformError,
    ValidationError,
)

__all__ = [
    "OperatorError",
    "TemporaryError",
    "ValidationError",
    "ReconciliationCancelled",
    "KubernetesAPIError",
    "NotFoundError",
    "ConflictError",
    "TransientPlatformError",
    "StructuralDriftError",
    "ConfigurationError",
    "ConfigurationConflictError",
    "MultipleSSOConfiguredError",
    "StatusOwnershipError",
]
