"""
Watch scope resolution.

Decides which namespaces the operator watches and which ArgoCD resources
inside them it handles.
"""

from collections.abc import Mapping

from argocd_operator.errors import ConfigurationError

CLUSTER_WIDE: frozenset[str] = frozenset()


def resolve_namespace_scope(value: str | None) -> frozenset[str]:
    """
    Translate the namespace setting into the set of watched namespaces.

    Args:
        value: Comma-separated namespace list, or None when unset

    Returns:
        The namespaces to watch. An empty set means cluster-wide.

    Raises:
        ConfigurationError: The value is non-empty but names no namespace
    """
    if value is None or not value.strip():
        return CLUSTER_WIDE

    namespaces = frozenset(ns.strip() for ns in value.split(",") if ns.strip())
    if not namespaces:
        raise ConfigurationError(
            f"Namespace setting {value!r} yields an empty allow-list",
            user_action="Set WATCH_NAMESPACE to a comma-separated list of namespaces, "
            "or leave it empty to watch all namespaces",
        )
    return namespaces


def parse_label_selector(value: str) -> dict[str, str]:
    """
    Parse an equality-based label selector such as ``team=a,env=prod``.

    Raises:
        ConfigurationError: A term is not of the form key=value
    """
    selector: dict[str, str] = {}
    for term in value.split(","):
        term = term.strip()
        if not term:
            continue
        key, sep, label_value = term.partition("=")
        key = key.strip()
        if not sep or not key or "=" in label_value:
            raise ConfigurationError(
                f"Invalid label selector term {term!r}",
                user_action="Use key=value pairs separated by commas in ARGOCD_LABEL_SELECTOR",
            )
        selector[key] = label_value.strip()
    return selector


def matches_selector(labels: Mapping[str, str] | None, selector: Mapping[str, str]) -> bool:
    """True when every selector pair is present in labels."""
    labels = labels or {}
    return all(labels.get(key) == value for key, value in selector.items())
