"""
Composite status for ArgoCD resources.

The persisted status is loaded once per cycle into a CompositeStatus.
Components write through a StatusView restricted to the fields they own,
and only the fields whose value changed are patched back, so unrelated
status entries written by other agents survive.
"""

import copy
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

from argocd_operator.errors import StatusOwnershipError


class ComponentStatus(StrEnum):
    UNKNOWN = "Unknown"
    PENDING = "Pending"
    RUNNING = "Running"
    FAILED = "Failed"
    AVAILABLE = "Available"
    SUCCESS = "Success"


# Reported for optional features that are not installed
STATUS_NONE = ""


class CompositeStatus:
    """
    Working copy of an ArgoCD status sub-resource.

    Args:
        initial: Status as persisted on the resource, possibly empty
    """

    def __init__(self, initial: Mapping[str, Any] | None = None):
        self._original = copy.deepcopy(dict(initial or {}))
        self._values = copy.deepcopy(self._original)

    def get(self, field: str, default: Any = None) -> Any:
        return self._values.get(field, default)

    def set(self, field: str, value: Any) -> None:
        self._values[field] = value

    def view(self, owner: str, fields: Iterable[str]) -> "StatusView":
        """Restricted writer for a component owning ``fields``."""
        return StatusView(self, owner, frozenset(fields))

    def changed_fields(self) -> dict[str, Any]:
        """Fields whose value differs from the persisted status."""
        return {
            key: value
            for key, value in self._values.items()
            if key not in self._original or self._original[key] != value
        }

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._values)


class StatusView:
    """Status accessor that rejects writes outside the owner's fields."""

    def __init__(self, status: CompositeStatus, owner: str, fields: frozenset[str]):
        self._status = status
        self.owner = owner
        self.fields = fields

    def get(self, field: str, default: Any = None) -> Any:
        return self._status.get(field, default)

    def set(self, field: str, value: Any) -> None:
        if field not in self.fields:
            raise StatusOwnershipError(
                f"Status component '{self.owner}' attempted to write '{field}', "
                f"it owns only {sorted(self.fields)}"
            )
        self._status.set(field, value)


def _read(obj: Any, *path: str) -> Any:
    # Deployments are client models with snake_case attributes,
    # DeploymentConfigs are camelCase mappings.
    current = obj
    for part in path:
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(part)
        else:
            current = getattr(current, _snake(part), None)
    return current


def _snake(name: str) -> str:
    return "".join(f"_{c.lower()}" if c.isupper() else c for c in name)


def workload_status(workload: Any | None) -> ComponentStatus:
    """
    Status of a Deployment or DeploymentConfig.

    Returns:
        UNKNOWN when the workload does not exist, RUNNING when the ready
        replica count equals the desired count, PENDING otherwise (including
        a scale-down that still has extra ready replicas).
    """
    if workload is None:
        return ComponentStatus.UNKNOWN

    desired = _read(workload, "spec", "replicas")
    if desired is None:
        desired = 1
    ready = _read(workload, "status", "readyReplicas") or 0

    if ready == desired:
        return ComponentStatus.RUNNING
    return ComponentStatus.PENDING


def ingress_hosts(entries: Iterable[Any] | None) -> str:
    """
    Render load balancer entries as a host string.

    Each entry contributes its hostname, or its IP when it has no hostname;
    entries with neither are skipped. Hostnames come first, then bare IPs,
    each group sorted so the result is independent of listing order.
    """
    hostnames: set[str] = set()
    addresses: set[str] = set()
    for entry in entries or []:
        hostname = _read(entry, "hostname")
        ip = _read(entry, "ip")
        if hostname:
            hostnames.add(hostname)
        elif ip:
            addresses.add(ip)
    return ", ".join(sorted(hostnames) + sorted(addresses))


def ingress_status_host(ingress: Any | None) -> str:
    if ingress is None:
        return ""
    return ingress_hosts(_read(ingress, "status", "loadBalancer", "ingress"))


def route_host(route: Mapping[str, Any] | None) -> str:
    """Host of the first router that admitted the route, or an empty string."""
    if route is None:
        return ""
    for ingress in route.get("status", {}).get("ingress") or []:
        for condition in ingress.get("conditions") or []:
            if condition.get("type") == "Admitted" and condition.get("status") == "True":
                return ingress.get("host") or ""
    return ""
