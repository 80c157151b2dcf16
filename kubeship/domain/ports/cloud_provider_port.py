"""
Cloud Provider Port

Architectural Intent:
- Port for the cloud-specific lookups that sit beside the cluster API
- Worker public IPs for NodePort endpoints, ingress subdomain for auto-detected hosts
- Implemented by IBMCloudAdapter; a no-op provider answers None everywhere

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- Every lookup is optional: None means "this provider cannot tell", never an error
"""

from typing import Optional, Protocol, runtime_checkable

from kubeship.domain.value_objects.ingress import IngressDomain


@runtime_checkable
class CloudProviderPort(Protocol):
    """Port for cloud provider lookups."""

    async def worker_public_ip(self) -> Optional[str]:
        """Public IP of a worker node, if the provider exposes one."""
        ...

    async def ingress_domain(self) -> Optional[IngressDomain]:
        """Cluster ingress subdomain and its TLS secret name."""
        ...
