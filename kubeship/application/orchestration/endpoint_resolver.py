"""
Endpoint Resolver

Architectural Intent:
- Determines how a realised Service can be reached, per service type
- ClusterIP: fixed in-cluster DNS name, no polling
- LoadBalancer: polls the service until an IP or hostname is assigned, bounded
- NodePort: walks an ordered chain of node-address strategies, first hit wins

Design Decisions:
- An unresolved endpoint is a normal outcome, not an error: EndpointUnresolved is
  raised internally and turned into an empty resolution, so the deployment stands
  and only the URL/endpoint outputs stay empty
- A failed service read counts as "not there yet" rather than aborting the run
- Each NodePort strategy is isolated and works on injected node snapshots
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence

from kubeship.application.orchestration.bounded_poller import BoundedPoller, Clock, Sleeper
from kubeship.domain.entities.deployment_request import ServiceType
from kubeship.domain.errors import ClusterOperationFailed, EndpointUnresolved
from kubeship.domain.ports.cloud_provider_port import CloudProviderPort
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.services.manifest_renderer import SERVICE_PORT
from kubeship.domain.value_objects.cluster_state import NodeSnapshot, ServiceSnapshot
from kubeship.domain.value_objects.node_address import NodeAddress, is_rfc1918

logger = logging.getLogger(__name__)

IBM_EXTERNAL_IP_LABEL = "ibm-cloud.kubernetes.io/external-ip"
_EMPTY_MARKERS = ("", "null", "-")


@dataclass(frozen=True)
class EndpointResolution:
    service_type: ServiceType
    endpoint: str = ""
    url: str = ""
    note: str = ""
    node_address: Optional[NodeAddress] = None

    @property
    def resolved(self) -> bool:
        return bool(self.url)


class NodeAddressStrategy(Protocol):
    name: str

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        ...


class CloudWorkerPublicIP:
    name = "cloud-provider"

    def __init__(self, cloud: CloudProviderPort) -> None:
        self.cloud = cloud

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        ip = await self.cloud.worker_public_ip()
        if ip and ip.strip() not in _EMPTY_MARKERS:
            return NodeAddress(ip.strip(), self.name)
        return None


class PublicExternalIP:
    name = "external-ip"

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        for node in nodes:
            for address in node.addresses_of("ExternalIP"):
                if is_rfc1918(address):
                    logger.warning("ExternalIP of %s is a private IP: %s", node.name, address)
                    continue
                return NodeAddress(address, self.name)
        return None


class PublicIPLabel:
    name = "node-label"

    def __init__(self, label: str = IBM_EXTERNAL_IP_LABEL) -> None:
        self.label = label

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        if not nodes:
            return None
        value = nodes[0].labels.get(self.label, "")
        if value.strip() in _EMPTY_MARKERS:
            return None
        return NodeAddress(value.strip(), self.name)


class NodeHostname:
    name = "hostname"

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        if not nodes:
            return None
        hostnames = nodes[0].addresses_of("Hostname")
        return NodeAddress(hostnames[0], self.name) if hostnames else None


class NodeInternalIP:
    name = "internal-ip"

    async def lookup(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        if not nodes:
            return None
        internal = nodes[0].addresses_of("InternalIP")
        if not internal:
            return None
        return NodeAddress(internal[0], self.name, externally_routable=False)


def default_node_strategies(
    cloud: Optional[CloudProviderPort] = None,
) -> list[NodeAddressStrategy]:
    strategies: list[NodeAddressStrategy] = []
    if cloud is not None:
        strategies.append(CloudWorkerPublicIP(cloud))
    strategies.extend([PublicExternalIP(), PublicIPLabel(), NodeHostname(), NodeInternalIP()])
    return strategies


class EndpointResolver:
    def __init__(
        self,
        cluster: ClusterPort,
        cloud: Optional[CloudProviderPort] = None,
        strategies: Optional[list[NodeAddressStrategy]] = None,
        lb_attempts: int = 60,
        lb_interval: float = 5.0,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.cluster = cluster
        self.strategies = strategies if strategies is not None else default_node_strategies(cloud)
        self.lb_attempts = lb_attempts
        self.lb_interval = lb_interval
        self._clock = clock
        self._sleep = sleep

    async def resolve(
        self, service_type: ServiceType, namespace: str, name: str
    ) -> EndpointResolution:
        try:
            if service_type == ServiceType.LOAD_BALANCER:
                return await self._resolve_load_balancer(namespace, name)
            if service_type == ServiceType.NODE_PORT:
                return await self._resolve_node_port(namespace, name)
            return await self._resolve_cluster_ip(namespace, name)
        except EndpointUnresolved as e:
            logger.warning(e.message)
            return EndpointResolution(service_type, note=e.note)

    async def _read_service(self, namespace: str, name: str) -> Optional[ServiceSnapshot]:
        try:
            return await self.cluster.get_service(name, namespace)
        except ClusterOperationFailed as e:
            logger.warning("Could not read service %s/%s: %s", namespace, name, e.message)
            return None

    async def _resolve_cluster_ip(self, namespace: str, name: str) -> EndpointResolution:
        service = await self._read_service(namespace, name)
        cluster_ip = service.cluster_ip if service else ""
        dns_name = f"{name}.{namespace}.svc.cluster.local"
        logger.info("Service %s is ClusterIP, reachable inside the cluster at %s", name, dns_name)
        return EndpointResolution(
            ServiceType.CLUSTER_IP,
            endpoint=f"{cluster_ip}:{SERVICE_PORT}" if cluster_ip else "",
            url=f"http://{dns_name}",
            note="internal",
        )

    async def _resolve_load_balancer(self, namespace: str, name: str) -> EndpointResolution:
        poller = BoundedPoller(
            interval=self.lb_interval,
            timeout=self.lb_attempts * self.lb_interval,
            max_attempts=self.lb_attempts,
            clock=self._clock,
            sleep=self._sleep,
            name=f"load balancer {namespace}/{name}",
        )
        last_seen: Optional[ServiceSnapshot] = None

        async def probe(remaining: float) -> Optional[str]:
            nonlocal last_seen
            service = await self._read_service(namespace, name)
            if service is None:
                return None
            last_seen = service
            return service.load_balancer_address or None

        logger.info("Waiting for LoadBalancer address of %s/%s", namespace, name)
        result = await poller.run(probe)

        if not result.value:
            cluster_ip = last_seen.cluster_ip if last_seen else ""
            raise EndpointUnresolved(
                f"LoadBalancer address not assigned after {result.attempts} attempts; "
                f"service is reachable inside the cluster at "
                f"{cluster_ip or '<cluster ip>'}:{SERVICE_PORT}",
                note="unassigned",
            )

        logger.info("LoadBalancer address: %s", result.value)
        return EndpointResolution(
            ServiceType.LOAD_BALANCER, endpoint=result.value, url=f"http://{result.value}"
        )

    async def _resolve_node_port(self, namespace: str, name: str) -> EndpointResolution:
        service = await self._read_service(namespace, name)
        node_port = service.node_port if service else None

        try:
            nodes = await self.cluster.list_nodes()
        except Exception as e:
            logger.warning("Unable to list nodes (may require additional permissions): %s", e)
            nodes = []

        address = await self.find_node_address(nodes)
        if address is None or node_port is None:
            raise EndpointUnresolved(
                f"No routable node address for NodePort service {namespace}/{name}"
            )

        if not address.externally_routable:
            logger.warning(
                "No public IP found, using internal node IP %s (may not be accessible externally)",
                address,
            )
        endpoint = f"{address}:{node_port}"
        logger.info("NodePort %d on %s (via %s)", node_port, address, address.source)
        return EndpointResolution(
            ServiceType.NODE_PORT,
            endpoint=endpoint,
            url=f"http://{endpoint}",
            note=address.source,
            node_address=address,
        )

    async def find_node_address(self, nodes: Sequence[NodeSnapshot]) -> Optional[NodeAddress]:
        for strategy in self.strategies:
            try:
                address = await strategy.lookup(nodes)
            except Exception as e:
                logger.warning("Node address strategy %s failed: %s", strategy.name, e)
                continue
            if address is not None:
                return address
            logger.debug("Node address strategy %s found nothing", strategy.name)
        return None
