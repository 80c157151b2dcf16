"""Tests for EndpointResolver and the NodePort address strategies."""

import pytest

from conftest import FakeCloud, FakeCluster, FakeClock
from kubeship.application.orchestration.endpoint_resolver import (
    EndpointResolver,
    NodeHostname,
    PublicExternalIP,
    PublicIPLabel,
    default_node_strategies,
)
from kubeship.domain.entities.deployment_request import ServiceType
from kubeship.domain.errors import ClusterOperationFailed
from kubeship.domain.value_objects.cluster_state import (
    LoadBalancerIngress,
    NodeSnapshot,
    ServiceSnapshot,
)


def _node(name="node-1", external=(), internal=("10.0.0.4",), hostname="", labels=None):
    addresses = [("ExternalIP", a) for a in external] + [("InternalIP", a) for a in internal]
    if hostname:
        addresses.append(("Hostname", hostname))
    return NodeSnapshot(name, tuple(addresses), labels or {})


def _resolver(cluster, clock, cloud=None, **kwargs):
    return EndpointResolver(cluster, cloud, clock=clock, sleep=clock.sleep, **kwargs)


class TestClusterIP:
    @pytest.mark.asyncio
    async def test_internal_dns_without_polling(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", cluster_ip="172.21.4.9")]

        resolution = await _resolver(cluster, clock).resolve(ServiceType.CLUSTER_IP, "prod", "web")

        assert resolution.url == "http://web.prod.svc.cluster.local"
        assert resolution.endpoint == "172.21.4.9:80"
        assert cluster.calls.count("get_service") == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_unreadable_service_keeps_dns_url(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.fail_on.add("get_service")

        resolution = await _resolver(cluster, clock).resolve(ServiceType.CLUSTER_IP, "prod", "web")

        assert resolution.url == "http://web.prod.svc.cluster.local"
        assert resolution.endpoint == ""


class TestLoadBalancer:
    @pytest.mark.asyncio
    async def test_address_assigned_on_fourth_poll(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        pending = ServiceSnapshot("web", cluster_ip="172.21.4.9")
        cluster.services = [
            pending,
            pending,
            pending,
            ServiceSnapshot("web", load_balancer=(LoadBalancerIngress(ip="203.0.113.5"),)),
        ]

        resolution = await _resolver(cluster, clock).resolve(
            ServiceType.LOAD_BALANCER, "prod", "web"
        )

        assert resolution.resolved
        assert resolution.endpoint == "203.0.113.5"
        assert resolution.url == "http://203.0.113.5"
        assert clock.sleeps == [5.0, 5.0, 5.0]

    @pytest.mark.asyncio
    async def test_unassigned_after_attempts(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", cluster_ip="172.21.4.9")]

        resolution = await _resolver(cluster, clock, lb_attempts=3).resolve(
            ServiceType.LOAD_BALANCER, "prod", "web"
        )

        assert not resolution.resolved
        assert resolution.endpoint == ""
        assert resolution.note == "unassigned"
        assert cluster.calls.count("get_service") == 3
        assert clock.sleeps == [5.0, 5.0]

    @pytest.mark.asyncio
    async def test_read_errors_keep_polling(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        assigned = ServiceSnapshot("web", load_balancer=(LoadBalancerIngress(ip="203.0.113.5"),))
        replies = [ClusterOperationFailed("get svc failed", stderr="i/o timeout"), assigned]

        async def flaky(name, namespace):
            reply = replies.pop(0)
            if isinstance(reply, Exception):
                raise reply
            return reply

        cluster.get_service = flaky
        resolution = await _resolver(cluster, clock).resolve(
            ServiceType.LOAD_BALANCER, "prod", "web"
        )

        assert resolution.endpoint == "203.0.113.5"
        assert clock.sleeps == [5.0]

    @pytest.mark.asyncio
    async def test_persistent_read_errors_end_unassigned(self, caplog):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.fail_on.add("get_service")

        resolution = await _resolver(cluster, clock, lb_attempts=3).resolve(
            ServiceType.LOAD_BALANCER, "prod", "web"
        )

        assert resolution.note == "unassigned"
        assert cluster.calls.count("get_service") == 3
        assert "LoadBalancer address not assigned after 3 attempts" in caplog.text


class TestNodePort:
    @pytest.mark.asyncio
    async def test_private_external_ip_falls_through_to_label(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", node_port=30080)]
        cluster.nodes = [
            _node(
                external=("10.1.2.3",),
                labels={"ibm-cloud.kubernetes.io/external-ip": "169.48.10.2"},
            )
        ]

        resolution = await _resolver(cluster, clock, FakeCloud()).resolve(
            ServiceType.NODE_PORT, "prod", "web"
        )

        assert resolution.endpoint == "169.48.10.2:30080"
        assert resolution.url == "http://169.48.10.2:30080"
        assert resolution.note == "node-label"

    @pytest.mark.asyncio
    async def test_cloud_provider_wins(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", node_port=30080)]
        cluster.nodes = [_node(external=("198.51.100.7",))]

        resolution = await _resolver(cluster, clock, FakeCloud(public_ip="52.116.0.9")).resolve(
            ServiceType.NODE_PORT, "prod", "web"
        )

        assert resolution.endpoint == "52.116.0.9:30080"
        assert resolution.note == "cloud-provider"

    @pytest.mark.asyncio
    async def test_internal_ip_is_last_resort(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", node_port=31000)]
        cluster.nodes = [_node(internal=("10.0.0.4",))]

        resolution = await _resolver(cluster, clock).resolve(ServiceType.NODE_PORT, "prod", "web")

        assert resolution.endpoint == "10.0.0.4:31000"
        assert not resolution.node_address.externally_routable

    @pytest.mark.asyncio
    async def test_node_listing_failure_leaves_unresolved(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.services = [ServiceSnapshot("web", node_port=31000)]

        async def forbidden():
            raise RuntimeError("nodes is forbidden")

        cluster.list_nodes = forbidden
        resolution = await _resolver(cluster, clock).resolve(ServiceType.NODE_PORT, "prod", "web")

        assert not resolution.resolved
        assert resolution.note == "unresolved"

    @pytest.mark.asyncio
    async def test_unreadable_service_leaves_unresolved(self):
        clock = FakeClock()
        cluster = FakeCluster(clock)
        cluster.nodes = [_node(external=("198.51.100.7",))]
        cluster.fail_on.add("get_service")

        resolution = await _resolver(cluster, clock).resolve(ServiceType.NODE_PORT, "prod", "web")

        assert not resolution.resolved
        assert resolution.note == "unresolved"
        assert resolution.service_type == ServiceType.NODE_PORT

    @pytest.mark.asyncio
    async def test_failing_strategy_is_skipped(self):
        class Broken:
            name = "broken"

            async def lookup(self, nodes):
                raise RuntimeError("boom")

        clock = FakeClock()
        resolver = _resolver(FakeCluster(clock), clock, strategies=[Broken(), NodeHostname()])
        address = await resolver.find_node_address([_node(hostname="node-1.example.com")])

        assert address.address == "node-1.example.com"
        assert address.source == "hostname"


class TestStrategies:
    @pytest.mark.asyncio
    async def test_external_ip_scans_all_nodes(self):
        nodes = [_node("a", external=("192.168.1.5",)), _node("b", external=("198.51.100.7",))]
        address = await PublicExternalIP().lookup(nodes)
        assert address.address == "198.51.100.7"

    @pytest.mark.asyncio
    async def test_label_ignores_empty_markers(self):
        nodes = [_node(labels={"ibm-cloud.kubernetes.io/external-ip": "-"})]
        assert await PublicIPLabel().lookup(nodes) is None

    def test_default_chain_order(self):
        names = [s.name for s in default_node_strategies(FakeCloud())]
        assert names == ["cloud-provider", "external-ip", "node-label", "hostname", "internal-ip"]
        assert "cloud-provider" not in [s.name for s in default_node_strategies()]
