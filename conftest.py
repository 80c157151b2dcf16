"""Global test configuration.

In-memory stand-ins for the cluster, the cloud provider and HTTP probes, plus a
simulated clock so polling code can be exercised without sleeping.
"""

from __future__ import annotations
from typing import Optional

import pytest

from kubeship.domain.entities.deployment_request import ClusterType
from kubeship.domain.errors import ClusterOperationFailed
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.http_probe_port import ProbeResponse
from kubeship.domain.value_objects.cluster_state import (
    DeploymentSnapshot,
    IngressSnapshot,
    NodeSnapshot,
    PodSnapshot,
    Revision,
    RevisionHistory,
    RouteSnapshot,
    ServiceSnapshot,
)
from kubeship.domain.value_objects.ingress import IngressDomain


class FakeClock:
    """Monotonic clock whose sleep advances time instantly."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


class FakeCluster(ClusterPort):
    """
    In-memory cluster. Revisions are a list of images; the last one is current.
    `ready_at` is the simulated time at which a rollout completes.
    """

    def __init__(
        self,
        clock: FakeClock,
        cluster_type: ClusterType = ClusterType.KUBERNETES,
        revisions: Optional[list[str]] = None,
        ready_at: float = 0.0,
        replicas: int = 1,
    ):
        self.clock = clock
        self.cluster_type = cluster_type
        self.revisions: list[str] = list(revisions or [])
        self.revision_numbers: list[int] = list(range(1, len(self.revisions) + 1))
        self.ready_at = ready_at
        self.replicas = replicas
        self.namespaces: set[str] = {"default"}
        self.applied: list = []
        self.calls: list[str] = []
        self.services: list[Optional[ServiceSnapshot]] = []
        self.nodes: list[NodeSnapshot] = []
        self.ingress: Optional[IngressSnapshot] = None
        self.route: Optional[RouteSnapshot] = None
        self.routes_exposed: list[tuple[str, str, str]] = []
        self.pods: list[PodSnapshot] = [PodSnapshot("app-pod-1", "Running")]
        self.events: dict[str, list[str]] = {}
        self.logs: dict[str, str] = {}
        self.fail_on: set[str] = set()
        self.deployment_present = True

    def _fail_if_requested(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise ClusterOperationFailed(f"{operation} failed", command=[operation], stderr="boom")

    def _fail_read_if_requested(self, operation: str) -> None:
        if operation in self.fail_on:
            raise ClusterOperationFailed(
                f"{operation} failed", command=[operation], stderr="error: Unauthorized"
            )

    def _snapshot(self, name: str, namespace: str) -> Optional[DeploymentSnapshot]:
        if not self.deployment_present:
            return None
        ready = self.replicas if self.clock.now >= self.ready_at else 0
        return DeploymentSnapshot(
            name=name,
            namespace=namespace,
            ready_replicas=ready,
            desired_replicas=self.replicas,
            revision=self.revision_numbers[-1] if self.revision_numbers else None,
            image=self.revisions[-1] if self.revisions else "",
        )

    async def namespace_exists(self, namespace: str) -> bool:
        return namespace in self.namespaces

    async def create_namespace_if_absent(self, namespace: str) -> bool:
        self._fail_if_requested("create_namespace")
        if namespace in self.namespaces:
            return False
        self.namespaces.add(namespace)
        return True

    async def apply(self, manifest, namespace=None) -> None:
        self._fail_if_requested("apply")
        self.applied.append(manifest)

    async def get_deployment(self, name, namespace):
        self._fail_read_if_requested("get_deployment")
        return self._snapshot(name, namespace)

    async def get_deployment_document(self, name, namespace) -> dict:
        snapshot = self._snapshot(name, namespace)
        if snapshot is None:
            return {}
        return {"metadata": {"name": name, "namespace": namespace}, "spec": {"replicas": self.replicas}}

    async def rollout_status(self, name, namespace, timeout) -> bool:
        self.calls.append("rollout_status")
        if self.clock.now + timeout >= self.ready_at:
            self.clock.now = max(self.clock.now, self.ready_at)
            return True
        self.clock.now += timeout
        return False

    async def rollout_undo(self, name, namespace) -> None:
        self._fail_if_requested("rollout_undo")
        # The previous template becomes a new revision, as the real controller does
        image = self.revisions[-2]
        number = self.revision_numbers[-2]
        del self.revisions[-2]
        del self.revision_numbers[-2]
        self.revisions.append(image)
        self.revision_numbers.append(number)

    async def revision_history(self, name, namespace) -> RevisionHistory:
        return RevisionHistory(tuple(Revision(n) for n in sorted(self.revision_numbers)))

    async def current_image(self, name, namespace) -> str:
        return self.revisions[-1] if self.revisions else ""

    async def current_revision(self, name, namespace):
        return self.revision_numbers[-1] if self.revision_numbers else None

    async def pods_for_deployment(self, name, namespace):
        self._fail_read_if_requested("pods_for_deployment")
        return list(self.pods)

    async def events_for(self, pod, namespace, limit=5):
        self._fail_read_if_requested("events_for")
        return self.events.get(pod, [])[-limit:]

    async def logs_for(self, pod, namespace, tail=20):
        self._fail_read_if_requested("logs_for")
        return self.logs.get(pod, "")

    async def get_service(self, name, namespace):
        self.calls.append("get_service")
        self._fail_read_if_requested("get_service")
        if not self.services:
            return None
        if len(self.services) > 1:
            return self.services.pop(0)
        return self.services[0]

    async def list_nodes(self):
        return list(self.nodes)

    async def get_ingress(self, name, namespace):
        return self.ingress

    async def expose_route(self, service, namespace, hostname=""):
        self._fail_if_requested("expose_route")
        self.routes_exposed.append((service, namespace, hostname))

    async def get_route(self, name, namespace):
        return self.route


class FakeCloud:
    def __init__(self, public_ip: Optional[str] = None, domain: Optional[IngressDomain] = None):
        self.public_ip = public_ip
        self.domain = domain

    async def worker_public_ip(self):
        return self.public_ip

    async def ingress_domain(self):
        return self.domain


class FakeHttp:
    """Answers probes from per-URL scripts; the last entry of a script repeats."""

    def __init__(self, scripts: Optional[dict[str, list[Optional[int]]]] = None):
        self.scripts = scripts or {}
        self.requests: list[str] = []

    async def get(self, url: str) -> ProbeResponse:
        self.requests.append(url)
        script = self.scripts.get(url, [None])
        status = script.pop(0) if len(script) > 1 else script[0]
        if status is None:
            return ProbeResponse(error="connection refused")
        return ProbeResponse(status=status, body_preview="ok")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cluster(clock):
    return FakeCluster(clock)


@pytest.fixture
def cloud():
    return FakeCloud()
