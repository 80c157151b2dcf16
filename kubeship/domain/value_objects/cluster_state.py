"""
Cluster State Snapshots

Architectural Intent:
- Point-in-time, read-only views of live cluster objects
- Built from the JSON documents the cluster CLI returns; never cached across polls
- Parsing lives here so it can be tested without a cluster

Design Decisions:
- Each snapshot has a from_resource() constructor tolerant of missing fields
- Missing numeric status fields (e.g. readyReplicas before any pod is ready) read as 0
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional

REVISION_ANNOTATION = "deployment.kubernetes.io/revision"


@dataclass(frozen=True)
class DeploymentRef:
    name: str
    namespace: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class DeploymentSnapshot:
    name: str
    namespace: str
    ready_replicas: int
    desired_replicas: int
    revision: Optional[int] = None
    image: str = ""

    @property
    def fully_ready(self) -> bool:
        return self.ready_replicas >= self.desired_replicas

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "DeploymentSnapshot":
        metadata = doc.get("metadata") or {}
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        containers = (
            ((spec.get("template") or {}).get("spec") or {}).get("containers") or []
        )
        raw_revision = (metadata.get("annotations") or {}).get(REVISION_ANNOTATION)
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", ""),
            ready_replicas=int(status.get("readyReplicas") or 0),
            desired_replicas=int(spec.get("replicas") or 0),
            revision=int(raw_revision) if raw_revision else None,
            image=containers[0].get("image", "") if containers else "",
        )


@dataclass(frozen=True)
class PodSnapshot:
    name: str
    phase: str

    @property
    def running(self) -> bool:
        return self.phase == "Running"

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "PodSnapshot":
        return cls(
            name=(doc.get("metadata") or {}).get("name", ""),
            phase=(doc.get("status") or {}).get("phase", "Unknown"),
        )


@dataclass(frozen=True)
class LoadBalancerIngress:
    ip: str = ""
    hostname: str = ""


@dataclass(frozen=True)
class ServiceSnapshot:
    name: str
    cluster_ip: str = ""
    node_port: Optional[int] = None
    load_balancer: tuple[LoadBalancerIngress, ...] = ()

    @property
    def load_balancer_address(self) -> str:
        """First assigned address, IP preferred over hostname."""
        if not self.load_balancer:
            return ""
        first = self.load_balancer[0]
        return first.ip or first.hostname

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "ServiceSnapshot":
        spec = doc.get("spec") or {}
        status = doc.get("status") or {}
        ports = spec.get("ports") or []
        node_port = ports[0].get("nodePort") if ports else None
        lb_entries = (status.get("loadBalancer") or {}).get("ingress") or []
        return cls(
            name=(doc.get("metadata") or {}).get("name", ""),
            cluster_ip=spec.get("clusterIP") or "",
            node_port=int(node_port) if node_port else None,
            load_balancer=tuple(
                LoadBalancerIngress(ip=e.get("ip") or "", hostname=e.get("hostname") or "")
                for e in lb_entries
            ),
        )


@dataclass(frozen=True)
class NodeSnapshot:
    name: str
    addresses: tuple[tuple[str, str], ...] = ()
    labels: dict[str, str] = field(default_factory=dict)

    def addresses_of(self, address_type: str) -> list[str]:
        return [addr for kind, addr in self.addresses if kind == address_type and addr]

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "NodeSnapshot":
        metadata = doc.get("metadata") or {}
        raw = (doc.get("status") or {}).get("addresses") or []
        return cls(
            name=metadata.get("name", ""),
            addresses=tuple((a.get("type", ""), a.get("address", "")) for a in raw),
            labels=dict(metadata.get("labels") or {}),
        )


@dataclass(frozen=True)
class IngressSnapshot:
    name: str
    host: str = ""
    tls: bool = False

    @property
    def url(self) -> str:
        if not self.host:
            return ""
        return f"{'https' if self.tls else 'http'}://{self.host}"

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "IngressSnapshot":
        spec = doc.get("spec") or {}
        rules = spec.get("rules") or []
        tls = spec.get("tls") or []
        tls_hosts = (tls[0].get("hosts") or []) if tls else []
        return cls(
            name=(doc.get("metadata") or {}).get("name", ""),
            host=(rules[0].get("host") or "") if rules else "",
            tls=bool(tls_hosts and tls_hosts[0]),
        )


@dataclass(frozen=True)
class RouteSnapshot:
    """OpenShift route. Plain http unless the route object itself carries TLS."""

    name: str
    host: str = ""
    tls: bool = False

    @property
    def url(self) -> str:
        if not self.host:
            return ""
        return f"{'https' if self.tls else 'http'}://{self.host}"

    @classmethod
    def from_resource(cls, doc: dict[str, Any]) -> "RouteSnapshot":
        spec = doc.get("spec") or {}
        return cls(
            name=(doc.get("metadata") or {}).get("name", ""),
            host=spec.get("host") or "",
            tls=bool(spec.get("tls")),
        )


@dataclass(frozen=True)
class Revision:
    number: int
    change_cause: str = ""


@dataclass(frozen=True)
class RevisionHistory:
    revisions: tuple[Revision, ...] = ()

    @property
    def count(self) -> int:
        return len(self.revisions)

    @property
    def can_roll_back(self) -> bool:
        return self.count > 1

    @property
    def current(self) -> Optional[Revision]:
        return self.revisions[-1] if self.revisions else None

    @property
    def previous(self) -> Optional[Revision]:
        return self.revisions[-2] if self.count > 1 else None

    @classmethod
    def parse(cls, output: str) -> "RevisionHistory":
        """Parse `rollout history` table output: one row per line starting with a digit."""
        revisions = []
        for line in output.splitlines():
            stripped = line.strip()
            if not stripped or not stripped[0].isdigit():
                continue
            number, _, cause = stripped.partition(" ")
            try:
                revisions.append(Revision(int(number), cause.strip()))
            except ValueError:
                continue
        revisions.sort(key=lambda r: r.number)
        return cls(tuple(revisions))
