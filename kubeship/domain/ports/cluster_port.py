"""
Cluster Port

Architectural Intent:
- Port interface for every cluster operation the orchestration core needs
- Implemented by KubectlAdapter (Kubernetes) and OpenShiftAdapter (OpenShift)
- The variant is chosen once at composition time from declared configuration

Design Decisions:
- Reads return typed snapshots, or None when the object is absent
- A non-zero result with no output is "absent", not an error
- Mutations raise ClusterOperationFailed on non-zero results
"""

from abc import ABC, abstractmethod
from typing import Optional

from kubeship.domain.entities.deployment_request import ClusterType
from kubeship.domain.value_objects.cluster_state import (
    DeploymentSnapshot,
    IngressSnapshot,
    NodeSnapshot,
    PodSnapshot,
    RevisionHistory,
    RouteSnapshot,
    ServiceSnapshot,
)
from kubeship.domain.value_objects.manifest import RenderedManifest


class ClusterPort(ABC):
    """
    Port interface for cluster operations.
    """

    cluster_type: ClusterType = ClusterType.KUBERNETES

    @abstractmethod
    async def namespace_exists(self, namespace: str) -> bool:
        pass

    @abstractmethod
    async def create_namespace_if_absent(self, namespace: str) -> bool:
        """
        Creates the namespace unless it exists. Returns True if it was created.
        """
        pass

    @abstractmethod
    async def apply(self, manifest: RenderedManifest, namespace: Optional[str] = None) -> None:
        """
        Applies every document of a rendered manifest.
        """
        pass

    @abstractmethod
    async def get_deployment(self, name: str, namespace: str) -> Optional[DeploymentSnapshot]:
        pass

    @abstractmethod
    async def get_deployment_document(self, name: str, namespace: str) -> dict:
        """
        Returns the raw deployment object, or an empty dict when unavailable.
        """
        pass

    @abstractmethod
    async def rollout_status(self, name: str, namespace: str, timeout: float) -> bool:
        """
        Blocks on the cluster tool's rollout wait for at most `timeout` seconds.
        Returns True once the rollout completed.
        """
        pass

    @abstractmethod
    async def rollout_undo(self, name: str, namespace: str) -> None:
        pass

    @abstractmethod
    async def revision_history(self, name: str, namespace: str) -> RevisionHistory:
        pass

    @abstractmethod
    async def current_image(self, name: str, namespace: str) -> str:
        pass

    @abstractmethod
    async def current_revision(self, name: str, namespace: str) -> Optional[int]:
        pass

    @abstractmethod
    async def pods_for_deployment(self, name: str, namespace: str) -> list[PodSnapshot]:
        pass

    @abstractmethod
    async def events_for(self, pod: str, namespace: str, limit: int = 5) -> list[str]:
        pass

    @abstractmethod
    async def logs_for(self, pod: str, namespace: str, tail: int = 20) -> str:
        pass

    @abstractmethod
    async def get_service(self, name: str, namespace: str) -> Optional[ServiceSnapshot]:
        pass

    @abstractmethod
    async def list_nodes(self) -> list[NodeSnapshot]:
        pass

    @abstractmethod
    async def get_ingress(self, name: str, namespace: str) -> Optional[IngressSnapshot]:
        pass

    async def expose_route(
        self, service: str, namespace: str, hostname: str = ""
    ) -> None:
        """
        Creates (or re-hosts) a route for a service. OpenShift only.
        """
        raise NotImplementedError(f"{self.cluster_type.value} clusters have no routes")

    async def get_route(self, name: str, namespace: str) -> Optional[RouteSnapshot]:
        return None
