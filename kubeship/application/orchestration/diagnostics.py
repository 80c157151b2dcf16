"""
Pod Diagnostics

Architectural Intent:
- Gathers pod phases, recent events and log tails for a deployment that timed out
- Shared by the rollout and health-check timeout paths so every timed-out result
  carries the same three sections
- Best effort: a failed read is logged and recorded, never raised
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any

from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.value_objects.cluster_state import DeploymentRef, PodSnapshot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PodDiagnostics:
    pods: tuple[PodSnapshot, ...] = ()
    events: dict[str, list[str]] = field(default_factory=dict)
    logs: dict[str, str] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        return {
            "pods": {pod.name: pod.phase for pod in self.pods},
            "events": dict(self.events),
            "logs": dict(self.logs),
        }


class DiagnosticsCollector:
    def __init__(self, cluster: ClusterPort, log_tail: int = 20, event_limit: int = 5):
        self.cluster = cluster
        self.log_tail = log_tail
        self.event_limit = event_limit

    async def collect(self, deployment: DeploymentRef) -> PodDiagnostics:
        try:
            pods = await self.cluster.pods_for_deployment(deployment.name, deployment.namespace)
        except Exception as e:
            logger.warning("Could not list pods of %s: %s", deployment, e)
            return PodDiagnostics()

        events: dict[str, list[str]] = {}
        logs: dict[str, str] = {}
        for pod in pods:
            logger.info("Pod %s status: %s", pod.name, pod.phase)
            try:
                events[pod.name] = await self.cluster.events_for(
                    pod.name, deployment.namespace, limit=self.event_limit
                )
            except Exception as e:
                events[pod.name] = [f"Unable to retrieve events: {e}"]
            for line in events[pod.name]:
                logger.info("  %s", line)

            try:
                logs[pod.name] = await self.cluster.logs_for(
                    pod.name, deployment.namespace, tail=self.log_tail
                )
            except Exception as e:
                logs[pod.name] = f"Unable to retrieve logs: {e}"
            logger.info("--- Logs from %s ---\n%s", pod.name, logs[pod.name])

        return PodDiagnostics(tuple(pods), events, logs)
