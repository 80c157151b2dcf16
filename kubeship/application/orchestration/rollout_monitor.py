"""
Rollout Monitor

Architectural Intent:
- The single suspension point shared by deploy and rollback flows
- Blocks on the cluster tool's own rollout wait, bounded by a fixed timeout
- Classifies the outcome as READY or TIMED_OUT; the explicit timeout is authoritative

Design Decisions:
- Each probe hands the remaining budget to the cluster wait, so one probe normally
  covers the whole window; an early non-zero exit is re-issued after a short pause
- Pod phases, events and logs are attached on timeout for diagnostics only
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from kubeship.application.orchestration.bounded_poller import BoundedPoller, Clock, Sleeper
from kubeship.application.orchestration.diagnostics import DiagnosticsCollector, PodDiagnostics
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.value_objects.cluster_state import DeploymentRef, PodSnapshot

logger = logging.getLogger(__name__)

DEFAULT_ROLLOUT_TIMEOUT = 300.0


class RolloutOutcome(Enum):
    READY = auto()
    TIMED_OUT = auto()


@dataclass(frozen=True)
class RolloutResult:
    outcome: RolloutOutcome
    elapsed: float
    diagnostics: PodDiagnostics = field(default_factory=PodDiagnostics)

    @property
    def ready(self) -> bool:
        return self.outcome == RolloutOutcome.READY

    @property
    def pods(self) -> tuple[PodSnapshot, ...]:
        return self.diagnostics.pods


class RolloutMonitor:
    def __init__(
        self,
        cluster: ClusterPort,
        timeout: float = DEFAULT_ROLLOUT_TIMEOUT,
        reissue_interval: float = 2.0,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.cluster = cluster
        self.timeout = timeout
        self.reissue_interval = reissue_interval
        self._clock = clock
        self._sleep = sleep
        self.diagnostics = DiagnosticsCollector(cluster)

    async def await_ready(
        self, deployment: DeploymentRef, timeout: Optional[float] = None
    ) -> RolloutResult:
        budget = self.timeout if timeout is None else timeout
        poller = BoundedPoller(
            interval=self.reissue_interval,
            timeout=budget,
            clock=self._clock,
            sleep=self._sleep,
            name=f"rollout {deployment}",
        )

        async def probe(remaining: float) -> Optional[bool]:
            done = await self.cluster.rollout_status(
                deployment.name, deployment.namespace, remaining
            )
            return True if done else None

        logger.info("Waiting for rollout of %s (timeout %.0fs)", deployment, budget)
        result = await poller.run(probe)

        if result.succeeded:
            logger.info("Rollout of %s is ready after %.1fs", deployment, result.elapsed)
            return RolloutResult(RolloutOutcome.READY, result.elapsed)

        logger.error("Rollout of %s timed out after %.0fs", deployment, budget)
        diagnostics = await self.diagnostics.collect(deployment)
        return RolloutResult(RolloutOutcome.TIMED_OUT, result.elapsed, diagnostics)
