"""
Health Checker

Architectural Intent:
- Polls an application's HTTP endpoint until it answers or a timeout expires
- Outcomes: HEALTHY (target path answered), HEALTHY_AT_ROOT (target 404'd, root answered),
  TIMED_OUT (nothing acceptable before the deadline)
- On timeout, pod phases, events and logs are gathered for diagnostics; they never
  change the outcome

Domain Logic:
- Target path accepts 200, 204, 301 and 302
- Root fallback fires only on a 404 when the configured path is not the root, and is
  exactly one extra probe within the same poll; it accepts 200, 301 and 302
- No response at all (timeout, refused) is coded "000" and keeps polling
"""

from __future__ import annotations
import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from kubeship.application.orchestration.bounded_poller import BoundedPoller, Clock, Sleeper
from kubeship.application.orchestration.diagnostics import DiagnosticsCollector, PodDiagnostics
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.http_probe_port import HttpProbePort
from kubeship.domain.value_objects.cluster_state import DeploymentRef

logger = logging.getLogger(__name__)

SUCCESS_CODES = frozenset({200, 204, 301, 302})
ROOT_SUCCESS_CODES = frozenset({200, 301, 302})
DEFAULT_INTERVAL = 5.0


class HealthOutcome(Enum):
    HEALTHY = "healthy"
    HEALTHY_AT_ROOT = "healthy_root"
    TIMED_OUT = "timeout"


@dataclass(frozen=True)
class HealthCheckResult:
    outcome: HealthOutcome
    url: str
    http_code: str = "000"
    attempts: int = 0
    elapsed: float = 0.0
    body_preview: str = ""
    diagnostics: PodDiagnostics = field(default_factory=PodDiagnostics)

    @property
    def healthy(self) -> bool:
        return self.outcome in (HealthOutcome.HEALTHY, HealthOutcome.HEALTHY_AT_ROOT)

    @property
    def pod_logs(self) -> dict[str, str]:
        return self.diagnostics.logs


def is_root_path(path: str) -> bool:
    return not path or path == "/"


def join_url(base: str, path: str) -> str:
    if is_root_path(path):
        return base
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class HealthChecker:
    def __init__(
        self,
        http: HttpProbePort,
        cluster: Optional[ClusterPort] = None,
        clock: Clock = time.monotonic,
        sleep: Sleeper = asyncio.sleep,
        log_tail: int = 20,
    ) -> None:
        self.http = http
        self.cluster = cluster
        self._clock = clock
        self._sleep = sleep
        self.diagnostics = (
            DiagnosticsCollector(cluster, log_tail=log_tail) if cluster is not None else None
        )

    async def check(
        self,
        url: str,
        path: str = "/",
        timeout: float = 300.0,
        interval: float = DEFAULT_INTERVAL,
        deployment: Optional[DeploymentRef] = None,
    ) -> HealthCheckResult:
        target = join_url(url, path)
        last_code = "000"
        poller = BoundedPoller(
            interval=interval,
            timeout=timeout,
            clock=self._clock,
            sleep=self._sleep,
            name=f"health {target}",
        )

        async def probe(remaining: float) -> Optional[HealthCheckResult]:
            nonlocal last_code
            response = await self.http.get(target)
            last_code = response.code

            if response.status in SUCCESS_CODES:
                logger.info("Application is responding: HTTP %s from %s", response.code, target)
                return HealthCheckResult(
                    HealthOutcome.HEALTHY,
                    url=target,
                    http_code=response.code,
                    body_preview=response.body_preview,
                )

            if not response.responded:
                logger.warning("Unable to connect to %s: %s", target, response.error)
                return None

            logger.warning(
                "Received HTTP %s from %s (expected 200, 204, 301 or 302)", response.code, target
            )
            if response.status == 404 and not is_root_path(path):
                logger.info("Health endpoint not found, trying root endpoint %s", url)
                root = await self.http.get(url)
                if root.status in ROOT_SUCCESS_CODES:
                    logger.warning(
                        "Health endpoint %s returned 404, but root endpoint is accessible", path
                    )
                    return HealthCheckResult(
                        HealthOutcome.HEALTHY_AT_ROOT,
                        url=url,
                        http_code=root.code,
                        body_preview=root.body_preview,
                    )
            return None

        logger.info("Waiting for %s to respond (timeout %.0fs)", target, timeout)
        result = await poller.run(probe)

        if result.value is not None:
            return HealthCheckResult(
                result.value.outcome,
                url=result.value.url,
                http_code=result.value.http_code,
                attempts=result.attempts,
                elapsed=result.elapsed,
                body_preview=result.value.body_preview,
            )

        logger.error("Health check of %s timed out after %.0fs", target, timeout)
        return HealthCheckResult(
            HealthOutcome.TIMED_OUT,
            url=target,
            http_code=last_code,
            attempts=result.attempts,
            elapsed=result.elapsed,
            diagnostics=await self._collect_diagnostics(deployment),
        )

    async def _collect_diagnostics(self, deployment: Optional[DeploymentRef]) -> PodDiagnostics:
        if self.diagnostics is None or deployment is None:
            return PodDiagnostics()
        return await self.diagnostics.collect(deployment)
