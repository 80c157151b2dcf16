"""
Check Deployment Health Use Case

Architectural Intent:
- Standalone health verification of an already deployed application
- Deployment existence -> replica counts -> pod phases (+ events of stuck pods)
  -> HTTP health check when an application URL is known

Domain Logic:
- Results: deployment_not_found, no_pods_found, healthy, healthy_root, timeout,
  pods_running, pods_not_ready
- Without a URL the verdict rests on pod phases alone; pods_not_ready is reported
  as a warning, not a failure
"""

from __future__ import annotations
import logging
from typing import Optional

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult, ResultStatus
from kubeship.application.orchestration.health_checker import DEFAULT_INTERVAL, HealthChecker
from kubeship.application.orchestration.tracing import RunTracer
from kubeship.domain.errors import DeploymentError, HealthCheckTimedOut, NotFoundError
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.telemetry_port import TelemetryPort
from kubeship.domain.value_objects.cluster_state import DeploymentRef

logger = logging.getLogger(__name__)

DEPLOYMENT_NOT_FOUND = "deployment_not_found"
NO_PODS_FOUND = "no_pods_found"
PODS_RUNNING = "pods_running"
PODS_NOT_READY = "pods_not_ready"


class CheckDeploymentHealth:
    def __init__(
        self,
        cluster: ClusterPort,
        health_checker: HealthChecker,
        interval: float = DEFAULT_INTERVAL,
        telemetry: Optional[TelemetryPort] = None,
    ):
        self.cluster = cluster
        self.health_checker = health_checker
        self.interval = interval
        self.telemetry = telemetry

    async def execute(
        self,
        deployment_name: str,
        namespace: str = "default",
        app_url: str = "",
        path: str = "/",
        timeout: float = 300.0,
    ) -> OrchestrationResult:
        target = DeploymentRef(deployment_name, namespace or "default")
        tracer = RunTracer(self.telemetry, "kubeship.health_check", {"deployment": str(target)})
        with tracer.run():
            try:
                return await self._check(target, tracer, app_url, path, timeout)
            except DeploymentError as e:
                logger.error("Health check of %s failed: %s", target, e.message)
                return OrchestrationResult.failure(
                    "health-check", e.reason, e.message, diagnostics=e.diagnostics
                )

    async def _check(
        self, target: DeploymentRef, tracer: RunTracer, app_url: str, path: str, timeout: float
    ) -> OrchestrationResult:
        logger.info("Checking deployment status of %s", target)
        with tracer.phase("deployment"):
            snapshot = await self.cluster.get_deployment(target.name, target.namespace)
        if snapshot is None:
            error = NotFoundError(
                f"Deployment {target.name} not found in namespace {target.namespace}"
            )
            return OrchestrationResult.failure(
                "health-check",
                error.reason,
                error.message,
                health_check_result=DEPLOYMENT_NOT_FOUND,
            )

        replicas = dict(
            ready_replicas=snapshot.ready_replicas, desired_replicas=snapshot.desired_replicas
        )
        logger.info("Ready replicas: %d/%d", snapshot.ready_replicas, snapshot.desired_replicas)
        if not snapshot.fully_ready:
            logger.warning("Not all replicas are ready")

        with tracer.phase("pods"):
            pods = await self.cluster.pods_for_deployment(target.name, target.namespace)
            if not pods:
                return OrchestrationResult.failure(
                    "health-check",
                    NO_PODS_FOUND,
                    f"No pods found for deployment {target.name}",
                    health_check_result=NO_PODS_FOUND,
                    **replicas,
                )

            events: dict[str, list[str]] = {}
            for pod in pods:
                logger.info("Pod %s status: %s", pod.name, pod.phase)
                if not pod.running:
                    logger.warning("Pod %s is not running", pod.name)
                    events[pod.name] = await self.cluster.events_for(pod.name, target.namespace)
                    for line in events[pod.name]:
                        logger.info("  %s", line)
        all_running = not events

        if not app_url:
            logger.warning("No application URL available, skipping HTTP health check")
            verdict = PODS_RUNNING if all_running else PODS_NOT_READY
            return OrchestrationResult(
                ResultStatus.SUCCESS,
                operation="health-check",
                health_check_result=verdict,
                diagnostics={"events": events} if events else {},
                **replicas,
            )

        with tracer.phase("http"):
            health = await self.health_checker.check(
                app_url, path, timeout=timeout, interval=self.interval, deployment=target
            )
        self._record(target, health.healthy)

        if health.healthy:
            return OrchestrationResult(
                ResultStatus.SUCCESS,
                operation="health-check",
                app_url=health.url,
                health_check_result=health.outcome.value,
                http_code=health.http_code,
                **replicas,
            )

        diagnostics = health.diagnostics.as_dict()
        diagnostics["events"] = {**events, **diagnostics["events"]}
        error = HealthCheckTimedOut(
            f"Health check timed out after {timeout:.0f}s (last HTTP code {health.http_code})",
            diagnostics=diagnostics,
        )
        logger.warning("Health check failed, but deployment is running")
        return OrchestrationResult.failure(
            "health-check",
            error.reason,
            error.message,
            app_url=health.url,
            health_check_result=health.outcome.value,
            http_code=health.http_code,
            diagnostics=error.diagnostics,
            **replicas,
        )

    def _record(self, target: DeploymentRef, healthy: bool) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record_metric(
            "kubeship.health_check.success",
            1.0 if healthy else 0.0,
            attributes={"deployment": target.name, "namespace": target.namespace},
        )
