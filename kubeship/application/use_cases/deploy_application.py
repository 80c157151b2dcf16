"""
Deploy Application Use Case

Architectural Intent:
- Top-level deploy pipeline: render -> apply -> rollout -> service -> endpoint
  -> ingress/route -> health check -> result
- Every step is awaited in order on one control thread; nothing runs concurrently
- Classified failures (DeploymentError) become a failure OrchestrationResult with
  a reason code; anything else propagates

Domain Logic:
- Configuration and rendering errors surface before any cluster mutation
- No compensating actions: a failed step leaves earlier applies in place
- An unresolved endpoint is not a failure; only the URL outputs stay empty
"""

from __future__ import annotations
import asyncio
import logging
import re
import time
from pathlib import Path
from typing import Optional

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult, ResultStatus
from kubeship.application.orchestration.bounded_poller import Sleeper
from kubeship.application.orchestration.endpoint_resolver import EndpointResolver
from kubeship.application.orchestration.health_checker import HealthChecker, HealthCheckResult
from kubeship.application.orchestration.ingress_exposer import IngressRouteExposer
from kubeship.application.orchestration.rollout_monitor import RolloutMonitor
from kubeship.application.orchestration.tracing import RunTracer
from kubeship.domain.entities.deployment_request import DeploymentRequest, ServiceType
from kubeship.domain.errors import (
    ConfigurationError,
    DeploymentError,
    HealthCheckTimedOut,
    RolloutTimedOut,
)
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.telemetry_port import TelemetryPort
from kubeship.domain.services.manifest_renderer import ManifestRenderer, RenderContext
from kubeship.domain.value_objects.cluster_state import DeploymentRef
from kubeship.domain.value_objects.ingress import RegistryCredentials

logger = logging.getLogger(__name__)

ICR_IMAGE_RE = re.compile(r"\.icr\.io/")
ICR_USERNAME = "iamapikey"
ICR_EMAIL = "iamapikey@ibm.com"


class DeployApplication:
    def __init__(
        self,
        cluster: ClusterPort,
        renderer: ManifestRenderer,
        rollout_monitor: RolloutMonitor,
        endpoint_resolver: EndpointResolver,
        exposer: IngressRouteExposer,
        health_checker: HealthChecker,
        registry_api_key: str = "",
        pull_secret_name: str = "icr-secret",
        service_settle_seconds: float = 5.0,
        health_check_interval: float = 5.0,
        sleep: Sleeper = asyncio.sleep,
        telemetry: Optional[TelemetryPort] = None,
    ):
        self.cluster = cluster
        self.renderer = renderer
        self.rollout_monitor = rollout_monitor
        self.endpoint_resolver = endpoint_resolver
        self.exposer = exposer
        self.health_checker = health_checker
        self.registry_api_key = registry_api_key
        self.pull_secret_name = pull_secret_name
        self.service_settle_seconds = service_settle_seconds
        self.health_check_interval = health_check_interval
        self._sleep = sleep
        self.telemetry = telemetry

    async def execute(self, request: DeploymentRequest) -> OrchestrationResult:
        tracer = RunTracer(
            self.telemetry,
            "kubeship.deploy",
            {"deployment": request.deployment_name, "namespace": request.namespace},
        )
        with tracer.run():
            try:
                return await self._deploy(request, tracer)
            except DeploymentError as e:
                logger.error("Deployment of %s failed: %s", request.deployment_name, e.message)
                return OrchestrationResult.failure(
                    "deploy", e.reason, e.message, diagnostics=e.diagnostics
                )

    async def _deploy(self, request: DeploymentRequest, tracer: RunTracer) -> OrchestrationResult:
        ref = DeploymentRef(request.deployment_name, request.namespace)

        with tracer.phase("render"):
            template = self._load_template(request.manifest_template)
            ingress = None
            if request.ingress.requested:
                ingress = await self.exposer.resolve_settings(request)
            context = RenderContext(ingress=ingress, pull_secret=self._pull_secret(request))
            manifest = self.renderer.render(request, template, context)

        logger.info("Deploying %s to %s (%s)", request.image, ref, self.cluster.cluster_type.value)
        with tracer.phase("apply"):
            if await self.cluster.create_namespace_if_absent(request.namespace):
                logger.info("Created namespace %s", request.namespace)
            await self.cluster.apply(manifest, request.namespace)

        with tracer.phase("rollout"):
            started = time.monotonic()
            rollout = await self.rollout_monitor.await_ready(ref)
        self._record("kubeship.rollout.duration_seconds", time.monotonic() - started, "s", request)
        if not rollout.ready:
            raise RolloutTimedOut(
                f"Deployment {ref} did not become ready within the rollout timeout",
                diagnostics=rollout.diagnostics.as_dict(),
            )

        with tracer.phase("service"):
            if not manifest.defines("Service"):
                logger.info("Creating %s service for %s", request.service_type.value, ref)
                await self.cluster.apply(self.renderer.render_service(request), request.namespace)
            await self._sleep(self.service_settle_seconds)

        with tracer.phase("endpoint"):
            endpoint = await self.endpoint_resolver.resolve(
                request.service_type, request.namespace, request.deployment_name
            )
        with tracer.phase("ingress"):
            app_url = await self.exposer.expose(request, manifest, ingress) or endpoint.url

        health: Optional[HealthCheckResult] = None
        if self._should_health_check(request, app_url, endpoint.url):
            with tracer.phase("health_check"):
                health = await self.health_checker.check(
                    app_url,
                    request.health_check.path,
                    timeout=request.health_check.timeout_seconds,
                    interval=self.health_check_interval,
                    deployment=ref,
                )
            self._record(
                "kubeship.health_check.success", 1.0 if health.healthy else 0.0, "", request
            )

        info = await self.cluster.get_deployment_document(
            request.deployment_name, request.namespace
        )
        fields = dict(
            app_url=app_url,
            service_endpoint=endpoint.endpoint,
            health_check_result=health.outcome.value if health else "",
            http_code=health.http_code if health else "",
            deployment_info=info,
        )

        if health is not None and not health.healthy:
            error = HealthCheckTimedOut(
                f"{health.url} did not respond successfully within "
                f"{request.health_check.timeout_seconds}s (last HTTP code {health.http_code})",
                diagnostics=health.diagnostics.as_dict(),
            )
            logger.error(error.message)
            return OrchestrationResult.failure(
                "deploy", error.reason, error.message, diagnostics=error.diagnostics, **fields
            )

        logger.info("Deployment of %s completed. URL: %s", ref, app_url or "<none>")
        return OrchestrationResult(ResultStatus.SUCCESS, operation="deploy", **fields)

    def _load_template(self, path: Optional[str]) -> Optional[str]:
        if not path:
            return None
        template = Path(path)
        if not template.is_file():
            raise ConfigurationError(f"Manifest template not found: {path}")
        try:
            return template.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read manifest template {path}: {e}") from e

    def _pull_secret(self, request: DeploymentRequest) -> Optional[RegistryCredentials]:
        if not ICR_IMAGE_RE.search(request.image):
            return None
        if not self.registry_api_key:
            logger.warning(
                "Image %s is hosted on IBM Cloud Container Registry but no API key is "
                "configured; no image pull secret will be created",
                request.image,
            )
            return None
        return RegistryCredentials(
            server=request.registry,
            username=ICR_USERNAME,
            password=self.registry_api_key,
            email=ICR_EMAIL,
            secret_name=self.pull_secret_name,
        )

    def _should_health_check(
        self, request: DeploymentRequest, app_url: str, service_url: str
    ) -> bool:
        if not request.health_check.enabled:
            return False
        if not app_url:
            logger.warning("No application URL available, skipping HTTP health check")
            return False
        # The in-cluster DNS name is not resolvable from the machine running the deploy
        if request.service_type == ServiceType.CLUSTER_IP and app_url == service_url:
            logger.info("Service is only reachable inside the cluster, skipping HTTP health check")
            return False
        return True

    def _record(self, name: str, value: float, unit: str, request: DeploymentRequest) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record_metric(
            name,
            value,
            unit=unit,
            attributes={"deployment": request.deployment_name, "namespace": request.namespace},
        )
