"""
Composition Root

Architectural Intent:
- Dependency injection composition root for kubeship
- Single place where adapters, orchestration components and use cases are wired
- No adapter instantiation should occur outside this module (except the CLI's
  cluster-type detection)

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Cluster back-end is chosen from the declared cluster type, never probed here
- Timeouts and intervals flow from KubeshipConfig into every poller
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from kubeship.application.orchestration.endpoint_resolver import EndpointResolver
from kubeship.application.orchestration.health_checker import HealthChecker
from kubeship.application.orchestration.ingress_exposer import IngressRouteExposer
from kubeship.application.orchestration.rollout_monitor import RolloutMonitor
from kubeship.application.use_cases.check_deployment_health import CheckDeploymentHealth
from kubeship.application.use_cases.deploy_application import DeployApplication
from kubeship.application.use_cases.rollback_deployment import RollbackDeployment
from kubeship.domain.entities.deployment_request import ClusterType
from kubeship.domain.ports.cloud_provider_port import CloudProviderPort
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.http_probe_port import HttpProbePort
from kubeship.domain.ports.telemetry_port import TelemetryPort
from kubeship.domain.services.manifest_renderer import ManifestRenderer
from kubeship.infrastructure.adapters.aiohttp_probe_adapter import AiohttpProbeAdapter
from kubeship.infrastructure.adapters.ibmcloud_adapter import IBMCloudAdapter, NullCloudProvider
from kubeship.infrastructure.adapters.kubectl_adapter import KubectlAdapter
from kubeship.infrastructure.adapters.openshift_adapter import OpenShiftAdapter
from kubeship.infrastructure.config import KubeshipConfig


@dataclass
class KubeshipContainer:
    """DI container holding all wired dependencies."""

    cluster: ClusterPort
    cloud: CloudProviderPort
    http: HttpProbePort
    renderer: ManifestRenderer
    rollout_monitor: RolloutMonitor
    endpoint_resolver: EndpointResolver
    exposer: IngressRouteExposer
    health_checker: HealthChecker
    deploy: DeployApplication
    rollback: RollbackDeployment
    health_check: CheckDeploymentHealth


def create_cluster(cluster_type: ClusterType, tool_path: str = "") -> ClusterPort:
    if cluster_type == ClusterType.OPENSHIFT:
        return OpenShiftAdapter(tool_path=tool_path)
    return KubectlAdapter(tool_path=tool_path)


def create_cloud_provider(cluster_name: str, api_key: str = "") -> CloudProviderPort:
    if not cluster_name:
        return NullCloudProvider()
    # Worker listings need an authenticated account; the ingress lookup is tried regardless
    return IBMCloudAdapter(cluster_name, workers_lookup=bool(api_key))


def create_container(
    config: Optional[KubeshipConfig] = None,
    cluster: Optional[ClusterPort] = None,
    cloud: Optional[CloudProviderPort] = None,
    http: Optional[HttpProbePort] = None,
    telemetry: Optional[TelemetryPort] = None,
) -> KubeshipContainer:
    """Create and wire all dependencies. Explicit ports override the configured ones."""
    config = config or KubeshipConfig()
    timeouts = config.timeouts
    api_key = config.registry.ibm_cloud_api_key

    cluster = cluster or create_cluster(
        ClusterType.parse(config.cluster.type), config.cluster.tool_path
    )
    cloud = cloud or create_cloud_provider(config.cluster.name, api_key)
    http = http or AiohttpProbeAdapter()
    renderer = ManifestRenderer()

    rollout_monitor = RolloutMonitor(
        cluster,
        timeout=timeouts.rollout_seconds,
        reissue_interval=timeouts.rollout_reissue_interval,
    )
    endpoint_resolver = EndpointResolver(
        cluster,
        cloud,
        lb_attempts=timeouts.load_balancer_attempts,
        lb_interval=timeouts.load_balancer_interval,
    )
    exposer = IngressRouteExposer(
        cluster, renderer, cloud, settle_seconds=timeouts.ingress_settle_seconds
    )
    health_checker = HealthChecker(http, cluster)

    deploy = DeployApplication(
        cluster,
        renderer,
        rollout_monitor,
        endpoint_resolver,
        exposer,
        health_checker,
        registry_api_key=api_key,
        pull_secret_name=config.registry.pull_secret_name,
        service_settle_seconds=timeouts.service_settle_seconds,
        health_check_interval=timeouts.health_check_interval,
        telemetry=telemetry,
    )
    rollback = RollbackDeployment(cluster, rollout_monitor, telemetry=telemetry)
    health_check = CheckDeploymentHealth(
        cluster, health_checker, interval=timeouts.health_check_interval, telemetry=telemetry
    )

    return KubeshipContainer(
        cluster=cluster,
        cloud=cloud,
        http=http,
        renderer=renderer,
        rollout_monitor=rollout_monitor,
        endpoint_resolver=endpoint_resolver,
        exposer=exposer,
        health_checker=health_checker,
        deploy=deploy,
        rollback=rollback,
        health_check=health_check,
    )
