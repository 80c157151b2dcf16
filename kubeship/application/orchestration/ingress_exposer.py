"""
Ingress and Route Exposure

Architectural Intent:
- The host-based layer that sits on top of whichever service type is active
- Kubernetes: creates or reads back an Ingress and derives the URL from host and TLS
- OpenShift: exposes or reads back a Route and derives the URL from its host
- When present, the URL found here replaces the service endpoint URL

Design Decisions:
- Auto-detected hosts are <deployment>-<namespace>.<subdomain> and default to TLS
- A template that defines its own Ingress is authoritative; nothing is synthesised
"""

from __future__ import annotations
import asyncio
import logging
from typing import Optional

from kubeship.application.orchestration.bounded_poller import Sleeper
from kubeship.domain.entities.deployment_request import ClusterType, DeploymentRequest
from kubeship.domain.ports.cloud_provider_port import CloudProviderPort
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.services.manifest_renderer import ManifestRenderer
from kubeship.domain.value_objects.ingress import IngressSettings
from kubeship.domain.value_objects.manifest import RenderedManifest

logger = logging.getLogger(__name__)


class IngressRouteExposer:
    def __init__(
        self,
        cluster: ClusterPort,
        renderer: ManifestRenderer,
        cloud: Optional[CloudProviderPort] = None,
        settle_seconds: float = 5.0,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self.cluster = cluster
        self.renderer = renderer
        self.cloud = cloud
        self.settle_seconds = settle_seconds
        self._sleep = sleep

    async def resolve_settings(self, request: DeploymentRequest) -> Optional[IngressSettings]:
        config = request.ingress
        default_secret = f"{request.deployment_name}-tls"

        if config.auto_detect:
            domain = await self.cloud.ingress_domain() if self.cloud else None
            if domain and domain.subdomain and domain.subdomain != "-":
                host = f"{request.deployment_name}-{request.namespace}.{domain.subdomain}"
                settings = IngressSettings(
                    host=host,
                    secret_name=domain.secret_name or default_secret,
                    tls=config.tls is not False,
                )
                logger.info("Auto-detected ingress host: %s", host)
                return settings
            logger.warning("Could not auto-detect the cluster ingress subdomain")

        if config.host:
            logger.info("Using provided ingress host: %s", config.host)
            return IngressSettings(
                host=config.host, secret_name=default_secret, tls=bool(config.tls)
            )
        return None

    async def expose(
        self,
        request: DeploymentRequest,
        manifest: RenderedManifest,
        settings: Optional[IngressSettings],
    ) -> str:
        """Create or read back the host-based entry point. Returns its URL or ''."""
        url = ""
        if manifest.defines("Ingress"):
            url = await self._read_back_ingress(request)

        if self.cluster.cluster_type == ClusterType.OPENSHIFT:
            route_url = await self._expose_route(request)
            return route_url or url

        if settings is not None and not manifest.defines("Ingress"):
            logger.info("Creating ingress for %s", settings.host)
            await self.cluster.apply(
                self.renderer.render_ingress(request, settings), request.namespace
            )
            logger.info("Ingress created: %s", settings.url)
            return settings.url

        if not url:
            logger.info("No ingress host configured, skipping ingress creation")
        return url

    async def _read_back_ingress(self, request: DeploymentRequest) -> str:
        logger.info("Ingress resource defined by the template, waiting for it to be ready")
        await self._sleep(self.settle_seconds)
        snapshot = await self.cluster.get_ingress(request.deployment_name, request.namespace)
        if snapshot is None or not snapshot.host:
            logger.warning("Ingress %s has no host yet", request.deployment_name)
            return ""
        logger.info("Ingress configured: %s", snapshot.url)
        return snapshot.url

    async def _expose_route(self, request: DeploymentRequest) -> str:
        if not request.route.create:
            logger.info("Route creation disabled")
            return ""
        logger.info("Creating OpenShift route for %s", request.deployment_name)
        await self.cluster.expose_route(
            request.deployment_name, request.namespace, request.route.hostname
        )
        route = await self.cluster.get_route(request.deployment_name, request.namespace)
        if route is None or not route.host:
            logger.warning("Failed to retrieve route host")
            return ""
        logger.info("Route created: %s", route.url)
        return route.url
