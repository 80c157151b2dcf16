"""
IBM Cloud Adapter

Architectural Intent:
- Implements CloudProviderPort over the `ibmcloud ks` CLI
- Worker public IPs feed the first NodePort address strategy
- Cluster ingress subdomain and TLS secret feed ingress auto-detection

Design Decisions:
- Lookups never raise: a missing CLI, missing cluster name or bad output answers None
- Login is out of scope; the CLI is expected to be authenticated already
"""

from __future__ import annotations
import json
import logging
from typing import Any, Optional

from kubeship.domain.value_objects.ingress import IngressDomain
from kubeship.infrastructure.adapters.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class IBMCloudAdapter:
    binary = "ibmcloud"

    def __init__(
        self,
        cluster_name: str,
        runner: Optional[CommandRunner] = None,
        workers_lookup: bool = True,
    ):
        self.cluster_name = cluster_name
        self.runner = runner or CommandRunner(default_timeout=60)
        self.workers_lookup = workers_lookup

    async def _ks_json(self, *args: str) -> Any:
        if not self.cluster_name:
            return None
        result = await self.runner.run(
            [self.binary, "ks", *args, "--cluster", self.cluster_name, "--output", "json"]
        )
        if not result.ok or not result.stdout.strip():
            logger.debug("ibmcloud ks %s returned nothing usable", " ".join(args))
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.warning("Unparseable ibmcloud output: %s", e)
            return None

    async def worker_public_ip(self) -> Optional[str]:
        if not self.workers_lookup:
            return None
        logger.info("Attempting to get public IP via IBM Cloud CLI")
        workers = await self._ks_json("workers")
        if not isinstance(workers, list):
            return None
        for worker in workers:
            ip = (worker or {}).get("publicIP") or ""
            if ip and ip not in ("null", "-"):
                logger.info("Found public IP via IBM Cloud: %s", ip)
                return ip
        return None

    async def ingress_domain(self) -> Optional[IngressDomain]:
        cluster = await self._ks_json("cluster", "get")
        if not isinstance(cluster, dict):
            return None
        ingress = cluster.get("ingress") or {}
        subdomain = cluster.get("ingressHostname") or ingress.get("hostname") or ""
        if not subdomain or subdomain == "-":
            return None
        secret = cluster.get("ingressSecretName") or ingress.get("secretName") or ""
        return IngressDomain(subdomain=subdomain, secret_name=secret)


class NullCloudProvider:
    """Cloud provider for clusters with no provider CLI: knows nothing."""

    async def worker_public_ip(self) -> Optional[str]:
        return None

    async def ingress_domain(self) -> Optional[IngressDomain]:
        return None
