"""
OpenShift Adapter

Architectural Intent:
- ClusterPort over the `oc` CLI; every kubectl-compatible call is inherited
- Adds Routes: `oc expose service`, host patching, read-back
- detect_cluster_type() backs the health-check default: OpenShift when `oc`
  is installed and `oc status` succeeds
"""

from __future__ import annotations
import json
import logging
from typing import Optional

from kubeship.domain.entities.deployment_request import ClusterType
from kubeship.domain.value_objects.cluster_state import RouteSnapshot
from kubeship.infrastructure.adapters.command_runner import CommandRunner
from kubeship.infrastructure.adapters.kubectl_adapter import KubectlAdapter

logger = logging.getLogger(__name__)


class OpenShiftAdapter(KubectlAdapter):
    binary = "oc"
    cluster_type = ClusterType.OPENSHIFT

    async def expose_route(self, service: str, namespace: str, hostname: str = "") -> None:
        args = ["expose", "service", service, "-n", namespace]
        if hostname:
            args.append(f"--hostname={hostname}")
        result = await self._run(*args)
        if result.ok:
            logger.info("Route created for service %s", service)
            return

        if not hostname:
            logger.info("Route %s already exists", service)
            return

        logger.info("Route %s already exists, updating host to %s", service, hostname)
        await self._run_checked(
            f"Updating route {service}",
            "patch",
            "route",
            service,
            "-n",
            namespace,
            "-p",
            json.dumps({"spec": {"host": hostname}}),
        )

    async def get_route(self, name: str, namespace: str) -> Optional[RouteSnapshot]:
        doc = await self._get_json("get", "route", name, "-n", namespace)
        return RouteSnapshot.from_resource(doc) if doc else None


async def detect_cluster_type(runner: Optional[CommandRunner] = None) -> ClusterType:
    runner = runner or CommandRunner()
    result = await runner.run([OpenShiftAdapter.binary, "status"], timeout=30)
    cluster_type = ClusterType.OPENSHIFT if result.ok else ClusterType.KUBERNETES
    logger.debug("Detected cluster type: %s", cluster_type.value)
    return cluster_type
