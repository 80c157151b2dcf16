"""
Kubectl Adapter

Architectural Intent:
- Infrastructure adapter implementing ClusterPort over the kubectl CLI
- Reads use `-o json` and are parsed into cluster-state snapshots
- OpenShiftAdapter reuses everything here with the `oc` binary

Domain Logic:
- A read that fails with NotFound (or with no output at all) means "absent", not an
  error; this is what makes namespace creation idempotent (get fails -> create)
- Any other failed read (unauthorized, unreachable API) raises ClusterOperationFailed
- Mutations (apply, create, undo) raise ClusterOperationFailed on non-zero exit
"""

from __future__ import annotations
import json
import logging
from typing import Any, Optional

from kubeship.domain.entities.deployment_request import ClusterType
from kubeship.domain.errors import ClusterOperationFailed
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.value_objects.cluster_state import (
    DeploymentSnapshot,
    IngressSnapshot,
    NodeSnapshot,
    PodSnapshot,
    RevisionHistory,
    ServiceSnapshot,
)
from kubeship.domain.value_objects.manifest import RenderedManifest
from kubeship.infrastructure.adapters.command_runner import CommandResult, CommandRunner
from kubeship.infrastructure.adapters.manifest_file import manifest_file

logger = logging.getLogger(__name__)

# Extra wall-clock allowance for the CLI itself beyond its own --timeout
_ROLLOUT_GRACE_SECONDS = 30.0
# `Error from server (NotFound): deployments.apps "web" not found`
_NOT_FOUND_MARKER = "NotFound"


def is_not_found(stderr: str) -> bool:
    return _NOT_FOUND_MARKER in stderr


class KubectlAdapter(ClusterPort):
    binary = "kubectl"
    cluster_type = ClusterType.KUBERNETES

    def __init__(
        self,
        runner: Optional[CommandRunner] = None,
        tool_path: str = "",
        manifest_dir: Optional[str] = None,
    ):
        self.runner = runner or CommandRunner()
        self.tool = tool_path or self.binary
        self.manifest_dir = manifest_dir

    async def _run(self, *args: str, timeout: Optional[float] = None) -> CommandResult:
        return await self.runner.run([self.tool, *args], timeout=timeout)

    async def _run_checked(self, action: str, *args: str) -> CommandResult:
        result = await self._run(*args)
        if not result.ok:
            stderr = result.stderr.strip()
            raise ClusterOperationFailed(
                f"{action} failed: {stderr or f'exit code {result.returncode}'}",
                command=list(result.args),
                stderr=stderr,
            )
        return result

    async def _get_json(self, *args: str) -> Optional[dict[str, Any]]:
        result = await self._run(*args, "-o", "json")
        if not result.ok:
            stderr = result.stderr.strip()
            if stderr and not is_not_found(stderr):
                raise ClusterOperationFailed(
                    f"Reading {' '.join(args[1:])} failed: {stderr}",
                    command=list(result.args),
                    stderr=stderr,
                )
            return None
        if not result.stdout.strip():
            return None
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            logger.warning("Unparseable output from %s: %s", result.command, e)
            return None

    async def namespace_exists(self, namespace: str) -> bool:
        return (await self._run("get", "namespace", namespace)).ok

    async def create_namespace_if_absent(self, namespace: str) -> bool:
        if await self.namespace_exists(namespace):
            logger.debug("Namespace %s already exists", namespace)
            return False
        await self._run_checked(f"Creating namespace {namespace}", "create", "namespace", namespace)
        return True

    async def apply(self, manifest: RenderedManifest, namespace: Optional[str] = None) -> None:
        if manifest.is_empty:
            logger.debug("Nothing to apply")
            return
        scope = ["-n", namespace] if namespace else []
        with manifest_file(manifest, self.manifest_dir) as path:
            result = await self._run_checked(
                f"Applying {', '.join(manifest.kinds)}", "apply", "-f", str(path), *scope
            )
        for line in result.stdout.splitlines():
            logger.info(line)

    async def get_deployment(self, name: str, namespace: str) -> Optional[DeploymentSnapshot]:
        doc = await self._get_json("get", "deployment", name, "-n", namespace)
        return DeploymentSnapshot.from_resource(doc) if doc else None

    async def get_deployment_document(self, name: str, namespace: str) -> dict:
        try:
            return await self._get_json("get", "deployment", name, "-n", namespace) or {}
        except ClusterOperationFailed as e:
            logger.warning("Deployment info unavailable: %s", e.stderr)
            return {}

    async def rollout_status(self, name: str, namespace: str, timeout: float) -> bool:
        seconds = max(int(timeout), 1)
        result = await self._run(
            "rollout",
            "status",
            f"deployment/{name}",
            "-n",
            namespace,
            f"--timeout={seconds}s",
            timeout=seconds + _ROLLOUT_GRACE_SECONDS,
        )
        if not result.ok:
            logger.warning("Rollout status of %s/%s: %s", namespace, name, result.stderr.strip())
        return result.ok

    async def rollout_undo(self, name: str, namespace: str) -> None:
        await self._run_checked(
            f"Rolling back deployment {name}",
            "rollout",
            "undo",
            f"deployment/{name}",
            "-n",
            namespace,
        )

    async def revision_history(self, name: str, namespace: str) -> RevisionHistory:
        result = await self._run("rollout", "history", f"deployment/{name}", "-n", namespace)
        if not result.ok:
            return RevisionHistory()
        return RevisionHistory.parse(result.stdout)

    async def current_image(self, name: str, namespace: str) -> str:
        snapshot = await self.get_deployment(name, namespace)
        return snapshot.image if snapshot else ""

    async def current_revision(self, name: str, namespace: str) -> Optional[int]:
        snapshot = await self.get_deployment(name, namespace)
        return snapshot.revision if snapshot else None

    async def pods_for_deployment(self, name: str, namespace: str) -> list[PodSnapshot]:
        doc = await self._get_json("get", "pods", "-n", namespace, "-l", f"app={name}")
        items = (doc or {}).get("items") or []
        return [PodSnapshot.from_resource(item) for item in items]

    async def events_for(self, pod: str, namespace: str, limit: int = 5) -> list[str]:
        result = await self._run(
            "get",
            "events",
            "-n",
            namespace,
            "--field-selector",
            f"involvedObject.name={pod}",
            "--sort-by=.lastTimestamp",
        )
        if not result.ok:
            return []
        lines = [line for line in result.stdout.splitlines() if line.strip()]
        if lines and lines[0].startswith("LAST SEEN"):
            lines = lines[1:]
        return lines[-limit:]

    async def logs_for(self, pod: str, namespace: str, tail: int = 20) -> str:
        result = await self._run("logs", pod, "-n", namespace, f"--tail={tail}")
        return result.stdout if result.ok else "Unable to retrieve logs"

    async def get_service(self, name: str, namespace: str) -> Optional[ServiceSnapshot]:
        doc = await self._get_json("get", "service", name, "-n", namespace)
        return ServiceSnapshot.from_resource(doc) if doc else None

    async def list_nodes(self) -> list[NodeSnapshot]:
        try:
            doc = await self._get_json("get", "nodes")
        except ClusterOperationFailed as e:
            logger.warning(
                "Unable to list nodes (may require additional permissions): %s", e.stderr
            )
            return []
        if doc is None:
            return []
        return [NodeSnapshot.from_resource(item) for item in doc.get("items") or []]

    async def get_ingress(self, name: str, namespace: str) -> Optional[IngressSnapshot]:
        doc = await self._get_json("get", "ingress", name, "-n", namespace)
        return IngressSnapshot.from_resource(doc) if doc else None
