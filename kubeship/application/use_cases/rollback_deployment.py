"""
Rollback Deployment Use Case

Architectural Intent:
- Drives one RollbackRun through its lifecycle against the cluster
- Validates history before any mutation; an undo is never issued with fewer than
  two recorded revisions
- Captures the prior revision and image before the undo so results can always
  report what was replaced, including on failure
"""

from __future__ import annotations
import logging
from typing import Any, Optional

from kubeship.application.dtos.orchestration_dtos import OrchestrationResult, ResultStatus
from kubeship.application.orchestration.rollout_monitor import RolloutMonitor
from kubeship.application.orchestration.tracing import RunTracer
from kubeship.domain.entities.rollback import RollbackRun
from kubeship.domain.errors import (
    ClusterOperationFailed,
    DeploymentError,
    NotFoundError,
    RollbackIssueFailed,
    RolloutTimedOut,
)
from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.telemetry_port import TelemetryPort
from kubeship.domain.value_objects.cluster_state import DeploymentRef

logger = logging.getLogger(__name__)


class RollbackDeployment:
    def __init__(
        self,
        cluster: ClusterPort,
        rollout_monitor: RolloutMonitor,
        telemetry: Optional[TelemetryPort] = None,
    ):
        self.cluster = cluster
        self.rollout_monitor = rollout_monitor
        self.telemetry = telemetry

    async def execute(
        self, deployment_name: str, namespace: str = "default"
    ) -> OrchestrationResult:
        target = DeploymentRef(deployment_name, namespace or "default")
        run = RollbackRun(target)
        tracer = RunTracer(self.telemetry, "kubeship.rollback", {"deployment": str(target)})

        with tracer.run():
            try:
                with tracer.phase("validate"):
                    if await self.cluster.get_deployment(target.name, target.namespace) is None:
                        raise NotFoundError(
                            f"Deployment {target.name} not found in namespace {target.namespace}"
                        )
                    history = await self.cluster.revision_history(target.name, target.namespace)
                    logger.info("Found %d revisions of %s", history.count, target)
                    run = run.validate(history)

                with tracer.phase("capture"):
                    run = run.capture_prior(
                        await self.cluster.current_revision(target.name, target.namespace),
                        await self.cluster.current_image(target.name, target.namespace),
                    )
                logger.info(
                    "Current revision: %s, image: %s", run.previous_revision, run.previous_image
                )

                with tracer.phase("undo"):
                    await self._issue_undo(target)
                run = run.issue_undo()

                with tracer.phase("rollout"):
                    rollout = await self.rollout_monitor.await_ready(target)
                run = run.mark_ready() if rollout.ready else run.mark_timed_out()
                run = await self._capture_after(run)

                if not rollout.ready:
                    raise RolloutTimedOut(
                        f"Rollback of {target} did not become ready within the rollout timeout",
                        diagnostics=rollout.diagnostics.as_dict(),
                    )
                run = run.complete()

            except DeploymentError as e:
                run = run.fail(e.message)
                logger.error("Rollback of %s failed: %s", target, e.message)
                self._record(run)
                return OrchestrationResult.failure(
                    "rollback", e.reason, e.message, diagnostics=e.diagnostics, **_fields(run)
                )

        self._record(run)
        logger.info(
            "Rolled back %s from revision %s (%s) to revision %s (%s)",
            target,
            run.previous_revision,
            run.previous_image,
            run.new_revision,
            run.new_image,
        )
        return OrchestrationResult(ResultStatus.SUCCESS, operation="rollback", **_fields(run))

    async def _issue_undo(self, target: DeploymentRef) -> None:
        try:
            await self.cluster.rollout_undo(target.name, target.namespace)
        except ClusterOperationFailed as e:
            raise RollbackIssueFailed(
                f"Rollback of {target} could not be issued: {e.message}",
                command=e.command,
                stderr=e.stderr,
            ) from e

    async def _capture_after(self, run: RollbackRun) -> RollbackRun:
        target = run.target
        snapshot = await self.cluster.get_deployment(target.name, target.namespace)
        return run.capture_after(
            await self.cluster.current_revision(target.name, target.namespace),
            await self.cluster.current_image(target.name, target.namespace),
            snapshot.ready_replicas if snapshot else 0,
            snapshot.desired_replicas if snapshot else 0,
        )

    def _record(self, run: RollbackRun) -> None:
        if self.telemetry is None:
            return
        self.telemetry.record_metric(
            "kubeship.rollback.completed",
            1.0 if run.succeeded else 0.0,
            attributes={"deployment": run.target.name, "namespace": run.target.namespace},
        )


def _fields(run: RollbackRun) -> dict[str, Any]:
    captured_after = run.new_revision is not None or bool(run.new_image)
    return dict(
        previous_revision=run.previous_revision,
        previous_image=run.previous_image,
        rollback_revision=run.new_revision,
        rollback_image=run.new_image,
        ready_replicas=run.ready_replicas if captured_after else None,
        desired_replicas=run.desired_replicas if captured_after else None,
    )
