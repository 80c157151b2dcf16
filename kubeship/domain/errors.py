"""
Deployment Errors

Architectural Intent:
- Single taxonomy for every failure a deploy, rollback or health-check run can end in
- Each error carries a stable reason code that ends up in the result record
- Use cases translate these into failure results; anything else propagates
"""

from __future__ import annotations
from typing import Any, Optional


class DeploymentError(Exception):
    """Base class for classified orchestration failures."""

    reason = "deployment_error"

    def __init__(self, message: str, diagnostics: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.diagnostics = diagnostics or {}


class ConfigurationError(DeploymentError):
    """Missing required input or template; raised before any cluster call."""

    reason = "configuration_error"


class RenderingError(DeploymentError):
    """A rendered manifest still contains a recognised placeholder."""

    reason = "rendering_error"


class NotFoundError(DeploymentError):
    reason = "not_found"


class NoRevisionHistory(DeploymentError):
    reason = "no_revision_history"


class ClusterOperationFailed(DeploymentError):
    """An apply/create/undo returned non-zero."""

    reason = "cluster_operation_failed"

    def __init__(
        self,
        message: str,
        command: Optional[list[str]] = None,
        stderr: str = "",
        diagnostics: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, diagnostics)
        self.command = command or []
        self.stderr = stderr


class RollbackIssueFailed(ClusterOperationFailed):
    reason = "rollback_issue_failed"


class RolloutTimedOut(DeploymentError):
    reason = "rollout_timed_out"


class HealthCheckTimedOut(DeploymentError):
    reason = "health_check_timed_out"


class EndpointUnresolved(DeploymentError):
    """No routable address could be found. Caught by the resolver; never fails a run."""

    reason = "endpoint_unresolved"

    def __init__(self, message: str, note: str = "unresolved"):
        super().__init__(message)
        self.note = note
