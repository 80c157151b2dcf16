"""
Application Orchestration Package

Architectural Intent:
- Contains the polling and resolution components composed by the use cases
- Bounded polling is shared by rollout, load-balancer and health checks
"""

from kubeship.application.orchestration.bounded_poller import (
    BoundedPoller,
    PollResult,
    PollerError,
)
from kubeship.application.orchestration.diagnostics import DiagnosticsCollector, PodDiagnostics
from kubeship.application.orchestration.endpoint_resolver import (
    EndpointResolution,
    EndpointResolver,
)
from kubeship.application.orchestration.health_checker import (
    HealthChecker,
    HealthCheckResult,
    HealthOutcome,
)
from kubeship.application.orchestration.ingress_exposer import IngressRouteExposer
from kubeship.application.orchestration.rollout_monitor import (
    RolloutMonitor,
    RolloutOutcome,
    RolloutResult,
)

__all__ = [
    "BoundedPoller",
    "PollResult",
    "PollerError",
    "DiagnosticsCollector",
    "PodDiagnostics",
    "EndpointResolution",
    "EndpointResolver",
    "HealthChecker",
    "HealthCheckResult",
    "HealthOutcome",
    "IngressRouteExposer",
    "RolloutMonitor",
    "RolloutOutcome",
    "RolloutResult",
]
