"""
Kubeship Telemetry Infrastructure

Architectural Intent:
- OpenTelemetry integration for deploy, rollback and health-check runs
- Spans per orchestration run, metrics for rollout, health and rollback outcomes
"""

from kubeship.infrastructure.telemetry.otel_exporter import (
    OTELExporter,
    OTELConfig,
    create_exporter,
)

__all__ = [
    "OTELExporter",
    "OTELConfig",
    "create_exporter",
]
