"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from kubeship.domain.ports.cluster_port import ClusterPort
from kubeship.domain.ports.cloud_provider_port import CloudProviderPort
from kubeship.domain.ports.http_probe_port import HttpProbePort, ProbeResponse
from kubeship.domain.ports.telemetry_port import TelemetryPort

__all__ = [
    "ClusterPort",
    "CloudProviderPort",
    "HttpProbePort",
    "ProbeResponse",
    "TelemetryPort",
]
