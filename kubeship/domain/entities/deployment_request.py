"""
Deployment Request

Architectural Intent:
- Immutable description of one deploy invocation, built once from external configuration
- Validates required fields and fills defaults before any cluster mutation is attempted
- Never mutated after construction; every later stage reads from it

Design Decisions:
- Nested settings (resources, probes, ingress, route, health check) are separate frozen dataclasses
- Environment variables keep their input order; they are rendered in that order
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from kubeship.domain.errors import ConfigurationError

DEFAULT_NAMESPACE = "default"


class ServiceType(Enum):
    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    LOAD_BALANCER = "LoadBalancer"

    @classmethod
    def parse(cls, value: str) -> "ServiceType":
        for member in cls:
            if member.value.lower() == value.strip().lower():
                return member
        raise ConfigurationError(
            f"Unsupported service type {value!r} "
            f"(expected one of {', '.join(m.value for m in cls)})"
        )


class ClusterType(Enum):
    KUBERNETES = "kubernetes"
    OPENSHIFT = "openshift"

    @classmethod
    def parse(cls, value: str) -> "ClusterType":
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ConfigurationError(
                f"Unsupported cluster type {value!r} (expected kubernetes or openshift)"
            ) from None


@dataclass(frozen=True)
class EnvVar:
    name: str
    value: str


def parse_env_vars(text: str) -> tuple[EnvVar, ...]:
    """Parse newline-delimited KEY=VALUE lines, skipping blank lines.

    Everything after the first '=' is the value, so values may contain '='.
    """
    env: list[EnvVar] = []
    for raw in text.splitlines():
        line = raw.strip()
        if not line:
            continue
        if "=" not in line:
            raise ConfigurationError(f"Environment variable {line!r} is not KEY=VALUE")
        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            raise ConfigurationError(f"Environment variable {line!r} has an empty name")
        env.append(EnvVar(key, value))
    return tuple(env)


@dataclass(frozen=True)
class ResourceSpec:
    limits_cpu: str = "500m"
    limits_memory: str = "512Mi"
    requests_cpu: str = "100m"
    requests_memory: str = "128Mi"


@dataclass(frozen=True)
class ProbeConfig:
    """Liveness/readiness probes. Empty paths fall back to the health-check path."""

    enabled: bool = False
    liveness_path: str = ""
    readiness_path: str = ""


@dataclass(frozen=True)
class HealthCheckConfig:
    enabled: bool = True
    path: str = "/"
    timeout_seconds: int = 300


@dataclass(frozen=True)
class IngressConfig:
    host: str = ""
    # None means "not specified": auto-detected hosts then default to TLS on
    tls: Optional[bool] = None
    auto_detect: bool = False

    @property
    def requested(self) -> bool:
        return bool(self.host) or self.auto_detect


@dataclass(frozen=True)
class RouteConfig:
    create: bool = False
    hostname: str = ""


@dataclass(frozen=True)
class DeploymentRequest:
    image: str
    deployment_name: str
    namespace: str = DEFAULT_NAMESPACE
    container_name: str = ""
    port: int = 8080
    replicas: int = 1
    service_type: ServiceType = ServiceType.CLUSTER_IP
    resources: ResourceSpec = field(default_factory=ResourceSpec)
    env_vars: tuple[EnvVar, ...] = ()
    probes: ProbeConfig = field(default_factory=ProbeConfig)
    health_check: HealthCheckConfig = field(default_factory=HealthCheckConfig)
    ingress: IngressConfig = field(default_factory=IngressConfig)
    route: RouteConfig = field(default_factory=RouteConfig)
    manifest_template: Optional[str] = None
    version: str = "latest"

    def __post_init__(self) -> None:
        if not self.image or not self.image.strip():
            raise ConfigurationError("image cannot be empty")
        if not self.deployment_name or not self.deployment_name.strip():
            raise ConfigurationError("deployment_name cannot be empty")
        if not self.namespace or not self.namespace.strip():
            object.__setattr__(self, "namespace", DEFAULT_NAMESPACE)
        if not self.container_name:
            object.__setattr__(self, "container_name", self.deployment_name)
        if not (1 <= self.port <= 65535):
            raise ConfigurationError(f"port must be 1-65535, got {self.port}")
        if self.replicas < 0:
            raise ConfigurationError(f"replicas cannot be negative, got {self.replicas}")
        if not self.version:
            object.__setattr__(self, "version", "latest")
        object.__setattr__(self, "env_vars", tuple(self.env_vars))

    @property
    def liveness_path(self) -> str:
        return self.probes.liveness_path or self.health_check.path

    @property
    def readiness_path(self) -> str:
        return self.probes.readiness_path or self.health_check.path

    @property
    def registry(self) -> str:
        """Registry host of the image reference (first path segment)."""
        return self.image.split("/", 1)[0]
