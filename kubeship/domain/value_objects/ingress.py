"""
Ingress and Registry Settings

Architectural Intent:
- Computed values that feed manifest rendering but are not part of the request itself
- IngressSettings: resolved ingress host, TLS secret and annotations
- RegistryCredentials: pull-secret material for a private registry
"""

from __future__ import annotations
import base64
import json
from dataclasses import dataclass, field

SSL_REDIRECT_ANNOTATION = "nginx.ingress.kubernetes.io/ssl-redirect"


@dataclass(frozen=True)
class IngressSettings:
    host: str
    secret_name: str
    tls: bool = False

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("Ingress host cannot be empty")

    @property
    def annotations(self) -> dict[str, str]:
        return {SSL_REDIRECT_ANNOTATION: "true"} if self.tls else {}

    @property
    def annotations_yaml(self) -> str:
        """Annotations as a single YAML mapping line for template substitution."""
        return "\n".join(f'{k}: "{v}"' for k, v in self.annotations.items())

    @property
    def url(self) -> str:
        return f"{'https' if self.tls else 'http'}://{self.host}"


@dataclass(frozen=True)
class IngressDomain:
    """Cluster-wide ingress subdomain as reported by the cloud provider."""

    subdomain: str
    secret_name: str = ""


@dataclass(frozen=True)
class RegistryCredentials:
    server: str
    username: str
    password: str = field(repr=False)
    email: str = ""
    secret_name: str = "icr-secret"

    def dockerconfigjson(self) -> str:
        """Base64 payload for a kubernetes.io/dockerconfigjson secret."""
        auth = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
        config = {
            "auths": {
                self.server: {
                    "username": self.username,
                    "password": self.password,
                    "email": self.email,
                    "auth": auth,
                }
            }
        }
        return base64.b64encode(json.dumps(config).encode()).decode()
