"""
Manifest Renderer

Architectural Intent:
- Turns a DeploymentRequest (plus an optional template) into concrete resource documents
- Pure: the same request, template and context always render the same text
- Writing the result anywhere is the caller's concern

Domain Logic:
- Template mode substitutes the recognised {{PLACEHOLDERS}} and leaves all others untouched
- An ingress document whose host cannot be resolved is dropped, never applied half-filled
- An empty environment list removes the placeholder line and the bare `env:` key above it
- Without a template, a minimal Deployment is synthesised; Service and Ingress are
  synthesised separately so a template can stay authoritative for them
"""

from __future__ import annotations
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Optional

import yaml

from kubeship.domain.entities.deployment_request import DeploymentRequest, EnvVar
from kubeship.domain.errors import RenderingError
from kubeship.domain.value_objects.ingress import IngressSettings, RegistryCredentials
from kubeship.domain.value_objects.manifest import (
    PLACEHOLDER_RE,
    RECOGNIZED_PLACEHOLDERS,
    RenderedManifest,
    split_documents,
    unresolved_placeholders,
)

logger = logging.getLogger(__name__)

SERVICE_PORT = 80

_ENV_TOKEN = "{{ENV_VARS}}"
_INGRESS_TOKEN = "{{INGRESS_HOST}}"
_BARE_ENV_KEY_RE = re.compile(r"^\s*env:\s*$")


@dataclass(frozen=True)
class RenderContext:
    """Values computed outside the request that feed rendering."""

    ingress: Optional[IngressSettings] = None
    pull_secret: Optional[RegistryCredentials] = None


def _dump(doc: dict[str, Any]) -> str:
    return yaml.safe_dump(doc, sort_keys=False, default_flow_style=False)


def _labels(request: DeploymentRequest) -> dict[str, str]:
    return {"app": request.deployment_name}


def _env_entries(env_vars: tuple[EnvVar, ...]) -> list[dict[str, str]]:
    return [{"name": e.name, "value": e.value} for e in env_vars]


def render_env_block(env_vars: tuple[EnvVar, ...], template: str) -> str:
    """Expand or remove every {{ENV_VARS}} occurrence in `template`."""
    if _ENV_TOKEN not in template:
        return template

    out: list[str] = []
    for line in template.splitlines():
        if _ENV_TOKEN not in line:
            out.append(line)
            continue

        if line.strip() == _ENV_TOKEN:
            indent = line[: len(line) - len(line.lstrip())]
            if env_vars:
                for e in env_vars:
                    out.append(f"{indent}- name: {e.name}")
                    out.append(f"{indent}  value: {json.dumps(e.value)}")
            elif out and _BARE_ENV_KEY_RE.match(out[-1]):
                out.pop()
            continue

        # Inline use, e.g. `env: {{ENV_VARS}}`
        if env_vars:
            out.append(line.replace(_ENV_TOKEN, json.dumps(_env_entries(env_vars))))

    trailing = "\n" if template.endswith("\n") else ""
    return "\n".join(out) + trailing


def substitute(template: str, values: dict[str, str]) -> str:
    """Replace {{NAME}} for every NAME in `values`; unknown placeholders pass through."""

    def _replace(match: re.Match) -> str:
        name = match.group(1)
        return values[name] if name in values else match.group(0)

    return PLACEHOLDER_RE.sub(_replace, template)


class ManifestRenderer:
    """
    Domain service rendering deployment manifests.
    """

    def placeholder_values(
        self, request: DeploymentRequest, context: RenderContext
    ) -> dict[str, str]:
        ingress = context.ingress
        return {
            "IMAGE": request.image,
            "DEPLOYMENT_NAME": request.deployment_name,
            "NAMESPACE": request.namespace,
            "CONTAINER_NAME": request.container_name,
            "PORT": str(request.port),
            "REPLICAS": str(request.replicas),
            "SERVICE_TYPE": request.service_type.value,
            "RESOURCE_LIMITS_CPU": request.resources.limits_cpu,
            "RESOURCE_LIMITS_MEMORY": request.resources.limits_memory,
            "RESOURCE_REQUESTS_CPU": request.resources.requests_cpu,
            "RESOURCE_REQUESTS_MEMORY": request.resources.requests_memory,
            "IMAGE_PULL_SECRET": context.pull_secret.secret_name if context.pull_secret else "",
            "VERSION": request.version,
            "INGRESS_HOST": ingress.host if ingress else "",
            "INGRESS_SECRET": (
                ingress.secret_name if ingress else f"{request.deployment_name}-tls"
            ),
            "INGRESS_ANNOTATIONS": ingress.annotations_yaml if ingress else "",
        }

    def render(
        self,
        request: DeploymentRequest,
        template: Optional[str] = None,
        context: Optional[RenderContext] = None,
    ) -> RenderedManifest:
        context = context or RenderContext()
        documents: list[str] = []

        if context.pull_secret:
            documents.append(_dump(self.build_pull_secret(request, context.pull_secret)))

        if template is None:
            documents.append(_dump(self.build_deployment(request, context)))
        else:
            documents.extend(split_documents(self.render_template(template, request, context)))

        return RenderedManifest(tuple(documents))

    def render_template(
        self, template: str, request: DeploymentRequest, context: RenderContext
    ) -> str:
        if _INGRESS_TOKEN in template and context.ingress is None:
            kept = [doc for doc in split_documents(template) if _INGRESS_TOKEN not in doc]
            logger.warning(
                "No ingress host could be resolved; dropping the ingress section of the template"
            )
            template = "---\n".join(kept)

        rendered = render_env_block(request.env_vars, template)
        rendered = substitute(rendered, self.placeholder_values(request, context))

        leftover = unresolved_placeholders(rendered)
        if leftover:
            raise RenderingError(
                f"Rendered manifest still contains placeholders: {', '.join(sorted(leftover))}"
            )
        passthrough = set(PLACEHOLDER_RE.findall(rendered)) - RECOGNIZED_PLACEHOLDERS
        if passthrough:
            logger.debug("Leaving unrecognised placeholders untouched: %s", sorted(passthrough))
        return rendered

    def build_deployment(
        self, request: DeploymentRequest, context: Optional[RenderContext] = None
    ) -> dict[str, Any]:
        context = context or RenderContext()
        container: dict[str, Any] = {
            "name": request.container_name,
            "image": request.image,
            "ports": [{"containerPort": request.port, "protocol": "TCP"}],
            "resources": {
                "limits": {
                    "cpu": request.resources.limits_cpu,
                    "memory": request.resources.limits_memory,
                },
                "requests": {
                    "cpu": request.resources.requests_cpu,
                    "memory": request.resources.requests_memory,
                },
            },
        }

        if request.probes.enabled:
            if request.liveness_path:
                container["livenessProbe"] = {
                    "httpGet": {"path": request.liveness_path, "port": request.port},
                    "initialDelaySeconds": 30,
                    "periodSeconds": 10,
                    "timeoutSeconds": 5,
                    "failureThreshold": 3,
                }
            if request.readiness_path:
                container["readinessProbe"] = {
                    "httpGet": {"path": request.readiness_path, "port": request.port},
                    "initialDelaySeconds": 5,
                    "periodSeconds": 5,
                    "timeoutSeconds": 3,
                    "failureThreshold": 3,
                }

        if request.env_vars:
            container["env"] = _env_entries(request.env_vars)

        pod_spec: dict[str, Any] = {}
        if context.pull_secret:
            pod_spec["imagePullSecrets"] = [{"name": context.pull_secret.secret_name}]
        pod_spec["containers"] = [container]

        return {
            "apiVersion": "apps/v1",
            "kind": "Deployment",
            "metadata": {
                "name": request.deployment_name,
                "namespace": request.namespace,
                "labels": _labels(request),
            },
            "spec": {
                "replicas": request.replicas,
                "selector": {"matchLabels": _labels(request)},
                "template": {
                    "metadata": {"labels": _labels(request)},
                    "spec": pod_spec,
                },
            },
        }

    def build_service(self, request: DeploymentRequest) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Service",
            "metadata": {
                "name": request.deployment_name,
                "namespace": request.namespace,
                "labels": _labels(request),
            },
            "spec": {
                "type": request.service_type.value,
                "selector": _labels(request),
                "ports": [
                    {
                        "port": SERVICE_PORT,
                        "targetPort": request.port,
                        "protocol": "TCP",
                        "name": "http",
                    }
                ],
            },
        }

    def build_ingress(
        self, request: DeploymentRequest, ingress: IngressSettings
    ) -> dict[str, Any]:
        metadata: dict[str, Any] = {
            "name": request.deployment_name,
            "namespace": request.namespace,
            "labels": _labels(request),
        }
        if ingress.annotations:
            metadata["annotations"] = dict(ingress.annotations)

        spec: dict[str, Any] = {}
        if ingress.tls:
            spec["tls"] = [{"hosts": [ingress.host], "secretName": ingress.secret_name}]
        spec["rules"] = [
            {
                "host": ingress.host,
                "http": {
                    "paths": [
                        {
                            "path": "/",
                            "pathType": "Prefix",
                            "backend": {
                                "service": {
                                    "name": request.deployment_name,
                                    "port": {"number": SERVICE_PORT},
                                }
                            },
                        }
                    ]
                },
            }
        ]
        return {
            "apiVersion": "networking.k8s.io/v1",
            "kind": "Ingress",
            "metadata": metadata,
            "spec": spec,
        }

    def build_pull_secret(
        self, request: DeploymentRequest, credentials: RegistryCredentials
    ) -> dict[str, Any]:
        return {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {"name": credentials.secret_name, "namespace": request.namespace},
            "type": "kubernetes.io/dockerconfigjson",
            "data": {".dockerconfigjson": credentials.dockerconfigjson()},
        }

    def render_service(self, request: DeploymentRequest) -> RenderedManifest:
        return RenderedManifest((_dump(self.build_service(request)),))

    def render_ingress(
        self, request: DeploymentRequest, ingress: IngressSettings
    ) -> RenderedManifest:
        return RenderedManifest((_dump(self.build_ingress(request, ingress)),))
