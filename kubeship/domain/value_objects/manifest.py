"""
Rendered Manifest

Architectural Intent:
- Ordered set of resource documents ready to hand to the cluster
- Transient: exists only for the duration of one apply
- Knows which resource kinds it carries so later steps can defer to a template
"""

from __future__ import annotations
import re
from dataclasses import dataclass

# Placeholders the renderer substitutes; anything else in {{...}} passes through
RECOGNIZED_PLACEHOLDERS = frozenset(
    {
        "IMAGE",
        "DEPLOYMENT_NAME",
        "NAMESPACE",
        "CONTAINER_NAME",
        "PORT",
        "REPLICAS",
        "SERVICE_TYPE",
        "RESOURCE_LIMITS_CPU",
        "RESOURCE_LIMITS_MEMORY",
        "RESOURCE_REQUESTS_CPU",
        "RESOURCE_REQUESTS_MEMORY",
        "IMAGE_PULL_SECRET",
        "VERSION",
        "INGRESS_HOST",
        "INGRESS_SECRET",
        "INGRESS_ANNOTATIONS",
        "ENV_VARS",
    }
)

PLACEHOLDER_RE = re.compile(r"\{\{([A-Z0-9_]+)\}\}")
DOCUMENT_SEPARATOR_RE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_KIND_RE = re.compile(r"^kind:[ \t]*['\"]?([A-Za-z]+)", re.MULTILINE)


def split_documents(text: str) -> list[str]:
    """Split multi-document YAML text on '---' lines, dropping empty documents."""
    return [doc for doc in DOCUMENT_SEPARATOR_RE.split(text) if doc.strip()]


def document_kind(document: str) -> str:
    match = _KIND_RE.search(document)
    return match.group(1) if match else ""


def unresolved_placeholders(text: str) -> set[str]:
    return {m for m in PLACEHOLDER_RE.findall(text) if m in RECOGNIZED_PLACEHOLDERS}


@dataclass(frozen=True)
class RenderedManifest:
    documents: tuple[str, ...]

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(document_kind(doc) for doc in self.documents)

    def defines(self, kind: str) -> bool:
        return kind in self.kinds

    @property
    def text(self) -> str:
        return "---\n".join(
            doc if doc.endswith("\n") else doc + "\n" for doc in self.documents
        )

    @property
    def is_empty(self) -> bool:
        return not self.documents
