"""
Domain Services Package

Architectural Intent:
- Contains pure domain services with no I/O
"""

from kubeship.domain.services.manifest_renderer import (
    ManifestRenderer,
    RenderContext,
    SERVICE_PORT,
)

__all__ = [
    "ManifestRenderer",
    "RenderContext",
    "SERVICE_PORT",
]
