"""
Phase Tracing

Architectural Intent:
- One span per run with a child span per orchestration phase
- Telemetry is optional; without it every phase runs untraced
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from kubeship.domain.ports.telemetry_port import TelemetryPort


class RunTracer:
    def __init__(
        self,
        telemetry: Optional[TelemetryPort],
        name: str,
        attributes: Optional[dict[str, str]] = None,
    ):
        self.telemetry = telemetry
        self.name = name
        self.attributes = attributes or {}
        self.root: Optional[Any] = None

    @contextmanager
    def run(self) -> Iterator[RunTracer]:
        if self.telemetry is None:
            yield self
            return
        self.root = self.telemetry.start_span(self.name, self.attributes)
        try:
            yield self
        finally:
            self.telemetry.end_span(self.root)
            self.root = None

    @contextmanager
    def phase(self, phase: str) -> Iterator[Optional[Any]]:
        """Span `<run>.<phase>` nested under the run span."""
        if self.telemetry is None:
            yield None
            return
        span = self.telemetry.start_span(
            f"{self.name}.{phase}", self.attributes, parent=self.root
        )
        try:
            yield span
        finally:
            self.telemetry.end_span(span)
